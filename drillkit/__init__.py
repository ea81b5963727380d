"""Compile, test, lint and track progress through small programming exercises."""

__version__ = "4.4.0"