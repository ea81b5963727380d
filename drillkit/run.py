"""Running a single exercise and showing its output."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.status import Status

from drillkit import ui
from drillkit.exercise import CompileError, Exercise, Mode
from drillkit.verify import test


def _spinner(message: str) -> Status:
    return Console(file=sys.stdout, highlight=False).status(message)


def run(exercise: Exercise, verbose: bool) -> bool:
    """Compile and run (or test) one exercise; return whether it succeeded."""
    if exercise.mode is Mode.TEST:
        return test(exercise, verbose)
    return _compile_and_run(exercise)


def _compile_and_run(exercise: Exercise) -> bool:
    try:
        with _spinner(f"Compiling {exercise}...") as status:
            with exercise.compile() as compiled:
                status.update(f"Running {exercise}...")
                output = compiled.run()
    except CompileError as exc:
        ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        return False

    print(output.stdout)
    if output.success:
        ui.success(f"Successfully ran {exercise}")
        return True

    print(output.stderr)
    ui.warn(f"Ran {exercise} with errors")
    return False