"""Checking exercises in order and prompting when one is complete."""

from __future__ import annotations

import enum
import sys
from collections.abc import Iterable

from rich.console import Console
from rich.status import Status
from rich.text import Text

from drillkit import ui
from drillkit.exercise import CompileError, Exercise, ExerciseOutput, Mode

SEPARATOR = "===================="


class RunMode(enum.Enum):
    """Whether a passing exercise should prompt about its completion."""

    INTERACTIVE = enum.auto()
    NON_INTERACTIVE = enum.auto()


def _console() -> Console:
    return Console(file=sys.stdout, highlight=False)


def _spinner(message: str) -> Status:
    return _console().status(message)


def _report_compile_failure(exercise: Exercise, output: ExerciseOutput) -> None:
    ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
    print(output.stderr)


def verify(exercises: Iterable[Exercise], verbose: bool) -> Exercise | None:
    """Check exercises in order; return the first one not yet passing, else None."""
    for exercise in exercises:
        if exercise.mode is Mode.TEST:
            passed = _compile_and_test(exercise, RunMode.INTERACTIVE, verbose)
        elif exercise.mode is Mode.COMPILE:
            passed = _compile_and_run_interactively(exercise)
        else:
            passed = _compile_only(exercise)
        if not passed:
            return exercise
    return None


def test(exercise: Exercise, verbose: bool) -> bool:
    """Compile and run the exercise's test harness without prompting."""
    return _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose)


def _compile_only(exercise: Exercise) -> bool:
    try:
        with _spinner(f"Compiling {exercise}..."):
            with exercise.compile():
                pass
    except CompileError as exc:
        _report_compile_failure(exercise, exc.output)
        return False

    ui.success(f"Successfully compiled {exercise}!")
    return prompt_for_completion(exercise, None)


def _compile_and_run_interactively(exercise: Exercise) -> bool:
    try:
        with _spinner(f"Compiling {exercise}...") as status:
            with exercise.compile() as compiled:
                status.update(f"Running {exercise}...")
                output = compiled.run()
    except CompileError as exc:
        _report_compile_failure(exercise, exc.output)
        return False

    if not output.success:
        ui.warn(f"Ran {exercise} with errors")
        print(output.stdout)
        print(output.stderr)
        return False

    ui.success(f"Successfully ran {exercise}!")
    return prompt_for_completion(exercise, output.stdout)


def _compile_and_test(exercise: Exercise, run_mode: RunMode, verbose: bool) -> bool:
    try:
        with _spinner(f"Testing {exercise}..."):
            with exercise.compile() as compiled:
                output = compiled.run()
    except CompileError as exc:
        _report_compile_failure(exercise, exc.output)
        return False

    if not output.success:
        ui.warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(output.stdout)
        return False

    if verbose:
        print(output.stdout)
    ui.success(f"Successfully tested {exercise}")
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None)
    return True


def _success_message(mode: Mode) -> str:
    if mode is Mode.COMPILE:
        return "The code is compiling!"
    if mode is Mode.TEST:
        return "The code is compiling, and the tests pass!"
    if ui.no_emoji():
        return "The code is compiling, and Clippy is happy!"
    return "The code is compiling, and 📎 Clippy 📎 is happy!"


def prompt_for_completion(exercise: Exercise, prompt_output: str | None = None) -> bool:
    """Return True if the exercise is done; otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True

    console = _console()
    message = _success_message(exercise.mode)

    print()
    if ui.no_emoji():
        print(f"~*~ {message} ~*~")
    else:
        print(f"🎉 🎉  {message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        console.print(Text(SEPARATOR, style="bold"), soft_wrap=True)
        print(prompt_output)
        console.print(Text(SEPARATOR, style="bold"), soft_wrap=True)
        print()

    print("You can keep working on this exercise,")
    notice = Text("or jump into the next one by removing the ")
    notice.append("`I AM NOT DONE`", style="bold")
    notice.append(" comment:")
    console.print(notice, soft_wrap=True)
    print()

    for context_line in state.context:
        text = Text(f"{context_line.number:>2}", style="bold blue")
        text.append(" ")
        text.append("|", style="blue")
        text.append("  ")
        text.append(context_line.line, style="bold" if context_line.important else "")
        console.print(text, soft_wrap=True)

    return False