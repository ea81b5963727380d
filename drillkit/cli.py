"""Command-line entry point: list, run, hint, verify and watch exercises."""

from __future__ import annotations

import argparse
import queue
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator, Sequence
from itertools import chain, dropwhile
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from drillkit import ui
from drillkit.exercise import Exercise, load_exercises
from drillkit.run import run
from drillkit.verify import verify

VERSION = "4.4.0"
INFO_FILE = "info.toml"
DEFAULT_OUT_FILE = "default_out.txt"
EXERCISES_DIR = "./exercises"
DEBOUNCE_SECONDS = 2.0

_WELCOME = r"""
       welcome to...
      _      _ _ _ _    _ _
   __| |_ __(_) | | | _(_) |_
  / _` | '__| | | | |/ / | __|
 | (_| | |  | | | |   <| | |_
  \__,_|_|  |_|_|_|_|\_\_|\__|
"""


class _Parser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="drillkit",
        description="A collection of small exercises to practise reading and writing code.",
    )
    parser.add_argument(
        "--nocapture", action="store_true", help="show outputs from the test exercises"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser(
        "verify", help="verifies all exercises according to the recommended order"
    )
    commands.add_parser("watch", help="reruns `verify` when files were edited")

    run_parser = commands.add_parser("run", help="runs/tests a single exercise")
    run_parser.add_argument("name", help="the name of the exercise")

    hint_parser = commands.add_parser("hint", help="returns a hint for the given exercise")
    hint_parser.add_argument("name", help="the name of the exercise")

    list_parser = commands.add_parser("list", help="lists the available exercises")
    list_parser.add_argument(
        "-p", "--paths", action="store_true", help="show only the paths of the exercises"
    )
    list_parser.add_argument(
        "-n", "--names", action="store_true", help="show only the names of the exercises"
    )
    list_parser.add_argument(
        "-f",
        "--filter",
        default=None,
        help="a string to match exercise names; comma separated patterns are accepted",
    )
    list_parser.add_argument(
        "-u", "--unsolved", action="store_true", help="display only unsolved exercises"
    )
    list_parser.add_argument(
        "-s", "--solved", action="store_true", help="display only solved exercises"
    )
    return parser


def rustc_exists() -> bool:
    """Whether `rustc --version` can be run successfully."""
    try:
        proc = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL)
    except OSError:
        return False
    return proc.returncode == 0


def find_exercise(name: str, exercises: Iterable[Exercise]) -> Exercise:
    """Return the exercise called *name*; raise LookupError if there is none."""
    for exercise in exercises:
        if exercise.name == name:
            return exercise
    raise LookupError(f"No exercise found for '{name}'!")


def list_lines(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    filter: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> Iterator[str]:
    """Yield the lines of the exercise listing, ending with a progress line."""
    if not paths and not names:
        yield f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}"

    patterns = [p for p in (filter or "").lower().split(",") if p.strip()]
    done_count = 0
    for exercise in exercises:
        fname = str(exercise.path)
        done = exercise.looks_done()
        if done:
            done_count += 1
        matches = any(p in exercise.name or p in fname for p in patterns)
        wanted = (
            (done and solved)
            or (not done and unsolved)
            or (not solved and not unsolved)
        )
        if not (wanted and (matches or filter is None)):
            continue
        if paths:
            yield fname
        elif names:
            yield exercise.name
        else:
            status = "Done" if done else "Pending"
            yield f"{exercise.name:<17}\t{fname:<46}\t{status:<7}"

    total = len(exercises)
    percentage = f"{done_count / total * 100:.2f}" if total else "NaN"
    yield f"Progress: You completed {done_count} / {total} exercises ({percentage} %)."


class _SharedHint:
    """Hint of the failing exercise, shared with the input thread."""

    def __init__(self, hint: str) -> None:
        self._lock = threading.Lock()
        self._hint = hint

    def get(self) -> str:
        with self._lock:
            return self._hint

    def set(self, hint: str) -> None:
        with self._lock:
            self._hint = hint


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[str]) -> None:
        super().__init__()
        self._events = events

    def on_created(self, event: FileSystemEvent) -> None:
        self._events.put(str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        self._events.put(str(event.src_path))


def _clear_screen() -> None:
    print("\x1bc")


def _watch_shell(hint: _SharedHint) -> None:
    for raw in sys.stdin:
        command = raw.strip()
        if command == "hint":
            print(hint.get())
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        else:
            print(f"unknown command: {command}")


def _spawn_watch_shell(hint: _SharedHint) -> None:
    print(
        "Type 'hint' or open the corresponding README.md file to get help "
        "or type 'clear' to clear the screen."
    )
    threading.Thread(target=_watch_shell, args=(hint,), daemon=True).start()


def _debounced(events: queue.Queue[str]) -> list[str]:
    """Wait for a change, then gather changes until things stay quiet."""
    collected = [events.get()]
    while True:
        try:
            collected.append(events.get(timeout=DEBOUNCE_SECONDS))
        except queue.Empty:
            break
    return list(dict.fromkeys(collected))


def _ends_with(path: Path, suffix: Path) -> bool:
    tail = Path(suffix).parts
    return bool(tail) and path.parts[-len(tail):] == tail


def watch(exercises: Sequence[Exercise], verbose: bool) -> None:
    """Verify exercises, then re-verify whenever an exercise file changes.

    Returns once every exercise passes; raises OSError if watching fails.
    """
    if not Path(EXERCISES_DIR).is_dir():
        raise FileNotFoundError(f"cannot watch missing directory {EXERCISES_DIR!r}")

    events: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(events), EXERCISES_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        failed = verify(exercises, verbose)
        if failed is None:
            return
        hint = _SharedHint(failed.hint)
        _spawn_watch_shell(hint)
        while True:
            for changed in _debounced(events):
                path = Path(changed)
                if path.suffix != ".rs" or not path.exists():
                    continue
                filepath = path.resolve()
                pending = chain(
                    dropwhile(lambda e: not _ends_with(filepath, e.path), exercises),
                    (
                        e
                        for e in exercises
                        if not e.looks_done() and not _ends_with(filepath, e.path)
                    ),
                )
                _clear_screen()
                failed = verify(pending, verbose)
                if failed is None:
                    return
                hint.set(failed.hint)
    finally:
        observer.stop()
        observer.join()


def _print_lines(lines: Iterable[str]) -> int:
    try:
        for line in lines:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()
    except BrokenPipeError:
        return 0
    except OSError:
        return 1
    return 0


def _print_finish() -> None:
    emoji = "★" if ui.no_emoji() else "🎉"
    print(f"{emoji} All exercises completed! {emoji}")
    print()
    print("+----------------------------------------------------+")
    print("|            You made it to the finish line!         |")
    print("+----------------------------------------------------+")
    print()
    print("We hope you enjoyed working through the exercises!")
    print("If you noticed any issues, please don't hesitate to report them.")
    print("You can also contribute your own exercises to help the greater community!")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the exit status."""
    args = _build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(_WELCOME)

    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the exercises directory")
        print("Try `cd` into the directory that holds info.toml!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(Path(DEFAULT_OUT_FILE).read_text(encoding="utf-8"))
        return 0

    if args.command == "list":
        return _print_lines(
            list_lines(
                exercises,
                paths=args.paths,
                names=args.names,
                filter=args.filter,
                unsolved=args.unsolved,
                solved=args.solved,
            )
        )

    if args.command in ("run", "hint"):
        try:
            exercise = find_exercise(args.name, exercises)
        except LookupError as exc:
            print(exc)
            return 1
        if args.command == "hint":
            print(exercise.hint)
            return 0
        return 0 if run(exercise, verbose) else 1

    if args.command == "verify":
        return 0 if verify(exercises, verbose) is None else 1

    try:
        watch(exercises, verbose)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print(
            "Most likely you've run out of disk space or your "
            "'inotify limit' has been reached."
        )
        return 1
    _print_finish()
    return 0


if __name__ == "__main__":
    sys.exit(main())