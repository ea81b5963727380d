# drillkit

drillkit walks you through a set of small programming exercises. Each
exercise is a source file that you fix until it compiles, passes its tests,
or satisfies the linter. drillkit compiles and runs the exercises for you,
shows what went wrong, and keeps track of how far you have come.

## Installing

```
pip install .
```

drillkit calls `rustc` (and `cargo clean` / `cargo clippy` for lint
exercises), so these must be on your `PATH`. If `rustc --version` cannot be
run, every command except `--version` stops with exit status 1.

## The exercise directory

Run drillkit from the directory that holds `info.toml`; elsewhere it exits
with status 1. That file lists the exercises in the recommended order:

```toml
[[exercises]]
name = "variables1"
path = "exercises/variables/variables1.rs"
mode = "compile"
hint = "Declare the variable with `let`."
```

Every entry needs all four fields. `mode` is one of:

- `compile` – the file must compile, and the program must run without errors;
- `test` – the file is built as a test harness, and its tests must pass;
- `clippy` – the file must compile, and `cargo clippy` must report no
  warnings. For this, drillkit writes a manifest to
  `./exercises/clippy/Cargo.toml`.

Compiled binaries are written to a temporary file in the current directory
and removed afterwards.

An exercise counts as pending while it still holds a comment line such as
`// I AM NOT DONE`. Once an exercise passes, drillkit shows the lines around
that marker; remove the marker when you are happy with your solution and
drillkit moves on to the next exercise.

If you run `drillkit` without a subcommand, it prints a welcome banner and
the contents of `default_out.txt`.

## Commands

```
drillkit verify             # check every exercise in order, stop at the first one that fails
drillkit watch              # like verify, then check again whenever a file under exercises/ changes
drillkit run NAME           # compile and run, or test, one exercise
drillkit hint NAME          # print the hint for one exercise
drillkit list               # show every exercise with its path and status
drillkit --version          # print the version (also -v)
```

Commands exit with status 0 on success and 1 on failure, including an
unknown exercise name or a usage error.

While `watch` is running, type `hint` to see the hint for the exercise that
is failing, or `clear` to clear the screen. When a `.rs` file changes,
drillkit checks that exercise and the ones after it, followed by every
other exercise that is still pending. `watch` ends once everything passes.

`list` accepts these options:

- `-p`, `--paths` – print only the paths;
- `-n`, `--names` – print only the names;
- `-f`, `--filter PATTERNS` – show only exercises whose name or path
  contains one of the comma-separated patterns (the patterns are lower-cased);
- `-u`, `--unsolved` – show only pending exercises;
- `-s`, `--solved` – show only finished exercises.

`list` ends with a progress line:

```
Progress: You completed 12 / 40 exercises (30.00 %).
```

Pass `--nocapture` before the subcommand to see the output of test
exercises even when they pass:

```
drillkit --nocapture run structs3
```

Set the environment variable `NO_EMOJI` to use plain characters in place
of emoji.

## Using it from Python

```python
from drillkit.exercise import load_exercises
from drillkit.verify import verify

exercises = load_exercises("info.toml")
failed = verify(exercises, verbose=False)   # first exercise not passing, or None
```

Other entry points:

- `Exercise.state()` returns a `State`; `state.done()` is true when the
  marker is gone, otherwise `state.context` holds `ContextLine` entries for
  the lines around it. `Exercise.looks_done()` is a shortcut.
- `Exercise.compile()` returns a `CompiledExercise`, usable as a context
  manager that removes the binary on exit; its `run()` returns an
  `ExerciseOutput` with `stdout`, `stderr` and `success`. A failed
  compilation raises `CompileError`, whose `output` holds the compiler's
  messages.
- `drillkit.run.run(exercise, verbose)` runs one exercise and returns
  whether it succeeded.
- `drillkit.cli.list_lines(...)` yields the lines that `drillkit list`
  prints.

## What drillkit does not do

drillkit ships no exercises and no `info.toml` of its own; point it at a
directory that already has them.