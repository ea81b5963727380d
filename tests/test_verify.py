import subprocess
from pathlib import Path

import pytest

from drillkit.exercise import Exercise, Mode, temp_file
from drillkit.verify import SEPARATOR, prompt_for_completion, test, verify

PENDING_SOURCE = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED_SOURCE = "// fake_exercise\n\nfn main() {\n\n}\n"


class FakeToolchain:
    def __init__(
        self,
        run_ok=True,
        stdout="",
        stderr="",
        compile_stderr="",
        failing_sources=(),
    ):
        self.run_ok = run_ok
        self.stdout = stdout
        self.stderr = stderr
        self.compile_stderr = compile_stderr
        self.failing_sources = set(failing_sources)
        self.calls = []

    def __call__(self, args, **kwargs):
        args = list(args)
        self.calls.append(args)
        if args[0] in ("rustc", "cargo"):
            failed = any(arg in self.failing_sources for arg in args)
            if "-o" in args and not failed:
                Path(args[args.index("-o") + 1]).write_bytes(b"")
            return subprocess.CompletedProcess(
                args, 1 if failed else 0, b"", self.compile_stderr.encode()
            )
        return subprocess.CompletedProcess(
            args,
            0 if self.run_ok else 101,
            self.stdout.encode(),
            self.stderr.encode(),
        )


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NO_EMOJI", raising=False)
    return tmp_path


@pytest.fixture
def install(workdir, monkeypatch):
    def _install(**options):
        fake = FakeToolchain(**options)
        monkeypatch.setattr(subprocess, "run", fake)
        return fake

    return _install


def make_exercise(directory, name, mode=Mode.COMPILE, pending=False):
    path = directory / f"{name}.rs"
    path.write_text(PENDING_SOURCE if pending else FINISHED_SOURCE, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=f"hint for {name}")


def test_verify_all_done_returns_none(workdir, install, capsys):
    install()
    first = make_exercise(workdir, "first")
    second = make_exercise(workdir, "second")
    assert verify([first, second], False) is None
    out = capsys.readouterr().out
    assert f"Successfully ran {first}!" in out
    assert f"Successfully ran {second}!" in out


def test_verify_stops_at_first_failure(workdir, install, capsys):
    first = make_exercise(workdir, "first")
    second = make_exercise(workdir, "second")
    third = make_exercise(workdir, "third")
    fake = install(failing_sources={str(second.path)}, compile_stderr="bad syntax")
    assert verify([first, second, third], False) is second
    assert all(str(third.path) not in call for call in fake.calls)
    out = capsys.readouterr().out
    assert f"Compiling of {second} failed! Please try again." in out
    assert "bad syntax" in out


def test_verify_pending_exercise_is_returned(workdir, install, capsys):
    install(stdout="hello from binary")
    pending = make_exercise(workdir, "pending", pending=True)
    assert verify([pending], False) is pending
    out = capsys.readouterr().out
    assert "The code is compiling!" in out
    assert "Output:" in out
    assert "hello from binary" in out


def test_verify_runs_test_binary_with_show_output(workdir, install):
    fake = install()
    exercise = make_exercise(workdir, "tested", mode=Mode.TEST)
    assert verify([exercise], False) is None
    assert [temp_file(), "--show-output"] in fake.calls
    assert any(call[:2] == ["rustc", "--test"] for call in fake.calls)


def test_verify_run_failure_reports_errors(workdir, install, capsys):
    install(run_ok=False, stdout="partial", stderr="panicked")
    exercise = make_exercise(workdir, "crashing")
    assert verify([exercise], False) is exercise
    out = capsys.readouterr().out
    assert f"Ran {exercise} with errors" in out
    assert "partial" in out
    assert "panicked" in out


def test_verify_removes_temporary_binary(workdir, install):
    install()
    exercise = make_exercise(workdir, "cleaned")
    verify([exercise], False)
    assert not Path(temp_file()).exists()


def test_verify_clippy_writes_manifest(workdir, install, capsys):
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    fake = install()
    exercise = make_exercise(workdir, "clippy1", mode=Mode.CLIPPY)
    assert verify([exercise], False) is None
    manifest = (workdir / "exercises" / "clippy" / "Cargo.toml").read_text()
    assert 'name = "clippy1"' in manifest
    assert any(call[:2] == ["cargo", "clippy"] for call in fake.calls)
    assert f"Successfully compiled {exercise}!" in capsys.readouterr().out


def test_test_does_not_prompt_for_pending(workdir, install, capsys):
    install()
    exercise = make_exercise(workdir, "pending_test", mode=Mode.TEST, pending=True)
    assert test(exercise, False) is True
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_test_failure_shows_stdout(workdir, install, capsys):
    install(run_ok=False, stdout="assertion failed")
    exercise = make_exercise(workdir, "broken", mode=Mode.TEST)
    assert test(exercise, False) is False
    out = capsys.readouterr().out
    assert f"Testing of {exercise} failed!" in out
    assert "assertion failed" in out


@pytest.mark.parametrize("verbose", [True, False])
def test_test_verbose_controls_output(workdir, install, capsys, verbose):
    install(stdout="THIS TEST TOO SHALL PASS")
    exercise = make_exercise(workdir, "testSuccess", mode=Mode.TEST)
    assert test(exercise, verbose) is True
    out = capsys.readouterr().out
    assert ("THIS TEST TOO SHALL PASS" in out) is verbose
    assert f"Successfully tested {exercise}" in out


def test_prompt_for_completion_done(workdir):
    exercise = make_exercise(workdir, "finished")
    assert prompt_for_completion(exercise, None) is True


def test_prompt_for_completion_pending_shows_context(workdir, capsys):
    exercise = make_exercise(workdir, "pending", pending=True)
    assert prompt_for_completion(exercise, "program output") is False
    lines = capsys.readouterr().out.splitlines()
    assert lines.count(SEPARATOR) == 2
    assert "program output" in lines
    assert " 3 |  // I AM NOT DONE" in lines
    assert " 1 |  // fake_exercise" in lines
    assert "You can keep working on this exercise," in lines


def test_prompt_for_completion_without_emoji(workdir, monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    exercise = make_exercise(workdir, "pending", mode=Mode.TEST, pending=True)
    assert prompt_for_completion(exercise, None) is False
    out = capsys.readouterr().out
    assert "~*~ The code is compiling, and the tests pass! ~*~" in out
    assert "Output:" not in out