from __future__ import annotations

import asyncio
from pathlib import Path
import shlex
import sys
import time

import pytest

from phpsyntax.outcome import Outcome
from phpsyntax.process import AsyncProcessLauncher, Invocation, InvocationResult, ProcessLauncher


def _python(code: str) -> tuple[str, ...]:
    return (sys.executable, "-c", code)


def _launcher(stderr: list[bytes], stdout: list[bytes]) -> AsyncProcessLauncher:
    return AsyncProcessLauncher(stderr_sink=stderr.append, stdout_sink=stdout.append)


def test_launcher_satisfies_protocol() -> None:
    assert isinstance(AsyncProcessLauncher(), ProcessLauncher)


def test_stderr_is_forwarded_and_stdout_discarded(tmp_path: Path) -> None:
    stderr: list[bytes] = []
    stdout: list[bytes] = []
    code = "import sys; print('ignored'); sys.stderr.write('PHP Warning: x\\n')"
    result = asyncio.run(
        _launcher(stderr, stdout).run(Invocation(command=_python(code), cwd=tmp_path))
    )
    assert result.exit_code == 0
    assert b"".join(stderr) == b"PHP Warning: x\n"
    assert result.stderr_size == len(b"PHP Warning: x\n")
    assert stdout == []
    assert result.stdout == b""
    assert result.outcome is Outcome.WARNINGS


def test_non_zero_exit_is_an_error(tmp_path: Path) -> None:
    result = asyncio.run(
        _launcher([], []).run(
            Invocation(command=_python("raise SystemExit(255)"), cwd=tmp_path)
        )
    )
    assert result.exit_code == 255
    assert result.outcome is Outcome.ERRORS


def test_captured_stdout_is_forwarded_and_kept(tmp_path: Path) -> None:
    stdout: list[bytes] = []
    result = asyncio.run(
        _launcher([], stdout).run(
            Invocation(
                command=_python("print('files checked: 2 (skipped: 0).')"),
                cwd=tmp_path,
                capture_stdout=True,
            )
        )
    )
    assert result.outcome is Outcome.OK
    assert b"".join(stdout) == result.stdout
    assert b"files checked: 2" in result.stdout


def test_children_run_in_the_requested_directory(tmp_path: Path) -> None:
    code = "import os, sys; sys.exit(0 if os.path.exists('marker.php') else 3)"
    (tmp_path / "marker.php").write_text("<?php", encoding="utf-8")
    result = asyncio.run(_launcher([], []).run(Invocation(command=_python(code), cwd=tmp_path)))
    assert result.exit_code == 0


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell quoting")
def test_shell_command_lines_are_supported(tmp_path: Path) -> None:
    stderr: list[bytes] = []
    command = " ".join(
        [shlex.quote(sys.executable), "-c", shlex.quote("import sys; sys.stderr.write('ok')")]
    )
    result = asyncio.run(_launcher(stderr, []).run(Invocation(command=command, cwd=tmp_path)))
    assert result.exit_code == 0
    assert b"".join(stderr) == b"ok"


def test_missing_executable_is_an_error(tmp_path: Path) -> None:
    stderr: list[bytes] = []
    result = asyncio.run(
        _launcher(stderr, []).run(
            Invocation(command=(str(tmp_path / "no-such-php"),), cwd=tmp_path)
        )
    )
    assert result.exit_code is None
    assert result.error
    assert result.outcome is Outcome.ERRORS


def test_hung_child_is_killed_after_timeout(tmp_path: Path) -> None:
    stderr: list[bytes] = []
    result = asyncio.run(
        _launcher(stderr, []).run(
            Invocation(
                command=_python("import time; time.sleep(30)"),
                cwd=tmp_path,
                timeout=0.5,
            )
        )
    )
    assert result.timed_out
    assert result.outcome is Outcome.ERRORS
    assert b"Timed out after 0.5s" in b"".join(stderr)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell quoting")
def test_timeout_kills_processes_started_by_the_shell(tmp_path: Path) -> None:
    late = "import pathlib, time; time.sleep(1.5); pathlib.Path('late.txt').write_text('x')"
    # The trailing command keeps the shell from exec-ing into python.
    command = f"{shlex.quote(sys.executable)} -c {shlex.quote(late)}; true"
    result = asyncio.run(
        _launcher([], []).run(Invocation(command=command, cwd=tmp_path, timeout=0.3))
    )
    assert result.timed_out
    time.sleep(2.5)
    assert not (tmp_path / "late.txt").exists()


def test_invocation_display() -> None:
    assert Invocation(command="php -l a.php", cwd=Path(".")).display() == "php -l a.php"
    assert Invocation(command=("php", "x.php"), cwd=Path(".")).display() == "php x.php"


def test_result_outcome_uses_stderr_size() -> None:
    assert InvocationResult(exit_code=0, stderr_size=0).outcome is Outcome.OK
    assert InvocationResult(exit_code=0, stderr_size=1).outcome is Outcome.WARNINGS
