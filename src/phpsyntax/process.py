"""Launching PHP child processes and streaming their diagnostics as they arrive."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass
import os
from pathlib import Path
import signal
import subprocess
import sys
from typing import Callable, Protocol, runtime_checkable

import typer

from phpsyntax.outcome import Outcome, classify_exit

_CHUNK_SIZE = 4096

ByteSink = Callable[[bytes], None]


def _stderr_sink(chunk: bytes) -> None:
    typer.echo(chunk, err=True, nl=False)


def _stdout_sink(chunk: bytes) -> None:
    typer.echo(chunk, nl=False)


def _group_options() -> dict[str, object]:
    # Children lead their own process group so that a shell and the php it
    # started are killed together.
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def _kill_tree(process: asyncio.subprocess.Process) -> None:
    if sys.platform == "win32":
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(process.pid)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    else:
        with suppress(ProcessLookupError, PermissionError):
            os.killpg(process.pid, signal.SIGKILL)
    with suppress(ProcessLookupError):
        process.kill()


@dataclass(frozen=True)
class Invocation:
    """One child process.

    A ``str`` command runs through the shell (the batched ``php -l`` lines are
    built as shell text); a tuple is executed directly.
    """

    command: str | tuple[str, ...]
    cwd: Path
    capture_stdout: bool = False
    timeout: float | None = None

    def display(self) -> str:
        if isinstance(self.command, str):
            return self.command
        return " ".join(self.command)


@dataclass(frozen=True)
class InvocationResult:
    exit_code: int | None
    stderr_size: int
    stdout: bytes = b""
    timed_out: bool = False
    error: str | None = None

    @property
    def outcome(self) -> Outcome:
        return classify_exit(self.exit_code, self.stderr_size, timed_out=self.timed_out)


@runtime_checkable
class ProcessLauncher(Protocol):
    async def run(self, invocation: Invocation) -> InvocationResult: ...


class _StreamPump:
    def __init__(self, sink: ByteSink, *, keep: bool = False):
        self._sink = sink
        self._keep = keep
        self.size = 0
        self.chunks: list[bytes] = []

    async def drain(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            if not chunk:
                return
            self.size += len(chunk)
            if self._keep:
                self.chunks.append(chunk)
            self._sink(chunk)


class AsyncProcessLauncher:
    """Runs children with stdin closed and stderr forwarded live.

    Stdout is discarded unless the invocation asks for it, in which case it is
    both forwarded and kept. A child exceeding its timeout is killed.
    """

    def __init__(
        self,
        *,
        stderr_sink: ByteSink = _stderr_sink,
        stdout_sink: ByteSink = _stdout_sink,
    ) -> None:
        self._stderr_sink = stderr_sink
        self._stdout_sink = stdout_sink

    async def _spawn(self, invocation: Invocation) -> asyncio.subprocess.Process:
        stdout = (
            asyncio.subprocess.PIPE
            if invocation.capture_stdout
            else asyncio.subprocess.DEVNULL
        )
        if isinstance(invocation.command, str):
            return await asyncio.create_subprocess_shell(
                invocation.command,
                cwd=invocation.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=stdout,
                stderr=asyncio.subprocess.PIPE,
                **_group_options(),
            )
        return await asyncio.create_subprocess_exec(
            *invocation.command,
            cwd=invocation.cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=stdout,
            stderr=asyncio.subprocess.PIPE,
            **_group_options(),
        )

    async def run(self, invocation: Invocation) -> InvocationResult:
        try:
            process = await self._spawn(invocation)
        except OSError as exc:
            self._stderr_sink(f"{exc}\n".encode("utf-8", "replace"))
            return InvocationResult(exit_code=None, stderr_size=0, error=str(exc))

        stderr_pump = _StreamPump(self._stderr_sink)
        stdout_pump = _StreamPump(self._stdout_sink, keep=True)
        finished = asyncio.gather(
            stderr_pump.drain(process.stderr),
            stdout_pump.drain(process.stdout),
            process.wait(),
        )
        try:
            await asyncio.wait_for(finished, timeout=invocation.timeout)
        except asyncio.CancelledError:
            _kill_tree(process)
            raise
        except asyncio.TimeoutError:
            _kill_tree(process)
            await process.wait()
            message = f"Timed out after {invocation.timeout:g}s: {invocation.display()}\n"
            self._stderr_sink(message.encode("utf-8", "replace"))
            return InvocationResult(
                exit_code=None,
                stderr_size=stderr_pump.size,
                stdout=b"".join(stdout_pump.chunks),
                timed_out=True,
                error=message.strip(),
            )
        return InvocationResult(
            exit_code=process.returncode,
            stderr_size=stderr_pump.size,
            stdout=b"".join(stdout_pump.chunks),
        )
