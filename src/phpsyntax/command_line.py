"""Command-line length ceiling and greedy batching of files into php -l calls."""

from __future__ import annotations

from dataclasses import dataclass
import os
import subprocess
import sys
from typing import Callable, Iterable, Iterator, Mapping

import typer

from phpsyntax.escaping import escape_argument

# https://learn.microsoft.com/en-us/troubleshoot/windows-client/shell-experience/command-line-string-limitation
WINDOWS_MAX_COMMAND_LINE_LENGTH = 8191
# https://www.gnu.org/software/automake/manual/html_node/Length-Limitations.html
POSIX_MIN_ARG_MAX = 4096
# A shell command line travels as one argv entry of `sh -c`, and Linux caps a
# single argument at MAX_ARG_STRLEN (32 pages).
MAX_COMMAND_LINE_LENGTH = 131_072
ENV_VAR_OVERHEAD = 4
SAFETY_MARGIN = 2048

RunCommand = Callable[..., subprocess.CompletedProcess[str]]
EchoFn = Callable[..., None]


@dataclass(frozen=True)
class LimitProbeDeps:
    run: RunCommand = subprocess.run
    environ: Mapping[str, str] | None = None
    platform: str = sys.platform
    echo: EchoFn = typer.echo


@dataclass(frozen=True)
class CommandLineLimit:
    value: int
    derivation: str
    failure: str | None = None


def _environment_size(environ: Mapping[str, str]) -> tuple[int, int]:
    entries = [f"{key}={value}" for key, value in environ.items()]
    return len("\n".join(entries).encode("utf-8")), len(entries)


def _read_arg_max(run: RunCommand) -> int:
    completed = run(
        ["getconf", "ARG_MAX"],
        check=True,
        capture_output=True,
        text=True,
        stdin=subprocess.DEVNULL,
    )
    raw = (completed.stdout or "").strip()
    try:
        arg_max = int(raw)
    except ValueError:
        raise ValueError(f"Failed to parse the output of getconf ARG_MAX ({raw})") from None
    if arg_max < 1:
        raise ValueError(f"Failed to parse the output of getconf ARG_MAX ({raw})")
    return arg_max


def compute_command_line_limit(deps: LimitProbeDeps | None = None) -> CommandLineLimit:
    deps = deps or LimitProbeDeps()
    if deps.platform == "win32":
        return CommandLineLimit(WINDOWS_MAX_COMMAND_LINE_LENGTH, "fixed for Windows")
    environ = os.environ if deps.environ is None else deps.environ
    try:
        arg_max = _read_arg_max(deps.run)
        env_size, num_env_vars = _environment_size(environ)
        result = arg_max - env_size - num_env_vars * ENV_VAR_OVERHEAD - SAFETY_MARGIN
        if result < 1:
            raise ValueError(f"ARG_MAX seems too low ({arg_max})")
    except (OSError, subprocess.SubprocessError, ValueError) as exc:
        return CommandLineLimit(POSIX_MIN_ARG_MAX, "minimum as per POSIX specs", str(exc))
    derivation = (
        f"{arg_max} - {env_size} - {num_env_vars} * {ENV_VAR_OVERHEAD} - {SAFETY_MARGIN}"
    )
    if result > MAX_COMMAND_LINE_LENGTH:
        return CommandLineLimit(
            MAX_COMMAND_LINE_LENGTH,
            f"capped; {derivation} = {result}",
        )
    return CommandLineLimit(result, derivation)


def max_command_line_length(debug: bool = False, deps: LimitProbeDeps | None = None) -> int:
    """Maximum number of characters of one generated command line.

    With ``debug`` the value and how it was obtained are echoed; this never
    changes the result.
    """
    deps = deps or LimitProbeDeps()
    limit = compute_command_line_limit(deps)
    if debug:
        if limit.failure:
            deps.echo(
                f"Failed to detect the maximum length of command lines: {limit.failure}",
                err=True,
            )
        deps.echo(f"Maximum length of command lines: {limit.value} ({limit.derivation})")
    return limit.value


def build_lint_prefix(php: str = "php", *, platform: str = sys.platform) -> str:
    return " ".join(
        [
            escape_argument(php, platform=platform),
            "-n",
            "-d display_errors=stderr",
            "-d error_reporting=-1",
            "-d opcache.enable_cli=0",
            "-l",
        ]
    )


def generate_command_lines(
    files: Iterable[str],
    *,
    prefix: str,
    max_length: int,
    escape: Callable[[str], str] = escape_argument,
) -> Iterator[str]:
    """Greedily pack ``files`` after ``prefix`` into lines shorter than ``max_length``.

    A line always carries at least one file, even if that file alone exceeds
    the ceiling. ``max_length <= 0`` yields one line per file.
    """
    command_line = ""
    for file in files:
        chunk = " " + escape(file)
        if not command_line:
            command_line = prefix + chunk
            continue
        candidate = command_line + chunk
        if len(candidate) < max_length:
            command_line = candidate
        else:
            yield command_line
            command_line = prefix + chunk
    if command_line:
        yield command_line
