from __future__ import annotations

from dataclasses import dataclass
import re
import subprocess
from typing import Callable

from phpsyntax.exceptions import ProbeError, VersionParseError

RunCommand = Callable[..., subprocess.CompletedProcess[str]]

_VERSION_ID_RE = re.compile(r"(?P<major>[1-9][0-9]*)(?P<minor>[0-9]{2})(?P<patch>[0-9]{2})")


@dataclass(frozen=True, order=True)
class PhpVersion:
    major: int
    minor: int
    patch: int

    def at_least(self, major: int, minor: int = 0) -> bool:
        return (self.major, self.minor) >= (major, minor)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_php_version(output: str, *, stderr: str = "") -> PhpVersion:
    """Parse a ``PHP_VERSION_ID`` such as ``80312`` into ``8.3.12``."""
    match = _VERSION_ID_RE.fullmatch(output.strip())
    if match is None:
        raise VersionParseError(output, stderr=stderr)
    return PhpVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
    )


def probe_php_version(php: str = "php", *, run: RunCommand = subprocess.run) -> PhpVersion:
    try:
        completed = run(
            [php, "-n", "-r", "echo PHP_VERSION_ID;"],
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise ProbeError(f"Failed to run {php}: {exc}") from exc
    return parse_php_version(completed.stdout or "", stderr=(completed.stderr or "").strip())
