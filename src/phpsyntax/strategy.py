"""Choice of how files are handed to PHP, from the detected version and options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from phpsyntax.version import PhpVersion

# `php -l` accepts several files per invocation since PHP 8.3.
MULTIPLE_FILES_LINT_VERSION = (8, 3)
JIT_VERSION = (8, 0)


@dataclass(frozen=True)
class BatchCheck:
    """``php -l`` over command lines built from the enumerated files."""

    php: str
    multiple_files: bool

    def describe(self) -> str:
        if self.multiple_files:
            return "Using php -l to check the files (many at once)"
        return "Using php -l to check the files (one by one)"


@dataclass(frozen=True)
class AggregateCheck:
    """One run of the bundled checker.php, which walks and compiles everything with OPcache."""

    php: str
    flags: tuple[str, ...]

    def describe(self) -> str:
        return "Using opcache to check the files"


Strategy: TypeAlias = BatchCheck | AggregateCheck


def aggregate_check_flags(version: PhpVersion) -> tuple[str, ...]:
    flags = [
        "-d", "opcache.enable_cli=1",
        "-d", "opcache.file_update_protection=0",
    ]
    if version.at_least(*JIT_VERSION):
        flags.extend(["-d", "opcache.jit=disable"])
    return tuple(flags)


def select_strategy(
    version: PhpVersion,
    *,
    support_duplicated_names: bool,
    php: str = "php",
) -> Strategy:
    if version.at_least(*MULTIPLE_FILES_LINT_VERSION):
        return BatchCheck(php=php, multiple_files=True)
    if support_duplicated_names:
        return BatchCheck(php=php, multiple_files=False)
    return AggregateCheck(php=php, flags=aggregate_check_flags(version))
