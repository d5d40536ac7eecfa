"""Error taxonomy for phpsyntax runs."""

from __future__ import annotations


class PhpSyntaxCheckError(RuntimeError):
    """Base class for failures that abort a run and are reported to the CI."""


class ConfigurationError(PhpSyntaxCheckError):
    """Invalid options (bad directory, absolute include path, non-boolean flag)."""


class FileEnumerationError(PhpSyntaxCheckError):
    """A directory below the root could not be listed."""


class ProbeError(PhpSyntaxCheckError):
    """The PHP interpreter could not be run to detect its version."""


class VersionParseError(ProbeError):
    """The interpreter printed something that is not a PHP_VERSION_ID."""

    def __init__(self, output: str, *, stderr: str = ""):
        message = f"Failed to parse version {output!r}"
        if stderr:
            message += f"\n{stderr}"
        super().__init__(message)
        self.output = output
        self.stderr = stderr
