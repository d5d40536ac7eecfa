"""phpsyntax package root."""

from phpsyntax.exceptions import (
    ConfigurationError,
    FileEnumerationError,
    PhpSyntaxCheckError,
    ProbeError,
    VersionParseError,
)

__all__ = [
    "__version__",
    "ConfigurationError",
    "FileEnumerationError",
    "PhpSyntaxCheckError",
    "ProbeError",
    "VersionParseError",
]

__version__ = "0.1.0"
