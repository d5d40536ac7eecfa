from __future__ import annotations

import re
import shlex
import sys

_SAFE_ARGUMENT_RE = re.compile(r"[a-zA-Z0-9_/.\-]+")


def _quote_windows(arg: str) -> str:
    # '"' cannot occur in Windows file names; trailing backslashes are doubled
    # so that they do not escape the closing quote.
    stripped = arg.rstrip("\\")
    trailing = len(arg) - len(stripped)
    return '"' + stripped + "\\" * (2 * trailing) + '"'


def escape_argument(arg: str, *, platform: str = sys.platform) -> str:
    """Return ``arg`` as a token that the host shell expands back to ``arg``.

    Paths made only of ``[a-zA-Z0-9_/.-]`` are returned unchanged. On Windows
    backslashes count as ``/`` for that test.
    """
    windows = platform == "win32"
    check = arg.replace("\\", "/") if windows else arg
    if _SAFE_ARGUMENT_RE.fullmatch(check):
        return arg
    if windows:
        return _quote_windows(arg)
    return shlex.quote(arg)
