"""GitHub Actions workflow commands used to surface failures."""

from __future__ import annotations

from typing import Callable

import typer


def escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def error_command(message: str) -> str:
    return f"::error::{escape_data(message)}"


def set_failed(message: str, *, echo: Callable[..., None] = typer.echo) -> None:
    """Annotate the workflow run with ``message``; the caller exits with status 1."""
    echo(error_command(message))
    echo(message, err=True)
