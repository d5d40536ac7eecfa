from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional

import typer

from phpsyntax.actions import set_failed
from phpsyntax.checker import CheckerDeps, run_check
from phpsyntax.exceptions import PhpSyntaxCheckError
from phpsyntax.options import OptionOverrides, resolve_options
from phpsyntax.outcome import EXIT_FAILURE, exit_code_for

app = typer.Typer(add_completion=False)


def _context_checker_deps(ctx: typer.Context) -> CheckerDeps | None:
    obj = ctx.obj
    if isinstance(obj, dict):
        deps = obj.get("checker_deps")
        if isinstance(deps, CheckerDeps):
            return deps
    return None


def _context_environ(ctx: typer.Context) -> Mapping[str, str] | None:
    obj = ctx.obj
    if isinstance(obj, dict):
        environ = obj.get("environ")
        if isinstance(environ, Mapping):
            return environ
    return None


def _context_cwd(ctx: typer.Context) -> Path | None:
    obj = ctx.obj
    if isinstance(obj, dict):
        cwd = obj.get("cwd")
        if isinstance(cwd, Path):
            return cwd
    return None


def _given(values: Optional[List[str]]) -> list[str] | None:
    return list(values) if values else None


@app.callback()
def _root() -> None:
    """Syntax-check PHP files with the PHP interpreter found on the host."""


@app.command()
def check(
    ctx: typer.Context,
    directory: Optional[Path] = typer.Option(
        None, "--directory", help="Root directory (default: current directory)."
    ),
    include: Optional[List[str]] = typer.Option(
        None, "--include", help="File to check even if not found by the walk (repeatable)."
    ),
    exclude: Optional[List[str]] = typer.Option(
        None, "--exclude", help="File or directory to skip (repeatable)."
    ),
    fail_on_warnings: Optional[bool] = typer.Option(
        None, "--fail-on-warnings/--no-fail-on-warnings"
    ),
    support_duplicated_names: Optional[bool] = typer.Option(
        None,
        "--support-duplicated-names/--no-support-duplicated-names",
        help="Check files one by one on PHP < 8.3 instead of using OPcache.",
    ),
    debug: Optional[bool] = typer.Option(None, "--debug/--no-debug"),
    php: Optional[str] = typer.Option(None, "--php", help="PHP interpreter to run."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds after which a PHP process is killed."
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to phpsyntax.toml."),
) -> None:
    """Check the syntax of every PHP file below the root directory."""
    overrides = OptionOverrides(
        directory=directory,
        include=_given(include),
        exclude=_given(exclude),
        fail_on_warnings=fail_on_warnings,
        support_duplicated_names=support_duplicated_names,
        debug=debug,
        php=php,
        timeout=timeout,
        config=config,
    )
    try:
        options = resolve_options(
            overrides,
            environ=_context_environ(ctx),
            cwd=_context_cwd(ctx),
        )
        if options.debug:
            for line in options.describe():
                typer.echo(line)
        verdict = run_check(options, _context_checker_deps(ctx))
    except (PhpSyntaxCheckError, OSError) as exc:
        set_failed(str(exc))
        raise typer.Exit(code=EXIT_FAILURE) from exc
    raise typer.Exit(code=exit_code_for(verdict, fail_on_warnings=options.fail_on_warnings))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
