"""Runs the selected strategy and reduces the child outcomes into a run verdict."""

from __future__ import annotations

import asyncio
from contextlib import ExitStack
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
import os
import re
import subprocess
import sys
from typing import Callable, Mapping

import typer

from phpsyntax.command_line import (
    LimitProbeDeps,
    build_lint_prefix,
    generate_command_lines,
    max_command_line_length,
)
from phpsyntax.escaping import escape_argument
from phpsyntax.files import FilesProvider, ScandirFn
from phpsyntax.options import CheckOptions
from phpsyntax.outcome import RunVerdict
from phpsyntax.process import AsyncProcessLauncher, Invocation, ProcessLauncher
from phpsyntax.strategy import AggregateCheck, BatchCheck, Strategy, select_strategy
from phpsyntax.version import PhpVersion, probe_php_version

HELPER_SCRIPT = "checker.php"
HELPER_EXIT_OPCACHE_MISSING = 2
HELPER_EXIT_OPCACHE_DISABLED = 3

_HELPER_COUNTS_RE = re.compile(r"files checked: (?P<checked>\d+) \(skipped: (?P<skipped>\d+)\)")

RunCommand = Callable[..., subprocess.CompletedProcess[str]]
EchoFn = Callable[..., None]


@dataclass(frozen=True)
class CheckerDeps:
    launcher: ProcessLauncher = field(default_factory=AsyncProcessLauncher)
    run: RunCommand = subprocess.run
    echo: EchoFn = typer.echo
    platform: str = sys.platform
    environ: Mapping[str, str] | None = None
    helper_path: Path | None = None
    scandir: ScandirFn = os.scandir

    def limit_probe_deps(self) -> LimitProbeDeps:
        return LimitProbeDeps(
            run=self.run,
            environ=self.environ,
            platform=self.platform,
            echo=self.echo,
        )


def _escape(deps: CheckerDeps) -> Callable[[str], str]:
    return lambda arg: escape_argument(arg, platform=deps.platform)


async def run_batch_check(
    options: CheckOptions,
    strategy: BatchCheck,
    deps: CheckerDeps,
    verdict: RunVerdict | None = None,
) -> RunVerdict:
    verdict = verdict if verdict is not None else RunVerdict()
    if options.debug:
        deps.echo(strategy.describe())
    max_length = (
        max_command_line_length(options.debug, deps.limit_probe_deps())
        if strategy.multiple_files
        else 0
    )
    escape = _escape(deps)
    provider = FilesProvider(options, scandir=deps.scandir)
    command_lines = generate_command_lines(
        provider.iter_files(),
        prefix=build_lint_prefix(strategy.php, platform=deps.platform),
        max_length=max_length,
        escape=escape,
    )
    for command_line in command_lines:
        if options.debug:
            deps.echo(f"Executing: {command_line}")
        result = await deps.launcher.run(
            Invocation(
                command=command_line,
                cwd=Path(options.directory),
                timeout=options.timeout,
            )
        )
        verdict = verdict.fold(result.outcome)
    return verdict.with_counts(
        files_processed=provider.files_provided,
        items_skipped=provider.items_skipped,
    )


def aggregate_check_arguments(options: CheckOptions) -> list[str]:
    return [f"+{file}" for file in options.include] + [f"-{path}" for path in options.exclude]


def parse_helper_counts(stdout: bytes) -> tuple[int, int]:
    match = _HELPER_COUNTS_RE.search(stdout.decode("utf-8", "replace"))
    if match is None:
        return 0, 0
    return int(match.group("checked")), int(match.group("skipped"))


async def run_aggregate_check(
    options: CheckOptions,
    strategy: AggregateCheck,
    deps: CheckerDeps,
    verdict: RunVerdict | None = None,
) -> RunVerdict:
    verdict = verdict if verdict is not None else RunVerdict()
    if options.debug:
        deps.echo(strategy.describe())
    with ExitStack() as stack:
        helper = deps.helper_path
        if helper is None:
            resource = resources.files("phpsyntax").joinpath("data").joinpath(HELPER_SCRIPT)
            helper = stack.enter_context(resources.as_file(resource))
        argv = (
            strategy.php,
            *strategy.flags,
            str(helper),
            *aggregate_check_arguments(options),
        )
        invocation = Invocation(
            command=argv,
            cwd=Path(options.directory),
            capture_stdout=True,
            timeout=options.timeout,
        )
        if options.debug:
            deps.echo(f"Executing: {invocation.display()}")
        result = await deps.launcher.run(invocation)
    if result.exit_code in (HELPER_EXIT_OPCACHE_MISSING, HELPER_EXIT_OPCACHE_DISABLED):
        deps.echo(
            "OPcache is required to check the files with this PHP version; "
            "enable it or set support-duplicated-names to check files one by one.",
            err=True,
        )
    checked, skipped = parse_helper_counts(result.stdout)
    return verdict.fold(result.outcome).with_counts(
        files_processed=checked,
        items_skipped=skipped,
    )


async def execute_strategy(
    options: CheckOptions,
    strategy: Strategy,
    deps: CheckerDeps,
) -> RunVerdict:
    match strategy:
        case BatchCheck():
            return await run_batch_check(options, strategy, deps)
        case AggregateCheck():
            return await run_aggregate_check(options, strategy, deps)
    raise TypeError(f"Unsupported strategy: {strategy!r}")


async def check(options: CheckOptions, deps: CheckerDeps | None = None) -> RunVerdict:
    """Detect the PHP version, run the matching strategy and print the summary."""
    deps = deps or CheckerDeps()
    version: PhpVersion = probe_php_version(options.php, run=deps.run)
    deps.echo(f"Checking files with PHP {version}")
    strategy = select_strategy(
        version,
        support_duplicated_names=options.support_duplicated_names,
        php=options.php,
    )
    verdict = await execute_strategy(options, strategy, deps)
    for line in verdict.summary_lines():
        deps.echo(line)
    return verdict


def run_check(options: CheckOptions, deps: CheckerDeps | None = None) -> RunVerdict:
    return asyncio.run(check(options, deps))
