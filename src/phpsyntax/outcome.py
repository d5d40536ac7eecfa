"""Per-invocation outcomes and their reduction into a run verdict."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Iterable

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class Outcome(IntEnum):
    """Severity of one external-tool invocation; larger is worse."""

    OK = 0
    WARNINGS = 1
    ERRORS = 2


def classify_exit(exit_code: int | None, stderr_size: int, *, timed_out: bool = False) -> Outcome:
    if timed_out or exit_code is None or exit_code != 0:
        return Outcome.ERRORS
    if stderr_size > 0:
        return Outcome.WARNINGS
    return Outcome.OK


@dataclass(frozen=True)
class RunVerdict:
    outcome: Outcome = Outcome.OK
    files_processed: int = 0
    items_skipped: int = 0
    invocations: int = 0

    def fold(self, outcome: Outcome) -> RunVerdict:
        return replace(
            self,
            outcome=max(self.outcome, outcome),
            invocations=self.invocations + 1,
        )

    def with_counts(self, *, files_processed: int, items_skipped: int) -> RunVerdict:
        return replace(
            self,
            files_processed=max(self.files_processed, files_processed),
            items_skipped=max(self.items_skipped, items_skipped),
        )

    def summary_line(self) -> str:
        if self.outcome is Outcome.ERRORS:
            return "ERRORS FOUND!"
        if self.outcome is Outcome.WARNINGS:
            return "WARNINGS FOUND."
        return "No errors found."

    def summary_lines(self) -> list[str]:
        return [
            "",
            f"Number of files processed: {self.files_processed}",
            f"Number of items skipped: {self.items_skipped}",
            self.summary_line(),
        ]


def reduce_outcomes(outcomes: Iterable[Outcome], verdict: RunVerdict | None = None) -> RunVerdict:
    result = verdict if verdict is not None else RunVerdict()
    for outcome in outcomes:
        result = result.fold(outcome)
    return result


def exit_code_for(verdict: RunVerdict, *, fail_on_warnings: bool) -> int:
    if verdict.outcome is Outcome.ERRORS:
        return EXIT_FAILURE
    if verdict.outcome is Outcome.WARNINGS and fail_on_warnings:
        return EXIT_FAILURE
    return EXIT_SUCCESS
