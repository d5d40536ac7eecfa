from __future__ import annotations

import pytest

from phpsyntax.outcome import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    Outcome,
    RunVerdict,
    classify_exit,
    exit_code_for,
    reduce_outcomes,
)


def test_outcomes_are_ordered_by_severity() -> None:
    assert Outcome.OK < Outcome.WARNINGS < Outcome.ERRORS


@pytest.mark.parametrize(
    ("outcomes", "expected"),
    [
        ([], Outcome.OK),
        ([Outcome.OK, Outcome.OK], Outcome.OK),
        ([Outcome.OK, Outcome.WARNINGS, Outcome.OK], Outcome.WARNINGS),
        ([Outcome.OK, Outcome.ERRORS, Outcome.WARNINGS], Outcome.ERRORS),
    ],
)
def test_reduce_keeps_the_most_severe(outcomes: list[Outcome], expected: Outcome) -> None:
    verdict = reduce_outcomes(outcomes)
    assert verdict.outcome is expected
    assert verdict.invocations == len(outcomes)


def test_fold_never_lowers_severity() -> None:
    verdict = RunVerdict()
    seen = []
    for outcome in (Outcome.WARNINGS, Outcome.OK, Outcome.ERRORS, Outcome.OK):
        verdict = verdict.fold(outcome)
        seen.append(verdict.outcome)
    assert seen == [Outcome.WARNINGS, Outcome.WARNINGS, Outcome.ERRORS, Outcome.ERRORS]


def test_counts_only_increase() -> None:
    verdict = RunVerdict().with_counts(files_processed=5, items_skipped=2)
    verdict = verdict.with_counts(files_processed=3, items_skipped=4)
    assert (verdict.files_processed, verdict.items_skipped) == (5, 4)


@pytest.mark.parametrize(
    ("exit_code", "stderr_size", "timed_out", "expected"),
    [
        (0, 0, False, Outcome.OK),
        (0, 12, False, Outcome.WARNINGS),
        (255, 0, False, Outcome.ERRORS),
        (1, 30, False, Outcome.ERRORS),
        (None, 0, False, Outcome.ERRORS),
        (None, 0, True, Outcome.ERRORS),
    ],
)
def test_classify_exit(
    exit_code: int | None, stderr_size: int, timed_out: bool, expected: Outcome
) -> None:
    assert classify_exit(exit_code, stderr_size, timed_out=timed_out) is expected


@pytest.mark.parametrize(
    ("outcome", "fail_on_warnings", "expected"),
    [
        (Outcome.OK, False, EXIT_SUCCESS),
        (Outcome.OK, True, EXIT_SUCCESS),
        (Outcome.WARNINGS, False, EXIT_SUCCESS),
        (Outcome.WARNINGS, True, EXIT_FAILURE),
        (Outcome.ERRORS, False, EXIT_FAILURE),
        (Outcome.ERRORS, True, EXIT_FAILURE),
    ],
)
def test_exit_code_mapping(outcome: Outcome, fail_on_warnings: bool, expected: int) -> None:
    verdict = RunVerdict(outcome=outcome)
    assert exit_code_for(verdict, fail_on_warnings=fail_on_warnings) == expected


def test_summary_lines() -> None:
    verdict = RunVerdict(outcome=Outcome.ERRORS, files_processed=3, items_skipped=1)
    assert verdict.summary_lines() == [
        "",
        "Number of files processed: 3",
        "Number of items skipped: 1",
        "ERRORS FOUND!",
    ]
    assert RunVerdict().summary_line() == "No errors found."
    assert RunVerdict(outcome=Outcome.WARNINGS).summary_line() == "WARNINGS FOUND."
