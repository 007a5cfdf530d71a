"""Validate a trainee statement against the expected result of an exercise.

Validation pipeline:
1) Decode the exercise's expected rows (corrupt data is an exercise fault and is raised).
2) Run the statement, and for write exercises the validation query, in one rolled-back transaction.
3) Compare actual and expected rows, order-sensitive and type-strict.
4) Report success, an execution error, or a row/field level diff.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Sequence

from . import codec
from .executor import TransactionalExecutor, TransactionHandle
from .exercises import Exercise
from .models import Row, ValidationOutcome

SUCCESS_REPORT = "Well done! Your query returned the expected result."
_MAX_REPORTED_ROWS = 10


class SessionValidator:
    def __init__(self, executor: TransactionalExecutor) -> None:
        self._executor = executor
        self._logger = logging.getLogger(__name__)

    def validate(self, statement: str, exercise: Exercise) -> ValidationOutcome:
        try:
            expected = codec.decode(exercise.expected_result)
        except codec.CorruptPayload:
            self._logger.error("exercise %s has a corrupt expected result", exercise.id)
            raise

        outcome = self._executor.attempt(
            lambda tx: _actual_result(tx, statement, exercise)
        )
        if outcome.failure is not None:
            return ValidationOutcome.failure(
                f"An execution error occurred:\n{outcome.failure.message}"
            )
        actual: list[Row] = outcome.value or []

        try:
            codec.ensure_supported(actual)
        except codec.UnsupportedType as exc:
            return ValidationOutcome.failure(
                f"Your query returned values that cannot be compared: {exc}. "
                "Return properties or scalar values instead."
            )

        if codec.rows_equal(actual, expected):
            self._logger.info("exercise %s validated", exercise.id)
            return ValidationOutcome.success(SUCCESS_REPORT)
        self._logger.info("exercise %s mismatch", exercise.id)
        return ValidationOutcome.failure(mismatch_report(expected, actual))


def _actual_result(tx: TransactionHandle, statement: str, exercise: Exercise) -> list[Row]:
    if exercise.validation_query is not None:
        tx.execute(statement)
        return tx.execute(exercise.validation_query)
    return tx.execute(statement)


def mismatch_report(expected: Sequence[Mapping[str, Any]], actual: Sequence[Mapping[str, Any]]) -> str:
    lines = ["Your query did not return the expected result."]
    if len(expected) != len(actual):
        lines.append(
            f"Expected {len(expected)} row(s) but got {len(actual)} row(s)."
        )
    reported = 0
    for index in range(max(len(expected), len(actual))):
        if reported >= _MAX_REPORTED_ROWS:
            lines.append("... further differences omitted")
            break
        expected_row = expected[index] if index < len(expected) else None
        actual_row = actual[index] if index < len(actual) else None
        if expected_row is not None and actual_row is not None:
            if codec.values_equal(expected_row, actual_row):
                continue
            lines.append(f"Row {index + 1}:")
            lines.extend(_row_differences(expected_row, actual_row))
        elif expected_row is not None:
            lines.append(f"Row {index + 1}: missing, expected {_render(expected_row)}")
        else:
            lines.append(f"Row {index + 1}: unexpected {_render(actual_row)}")
        reported += 1
    if reported == 0:
        lines.append(f"Expected: {_render(list(expected))}")
        lines.append(f"Actual:   {_render(list(actual))}")
    return "\n".join(lines)


def _row_differences(expected: Mapping[str, Any], actual: Mapping[str, Any]) -> list[str]:
    lines: list[str] = []
    for key in sorted(set(expected) - set(actual)):
        lines.append(f"  - missing field '{key}' (expected {_render(expected[key])})")
    for key in sorted(set(actual) - set(expected)):
        lines.append(f"  - unexpected field '{key}' (got {_render(actual[key])})")
    for key in sorted(set(expected) & set(actual)):
        if not codec.values_equal(expected[key], actual[key]):
            lines.append(
                f"  - field '{key}': expected {_render(expected[key])}, got {_render(actual[key])}"
            )
    return lines


def _render(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=True, sort_keys=True, default=repr)
    if len(text) > 200:
        return text[:197] + "..."
    return text
