"""Run units of work inside database transactions that are never committed."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Protocol, TypeVar

from neo4j import Driver
from neo4j.spatial import Point
from neo4j.exceptions import (
    ClientError,
    DatabaseError,
    DriverError,
    Neo4jError,
    TransientError,
)

from .models import ExecutionFailure, FailureKind, JsonObject, Outcome, Row

T = TypeVar("T")

_TIMEOUT_CODES = {
    "Neo.ClientError.Transaction.TransactionTimedOut",
    "Neo.ClientError.Transaction.TransactionTimedOutClientConfiguration",
}


class StatementExecutionError(RuntimeError):
    def __init__(self, failure: ExecutionFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure


class TransactionHandle(Protocol):
    def execute(self, statement: str, parameters: JsonObject | None = None) -> list[Row]: ...


class TransactionalExecutor(Protocol):
    def run(self, unit_of_work: Callable[[TransactionHandle], T]) -> T: ...

    def attempt(self, unit_of_work: Callable[[TransactionHandle], T]) -> Outcome[T]: ...


class _DriverTransactionHandle:
    def __init__(self, tx: Any) -> None:
        self._tx = tx

    def execute(self, statement: str, parameters: JsonObject | None = None) -> list[Row]:
        result = self._tx.run(statement, parameters or {})
        return [normalize(record.data()) for record in result]


@dataclass
class RollbackExecutor:
    """Executes work through a neo4j driver and always rolls the transaction back."""

    driver: Driver
    database: str | None = None
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def run(self, unit_of_work: Callable[[TransactionHandle], T]) -> T:
        try:
            with self.driver.session(database=self.database) as session:
                tx = session.begin_transaction(timeout=self.timeout_seconds)
                try:
                    return unit_of_work(_DriverTransactionHandle(tx))
                finally:
                    if not tx.closed():
                        tx.rollback()
                    self._logger.debug("transaction rolled back")
        except StatementExecutionError:
            raise
        except Exception as exc:
            raise StatementExecutionError(describe_failure(exc)) from exc

    def attempt(self, unit_of_work: Callable[[TransactionHandle], T]) -> Outcome[T]:
        try:
            return Outcome(value=self.run(unit_of_work))
        except StatementExecutionError as exc:
            self._logger.info(
                "statement failed (%s): %s", exc.failure.kind.value, exc.failure.message
            )
            return Outcome(failure=exc.failure)


def describe_failure(exc: BaseException) -> ExecutionFailure:
    # Surface the engine error when it is wrapped one level deep.
    target = exc
    if not isinstance(exc, (Neo4jError, DriverError)) and isinstance(
        exc.__cause__, (Neo4jError, DriverError)
    ):
        target = exc.__cause__
    message = _message_of(target)
    if isinstance(target, Neo4jError):
        code = target.code
        if code in _TIMEOUT_CODES:
            return ExecutionFailure(FailureKind.TIMEOUT, message, code)
        if isinstance(target, ClientError):
            return ExecutionFailure(FailureKind.CLIENT, message, code)
        if isinstance(target, TransientError):
            return ExecutionFailure(FailureKind.TRANSIENT, message, code)
        if isinstance(target, DatabaseError):
            return ExecutionFailure(FailureKind.DATABASE, message, code)
        return ExecutionFailure(FailureKind.UNKNOWN, message, code)
    if isinstance(target, DriverError):
        return ExecutionFailure(FailureKind.DRIVER, message)
    return ExecutionFailure(FailureKind.UNKNOWN, message)


def _message_of(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    text = str(exc)
    return text if text else type(exc).__name__


def normalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: normalize(v) for k, v in value.items()}
    if isinstance(value, Point):
        return value
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    if hasattr(value, "iso_format"):
        return value.iso_format()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value
