from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Mapping, Sequence, TypeAlias, TypeVar

JsonValue: TypeAlias = (
    None | bool | int | float | str | Mapping[str, "JsonValue"] | Sequence["JsonValue"]
)
JsonObject: TypeAlias = dict[str, JsonValue]
Row: TypeAlias = dict[str, Any]

T = TypeVar("T")


@dataclass(frozen=True)
class CypherQuery:
    text: str
    params: JsonObject | None = None


@dataclass(frozen=True)
class ValidationOutcome:
    successful: bool
    report: str

    @classmethod
    def success(cls, report: str) -> "ValidationOutcome":
        return cls(successful=True, report=report)

    @classmethod
    def failure(cls, report: str) -> "ValidationOutcome":
        return cls(successful=False, report=report)


class FailureKind(str, Enum):
    CLIENT = "client"
    TRANSIENT = "transient"
    DATABASE = "database"
    TIMEOUT = "timeout"
    DRIVER = "driver"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExecutionFailure:
    kind: FailureKind
    message: str
    code: str | None = None


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    failure: ExecutionFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None
