from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path


@dataclass(frozen=True)
class TrainerConfig:
    neo4j_uri: str
    neo4j_user: str
    neo4j_password: str
    neo4j_database: str | None
    transaction_timeout_seconds: float | None
    exercises_path: Path | None = None

    @classmethod
    def from_env(cls) -> "TrainerConfig":
        exercises = os.environ.get("CYPHER_TRAINER_EXERCISES")
        return cls(
            neo4j_uri=os.environ.get("NEO4J_URI", "bolt://localhost:7687"),
            neo4j_user=os.environ.get("NEO4J_USER", "neo4j"),
            neo4j_password=os.environ.get("NEO4J_PASSWORD", ""),
            neo4j_database=os.environ.get("NEO4J_DATABASE") or None,
            transaction_timeout_seconds=_coerce_timeout(
                os.environ.get("CYPHER_TRAINER_TX_TIMEOUT_SECONDS", "10")
            ),
            exercises_path=Path(exercises) if exercises else None,
        )

    @property
    def auth(self) -> tuple[str, str]:
        return (self.neo4j_user, self.neo4j_password)


def _coerce_timeout(raw: str) -> float | None:
    value = float(raw)
    # 0 or less leaves the server-side transaction timeout at its configured default
    if value <= 0:
        return None
    return value
