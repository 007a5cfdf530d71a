"""Turn exercise drafts into persisted records with precomputed expected results."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Sequence

from neo4j import Driver, ManagedTransaction
import yaml

from . import codec
from .executor import StatementExecutionError, TransactionalExecutor, TransactionHandle
from .exercises import ExerciseDataError
from .models import CypherQuery, Row
from .records import ExerciseDraft, ExerciseRecord

logger = logging.getLogger(__name__)

MERGE_EXERCISE_QUERY = (
    "MERGE (e:Exercise {id: $id}) "
    "SET e.instructions = $instructions, e.rank = $rank, e.result = $result, "
    "e.validationQuery = $validationQuery, e.solutionQuery = $solutionQuery"
)

UNLINK_EXERCISES_QUERY = "MATCH (:Exercise)-[r:NEXT]->(:Exercise) DELETE r"

LINK_EXERCISES_QUERY = (
    "MATCH (e:Exercise) WHERE e.rank IS NOT NULL "
    "WITH e ORDER BY e.rank ASC "
    "WITH collect(e) AS exercises "
    "UNWIND range(0, size(exercises) - 2) AS i "
    "WITH exercises[i] AS first, exercises[i + 1] AS second "
    "MERGE (first)-[:NEXT]->(second)"
)


class ExerciseExporter:
    def __init__(self, executor: TransactionalExecutor) -> None:
        self._executor = executor

    def export(self, drafts: Sequence[ExerciseDraft]) -> list[ExerciseRecord]:
        return [
            self._export_one(draft, rank) for rank, draft in enumerate(drafts, start=1)
        ]

    def _export_one(self, draft: ExerciseDraft, rank: int) -> ExerciseRecord:
        exercise_id = draft.id or f"exercise-{rank}"
        try:
            rows = self._executor.run(lambda tx: _expected_rows(tx, draft))
            result = codec.encode_text(rows)
        except (StatementExecutionError, codec.UnsupportedType) as exc:
            raise ExerciseDataError(
                f"Exercise {exercise_id} fails: {exc}\n{draft.model_dump_json(by_alias=True)}"
            ) from exc
        logger.info("exported %s (%d expected row(s))", exercise_id, len(rows))
        return ExerciseRecord(
            id=exercise_id,
            instructions=draft.instructions,
            rank=rank,
            validation_query=draft.solution_query if draft.requires_writes else None,
            solution_query=None if draft.requires_writes else draft.solution_query,
            result=result,
        )


def _expected_rows(tx: TransactionHandle, draft: ExerciseDraft) -> list[Row]:
    if draft.write_query is not None:
        # the write has to happen before the solution query observes it
        tx.execute(draft.write_query)
    return tx.execute(draft.solution_query)


def write_records(path: Path, records: Iterable[ExerciseRecord]) -> None:
    payload = [
        record.model_dump(by_alias=True, exclude_none=True) for record in records
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in {".yaml", ".yml"}:
        text = yaml.safe_dump({"exercises": payload}, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps({"exercises": payload}, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")


def import_statements(records: Sequence[ExerciseRecord]) -> list[CypherQuery]:
    statements = [
        CypherQuery(
            text=MERGE_EXERCISE_QUERY,
            params={
                "id": record.id,
                "instructions": record.instructions,
                "rank": record.rank,
                "result": record.result,
                "validationQuery": record.validation_query,
                "solutionQuery": record.solution_query,
            },
        )
        for record in records
    ]
    # NEXT chain is rebuilt from scratch on every import
    statements.append(CypherQuery(text=UNLINK_EXERCISES_QUERY))
    statements.append(CypherQuery(text=LINK_EXERCISES_QUERY))
    return statements


def publish(driver: Driver, statements: Sequence[CypherQuery], database: str | None = None) -> None:
    def _work(tx: ManagedTransaction) -> None:
        for statement in statements:
            tx.run(statement.text, statement.params or {}).consume()

    with driver.session(database=database) as session:
        session.execute_write(_work)
    logger.info("published %d statement(s)", len(statements))
