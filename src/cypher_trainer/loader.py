from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError
import yaml

from .executor import TransactionalExecutor
from .exercises import ExerciseDataError, ExerciseSequence
from .records import ExerciseDraft, ExerciseRecord

logger = logging.getLogger(__name__)

GRAPH_EXERCISES_QUERY = """
MATCH (e:Exercise)
WHERE NOT ()-[:NEXT]->(e)
MATCH path = (e)-[:NEXT*0..]->(exercise:Exercise)
RETURN exercise.id AS id,
       exercise.instructions AS instructions,
       exercise.rank AS rank,
       exercise.validationQuery AS validationQuery,
       exercise.solutionQuery AS solutionQuery,
       exercise.result AS result,
       length(path) AS position
ORDER BY position ASC, rank ASC
"""


def load_sequence(path: Path) -> ExerciseSequence:
    items = _exercise_items(_read_payload(path))
    records = [_validate(ExerciseRecord, item, path) for item in items]
    sequence = ExerciseSequence(
        record.to_exercise(position=index + 1) for index, record in enumerate(records)
    )
    logger.info("loaded %d exercise(s) from %s", len(sequence), path)
    return sequence


def load_drafts(path: Path) -> list[ExerciseDraft]:
    items = _exercise_items(_read_payload(path))
    return [_validate(ExerciseDraft, item, path) for item in items]


def load_sequence_from_graph(executor: TransactionalExecutor) -> ExerciseSequence:
    rows = executor.run(lambda tx: tx.execute(GRAPH_EXERCISES_QUERY))
    exercises = []
    for row in rows:
        position = int(row.pop("position")) + 1
        record = _validate(ExerciseRecord, row, "graph")
        exercises.append(record.to_exercise(position=position))
    if not exercises:
        raise ExerciseDataError("No exercises found in the graph")
    sequence = ExerciseSequence(exercises)
    logger.info("loaded %d exercise(s) from the graph", len(sequence))
    return sequence


def _validate(model: Any, item: Any, source: object) -> Any:
    try:
        return model.model_validate(item)
    except ValidationError as exc:
        raise ExerciseDataError(f"Invalid exercise in {source}: {exc}") from exc


def _exercise_items(raw: Any) -> list[Any]:
    if isinstance(raw, dict):
        raw = raw.get("exercises")
    if not isinstance(raw, list):
        raise ExerciseDataError(
            "Exercise file must be a list of exercises or a mapping with an 'exercises' list"
        )
    if not raw:
        raise ExerciseDataError("Exercise file does not contain any exercises")
    return raw


def _read_payload(path: Path) -> Any:
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    if suffix == ".json":
        return json.loads(path.read_text(encoding="utf-8"))
    raise ExerciseDataError(f"Unsupported exercise file format: {suffix}")
