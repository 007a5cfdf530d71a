import json
import os
from pathlib import Path
import sys
import tempfile
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from cypher_trainer import codec
from cypher_trainer.exercises import Exercise, ExerciseDataError, ExerciseSequence
from cypher_trainer.loader import (
    GRAPH_EXERCISES_QUERY,
    load_drafts,
    load_sequence,
    load_sequence_from_graph,
)
from cypher_trainer.records import ExerciseRecord


def _exercise(exercise_id: str, rank: int) -> Exercise:
    return Exercise(
        id=exercise_id,
        instructions=f"do {exercise_id}",
        rank=rank,
        expected_result=codec.encode([]),
    )


class _StaticExecutor:
    def __init__(self, rows):
        self.rows = rows
        self.statements = []

    def run(self, unit_of_work):
        return unit_of_work(self)

    def attempt(self, unit_of_work):  # pragma: no cover
        raise NotImplementedError

    def execute(self, statement, parameters=None):
        self.statements.append(statement)
        return [dict(row) for row in self.rows]


class TestExerciseSequence(unittest.TestCase):
    def test_orders_by_rank(self) -> None:
        sequence = ExerciseSequence([_exercise("b", 2), _exercise("c", 3), _exercise("a", 1)])
        self.assertEqual([exercise.id for exercise in sequence], ["a", "b", "c"])
        self.assertEqual(len(sequence), 3)

    def test_rejects_duplicates(self) -> None:
        with self.assertRaises(ExerciseDataError):
            ExerciseSequence([_exercise("a", 1), _exercise("a", 2)])
        with self.assertRaises(ExerciseDataError):
            ExerciseSequence([_exercise("a", 1), _exercise("b", 1)])

    def test_requires_writes_follows_validation_query(self) -> None:
        read = _exercise("a", 1)
        write = Exercise(
            id="w",
            instructions="create a person",
            rank=2,
            expected_result=codec.encode([{"c": 1}]),
            validation_query="MATCH (p:Person) RETURN count(p) AS c",
        )
        self.assertFalse(read.requires_writes)
        self.assertTrue(write.requires_writes)


class TestExerciseRecord(unittest.TestCase):
    def test_aliases_and_decoding(self) -> None:
        record = ExerciseRecord.model_validate(
            {
                "id": "people",
                "instructions": "Create a person",
                "rank": 4,
                "validationQuery": "MATCH (p:Person) RETURN count(p) AS c",
                "result": codec.encode_text([{"c": 1}]),
            }
        )
        exercise = record.to_exercise()
        self.assertEqual(exercise.rank, 4)
        self.assertTrue(exercise.requires_writes)
        self.assertEqual(codec.decode(exercise.expected_result), [{"c": 1}])

    def test_position_is_used_without_rank(self) -> None:
        record = ExerciseRecord(id="a", instructions="x", result=codec.encode_text([]))
        self.assertEqual(record.to_exercise(position=7).rank, 7)
        with self.assertRaises(ExerciseDataError):
            record.to_exercise()

    def test_invalid_base64(self) -> None:
        record = ExerciseRecord(id="a", instructions="x", rank=1, result="***")
        with self.assertRaises(ExerciseDataError) as context:
            record.to_exercise()
        self.assertIsInstance(context.exception.__cause__, codec.CorruptPayload)


class TestLoader(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_load_json_list(self) -> None:
        path = self.root / "exercises.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "two", "instructions": "second", "rank": 2, "result": codec.encode_text([])},
                    {"id": "one", "instructions": "first", "rank": 1, "result": codec.encode_text([])},
                ]
            ),
            encoding="utf-8",
        )
        sequence = load_sequence(path)
        self.assertEqual([exercise.id for exercise in sequence], ["one", "two"])

    def test_load_yaml_mapping(self) -> None:
        path = self.root / "exercises.yaml"
        result = codec.encode_text([{"c": 0}])
        path.write_text(
            "exercises:\n"
            "  - id: count\n"
            "    instructions: Count all nodes\n"
            f"    result: {result}\n",
            encoding="utf-8",
        )
        sequence = load_sequence(path)
        self.assertEqual(sequence[0].rank, 1)
        self.assertEqual(codec.decode(sequence[0].expected_result), [{"c": 0}])

    def test_invalid_files(self) -> None:
        empty = self.root / "empty.json"
        empty.write_text("[]", encoding="utf-8")
        missing_field = self.root / "missing.json"
        missing_field.write_text('[{"id": "a"}]', encoding="utf-8")
        unsupported = self.root / "exercises.txt"
        unsupported.write_text("", encoding="utf-8")
        for path in (empty, missing_field, unsupported):
            with self.subTest(path=path.name):
                with self.assertRaises(ExerciseDataError):
                    load_sequence(path)

    def test_load_drafts(self) -> None:
        path = self.root / "drafts.json"
        path.write_text(
            json.dumps(
                {
                    "exercises": [
                        {"instructions": "count", "solutionQuery": "MATCH (n) RETURN count(n) AS c"},
                        {
                            "instructions": "create",
                            "writeQuery": "CREATE (:Person)",
                            "solutionQuery": "MATCH (p:Person) RETURN count(p) AS c",
                        },
                    ]
                }
            ),
            encoding="utf-8",
        )
        drafts = load_drafts(path)
        self.assertFalse(drafts[0].requires_writes)
        self.assertTrue(drafts[1].requires_writes)

    def test_load_from_graph_follows_links(self) -> None:
        executor = _StaticExecutor(
            [
                {"id": "first", "instructions": "a", "rank": None, "validationQuery": None,
                 "solutionQuery": None, "result": codec.encode_text([]), "position": 0},
                {"id": "second", "instructions": "b", "rank": None, "validationQuery": None,
                 "solutionQuery": None, "result": codec.encode_text([]), "position": 1},
            ]
        )
        sequence = load_sequence_from_graph(executor)
        self.assertEqual([exercise.id for exercise in sequence], ["first", "second"])
        self.assertEqual([exercise.rank for exercise in sequence], [1, 2])
        self.assertEqual(executor.statements, [GRAPH_EXERCISES_QUERY])

    def test_load_from_empty_graph(self) -> None:
        with self.assertRaises(ExerciseDataError):
            load_sequence_from_graph(_StaticExecutor([]))


if __name__ == "__main__":
    unittest.main()
