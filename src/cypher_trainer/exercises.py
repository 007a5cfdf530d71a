from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator


class ExerciseDataError(ValueError):
    pass


@dataclass(frozen=True)
class Exercise:
    """One training step.

    ``validation_query`` is only set for exercises that require writes: it runs
    after the trainee's statement, in the same transaction, and its rows are
    what gets compared against ``expected_result``.
    """

    id: str
    instructions: str
    rank: int
    expected_result: bytes
    validation_query: str | None = None
    solution_query: str | None = None

    @property
    def requires_writes(self) -> bool:
        return self.validation_query is not None

    def describe(self) -> str:
        return f"Exercise {self.rank} ({self.id}):\n{self.instructions}"


class ExerciseSequence:
    """Rank-ordered, immutable list of exercises."""

    def __init__(self, exercises: Iterable[Exercise]) -> None:
        ordered = sorted(exercises, key=lambda exercise: exercise.rank)
        seen_ids: set[str] = set()
        seen_ranks: set[int] = set()
        for exercise in ordered:
            if exercise.id in seen_ids:
                raise ExerciseDataError(f"Duplicate exercise id: {exercise.id}")
            if exercise.rank in seen_ranks:
                raise ExerciseDataError(f"Duplicate exercise rank: {exercise.rank}")
            seen_ids.add(exercise.id)
            seen_ranks.add(exercise.rank)
        self._exercises: tuple[Exercise, ...] = tuple(ordered)

    def __len__(self) -> int:
        return len(self._exercises)

    def __iter__(self) -> Iterator[Exercise]:
        return iter(self._exercises)

    def __getitem__(self, index: int) -> Exercise:
        return self._exercises[index]

    def __repr__(self) -> str:
        ids = ", ".join(exercise.id for exercise in self._exercises)
        return f"ExerciseSequence([{ids}])"
