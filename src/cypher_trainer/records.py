from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from . import codec
from .exercises import Exercise, ExerciseDataError


class ExerciseRecord(BaseModel):
    """Persisted form of an exercise, as written by the exporter."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    instructions: str
    rank: int | None = None
    validation_query: str | None = Field(default=None, alias="validationQuery")
    solution_query: str | None = Field(default=None, alias="solutionQuery")
    result: str

    def to_exercise(self, position: int | None = None) -> Exercise:
        rank = self.rank if self.rank is not None else position
        if rank is None:
            raise ExerciseDataError(f"Exercise {self.id} has no rank")
        try:
            payload = codec.payload_from_text(self.result)
        except codec.CorruptPayload as exc:
            raise ExerciseDataError(
                f"Exercise {self.id} result is not valid base-64"
            ) from exc
        return Exercise(
            id=self.id,
            instructions=self.instructions,
            rank=rank,
            expected_result=payload,
            validation_query=self.validation_query,
            solution_query=self.solution_query,
        )


class ExerciseDraft(BaseModel):
    """Authoring input: the exporter turns drafts into records."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str | None = None
    instructions: str
    solution_query: str = Field(alias="solutionQuery")
    write_query: str | None = Field(default=None, alias="writeQuery")

    @property
    def requires_writes(self) -> bool:
        return self.write_query is not None
