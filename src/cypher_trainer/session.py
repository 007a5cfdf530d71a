from __future__ import annotations

import logging

from .exercises import Exercise, ExerciseSequence
from .models import ValidationOutcome
from .validation import SessionValidator


class SessionCompleted(RuntimeError):
    pass


class TraineeSession:
    """Progress of one trainee through an exercise sequence.

    The cursor only moves forward, one exercise per successful validation.
    """

    def __init__(self, sequence: ExerciseSequence, validator: SessionValidator) -> None:
        if len(sequence) == 0:
            raise ValueError("exercise sequence is empty")
        self._sequence = sequence
        self._validator = validator
        self._cursor = 0
        self._logger = logging.getLogger(__name__)

    @property
    def sequence(self) -> ExerciseSequence:
        return self._sequence

    @property
    def cursor(self) -> int:
        return self._cursor

    def is_completed(self) -> bool:
        return self._cursor >= len(self._sequence)

    def current_exercise(self) -> Exercise:
        if self.is_completed():
            raise SessionCompleted("all exercises have been completed")
        return self._sequence[self._cursor]

    def validate(self, statement: str) -> ValidationOutcome:
        exercise = self.current_exercise()
        outcome = self._validator.validate(statement, exercise)
        if outcome.successful:
            self._cursor += 1
            self._logger.info(
                "advanced to %d/%d", self._cursor, len(self._sequence)
            )
        return outcome

    def restart(self) -> None:
        self._cursor = 0
