from __future__ import annotations

import logging
import sys
from typing import TextIO

from .codec import CorruptPayload
from .logging_utils import format_java_like
from .session import TraineeSession
from .syntax import StatementValidator

HELP_TEXT = """Available commands:
  :help   show this message
  :show   print the current exercise instructions
  :reset  restart from the first exercise
  :exit   leave the trainer
Anything else is run as a Cypher statement against the current exercise."""


class ConsoleLogger:
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def error(self, message: str) -> None:
        self._emit("error", message)

    def failure(self, message: str) -> None:
        self._emit("failure", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def information(self, message: str) -> None:
        self._emit("info", message)

    def _emit(self, tag: str, message: str) -> None:
        for line in message.splitlines() or [""]:
            print(f"[{tag}] {line}", file=self._stream)
        self._stream.flush()


class SessionConsole:
    """Feeds trainee input to a session and reports the result."""

    def __init__(self, console: ConsoleLogger, statement_validator: StatementValidator) -> None:
        self._console = console
        self._statement_validator = statement_validator
        self._logger = logging.getLogger(__name__)

    def introduce(self, session: TraineeSession) -> None:
        self._console.information(
            f"Welcome! {len(session.sequence)} exercise(s) ahead. Type :help for commands."
        )
        self._show(session)

    def handle(self, session: TraineeSession, line: str) -> bool:
        """Process one input line; returns False once the trainer should stop."""
        text = line.strip()
        if not text:
            return True
        if text.startswith(":"):
            return self._command(session, text[1:].strip().lower())
        if session.is_completed():
            self._console.information("All exercises are done. Type :reset to start over.")
            return True
        self.accept(session, text)
        return True

    def accept(self, session: TraineeSession, statement: str) -> None:
        issues = self._statement_validator.validate(statement)
        if issues:
            self._console.error("An error occurred with your query. See details below:")
            for issue in issues:
                self._console.error(str(issue))
            return

        exercise = session.current_exercise()
        try:
            validation = session.validate(statement)
        except CorruptPayload as exc:
            self._logger.error(format_java_like(exc))
            self._console.error(
                f"Exercise {exercise.id} has corrupt expected-result data and cannot be "
                f"validated ({exc}). Please report this to the exercise author."
            )
            return

        if not validation.successful:
            self._console.failure(validation.report)
            return
        if session.is_completed():
            self._console.success("Congrats, you're done!!!")
            return
        self._console.success(validation.report)
        self._console.information("Now moving on to next exercise! See instructions below...")
        self._show(session)

    def _command(self, session: TraineeSession, name: str) -> bool:
        if name in {"exit", "quit"}:
            return False
        if name == "help":
            self._console.information(HELP_TEXT)
        elif name == "show":
            self._show(session)
        elif name == "reset":
            session.restart()
            self._console.information("Session restarted.")
            self._show(session)
        else:
            self._console.error(f"Unknown command ':{name}'. Type :help for commands.")
        return True

    def _show(self, session: TraineeSession) -> None:
        if session.is_completed():
            self._console.information("All exercises are done.")
            return
        self._console.information(session.current_exercise().describe())
