from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from antlr4 import CommonTokenStream, InputStream
from antlr4.error.ErrorListener import ErrorListener

from antlr4_cypher import CypherLexer, CypherParser


@dataclass(frozen=True)
class CypherSyntaxIssue:
    message: str
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}:{self.column} {self.message}"


class StatementValidator(Protocol):
    def validate(self, statement: str) -> list[CypherSyntaxIssue]: ...


class _CollectingErrorListener(ErrorListener):
    def __init__(self) -> None:
        self.issues: list[CypherSyntaxIssue] = []

    def syntaxError(self, recognizer, offendingSymbol, line, column, msg, e):  # type: ignore[override]
        self.issues.append(CypherSyntaxIssue(message=msg, line=line, column=column))


class AntlrStatementValidator:
    def validate(self, statement: str) -> list[CypherSyntaxIssue]:
        if not statement.strip():
            return [CypherSyntaxIssue(message="statement is empty")]
        listener = _CollectingErrorListener()
        lexer = CypherLexer(InputStream(statement))
        lexer.removeErrorListeners()
        lexer.addErrorListener(listener)
        parser = CypherParser(CommonTokenStream(lexer))
        parser.removeErrorListeners()
        parser.addErrorListener(listener)
        parser.script()
        return listener.issues
