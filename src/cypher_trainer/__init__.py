from .codec import CorruptPayload, ResultCodecError, UnsupportedType, decode, encode
from .config import TrainerConfig
from .console import ConsoleLogger, SessionConsole
from .executor import RollbackExecutor, StatementExecutionError, TransactionalExecutor
from .exercises import Exercise, ExerciseDataError, ExerciseSequence
from .models import ExecutionFailure, FailureKind, Outcome, ValidationOutcome
from .session import SessionCompleted, TraineeSession
from .syntax import AntlrStatementValidator, CypherSyntaxIssue
from .validation import SessionValidator

__all__ = [
    "AntlrStatementValidator",
    "ConsoleLogger",
    "CorruptPayload",
    "CypherSyntaxIssue",
    "ExecutionFailure",
    "Exercise",
    "ExerciseDataError",
    "ExerciseSequence",
    "FailureKind",
    "Outcome",
    "ResultCodecError",
    "RollbackExecutor",
    "SessionCompleted",
    "SessionConsole",
    "SessionValidator",
    "StatementExecutionError",
    "TraineeSession",
    "TrainerConfig",
    "TransactionalExecutor",
    "UnsupportedType",
    "ValidationOutcome",
    "decode",
    "encode",
]
