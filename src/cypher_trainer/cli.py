from __future__ import annotations

import argparse
from dataclasses import replace
import logging
from pathlib import Path
import sys

from neo4j import GraphDatabase

from .config import TrainerConfig
from .console import ConsoleLogger, SessionConsole
from .executor import RollbackExecutor
from .exporter import ExerciseExporter, import_statements, publish, write_records
from .loader import load_drafts, load_sequence, load_sequence_from_graph
from .logging_utils import configure_logging, format_java_like
from .session import TraineeSession
from .syntax import AntlrStatementValidator
from .validation import SessionValidator

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    config = TrainerConfig.from_env()
    if args.timeout is not None:
        config = _with_timeout(config, args.timeout)
    if args.command == "export":
        return _export(config, args)
    return _train(config, args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive Cypher trainer")
    parser.add_argument("--log-level", help="Logging level (default: WARNING)")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Transaction timeout in seconds (0 disables it)",
    )
    subparsers = parser.add_subparsers(dest="command")

    train = subparsers.add_parser("train", help="Start an interactive training session")
    train.add_argument(
        "--exercises",
        type=Path,
        help="Exercise file (JSON/YAML). Defaults to exercises stored in the graph.",
    )

    export = subparsers.add_parser(
        "export", help="Compute expected results for exercise drafts"
    )
    export.add_argument("drafts", type=Path, help="Draft file (JSON/YAML)")
    export.add_argument("--output", type=Path, help="Write exercise records to this file")
    export.add_argument(
        "--publish",
        action="store_true",
        help="Store the exported exercises in the graph",
    )
    return parser


def _with_timeout(config: TrainerConfig, timeout: float) -> TrainerConfig:
    return replace(config, transaction_timeout_seconds=timeout if timeout > 0 else None)


def _train(config: TrainerConfig, args: argparse.Namespace) -> int:
    exercises_path = getattr(args, "exercises", None) or config.exercises_path
    with GraphDatabase.driver(config.neo4j_uri, auth=config.auth) as driver:
        driver.verify_connectivity()
        executor = RollbackExecutor(
            driver=driver,
            database=config.neo4j_database,
            timeout_seconds=config.transaction_timeout_seconds,
        )
        if exercises_path is not None:
            sequence = load_sequence(exercises_path)
        else:
            sequence = load_sequence_from_graph(executor)
        session = TraineeSession(sequence, SessionValidator(executor))
        console = SessionConsole(ConsoleLogger(), AntlrStatementValidator())
        console.introduce(session)
        return _repl(console, session)


def _repl(console: SessionConsole, session: TraineeSession) -> int:
    while True:
        try:
            line = input("cypher> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        try:
            if not console.handle(session, line):
                return 0
        except Exception as exc:
            logger.error(format_java_like(exc))
            print(f"Unexpected failure: {exc}", file=sys.stderr)
            return 1


def _export(config: TrainerConfig, args: argparse.Namespace) -> int:
    drafts = load_drafts(args.drafts)
    with GraphDatabase.driver(config.neo4j_uri, auth=config.auth) as driver:
        driver.verify_connectivity()
        executor = RollbackExecutor(
            driver=driver,
            database=config.neo4j_database,
            timeout_seconds=config.transaction_timeout_seconds,
        )
        records = ExerciseExporter(executor).export(drafts)
        if args.publish:
            publish(driver, import_statements(records), database=config.neo4j_database)
    if args.output is not None:
        write_records(args.output, records)
        print(f"wrote: {args.output}")
    print(f"exported {len(records)} exercise(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
