#!/usr/bin/env python3
"""
Hash the training graph to confirm that trainee sessions left it untouched.

Run it once before and once after a session (or an export). Since every
statement runs in a rolled-back transaction, both runs must print the same
hash. With --exercises, each exercise's solution is replayed in between and
the script fails if the graph changed.
"""

import argparse
import hashlib
import json
import os
from pathlib import Path
import sys
from typing import Any, Dict, Iterable

from neo4j import GraphDatabase

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cypher_trainer.executor import RollbackExecutor, normalize  # noqa: E402
from cypher_trainer.exporter import ExerciseExporter  # noqa: E402
from cypher_trainer.loader import load_drafts  # noqa: E402


def graph_hash(session) -> tuple[str, int]:
    hasher = hashlib.sha256()
    count = 0
    for row in _iter_graph(session):
        line = json.dumps(row, sort_keys=True, separators=(",", ":"), ensure_ascii=True)
        hasher.update(line.encode("utf-8"))
        hasher.update(b"\n")
        count += 1
    return hasher.hexdigest(), count


def _iter_graph(session) -> Iterable[Dict[str, Any]]:
    query = """
    MATCH (n)
    OPTIONAL MATCH (n)-[r]->(m)
    RETURN labels(n) AS labels, properties(n) AS props,
           type(r) AS rel, properties(r) AS rel_props, labels(m) AS target
    """
    rows = [normalize(record.data()) for record in session.run(query)]
    for row in rows:
        row["labels"] = sorted(row["labels"])
        if row["target"] is not None:
            row["target"] = sorted(row["target"])
    rows.sort(key=lambda row: json.dumps(row, sort_keys=True, ensure_ascii=True))
    return rows


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Verify that training leaves the graph unchanged."
    )
    parser.add_argument("--uri", default=os.environ.get("NEO4J_URI", "bolt://localhost:7687"))
    parser.add_argument("--user", default=os.environ.get("NEO4J_USER", "neo4j"))
    parser.add_argument("--password", default=os.environ.get("NEO4J_PASSWORD", ""))
    parser.add_argument("--database", default=os.environ.get("NEO4J_DATABASE"))
    parser.add_argument(
        "--exercises", type=Path, help="Draft file whose solutions are replayed."
    )
    args = parser.parse_args()

    with GraphDatabase.driver(args.uri, auth=(args.user, args.password)) as driver:
        driver.verify_connectivity()
        with driver.session(database=args.database) as session:
            before, count = graph_hash(session)
        print(f"graph: {count} row(s) hash={before}")
        if args.exercises is None:
            return 0

        executor = RollbackExecutor(driver=driver, database=args.database)
        ExerciseExporter(executor).export(load_drafts(args.exercises))
        with driver.session(database=args.database) as session:
            after, count = graph_hash(session)
        print(f"after replay: {count} row(s) hash={after}")

    if before != after:
        print("graph changed during replay", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
