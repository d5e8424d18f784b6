"""CLI entry point for the movie graph tuning walkthrough.

Allows running via:
    python -m movie_tuning COMMAND [--database NAME] [--strict] [--log-level LEVEL]
    movie-tuning COMMAND                              # after pip install

Commands run in the order the walkthrough is meant to be followed:

    check-sources  fetch CSV header rows and verify required columns
    setup          create (when CREATE_DATABASE=true) and select the database
    load           run the three LOAD CSV + MERGE statements
    counts         print node/relationship totals
    inspect        schema visualization and the Tom Hanks lookup
    tune           profile lookups before and after indexing Person.name
    all            setup, load, inspect, tune

Examples:
    python -m movie_tuning all
    python -m movie_tuning tune --strict
    NEO4J_PASSWORD=secret CREATE_DATABASE=true python -m movie_tuning all --database movies
"""

import argparse
import logging
import os
import sys

from neo4j.exceptions import DriverError, Neo4jError

from movie_tuning.plan import PlanExpectationError, render

logger = logging.getLogger(__name__)

COMMANDS = ("check-sources", "setup", "load", "counts", "inspect", "tune", "all")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="movie-tuning",
        description="Load the movie graph and walk through index-driven query tuning",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("command", choices=COMMANDS, help="Walkthrough stage to run")
    parser.add_argument(
        "--database",
        default=None,
        help="Database to select. Overrides NEO4J_DATABASE env var.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail when a profiled plan does not use the expected operator",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level. Overrides LOG_LEVEL env var.",
    )
    return parser


def _print_ingest(stats: list) -> None:
    for s in stats:
        print(
            f"{s.statement}: +{s.nodes_created} nodes, "
            f"+{s.relationships_created} relationships, {s.properties_set} properties set"
        )


def _print_counts(counts) -> None:
    print(
        f"Movie={counts.movies} Person={counts.people} "
        f"ACTED_IN={counts.acted_in} DIRECTED={counts.directed}"
    )


def _print_step(report) -> None:
    status = "ok" if report.ok else "UNEXPECTED"
    print(f"\n== {report.statement.name} [{report.access_operator}] {status}")
    if report.statement.commentary:
        print(f"   {report.statement.commentary}")
    print(f"   {len(report.rows)} row(s)")
    for row in report.rows[:5]:
        print(f"   {row}")
    if report.plan is not None:
        print(render(report.plan, indent=2))
        print(
            f"   total db_hits={report.plan.total_db_hits()} "
            f"cache_hits={report.plan.total_page_cache_hits()} "
            f"cache_misses={report.plan.total_page_cache_misses()}"
        )
    for violation in report.violations:
        print(f"   ! {violation}")


def run(args: argparse.Namespace) -> int:
    """Execute one CLI command; returns the process exit code."""
    from movie_tuning.config import get_config  # noqa: PLC0415
    from movie_tuning.graphdb.connection import get_graph  # noqa: PLC0415
    from movie_tuning.ingest import Ingestor  # noqa: PLC0415
    from movie_tuning.sources import CsvSourceChecker  # noqa: PLC0415
    from movie_tuning.tuning import TuningWalkthrough  # noqa: PLC0415

    config = get_config()

    if args.command == "check-sources":
        with CsvSourceChecker(timeout=config.csv_timeout) as checker:
            for check in checker.check_all(config):
                detail = "skipped (engine-local)" if check.skipped else ", ".join(check.columns)
                print(f"{check.statement}: {check.url} -> {detail}")
        return 0

    conn = get_graph()
    try:
        # Home database: the configured one may not exist before setup.
        conn.use_database(None)
        if not conn.health_check():
            logger.error("Graph database not reachable at %s", config.neo4j_uri)
            return 2

        ingestor = Ingestor(conn, config)
        walkthrough = TuningWalkthrough(conn, config)

        if args.command in ("setup", "all"):
            created = ingestor.setup_database()
            print(f"Database {config.neo4j_database} {'created' if created else 'selected'}")
        conn.use_database(config.neo4j_database)
        if args.command in ("load", "all"):
            _print_ingest(ingestor.ingest_all())
        if args.command in ("counts", "load", "all"):
            _print_counts(ingestor.graph_counts())
        if args.command in ("inspect", "all"):
            inspection = walkthrough.inspect()
            print(f"Labels: {', '.join(inspection.labels)}")
            print(f"Relationship types: {', '.join(inspection.relationship_types)}")
            for row in inspection.lookup_rows:
                print(f"Lookup: {row}")
        if args.command in ("tune", "all"):
            for report in walkthrough.run():
                _print_step(report)
            print("\nIndexes:")
            for index in walkthrough.show_indexes():
                print(f"  {index}")
    finally:
        conn.close()
    return 0


def main() -> None:
    """Parse CLI args, apply overrides and run the requested stage."""
    args = build_parser().parse_args()

    # Overrides go through the environment so the lru_cache'd config sees them
    # on first call.
    if args.database is not None:
        os.environ["NEO4J_DATABASE"] = args.database
    if args.strict:
        os.environ["STRICT_PLANS"] = "true"
    if args.log_level is not None:
        os.environ["LOG_LEVEL"] = args.log_level

    from movie_tuning.config import get_config  # noqa: PLC0415
    from movie_tuning.sources import CsvSourceError  # noqa: PLC0415

    logging.basicConfig(
        level=get_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        sys.exit(run(args))
    except (PlanExpectationError, CsvSourceError) as e:
        logger.error("%s", e)
        sys.exit(1)
    except (DriverError, Neo4jError) as e:
        logger.error("Graph database error: %s", e)
        sys.exit(2)


if __name__ == "__main__":
    main()
