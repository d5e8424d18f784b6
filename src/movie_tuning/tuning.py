"""Query-tuning walkthrough: profile lookups before and after indexing Person.name."""

import logging
from dataclasses import dataclass, field
from typing import Any

from movie_tuning.config import TuningConfig, get_config
from movie_tuning.graphdb.connection import GraphConnection
from movie_tuning.plan import PlanExpectationError, PlanOperator
from movie_tuning.statements import (
    SCHEMA_VISUALIZATION,
    SHOW_INDEXES,
    TOM_HANKS_LOOKUP,
    TUNING_AFTER_INDEX,
    TUNING_BEFORE_INDEX,
    Statement,
    await_index_statement,
    create_index_statement,
    drop_index_statement,
)

logger = logging.getLogger(__name__)


@dataclass
class StepReport:
    """Rows and plan for one profiled statement."""

    statement: Statement
    rows: list[dict[str, Any]]
    plan: PlanOperator | None
    violations: list[str] = field(default_factory=list)

    @property
    def access_operator(self) -> str | None:
        """Name of the scan/seek operator the engine chose, if any."""
        if self.plan is None:
            return None
        op = self.plan.access_operator()
        return op.operator_type if op else None

    @property
    def ok(self) -> bool:
        return not self.violations


@dataclass
class InspectionReport:
    """Schema overview plus the Tom Hanks point lookup."""

    labels: list[str]
    relationship_types: list[str]
    lookup_rows: list[dict[str, Any]]


def _schema_names(rows: list[dict[str, Any]]) -> tuple[list[str], list[str]]:
    labels: set[str] = set()
    rel_types: set[str] = set()
    for row in rows:
        for node in row.get("nodes", []):
            labels.update(getattr(node, "labels", ()))
        for rel in row.get("relationships", []):
            rel_type = getattr(rel, "type", None)
            if rel_type:
                rel_types.add(rel_type)
    return sorted(labels), sorted(rel_types)


class TuningWalkthrough:
    """Runs the profiled statements in order, recording which operator each used."""

    def __init__(self, conn: GraphConnection, config: TuningConfig | None = None) -> None:
        self.conn = conn
        self.config = config or get_config()

    def inspect(self) -> InspectionReport:
        schema_rows = self.conn.execute_cypher(SCHEMA_VISUALIZATION.cypher)
        labels, rel_types = _schema_names(schema_rows)
        lookup_rows = self.conn.execute_cypher(TOM_HANKS_LOOKUP.cypher)
        logger.info(
            "Schema labels=%s relationships=%s, Tom Hanks matches=%d",
            labels,
            rel_types,
            len(lookup_rows),
        )
        return InspectionReport(
            labels=labels, relationship_types=rel_types, lookup_rows=lookup_rows
        )

    def create_index(self) -> None:
        index_name = self.config.demo_index_name
        self.conn.execute_cypher_write(create_index_statement(index_name).cypher)
        waiter = await_index_statement(index_name, self.config.index_online_timeout)
        self.conn.execute_cypher(waiter.cypher, waiter.params)
        logger.info("Index %s online", index_name)

    def drop_index(self) -> None:
        self.conn.execute_cypher_write(drop_index_statement(self.config.demo_index_name).cypher)
        logger.info("Index %s dropped", self.config.demo_index_name)

    def show_indexes(self) -> list[dict[str, Any]]:
        return self.conn.execute_cypher(SHOW_INDEXES.cypher)

    def run_step(self, statement: Statement) -> StepReport:
        """Profile one statement and compare its plan with the expectation."""
        profiled = self.conn.profile(statement.cypher, statement.params)
        violations = statement.expectation.check(profiled.plan) if statement.expectation else []
        report = StepReport(
            statement=statement,
            rows=profiled.rows,
            plan=profiled.plan,
            violations=violations,
        )
        logger.info(
            "%s -> %s (%d rows): %s",
            statement.name,
            report.access_operator,
            len(report.rows),
            statement.commentary,
        )
        if violations:
            message = f"{statement.name}: " + "; ".join(violations)
            if self.config.strict_plans:
                raise PlanExpectationError(message)
            logger.warning("Unexpected plan for %s", message)
        return report

    def run(self) -> list[StepReport]:
        """Drop the demo index, profile pre-index lookups, index, profile the rest."""
        self.drop_index()
        reports = [self.run_step(s) for s in TUNING_BEFORE_INDEX]
        self.create_index()
        reports.extend(self.run_step(s) for s in TUNING_AFTER_INDEX)
        return reports
