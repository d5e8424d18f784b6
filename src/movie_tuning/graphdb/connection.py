"""Neo4j connection management via Bolt protocol."""

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from neo4j import GraphDatabase
from neo4j.exceptions import ServiceUnavailable, TransientError

from movie_tuning.config import get_config
from movie_tuning.plan import PlanOperator

logger = logging.getLogger(__name__)

SYSTEM_DATABASE = "system"

_COUNTER_FIELDS = (
    "nodes_created",
    "nodes_deleted",
    "relationships_created",
    "relationships_deleted",
    "properties_set",
    "labels_added",
    "labels_removed",
    "indexes_added",
    "indexes_removed",
    "constraints_added",
    "constraints_removed",
    "system_updates",
)


@dataclass
class ProfiledResult:
    """Result rows plus the operator tree reported by the engine."""

    rows: list[dict[str, Any]]
    plan: PlanOperator | None


def with_profile(query: str) -> str:
    """Prefix a statement with PROFILE unless it already carries a plan directive."""
    head = query.lstrip().upper()
    if head.startswith(("PROFILE", "EXPLAIN")):
        return query
    return f"PROFILE {query.lstrip()}"


class GraphConnection:
    """Neo4j connection with pooling and retry logic for reads."""

    def __init__(
        self,
        uri: str,
        auth: tuple[str, str] | None = None,
        database: str | None = None,
        max_connection_pool_size: int = 5,
        max_retries: int = 3,
    ) -> None:
        self._driver = GraphDatabase.driver(
            uri,
            auth=auth,
            max_connection_pool_size=max_connection_pool_size,
        )
        self._database = database
        self._max_retries = max_retries

    @property
    def database(self) -> str | None:
        """Database every statement runs against unless overridden."""
        return self._database

    def use_database(self, database: str | None) -> None:
        """Select the active database for subsequent statements."""
        self._database = database

    def execute_cypher(
        self,
        query: str,
        params: dict[str, Any] | None = None,
        database: str | None = None,
        max_retries: int | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a read-only Cypher query with retry logic."""
        # Always at least one attempt; 0 means "no retries", not "no query".
        retries = max(1, max_retries if max_retries is not None else self._max_retries)
        last_error: Exception | None = None
        for attempt in range(retries):
            try:
                with self._driver.session(database=database or self._database) as session:
                    result = session.run(query, params or {})
                    return [dict(record) for record in result]
            except (ServiceUnavailable, TransientError) as e:
                last_error = e
                logger.warning("Cypher attempt %d/%d failed: %s", attempt + 1, retries, e)
                if attempt < retries - 1:
                    time.sleep(2**attempt)  # Exponential backoff

        if last_error:
            raise last_error
        raise RuntimeError("Unexpected error in execute_cypher")

    def execute_cypher_write(
        self,
        query: str,
        params: dict[str, Any] | None = None,
        database: str | None = None,
    ) -> dict[str, int]:
        """Execute a write Cypher query and return the engine's update counters."""
        with self._driver.session(database=database or self._database) as session:
            result = session.run(query, params or {})
            summary = result.consume()
        counters = summary.counters
        return {name: int(getattr(counters, name, 0)) for name in _COUNTER_FIELDS}

    def execute_admin(self, query: str, params: dict[str, Any] | None = None) -> None:
        """Execute an administrative statement against the system database."""
        with self._driver.session(database=SYSTEM_DATABASE) as session:
            session.run(query, params or {}).consume()

    def profile(
        self,
        query: str,
        params: dict[str, Any] | None = None,
        database: str | None = None,
    ) -> ProfiledResult:
        """Run a statement under PROFILE and return rows with the operator tree."""
        with self._driver.session(database=database or self._database) as session:
            result = session.run(with_profile(query), params or {})
            rows = [dict(record) for record in result]
            summary = result.consume()
        raw_plan = summary.profile or summary.plan
        plan = PlanOperator.model_validate(raw_plan) if raw_plan else None
        return ProfiledResult(rows=rows, plan=plan)

    def health_check(self) -> bool:
        """Check if the engine is accessible."""
        try:
            result = self.execute_cypher("RETURN 1 AS health", max_retries=1)
            return len(result) == 1 and result[0].get("health") == 1
        except Exception:
            return False

    def close(self) -> None:
        """Close the driver connection."""
        self._driver.close()

    def __enter__(self) -> "GraphConnection":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache(maxsize=1)
def get_graph() -> GraphConnection:
    """Get singleton graph connection."""
    config = get_config()
    return GraphConnection(
        config.neo4j_uri,
        auth=config.neo4j_auth,
        database=config.neo4j_database,
        max_connection_pool_size=config.neo4j_pool_size,
        max_retries=config.neo4j_max_retries,
    )
