"""Loads the movie/actor/director dataset into the graph.

All three statements MERGE on a key property, so running ingestion again
leaves node and relationship counts unchanged.
"""

import logging
from dataclasses import dataclass

from movie_tuning.config import TuningConfig, get_config
from movie_tuning.graphdb.connection import GraphConnection
from movie_tuning.statements import (
    GRAPH_COUNTS,
    LOAD_ACTORS,
    LOAD_DIRECTORS,
    LOAD_MOVIES,
    Statement,
    create_database_statement,
)

logger = logging.getLogger(__name__)


@dataclass
class IngestStats:
    """Update counters reported by the engine for one ingestion statement."""

    statement: str
    nodes_created: int = 0
    relationships_created: int = 0
    properties_set: int = 0

    @classmethod
    def from_counters(cls, statement: str, counters: dict[str, int]) -> "IngestStats":
        return cls(
            statement=statement,
            nodes_created=counters.get("nodes_created", 0),
            relationships_created=counters.get("relationships_created", 0),
            properties_set=counters.get("properties_set", 0),
        )


@dataclass(frozen=True)
class GraphCounts:
    """Node and relationship totals for the movie graph."""

    movies: int = 0
    people: int = 0
    acted_in: int = 0
    directed: int = 0


class Ingestor:
    """Issues the setup and ingestion statements in order."""

    def __init__(self, conn: GraphConnection, config: TuningConfig | None = None) -> None:
        self.conn = conn
        self.config = config or get_config()

    def setup_database(self) -> bool:
        """Create and select the configured database.

        Returns True when a CREATE DATABASE statement was issued.  Engine
        errors (e.g. an edition without multi-database support) propagate.
        """
        database = self.config.neo4j_database
        self.conn.use_database(database)
        if not self.config.create_database:
            logger.info("Using existing database %s", database)
            return False
        statement = create_database_statement(database)
        logger.info("Creating database %s", database)
        self.conn.execute_admin(statement.cypher)
        return True

    def _load(self, statement: Statement) -> IngestStats:
        logger.info("Running %s: %s", statement.name, statement.commentary)
        counters = self.conn.execute_cypher_write(statement.cypher, statement.params)
        stats = IngestStats.from_counters(statement.name, counters)
        logger.info(
            "%s created %d nodes, %d relationships, set %d properties",
            statement.name,
            stats.nodes_created,
            stats.relationships_created,
            stats.properties_set,
        )
        return stats

    def load_movies(self) -> IngestStats:
        return self._load(LOAD_MOVIES.with_params(url=self.config.movies_csv_url))

    def load_actors(self) -> IngestStats:
        return self._load(
            LOAD_ACTORS.with_params(
                url=self.config.actors_csv_url,
                delimiter=self.config.roles_delimiter,
            )
        )

    def load_directors(self) -> IngestStats:
        return self._load(LOAD_DIRECTORS.with_params(url=self.config.directors_csv_url))

    def ingest_all(self) -> list[IngestStats]:
        """Load movies first; actor and director rows MATCH existing movies."""
        return [self.load_movies(), self.load_actors(), self.load_directors()]

    def graph_counts(self) -> GraphCounts:
        rows = self.conn.execute_cypher(GRAPH_COUNTS.cypher)
        if not rows:
            return GraphCounts()
        row = rows[0]
        return GraphCounts(
            movies=row.get("movies", 0),
            people=row.get("people", 0),
            acted_in=row.get("acted_in", 0),
            directed=row.get("directed", 0),
        )
