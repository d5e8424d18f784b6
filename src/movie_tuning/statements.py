"""Catalogue of every Cypher statement the walkthrough sends to the engine.

Statements are grouped in the order they run:

    setup      -> CREATE DATABASE (optional, against the system database)
    ingestion  -> movies, actors, directors (LOAD CSV + MERGE, idempotent)
    inspection -> schema visualization, point lookup
    tuning     -> profiled lookups before the Person(name) index exists,
                  then the same and further lookups once it is online

Each tuning statement carries the operator the planner is expected to pick.
Operator names follow the Neo4j 4.x/5.x planner.
"""

from dataclasses import dataclass, field
from typing import Any

from movie_tuning.plan import PlanExpectation


@dataclass(frozen=True)
class Statement:
    """A single named Cypher statement with commentary."""

    name: str
    cypher: str
    commentary: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    expectation: PlanExpectation | None = None

    def with_params(self, **params: Any) -> "Statement":
        """Return a copy with extra parameters merged in."""
        return Statement(
            name=self.name,
            cypher=self.cypher,
            commentary=self.commentary,
            params={**self.params, **params},
            expectation=self.expectation,
        )


def quote_name(name: str) -> str:
    """Backtick-quote a schema name for inlining into DDL."""
    return "`" + name.replace("`", "``") + "`"


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def create_database_statement(database: str) -> Statement:
    return Statement(
        name="create_database",
        cypher=f"CREATE DATABASE {quote_name(database)} IF NOT EXISTS WAIT",
        commentary="Declare the named database; selection happens per session.",
    )


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

LOAD_MOVIES = Statement(
    name="load_movies",
    cypher="""
    LOAD CSV WITH HEADERS FROM $url AS row
    MERGE (m:Movie {title: row.title})
    ON CREATE SET m.released = toInteger(row.released),
                  m.tagline = row.tagline
    """,
    commentary="One Movie per title; released/tagline only set on first creation.",
)

LOAD_ACTORS = Statement(
    name="load_actors",
    cypher="""
    LOAD CSV WITH HEADERS FROM $url AS row
    MERGE (p:Person {name: row.name})
    ON CREATE SET p.born = toInteger(row.born)
    WITH p, row
    MATCH (m:Movie {title: row.title})
    MERGE (p)-[r:ACTED_IN]->(m)
    ON CREATE SET r.roles = split(row.roles, $delimiter)
    """,
    commentary=(
        "Movie side is a MATCH, so rows naming an unknown title create the "
        "Person but no ACTED_IN relationship."
    ),
)

LOAD_DIRECTORS = Statement(
    name="load_directors",
    cypher="""
    LOAD CSV WITH HEADERS FROM $url AS row
    MERGE (p:Person {name: row.name})
    ON CREATE SET p.born = toInteger(row.born)
    WITH p, row
    MATCH (m:Movie {title: row.title})
    MERGE (p)-[:DIRECTED]->(m)
    """,
    commentary="Same Person merge as actors; DIRECTED carries no properties.",
)

INGESTION = (LOAD_MOVIES, LOAD_ACTORS, LOAD_DIRECTORS)

# Header columns each ingestion statement reads from its CSV row.
REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    LOAD_MOVIES.name: ("title", "released", "tagline"),
    LOAD_ACTORS.name: ("name", "born", "title", "roles"),
    LOAD_DIRECTORS.name: ("name", "born", "title"),
}

# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------

SCHEMA_VISUALIZATION = Statement(
    name="schema_visualization",
    cypher="CALL db.schema.visualization()",
    commentary="Labels and relationship types present after loading.",
)

TOM_HANKS_LOOKUP = Statement(
    name="tom_hanks_lookup",
    cypher="MATCH (p:Person {name: 'Tom Hanks'}) RETURN p",
    commentary="Point lookup by name.",
)

# ---------------------------------------------------------------------------
# Index management
# ---------------------------------------------------------------------------


def create_index_statement(index_name: str) -> Statement:
    return Statement(
        name="create_index",
        cypher=(
            f"CREATE INDEX {quote_name(index_name)} IF NOT EXISTS "
            "FOR (p:Person) ON (p.name)"
        ),
        commentary="Single-property index on Person.name.",
    )


def drop_index_statement(index_name: str) -> Statement:
    return Statement(
        name="drop_index",
        cypher=f"DROP INDEX {quote_name(index_name)} IF EXISTS",
        commentary="Remove the demo index so pre-index plans are reproducible.",
    )


def await_index_statement(index_name: str, timeout_seconds: int) -> Statement:
    return Statement(
        name="await_index",
        cypher="CALL db.awaitIndex($index_name, $timeout)",
        params={"index_name": index_name, "timeout": timeout_seconds},
    )


SHOW_INDEXES = Statement(
    name="show_indexes",
    cypher="SHOW INDEXES YIELD name, type, labelsOrTypes, properties, state",
    commentary="Current index list.",
)

# ---------------------------------------------------------------------------
# Tuning
# ---------------------------------------------------------------------------

UNLABELED_LOOKUP = Statement(
    name="unlabeled_lookup",
    cypher="MATCH (p {name: 'Tom Hanks'}) RETURN p",
    commentary="No label: every node in the store is read and filtered.",
    expectation=PlanExpectation(expect=("AllNodesScan",)),
)

LABELED_LOOKUP_NO_INDEX = Statement(
    name="labeled_lookup_no_index",
    cypher="MATCH (p:Person {name: 'Tom Hanks'}) RETURN p",
    commentary="Label restricts the scan to Person nodes, still filtered one by one.",
    expectation=PlanExpectation(expect=("NodeByLabelScan",), forbid=("AllNodesScan",)),
)

TUNING_BEFORE_INDEX = (UNLABELED_LOOKUP, LABELED_LOOKUP_NO_INDEX)

LABELED_LOOKUP_INDEXED = Statement(
    name="labeled_lookup_indexed",
    cypher="MATCH (p:Person {name: 'Tom Hanks'}) RETURN p",
    commentary="Same lookup; the planner now seeks directly into Person(name).",
    expectation=PlanExpectation(
        expect=("NodeIndexSeek",), forbid=("NodeByLabelScan", "AllNodesScan")
    ),
)

PREFIX_LOOKUP = Statement(
    name="prefix_lookup",
    cypher="MATCH (p:Person) WHERE p.name STARTS WITH $prefix RETURN p.name AS name",
    commentary="STARTS WITH is served by a range seek on the index.",
    params={"prefix": "Tom"},
    expectation=PlanExpectation(expect=("NodeIndexSeekByRange",)),
)

PREFIX_ACTED_IN_COUNT = Statement(
    name="prefix_acted_in_count",
    cypher="""
    MATCH (p:Person)-[:ACTED_IN]->(m:Movie)
    WHERE p.name STARTS WITH $prefix
    RETURN p.name AS name, count(m) AS movies
    """,
    commentary="Index picks the start nodes, expansion and aggregation follow.",
    params={"prefix": "Tom"},
    expectation=PlanExpectation(
        expect=("NodeIndexSeekByRange", "EagerAggregation"),
        forbid=("NodeByLabelScan",),
    ),
)

PREFIX_MOVIE_COUNT = Statement(
    name="prefix_movie_count",
    cypher="""
    MATCH (p:Person)--(m:Movie)
    WHERE p.name STARTS WITH $prefix
    RETURN p.name AS name, count(m) AS movies
    """,
    commentary=(
        "Any relationship type, restricted to :Movie at the far end; the index "
        "still picks the start nodes."
    ),
    params={"prefix": "Tom"},
    expectation=PlanExpectation(
        expect=("NodeIndexSeekByRange", "EagerAggregation"),
        forbid=("NodeByLabelScan",),
    ),
)

COUNT_PEOPLE = Statement(
    name="count_people",
    cypher="MATCH (p:Person) RETURN count(p) AS people",
    commentary="Label counts come from the count store, no nodes are touched.",
    expectation=PlanExpectation(expect=("NodeCountFromCountStore",)),
)

COUNT_DISTINCT_NAMES = Statement(
    name="count_distinct_names",
    cypher="MATCH (p:Person) RETURN count(DISTINCT p.name) AS names",
    commentary="Distinct values are read from the index instead of the node store.",
    expectation=PlanExpectation(expect=("NodeIndexScan",), forbid=("NodeByLabelScan",)),
)

ORDERED_PREFIX_LOOKUP = Statement(
    name="ordered_prefix_lookup",
    cypher="""
    MATCH (p:Person)
    WHERE p.name STARTS WITH $prefix
    RETURN p.name AS name
    ORDER BY p.name
    """,
    commentary="Index order is the requested order, so no Sort operator is planned.",
    params={"prefix": "Tom"},
    expectation=PlanExpectation(expect=("NodeIndexSeekByRange",), forbid=("Sort",)),
)

MIN_NAME = Statement(
    name="min_name",
    cypher="MATCH (p:Person) WHERE p.name STARTS WITH $prefix RETURN min(p.name) AS first",
    commentary="min() over an index range reads the first matching entry and stops.",
    params={"prefix": "Tom"},
    expectation=PlanExpectation(
        expect=("NodeIndexSeekByRange", "Limit"), forbid=("EagerAggregation",)
    ),
)

TUNING_AFTER_INDEX = (
    LABELED_LOOKUP_INDEXED,
    PREFIX_LOOKUP,
    PREFIX_ACTED_IN_COUNT,
    PREFIX_MOVIE_COUNT,
    COUNT_PEOPLE,
    COUNT_DISTINCT_NAMES,
    ORDERED_PREFIX_LOOKUP,
    MIN_NAME,
)

# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

GRAPH_COUNTS = Statement(
    name="graph_counts",
    cypher="""
    OPTIONAL MATCH (m:Movie)
    WITH count(m) AS movies
    OPTIONAL MATCH (p:Person)
    WITH movies, count(p) AS people
    OPTIONAL MATCH (:Person)-[a:ACTED_IN]->(:Movie)
    WITH movies, people, count(a) AS acted_in
    OPTIONAL MATCH (:Person)-[d:DIRECTED]->(:Movie)
    RETURN movies, people, acted_in, count(d) AS directed
    """,
)
