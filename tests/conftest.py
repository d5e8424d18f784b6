"""Pytest configuration and fixtures for movie tuning tests."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from movie_tuning.config import TuningConfig
from movie_tuning.graphdb.connection import GraphConnection, ProfiledResult
from movie_tuning.plan import PlanOperator


@pytest.fixture
def test_config() -> TuningConfig:
    """Configuration with fixed values, independent of the environment."""
    return TuningConfig(
        _env_file=None,
        neo4j_host="localhost",
        neo4j_port=7687,
        neo4j_user="neo4j",
        neo4j_password="test",
        neo4j_database="movies",
        create_database=False,
        movies_csv_url="https://data.example.com/movies.csv",
        actors_csv_url="https://data.example.com/actors.csv",
        directors_csv_url="https://data.example.com/directors.csv",
        roles_delimiter=";",
        csv_timeout=2.0,
        demo_index_name="person_name",
        index_online_timeout=30,
        strict_plans=False,
    )


@pytest.fixture
def mock_graph() -> MagicMock:
    """Mock graph connection for unit tests."""
    conn = MagicMock(spec=GraphConnection)
    conn.execute_cypher.return_value = []
    conn.execute_cypher_write.return_value = {}
    conn.health_check.return_value = True
    conn.profile.return_value = ProfiledResult(rows=[], plan=None)
    return conn


@pytest.fixture
def index_seek_profile() -> dict[str, Any]:
    """Driver ``summary.profile`` mapping for an indexed Person lookup."""
    return {
        "operatorType": "ProduceResults@neo4j",
        "identifiers": ["p"],
        "args": {"Details": "p"},
        "dbHits": 0,
        "rows": 1,
        "pageCacheHits": 1,
        "pageCacheMisses": 0,
        "children": [
            {
                "operatorType": "NodeIndexSeek@neo4j",
                "identifiers": ["p"],
                "args": {"Details": "RANGE INDEX p:Person(name) WHERE name = $autostring_0"},
                "dbHits": 2,
                "rows": 1,
                "pageCacheHits": 3,
                "pageCacheMisses": 1,
                "children": [],
            }
        ],
    }


@pytest.fixture
def label_scan_profile() -> dict[str, Any]:
    """Driver ``summary.profile`` mapping for a label scan with a filter."""
    return {
        "operatorType": "ProduceResults@neo4j",
        "identifiers": ["p"],
        "args": {},
        "dbHits": 0,
        "rows": 1,
        "children": [
            {
                "operatorType": "Filter@neo4j",
                "identifiers": ["p"],
                "args": {"Details": "p.name = $autostring_0"},
                "dbHits": 266,
                "rows": 1,
                "children": [
                    {
                        "operatorType": "NodeByLabelScan@neo4j",
                        "identifiers": ["p"],
                        "args": {"Details": "p:Person"},
                        "dbHits": 134,
                        "rows": 133,
                        "children": [],
                    }
                ],
            }
        ],
    }


@pytest.fixture
def index_seek_plan(index_seek_profile: dict[str, Any]) -> PlanOperator:
    return PlanOperator.model_validate(index_seek_profile)


@pytest.fixture
def label_scan_plan(label_scan_profile: dict[str, Any]) -> PlanOperator:
    return PlanOperator.model_validate(label_scan_profile)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register Neo4j connection options for integration tests."""
    parser.addoption(
        "--neo4j-url",
        action="store",
        default="bolt://localhost:7687",
        help="Neo4j Bolt URL for integration tests",
    )
    parser.addoption(
        "--neo4j-user",
        action="store",
        default="neo4j",
        help="Neo4j user for integration tests",
    )
    parser.addoption(
        "--neo4j-password",
        action="store",
        default="password",
        help="Neo4j password for integration tests",
    )
