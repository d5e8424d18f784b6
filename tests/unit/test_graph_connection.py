"""Tests for GraphConnection.

All tests mock the neo4j driver to avoid requiring a live Neo4j instance.
"""

from collections.abc import Iterator
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, call, patch

import pytest
from neo4j.exceptions import ServiceUnavailable, TransientError

from movie_tuning.graphdb.connection import GraphConnection, with_profile

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FakeRecord:
    """Minimal stand-in for neo4j.Record that supports ``dict()`` conversion."""

    def __init__(self, data: dict[str, object]) -> None:
        self._data = data

    def __iter__(self) -> Iterator[tuple[str, object]]:
        return iter(self._data.items())

    def __getitem__(self, key: str) -> object:
        return self._data[key]

    def keys(self) -> list[str]:
        return list(self._data.keys())


def _counters(**values: int) -> SimpleNamespace:
    fields = (
        "nodes_created", "nodes_deleted", "relationships_created",
        "relationships_deleted", "properties_set", "labels_added",
        "labels_removed", "indexes_added", "indexes_removed",
        "constraints_added", "constraints_removed", "system_updates",
    )
    return SimpleNamespace(**{name: values.get(name, 0) for name in fields})


def _result(
    records: list[_FakeRecord],
    profile: dict[str, Any] | None = None,
    plan: dict[str, Any] | None = None,
    counters: SimpleNamespace | None = None,
) -> MagicMock:
    """Mock neo4j.Result: iterable records plus a consume() summary."""
    result = MagicMock()
    result.__iter__.return_value = iter(records)
    summary = result.consume.return_value
    summary.profile = profile
    summary.plan = plan
    summary.counters = counters or _counters()
    return result


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_driver() -> MagicMock:
    """Create a mock neo4j driver with session context-manager wiring."""
    driver = MagicMock()
    session = MagicMock()
    driver.session.return_value.__enter__ = MagicMock(return_value=session)
    driver.session.return_value.__exit__ = MagicMock(return_value=False)
    return driver


@pytest.fixture
def conn(mock_driver: MagicMock) -> GraphConnection:
    """GraphConnection wired to the mock driver."""
    with patch("movie_tuning.graphdb.connection.GraphDatabase") as mock_gd:
        mock_gd.driver.return_value = mock_driver
        connection = GraphConnection(
            "bolt://localhost:7687", auth=("neo4j", "test"), database="movies"
        )
    return connection


def _session(mock_driver: MagicMock) -> MagicMock:
    """Convenience accessor for the mock session."""
    result: MagicMock = mock_driver.session.return_value.__enter__.return_value
    return result


# ---------------------------------------------------------------------------
# construction
# ---------------------------------------------------------------------------


class TestConstruction:
    """GraphConnection.__init__"""

    def test_passes_auth_and_pool_size_to_driver(self) -> None:
        with patch("movie_tuning.graphdb.connection.GraphDatabase") as mock_gd:
            GraphConnection(
                "neo4j://db:7687",
                auth=("neo4j", "pw"),
                max_connection_pool_size=7,
            )

        mock_gd.driver.assert_called_once_with(
            "neo4j://db:7687", auth=("neo4j", "pw"), max_connection_pool_size=7
        )

    def test_use_database_switches_session_database(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        _session(mock_driver).run.return_value = []

        conn.use_database("other")
        conn.execute_cypher("RETURN 1")

        assert conn.database == "other"
        mock_driver.session.assert_called_with(database="other")


# ---------------------------------------------------------------------------
# health_check
# ---------------------------------------------------------------------------


class TestHealthCheck:
    """GraphConnection.health_check"""

    def test_returns_true_when_connected(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = [_FakeRecord({"health": 1})]

        assert conn.health_check() is True

    @patch("movie_tuning.graphdb.connection.time.sleep", return_value=None)
    def test_returns_false_on_connection_error(
        self, mock_sleep: MagicMock, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.side_effect = ServiceUnavailable("Connection refused")

        assert conn.health_check() is False
        mock_sleep.assert_not_called()

    def test_returns_false_on_unexpected_result(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = []

        assert conn.health_check() is False


# ---------------------------------------------------------------------------
# execute_cypher
# ---------------------------------------------------------------------------


class TestExecuteCypher:
    """GraphConnection.execute_cypher"""

    def test_returns_list_of_dicts(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = [
            _FakeRecord({"name": "Tom Hanks", "movies": 12}),
            _FakeRecord({"name": "Tom Cruise", "movies": 3}),
        ]

        result = conn.execute_cypher("MATCH (p:Person) RETURN p.name AS name")

        assert result == [
            {"name": "Tom Hanks", "movies": 12},
            {"name": "Tom Cruise", "movies": 3},
        ]

    def test_passes_params_and_database(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = []

        conn.execute_cypher("MATCH (p:Person {name: $name}) RETURN p", {"name": "Tom Hanks"})

        mock_driver.session.assert_called_once_with(database="movies")
        session.run.assert_called_once_with(
            "MATCH (p:Person {name: $name}) RETURN p", {"name": "Tom Hanks"}
        )

    def test_explicit_database_overrides_default(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        _session(mock_driver).run.return_value = []

        conn.execute_cypher("RETURN 1", database="neo4j")

        mock_driver.session.assert_called_once_with(database="neo4j")

    def test_empty_params_default(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = []

        conn.execute_cypher("RETURN 1")

        session.run.assert_called_once_with("RETURN 1", {})

    @patch("movie_tuning.graphdb.connection.time.sleep", return_value=None)
    def test_retries_on_transient_error(
        self,
        mock_sleep: MagicMock,
        conn: GraphConnection,
        mock_driver: MagicMock,
    ) -> None:
        session = _session(mock_driver)
        session.run.side_effect = [
            TransientError("deadlock"),
            TransientError("deadlock"),
            [_FakeRecord({"ok": True})],
        ]

        result = conn.execute_cypher("RETURN true AS ok", max_retries=3)

        assert result == [{"ok": True}]
        assert session.run.call_count == 3
        mock_sleep.assert_has_calls([call(1), call(2)])

    @patch("movie_tuning.graphdb.connection.time.sleep", return_value=None)
    def test_raises_after_max_retries_exhausted(
        self,
        mock_sleep: MagicMock,
        conn: GraphConnection,
        mock_driver: MagicMock,
    ) -> None:
        session = _session(mock_driver)
        session.run.side_effect = TransientError("deadlock")

        with pytest.raises(TransientError):
            conn.execute_cypher("RETURN 1", max_retries=3)

        assert session.run.call_count == 3

    @patch("movie_tuning.graphdb.connection.time.sleep", return_value=None)
    def test_retries_on_service_unavailable(
        self,
        mock_sleep: MagicMock,
        conn: GraphConnection,
        mock_driver: MagicMock,
    ) -> None:
        session = _session(mock_driver)
        session.run.side_effect = [
            ServiceUnavailable("disconnected"),
            [_FakeRecord({"val": 42})],
        ]

        result = conn.execute_cypher("RETURN 42 AS val", max_retries=2)

        assert result == [{"val": 42}]
        assert session.run.call_count == 2

    def test_zero_retries_still_runs_query_once(self, mock_driver: MagicMock) -> None:
        with patch("movie_tuning.graphdb.connection.GraphDatabase") as mock_gd:
            mock_gd.driver.return_value = mock_driver
            connection = GraphConnection("bolt://localhost:7687", max_retries=0)
        session = _session(mock_driver)
        session.run.return_value = [_FakeRecord({"ok": 1})]

        assert connection.execute_cypher("RETURN 1 AS ok") == [{"ok": 1}]
        assert session.run.call_count == 1

    def test_explicit_zero_retries_surfaces_driver_error(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.side_effect = ServiceUnavailable("down")

        with pytest.raises(ServiceUnavailable):
            conn.execute_cypher("RETURN 1", max_retries=0)

        assert session.run.call_count == 1


# ---------------------------------------------------------------------------
# execute_cypher_write / execute_admin
# ---------------------------------------------------------------------------


class TestExecuteCypherWrite:
    """GraphConnection.execute_cypher_write"""

    def test_returns_update_counters(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = _result(
            [], counters=_counters(nodes_created=38, properties_set=114)
        )

        counters = conn.execute_cypher_write("LOAD CSV ...", {"url": "https://x/movies.csv"})

        assert counters["nodes_created"] == 38
        assert counters["properties_set"] == 114
        assert counters["relationships_created"] == 0
        session.run.assert_called_once_with("LOAD CSV ...", {"url": "https://x/movies.csv"})

    def test_write_errors_are_not_retried(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.side_effect = TransientError("lock timeout")

        with pytest.raises(TransientError):
            conn.execute_cypher_write("MERGE (n:Movie {title: 'x'})")

        assert session.run.call_count == 1


class TestExecuteAdmin:
    """GraphConnection.execute_admin"""

    def test_runs_against_system_database(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = _result([])

        conn.execute_admin("CREATE DATABASE `movies` IF NOT EXISTS WAIT")

        mock_driver.session.assert_called_once_with(database="system")
        session.run.return_value.consume.assert_called_once()


# ---------------------------------------------------------------------------
# profile
# ---------------------------------------------------------------------------


class TestWithProfile:
    """with_profile prefixing."""

    def test_adds_profile_prefix(self) -> None:
        assert with_profile("MATCH (n) RETURN n") == "PROFILE MATCH (n) RETURN n"

    def test_strips_leading_whitespace(self) -> None:
        assert with_profile("\n   MATCH (n) RETURN n") == "PROFILE MATCH (n) RETURN n"

    def test_keeps_existing_directive(self) -> None:
        assert with_profile("profile MATCH (n) RETURN n") == "profile MATCH (n) RETURN n"
        assert with_profile("EXPLAIN MATCH (n) RETURN n") == "EXPLAIN MATCH (n) RETURN n"


class TestProfile:
    """GraphConnection.profile"""

    def test_returns_rows_and_plan(
        self,
        conn: GraphConnection,
        mock_driver: MagicMock,
        index_seek_profile: dict[str, Any],
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = _result(
            [_FakeRecord({"name": "Tom Hanks"})], profile=index_seek_profile
        )

        profiled = conn.profile("MATCH (p:Person {name: 'Tom Hanks'}) RETURN p.name AS name")

        assert profiled.rows == [{"name": "Tom Hanks"}]
        assert profiled.plan is not None
        assert profiled.plan.uses("NodeIndexSeek")
        query = session.run.call_args[0][0]
        assert query.startswith("PROFILE MATCH")

    def test_falls_back_to_explain_plan(
        self,
        conn: GraphConnection,
        mock_driver: MagicMock,
        label_scan_profile: dict[str, Any],
    ) -> None:
        session = _session(mock_driver)
        session.run.return_value = _result([], profile=None, plan=label_scan_profile)

        profiled = conn.profile("EXPLAIN MATCH (p:Person) RETURN p")

        assert profiled.plan is not None
        assert profiled.plan.uses("NodeByLabelScan")

    def test_plan_is_none_when_engine_reports_nothing(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        _session(mock_driver).run.return_value = _result([])

        profiled = conn.profile("RETURN 1")

        assert profiled.plan is None


# ---------------------------------------------------------------------------
# close / context manager
# ---------------------------------------------------------------------------


class TestConnectionLifecycle:
    """GraphConnection.close and context-manager protocol."""

    def test_close_closes_driver(
        self, conn: GraphConnection, mock_driver: MagicMock
    ) -> None:
        conn.close()
        mock_driver.close.assert_called_once()

    def test_context_manager(self, mock_driver: MagicMock) -> None:
        with patch("movie_tuning.graphdb.connection.GraphDatabase") as mock_gd:
            mock_gd.driver.return_value = mock_driver

            with GraphConnection("bolt://localhost:7687") as gc:
                assert gc is not None

            mock_driver.close.assert_called_once()
