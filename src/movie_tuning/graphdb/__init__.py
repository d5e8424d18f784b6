"""Graph database connection and query utilities."""

from movie_tuning.graphdb.connection import GraphConnection, ProfiledResult, get_graph

__all__ = [
    "GraphConnection",
    "ProfiledResult",
    "get_graph",
]
