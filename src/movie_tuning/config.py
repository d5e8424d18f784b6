"""Configuration management for the movie graph tuning walkthrough."""

import logging
from functools import lru_cache
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings

_DATASET_BASE_URL = (
    "https://raw.githubusercontent.com/neo4j-contrib/developer-resources/gh-pages/data"
)


class TuningConfig(BaseSettings):
    """Configuration loaded from environment variables.

    All fields may be overridden via environment variable (case-insensitive)
    or via a `.env` file in the working directory.
    """

    # -------------------------------------------------------------------------
    # connection_config — Bolt endpoint and credentials
    # -------------------------------------------------------------------------

    neo4j_scheme: Literal["bolt", "bolt+s", "bolt+ssc", "neo4j", "neo4j+s", "neo4j+ssc"] = "bolt"
    neo4j_host: str = "localhost"
    neo4j_port: int = 7687
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"

    # Active database for every statement.  Env var: NEO4J_DATABASE.
    neo4j_database: str = "neo4j"

    # Issue CREATE DATABASE against the system database before loading.
    # Requires an edition that supports multiple databases.
    create_database: bool = False

    # Max concurrent Bolt connections.  The walkthrough is strictly sequential.
    neo4j_pool_size: int = 5

    # Retry attempts for read queries on ServiceUnavailable/TransientError.
    # Uses exponential backoff: 2**attempt seconds per retry.
    neo4j_max_retries: int = 3

    # -------------------------------------------------------------------------
    # dataset_config — Remote CSV resources read by LOAD CSV
    # -------------------------------------------------------------------------

    # Columns: title, released, tagline
    movies_csv_url: str = f"{_DATASET_BASE_URL}/movies.csv"
    # Columns: name, born, title, roles
    actors_csv_url: str = f"{_DATASET_BASE_URL}/actors.csv"
    # Columns: name, born, title
    directors_csv_url: str = f"{_DATASET_BASE_URL}/directors.csv"

    # Separator inside the actors.csv roles column.
    roles_delimiter: str = ";"

    # Seconds for the CSV header preflight request.
    csv_timeout: float = 10.0

    # -------------------------------------------------------------------------
    # tuning_config — Index and plan checks
    # -------------------------------------------------------------------------

    demo_index_name: str = "person_name"

    # Seconds to wait for the demo index to come online after creation.
    index_online_timeout: int = 300

    # Raise instead of warn when a profiled plan misses its expected operator.
    strict_plans: bool = False

    log_level: str = "INFO"

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("neo4j_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is positive."""
        if v <= 0:
            raise ValueError("neo4j_port must be positive")
        return v

    @field_validator("neo4j_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate at least one attempt is made per read."""
        if v < 1:
            raise ValueError("neo4j_max_retries must be at least 1")
        return v

    @field_validator("movies_csv_url", "actors_csv_url", "directors_csv_url")
    @classmethod
    def validate_csv_url(cls, v: str) -> str:
        """Validate URL is something LOAD CSV can read."""
        if not v.startswith(("http://", "https://", "file:///")):
            raise ValueError("CSV URL must start with http://, https:// or file:///")
        return v

    @field_validator("roles_delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Validate delimiter is exactly one character."""
        if len(v) != 1:
            raise ValueError("roles_delimiter must be a single character")
        return v

    @field_validator("demo_index_name", "neo4j_database")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Validate names that get inlined into schema statements."""
        if not v or not all(c.isalnum() or c in "_-." for c in v):
            raise ValueError(f"invalid schema name: {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def neo4j_uri(self) -> str:
        """Bolt connection URI."""
        return f"{self.neo4j_scheme}://{self.neo4j_host}:{self.neo4j_port}"

    @property
    def neo4j_auth(self) -> tuple[str, str]:
        """Basic auth tuple for the driver."""
        return (self.neo4j_user, self.neo4j_password)


@lru_cache(maxsize=1)
def get_config() -> TuningConfig:
    """Get singleton configuration instance."""
    return TuningConfig()


def get_config_dict() -> dict[str, Any]:
    """Get configuration as dictionary (for testing)."""
    return get_config().model_dump()
