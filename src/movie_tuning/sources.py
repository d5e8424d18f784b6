"""Preflight checks for the remote CSV resources read by LOAD CSV.

The engine downloads and parses the files itself; this only confirms each URL
is reachable and its header row carries the columns the MERGE templates read.
"""

import csv
import logging
from dataclasses import dataclass

import httpx

from movie_tuning.config import TuningConfig, get_config
from movie_tuning.statements import LOAD_ACTORS, LOAD_DIRECTORS, LOAD_MOVIES, REQUIRED_COLUMNS

logger = logging.getLogger(__name__)

# Enough bytes to cover any realistic header row.
_HEADER_BYTES = 4096


class CsvSourceError(Exception):
    """Raised when a CSV source is unreachable or lacks required columns."""

    pass


@dataclass
class SourceCheck:
    """Outcome of checking one CSV resource."""

    statement: str
    url: str
    columns: list[str]
    skipped: bool = False


def parse_header(text: str) -> list[str]:
    """Parse the first CSV line of ``text`` into column names."""
    first_line = text.lstrip("\ufeff").splitlines()[0] if text.strip() else ""
    if not first_line:
        return []
    return [column.strip() for column in next(csv.reader([first_line]))]


class CsvSourceChecker:
    """Fetches CSV header rows over HTTP."""

    def __init__(self, timeout: float | None = None, client: httpx.Client | None = None) -> None:
        self.timeout = timeout or get_config().csv_timeout
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, follow_redirects=True)
        return self._client

    def fetch_header(self, url: str) -> list[str]:
        """Return the header columns of the CSV at ``url``."""
        client = self._get_client()
        try:
            logger.debug("Fetching CSV header: %s", url)
            response = client.get(url, headers={"Range": f"bytes=0-{_HEADER_BYTES - 1}"})
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise CsvSourceError(f"CSV source timed out: {url}") from e
        except httpx.HTTPStatusError as e:
            raise CsvSourceError(f"CSV source HTTP error: {e}") from e
        except httpx.HTTPError as e:
            raise CsvSourceError(f"CSV source unreachable: {url} ({e})") from e
        return parse_header(response.text)

    def check(self, statement: str, url: str) -> SourceCheck:
        """Check one source against the columns its statement reads."""
        if url.startswith("file:///"):
            logger.info("Skipping engine-local CSV source %s", url)
            return SourceCheck(statement=statement, url=url, columns=[], skipped=True)

        columns = self.fetch_header(url)
        missing = [c for c in REQUIRED_COLUMNS[statement] if c not in columns]
        if missing:
            raise CsvSourceError(
                f"{url} is missing column(s) {', '.join(missing)} required by {statement}"
            )
        logger.info("CSV source ok: %s (%d columns)", url, len(columns))
        return SourceCheck(statement=statement, url=url, columns=columns)

    def check_all(self, config: TuningConfig | None = None) -> list[SourceCheck]:
        """Check the movies, actors and directors sources in load order."""
        config = config or get_config()
        return [
            self.check(LOAD_MOVIES.name, config.movies_csv_url),
            self.check(LOAD_ACTORS.name, config.actors_csv_url),
            self.check(LOAD_DIRECTORS.name, config.directors_csv_url),
        ]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "CsvSourceChecker":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
