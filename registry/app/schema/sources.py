"""
Schema source chain.

Schema sources are tried in ascending priority order; the first one that
produces a document wins. A source that is not applicable (nothing
stored, no location configured) returns None and the chain moves on. A
source that is applicable but fails raises, and the error propagates: it
is never treated as "try the next one".
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol
from urllib.parse import unquote, urlparse

import anyio
import httpx

from registry.app.exceptions import SchemaSourceError, SchemaUnavailable
from registry.app.storage.base import SchemaRepository

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Source Interface
# ----------------------------------------------------------------------

class SchemaSource(Protocol):
    priority: int

    async def attempt_load(self) -> Optional[Dict[str, Any]]:
        ...


# ----------------------------------------------------------------------
# Stored schema (schema storage collaborator)
# ----------------------------------------------------------------------

class StoredSchemaSource:
    """Most recently stored schema version, if any."""

    priority = 0

    def __init__(self, repository: SchemaRepository) -> None:
        self._repository = repository

    async def attempt_load(self) -> Optional[Dict[str, Any]]:
        document = await self._repository.get_current_raw()
        if document is None:
            logger.debug("No schema stored. Ignoring %s", type(self).__name__)
        return document


# ----------------------------------------------------------------------
# Configured location (file path, file: URI, http(s) URL)
# ----------------------------------------------------------------------

class LocationSchemaSource:
    """
    Schema loaded from a configured location.

    Not applicable when no location is configured. Local files are read
    without blocking the event loop; remote locations go through the
    shared HTTP client.
    """

    priority = 999

    def __init__(
        self,
        location: Optional[str],
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._location = location
        self._http_client = http_client

    async def attempt_load(self) -> Optional[Dict[str, Any]]:
        if not self._location:
            logger.debug(
                "No configured location provided for a JSON schema. Ignoring %s",
                type(self).__name__,
            )
            return None

        location = self._location
        scheme = urlparse(location).scheme.lower()

        if scheme in {"http", "https"}:
            logger.debug("Loading schema from URL %s", location)
            content = await self._read_url(location)
        elif scheme in {"", "file"} or _looks_like_windows_path(location):
            logger.debug("Loading schema from file %s", location)
            content = await self._read_file(location)
        else:
            raise SchemaSourceError(location, f"unsupported scheme {scheme!r}")

        try:
            return json.loads(content)
        except ValueError as exc:
            raise SchemaSourceError(location, f"invalid JSON: {exc}") from exc

    async def _read_file(self, location: str) -> bytes:
        parsed = urlparse(location)
        path = unquote(parsed.path) if parsed.scheme == "file" else location
        try:
            return await anyio.Path(path).read_bytes()
        except OSError as exc:
            raise SchemaSourceError(location, str(exc)) from exc

    async def _read_url(self, location: str) -> bytes:
        if self._http_client is None:
            raise SchemaSourceError(location, "no HTTP client available")
        try:
            response = await self._http_client.get(
                location, headers={"Accept": "application/json"}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SchemaSourceError(
                location, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise SchemaSourceError(location, f"connection error: {exc}") from exc
        return response.content


def _looks_like_windows_path(location: str) -> bool:
    return len(location) > 2 and location[1] == ":" and location[2] in "\\/"


# ----------------------------------------------------------------------
# Chain
# ----------------------------------------------------------------------

class SchemaSourceChain:
    """
    Ordered schema sources with early return on the first document.
    """

    def __init__(self, sources: Iterable[SchemaSource]) -> None:
        self._sources: List[SchemaSource] = sorted(
            sources, key=lambda s: s.priority
        )

    @property
    def sources(self) -> List[SchemaSource]:
        return list(self._sources)

    async def load_schema(self) -> Dict[str, Any]:
        if not self._sources:
            raise SchemaUnavailable("No loader registered to retrieve a json schema")

        for source in self._sources:
            logger.debug(
                "Trying schema source %s (priority %d)",
                type(source).__name__,
                source.priority,
            )
            document = await source.attempt_load()
            if document:
                logger.debug("Schema provided by %s", type(source).__name__)
                return document

        raise SchemaUnavailable("No configured schema source provided a json schema")
