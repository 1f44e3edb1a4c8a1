"""
Schema version administration.

Adding or removing a schema version always invalidates the cache, so the
next read reflects the new "most recent wins" state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from registry.app.schema.cache import SchemaCache
from registry.app.schema.compiler import SchemaCompiler
from registry.app.storage.base import SchemaRepository

logger = logging.getLogger(__name__)


class SchemaAdmin:
    def __init__(
        self,
        repository: SchemaRepository,
        compiler: SchemaCompiler,
        cache: SchemaCache,
    ) -> None:
        self._repository = repository
        self._compiler = compiler
        self._cache = cache

    async def add(self, raw: Dict[str, Any]) -> None:
        """Store a new schema version; non-compliant schemas are rejected."""
        self._compiler.compile(raw)
        await self._repository.add_raw(raw)
        self._cache.invalidate()

    async def current(self) -> Optional[Dict[str, Any]]:
        return await self._repository.get_current_raw()

    async def remove_current(self) -> None:
        logger.debug("Removing the last JSON schema added to the repository")
        await self._repository.remove_most_recent()
        self._cache.invalidate()
