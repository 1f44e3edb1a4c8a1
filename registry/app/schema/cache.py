"""
Process-wide cache of the compiled schema.

The cache holds a single slot: either empty or one shared task that
loads (source chain) and compiles (compiler) the schema. Concurrent
callers all await the same task, so the chain runs at most once per
invalidation cycle.

The slot is only ever changed by compare-and-set operations that run
without an intervening await, which makes them atomic on the event loop.
Cache hits take no lock.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from registry.app.schema.compiler import SchemaCompiler
from registry.app.schema.document import SchemaDocument
from registry.app.schema.sources import SchemaSourceChain

logger = logging.getLogger(__name__)


class SchemaCache:
    """
    Single-flight memoized holder of the current SchemaDocument.

    A failed load is never memoized: the slot is emptied as soon as the
    shared task fails, and the next get() retries the whole chain.
    """

    def __init__(self, chain: SchemaSourceChain, compiler: SchemaCompiler) -> None:
        self._chain = chain
        self._compiler = compiler
        self._slot: Optional["asyncio.Task[SchemaDocument]"] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self) -> SchemaDocument:
        """
        Return the current schema, loading and compiling it if needed.
        """
        slot = self._slot
        if slot is not None and _has_failed(slot):
            # the failure callback has not run yet
            self._compare_and_set(slot, None)
            slot = self._slot
        if slot is None:
            logger.debug("Caching JSON schema...")
            candidate = asyncio.ensure_future(self._load())
            candidate.add_done_callback(self._release_if_failed)
            if not self._compare_and_set(None, candidate):
                candidate.cancel()
            slot = self._slot

        # shield: one cancelled caller must not cancel the shared load
        return await asyncio.shield(slot)

    def invalidate(self) -> None:
        """Reset the slot; the next get() reloads the schema."""
        logger.debug("Invalidating JSON schema cache...")
        self._slot = None

    @property
    def is_empty(self) -> bool:
        return self._slot is None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load(self) -> SchemaDocument:
        raw = await self._chain.load_schema()
        document = self._compiler.compile(raw)
        logger.debug("JSON schema cached")
        return document

    def _compare_and_set(
        self,
        expected: Optional["asyncio.Task[SchemaDocument]"],
        new: Optional["asyncio.Task[SchemaDocument]"],
    ) -> bool:
        if self._slot is expected:
            self._slot = new
            return True
        return False

    def _release_if_failed(self, task: "asyncio.Task[SchemaDocument]") -> None:
        if _has_failed(task):
            if self._compare_and_set(task, None):
                logger.debug("JSON schema load failed, cache left empty")


def _has_failed(task: "asyncio.Task[SchemaDocument]") -> bool:
    if not task.done():
        return False
    return task.cancelled() or task.exception() is not None
