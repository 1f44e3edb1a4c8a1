"""
Storage collaborator interfaces.

The SQL engine and its transactions live outside the registry core; the
core only depends on these protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

if TYPE_CHECKING:
    from registry.app.metadata.models import MetadataRecord
    from registry.app.metadata.predicates import Predicate


class SchemaRepository(Protocol):
    """Versioned schema storage; the most recently added version is current."""

    async def get_current_raw(self) -> Optional[Dict[str, Any]]:
        ...

    async def add_raw(self, document: Dict[str, Any]) -> None:
        ...

    async def remove_most_recent(self) -> None:
        ...


class MetadataRepository(Protocol):
    """Registry record storage."""

    async def find_by_identifier(self, value: str) -> Optional["MetadataRecord"]:
        ...

    async def find_by_filters(self, predicate: "Predicate") -> Optional["MetadataRecord"]:
        ...

    async def save(self, record: "MetadataRecord") -> "MetadataRecord":
        ...

    async def update(self, record: "MetadataRecord") -> "MetadataRecord":
        ...
