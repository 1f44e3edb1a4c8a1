"""
In-memory storage collaborators.

Process-local implementations of the storage protocols, used for local
runs and tests. They follow the same contract as the SQL stores: the most
recently added schema is current, and records are looked up newest first.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from registry.app.metadata.models import MetadataRecord
from registry.app.metadata.predicates import Predicate
from registry.app.utils.identifiers import generate_registry_id

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemorySchemaRepository:
    def __init__(self) -> None:
        self._versions: List[Tuple[datetime, Dict[str, Any]]] = []

    async def get_current_raw(self) -> Optional[Dict[str, Any]]:
        logger.debug("Retrieving current JSON schema")
        if not self._versions:
            return None
        return copy.deepcopy(self._versions[-1][1])

    async def add_raw(self, document: Dict[str, Any]) -> None:
        self._versions.append((_utcnow(), copy.deepcopy(document)))
        logger.info("JSON schema version %d stored", len(self._versions))

    async def remove_most_recent(self) -> None:
        if self._versions:
            self._versions.pop()
            logger.info("Most recent JSON schema removed")


class MemoryMetadataRepository:
    """
    Registry records kept in insertion order.

    Records are matched by the configured UPI field on update and on
    identifier lookups.
    """

    def __init__(self, upi_field_name: str) -> None:
        self._upi_field_name = upi_field_name
        self._records: List[MetadataRecord] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_identifier(self, value: str) -> Optional[MetadataRecord]:
        for record in self._newest_first():
            if record.metadata.get(self._upi_field_name) == value:
                logger.debug("Retrieved metadata by upi %s", value)
                return record.model_copy(deep=True)
        return None

    async def find_by_filters(self, predicate: Predicate) -> Optional[MetadataRecord]:
        logger.debug("Executing query condition %s with %s", predicate.sql, predicate.params)
        for record in self._newest_first():
            if predicate.matches(record.metadata):
                return record.model_copy(deep=True)
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, record: MetadataRecord) -> MetadataRecord:
        now = _utcnow()
        stored = MetadataRecord(
            registry_id=generate_registry_id(),
            metadata=copy.deepcopy(record.metadata),
            created_at=now,
            modified_at=now,
        )
        self._records.append(stored)
        logger.info("Metadata entry %s persisted", stored.registry_id)
        return stored.model_copy(deep=True)

    async def update(self, record: MetadataRecord) -> MetadataRecord:
        upi = record.metadata.get(self._upi_field_name)
        for index in range(len(self._records) - 1, -1, -1):
            current = self._records[index]
            if current.metadata.get(self._upi_field_name) == upi:
                updated = MetadataRecord(
                    registry_id=current.registry_id,
                    metadata=copy.deepcopy(record.metadata),
                    created_at=current.created_at,
                    modified_at=_utcnow(),
                )
                self._records[index] = updated
                logger.info("Metadata entry %s updated", updated.registry_id)
                return updated.model_copy(deep=True)
        raise LookupError(f"No metadata entry found for upi {upi!r}")

    def _newest_first(self):
        return sorted(
            reversed(self._records),
            key=lambda r: r.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
