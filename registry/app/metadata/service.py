"""
Registry write and query flow.

A write resolves the current schema, checks the identifier fields,
completes the payload from a previous record, validates it against the
schema, optionally validates the externally hosted DPP, and persists it.
The first failing step ends the flow with its exception.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Sequence, Union

from registry.app.config import RegistrySettings
from registry.app.dpp.pipeline import ExternalValidationPipeline
from registry.app.exceptions import SchemaValidationException
from registry.app.metadata.autocomplete import MetadataAutocompleter
from registry.app.metadata.models import MetadataRecord, ValidatedMetadataRecord
from registry.app.metadata.predicates import DynamicPredicateBuilder
from registry.app.schema.cache import SchemaCache
from registry.app.schema.document import SchemaDocument
from registry.app.storage.base import MetadataRepository

logger = logging.getLogger(__name__)

SaveResult = Union[MetadataRecord, ValidatedMetadataRecord]


class MetadataService:
    def __init__(
        self,
        *,
        config: RegistrySettings,
        schema_cache: SchemaCache,
        repository: MetadataRepository,
        predicate_builder: DynamicPredicateBuilder,
        autocompleter: MetadataAutocompleter,
        pipeline: Optional[ExternalValidationPipeline] = None,
    ) -> None:
        self._config = config
        self._schema_cache = schema_cache
        self._repository = repository
        self._predicate_builder = predicate_builder
        self._autocompleter = autocompleter
        self._pipeline = pipeline

        if config.dpp_validation_enabled and pipeline is None:
            raise RuntimeError(
                "dpp_validation_enabled is true but no validation pipeline was provided."
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_or_update(
        self,
        payload: Dict[str, Any],
        autocomplete_by: Sequence[str] = (),
        authorization: Optional[str] = None,
    ) -> SaveResult:
        """
        Save a new record, or update the one stored under the same UPI.

        Args:
            payload: the submitted metadata.
            autocomplete_by: fields whose values locate the previous
                record used to autocomplete a new one.
            authorization: caller credential forwarded to the validator.
        """
        if not isinstance(payload, dict):
            raise SchemaValidationException("Metadata payload must be a JSON object")

        schema = await self._schema_cache.get()
        upi = self._require_identifiers(payload, schema)

        existing = await self._repository.find_by_identifier(upi)
        if existing is not None:
            logger.debug("Updating existing entry %s", existing.registry_id)
            previous = existing
        else:
            previous = await self._find_previous(payload, autocomplete_by)

        metadata = (
            self._autocompleter.autocomplete(payload, previous.metadata)
            if previous is not None
            else dict(payload)
        )

        errors = schema.validate_payload(metadata)
        if errors:
            raise SchemaValidationException(errors)

        if existing is not None:
            record = existing.model_copy(update={"metadata": metadata})
        else:
            record = MetadataRecord(metadata=metadata)

        validated: Optional[ValidatedMetadataRecord] = None
        if self._config.dpp_validation_enabled:
            validated = await self._pipeline.validate(record, authorization)

        if existing is not None:
            stored = await self._repository.update(record)
        else:
            stored = await self._repository.save(record)

        if validated is not None:
            return ValidatedMetadataRecord(record=stored, validation=validated.validation)
        return stored

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_identifier(self, upi: str) -> Optional[MetadataRecord]:
        return await self._repository.find_by_identifier(upi)

    async def find_by_filters(
        self, filters: Iterable[Sequence[Any]]
    ) -> Optional[MetadataRecord]:
        predicate = await self._predicate_builder.build(filters)
        return await self._repository.find_by_filters(predicate)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_identifiers(
        self, payload: Dict[str, Any], schema: SchemaDocument
    ) -> Any:
        values = {}
        for field_name in (self._config.upi_field_name, self._config.reoid_field_name):
            value = payload.get(field_name)
            if value is None:
                raise SchemaValidationException(
                    f"Missing required identifier field {field_name}"
                )
            if schema.declared_type(field_name) == "string" and not isinstance(value, str):
                raise SchemaValidationException(
                    f"Identifier field {field_name} must be a string"
                )
            values[field_name] = value
        return values[self._config.upi_field_name]

    async def _find_previous(
        self, payload: Dict[str, Any], autocomplete_by: Sequence[str]
    ) -> Optional[MetadataRecord]:
        filters = [
            (name, payload[name])
            for name in autocomplete_by
            if payload.get(name) is not None
        ]
        if not filters:
            return None
        predicate = await self._predicate_builder.build(filters)
        previous = await self._repository.find_by_filters(predicate)
        if previous is not None:
            logger.debug("Autocompleting from entry %s", previous.registry_id)
        return previous
