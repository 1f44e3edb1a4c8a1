"""
External DPP validation pipeline.

Each registry record points, through its live-URL field, at an
externally hosted DPP. This pipeline retrieves that document and hands it
to the remote validator:

    Start → URLResolved → Fetched → RemoteValidated → Decorated

Any failing step ends the run with its own exception. There are no
retries; one pass is attempted per call.
"""

from __future__ import annotations

import logging
from typing import Optional

from registry.app.config import RegistrySettings
from registry.app.dpp.fetcher import DPP_MEDIA_TYPES, DocumentFetcher, FetchedDocument
from registry.app.dpp.validation_client import ValidationClient
from registry.app.exceptions import (
    InvalidExternalResource,
    RemoteFetchError,
    SchemaValidationException,
)
from registry.app.metadata.models import (
    MetadataRecord,
    ValidatedMetadataRecord,
    ValidationReport,
)

logger = logging.getLogger(__name__)

BODY_EXCERPT_CHARS = 512


class ExternalValidationPipeline:
    """
    Strictly sequential fetch-then-validate run over one record.
    """

    def __init__(
        self,
        *,
        config: RegistrySettings,
        fetcher: DocumentFetcher,
        validation_client: ValidationClient,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._validation_client = validation_client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def validate(
        self,
        record: MetadataRecord,
        authorization: Optional[str] = None,
    ) -> ValidatedMetadataRecord:
        # --------------------------------------------------------------
        # Start → URLResolved
        # --------------------------------------------------------------
        url = self._resolve_url(record)
        logger.debug("Retrieved URL for decentralized repository %s", url)

        # --------------------------------------------------------------
        # URLResolved → Fetched
        # --------------------------------------------------------------
        document = await self._fetcher.fetch(url, DPP_MEDIA_TYPES)
        if not document.is_success:
            raise RemoteFetchError(
                url, document.status_code, _excerpt(document)
            )
        logger.debug(
            "Received DPP with content type %s (%d bytes)",
            document.content_type,
            len(document.body),
        )

        # --------------------------------------------------------------
        # Fetched → RemoteValidated
        # --------------------------------------------------------------
        report: ValidationReport = await self._validation_client.validate(
            document.body,
            document.content_type,
            authorization,
        )
        logger.debug(
            "Obtained validation response (valid=%s, validated_with=%s)",
            report.valid,
            report.validated_with,
        )

        # --------------------------------------------------------------
        # RemoteValidated → Decorated
        # --------------------------------------------------------------
        if not report.valid:
            raise InvalidExternalResource(report)

        return ValidatedMetadataRecord(record=record, validation=report)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_url(self, record: MetadataRecord) -> str:
        field_name = self._config.live_url_field_name
        logger.debug("Trying to retrieve the live URL using field name %s", field_name)

        value = (record.metadata or {}).get(field_name)
        if not isinstance(value, str) or not value.strip():
            raise SchemaValidationException(
                "Expected to find a live url in metadata under field name "
                f"{field_name} but did not find any."
            )
        return value.strip()


def _excerpt(document: FetchedDocument) -> str:
    return document.body[:BODY_EXCERPT_CHARS].decode("utf-8", errors="replace")
