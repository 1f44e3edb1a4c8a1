"""
Client for the remote DPP validation service.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from registry.app.metadata.models import ValidationReport
from registry.app.security import forwarded_headers

logger = logging.getLogger(__name__)


class ValidationClient(Protocol):
    async def validate(
        self,
        body: bytes,
        content_type: Optional[str],
        authorization: Optional[str] = None,
    ) -> ValidationReport:
        ...


class HttpValidationClient:
    """
    POSTs the raw DPP bytes to {base_url}/validate/v1.

    The DPP content type is sent as the request Content-Type, and the
    caller's credential is forwarded when present. HTTP errors propagate
    as httpx exceptions.
    """

    VALIDATE_PATH = "/validate/v1"

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._client = http_client
        self._endpoint = str(base_url).rstrip("/") + self.VALIDATE_PATH

    async def validate(
        self,
        body: bytes,
        content_type: Optional[str],
        authorization: Optional[str] = None,
    ) -> ValidationReport:
        headers = {"Accept": "application/json"}
        if content_type:
            headers["Content-Type"] = content_type
        headers.update(forwarded_headers(authorization))

        response = await self._client.post(
            self._endpoint, content=body, headers=headers
        )
        response.raise_for_status()

        logger.debug("Obtained validation response from %s", self._endpoint)
        return ValidationReport.model_validate(response.json())
