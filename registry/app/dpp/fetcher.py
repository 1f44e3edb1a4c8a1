"""
Retrieval of externally hosted DPP documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Protocol, Sequence

import httpx

from registry.app.exceptions import RemoteFetchError

logger = logging.getLogger(__name__)

DPP_MEDIA_TYPES = ("application/json", "application/ld+json")


@dataclass(frozen=True)
class FetchedDocument:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def content_type(self) -> str | None:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class DocumentFetcher(Protocol):
    async def fetch(self, url: str, accept: Sequence[str]) -> FetchedDocument:
        ...


class HttpDocumentFetcher:
    """
    Issues a GET for the DPP, negotiating the accepted media types.

    Transport failures surface as RemoteFetchError; status handling is
    left to the caller.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def fetch(self, url: str, accept: Sequence[str] = DPP_MEDIA_TYPES) -> FetchedDocument:
        try:
            response = await self._client.get(
                url, headers={"Accept": ", ".join(accept)}
            )
        except httpx.RequestError as exc:
            logger.error("DPP fetch from %s failed: %s", url, exc)
            raise RemoteFetchError(url, None, str(exc)) from exc

        return FetchedDocument(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )
