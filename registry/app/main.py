"""
FastAPI entrypoint for the Registry microservice.

This module wires the registry core (schema sources, compiler, cache,
metadata service, DPP validation) into an HTTP application and maps
registry failures to HTTP responses. All collaborators are built once at
startup and stored on app.state.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from registry.app.api.metadata import router as metadata_router
from registry.app.api.schema import router as schema_router
from registry.app.config import RegistrySettings, get_settings
from registry.app.dpp.fetcher import HttpDocumentFetcher
from registry.app.dpp.pipeline import ExternalValidationPipeline
from registry.app.dpp.validation_client import HttpValidationClient
from registry.app.exceptions import (
    InvalidExternalResource,
    RegistryError,
    RemoteFetchError,
    SchemaComplianceError,
    SchemaSourceError,
    SchemaUnavailable,
    SchemaValidationException,
    UnsupportedFilterType,
)
from registry.app.metadata.autocomplete import MetadataAutocompleter
from registry.app.metadata.predicates import DynamicPredicateBuilder
from registry.app.metadata.service import MetadataService
from registry.app.schema.admin import SchemaAdmin
from registry.app.schema.cache import SchemaCache
from registry.app.schema.compiler import SchemaCompiler
from registry.app.schema.sources import (
    LocationSchemaSource,
    SchemaSourceChain,
    StoredSchemaSource,
)
from registry.app.storage.memory import MemoryMetadataRepository, MemorySchemaRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Composition root
# ---------------------------------------------------------------------------

def wire_registry(
    app: FastAPI,
    settings: RegistrySettings,
    http_client: httpx.AsyncClient,
) -> None:
    """
    Build every registry collaborator and attach it to app.state.
    """
    schema_repository = MemorySchemaRepository()
    metadata_repository = MemoryMetadataRepository(settings.upi_field_name)

    chain = SchemaSourceChain(
        [
            StoredSchemaSource(schema_repository),
            LocationSchemaSource(settings.schema_location, http_client),
        ]
    )
    compiler = SchemaCompiler(settings)
    schema_cache = SchemaCache(chain, compiler)

    pipeline = None
    if settings.dpp_validation_enabled:
        pipeline = ExternalValidationPipeline(
            config=settings,
            fetcher=HttpDocumentFetcher(http_client),
            validation_client=HttpValidationClient(
                http_client, str(settings.validator_url)
            ),
        )

    app.state.settings = settings
    app.state.http_client = http_client
    app.state.schema_cache = schema_cache
    app.state.schema_admin = SchemaAdmin(schema_repository, compiler, schema_cache)
    app.state.metadata_service = MetadataService(
        config=settings,
        schema_cache=schema_cache,
        repository=metadata_repository,
        predicate_builder=DynamicPredicateBuilder(schema_cache),
        autocompleter=MetadataAutocompleter(settings.autocompletion_enabled_for),
        pipeline=pipeline,
    )


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR = (
    (SchemaUnavailable, 503),
    (SchemaSourceError, 503),
    (SchemaComplianceError, 422),
    (SchemaValidationException, 422),
    (InvalidExternalResource, 422),
    (RemoteFetchError, 502),
    (UnsupportedFilterType, 400),
)


def _status_for(exc: RegistryError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    status_code = _status_for(exc)
    content = {"error": type(exc).__name__, "detail": str(exc)}

    if isinstance(exc, InvalidExternalResource):
        content["validation"] = exc.report.model_dump(by_alias=True)
    elif isinstance(exc, SchemaComplianceError):
        content["violations"] = exc.violations
    elif isinstance(exc, SchemaValidationException):
        content["violations"] = exc.messages

    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)

    return JSONResponse(status_code=status_code, content=content)


async def upstream_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    """Failures talking to the remote DPP validator."""
    logger.error("%s %s upstream call failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=502,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Application setup
# ---------------------------------------------------------------------------

def create_app(
    settings: Optional[RegistrySettings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the application.

    settings and http_client may be injected (tests); otherwise they are
    created at startup from the environment.
    """
    application = FastAPI(
        title="Product Metadata Registry",
        description="Schema-governed registry of product metadata entries",
        version="0.1.0",
    )

    @application.on_event("startup")
    async def startup_event() -> None:
        resolved = settings or get_settings()
        logging.basicConfig(
            level=resolved.numeric_log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        client = http_client or httpx.AsyncClient(
            timeout=resolved.http_timeout_seconds,
            follow_redirects=True,
        )
        wire_registry(application, resolved, client)
        logger.info(
            "Registry started (dpp validation %s)",
            "enabled" if resolved.dpp_validation_enabled else "disabled",
        )

    @application.on_event("shutdown")
    async def shutdown_event() -> None:
        client = getattr(application.state, "http_client", None)
        if client is not None and http_client is None:
            await client.aclose()

    application.add_exception_handler(RegistryError, registry_error_handler)
    application.add_exception_handler(httpx.HTTPError, upstream_error_handler)

    application.include_router(schema_router, prefix="/schema/v1")
    application.include_router(metadata_router, prefix="/metadata/v1")

    @application.get("/health", summary="Service health check")
    def health_check() -> JSONResponse:
        """Simple health check endpoint."""
        return JSONResponse(content={"status": "ok", "service": "registry"})

    return application


app = create_app()
