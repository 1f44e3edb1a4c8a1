"""
Metadata registry endpoints.
"""

import logging
from typing import Annotated, Any, Dict, List, Optional, Tuple, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from registry.app.metadata.models import MetadataRecord, ValidatedMetadataRecord
from registry.app.metadata.service import MetadataService
from registry.app.security import get_authorization

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Metadata"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SearchRequest(BaseModel):
    filters: List[Tuple[str, Any]] = Field(
        default_factory=list,
        description="Ordered (property, value) pairs, combined with AND",
    )


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_metadata_service(request: Request) -> MetadataService:
    service = getattr(request.app.state, "metadata_service", None)
    if service is None:
        raise RuntimeError("metadata service not initialized")
    return service


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=Union[ValidatedMetadataRecord, MetadataRecord],
    summary="Save or update a metadata entry",
)
async def save_metadata(
    payload: Annotated[Dict[str, Any], Body(...)],
    service: Annotated[MetadataService, Depends(get_metadata_service)],
    authorization: Annotated[Optional[str], Depends(get_authorization)],
    autocomplete_by: Annotated[
        List[str],
        Query(description="Fields locating the record used for autocompletion"),
    ] = [],
) -> Union[ValidatedMetadataRecord, MetadataRecord]:
    return await service.save_or_update(
        payload,
        autocomplete_by=autocomplete_by,
        authorization=authorization,
    )


@router.post(
    "/search",
    response_model=MetadataRecord,
    summary="Find the most recent entry matching the filters",
)
async def search_metadata(
    search: SearchRequest,
    service: Annotated[MetadataService, Depends(get_metadata_service)],
) -> MetadataRecord:
    record = await service.find_by_filters(search.filters)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No metadata entry matches the given filters.",
        )
    return record


@router.get(
    "/{upi}",
    response_model=MetadataRecord,
    summary="Return the entry stored under a UPI",
)
async def get_metadata(
    upi: str,
    service: Annotated[MetadataService, Depends(get_metadata_service)],
) -> MetadataRecord:
    record = await service.find_by_identifier(upi)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Metadata entry '{upi}' not found.",
        )
    return record
