"""
Schema administration endpoints.

POST stores a new schema version, GET returns the current one, DELETE
removes the most recent version. Every write invalidates the schema
cache.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status

from registry.app.schema.admin import SchemaAdmin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Schema"])


def get_schema_admin(request: Request) -> SchemaAdmin:
    admin = getattr(request.app.state, "schema_admin", None)
    if admin is None:
        raise RuntimeError("schema admin not initialized")
    return admin


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Add a new JSON schema version",
)
async def add_schema(
    schema: Annotated[Dict[str, Any], Body(...)],
    admin: Annotated[SchemaAdmin, Depends(get_schema_admin)],
) -> Response:
    logger.debug("Adding a new JSON schema")
    await admin.add(schema)
    return Response(status_code=status.HTTP_201_CREATED)


@router.get(
    "",
    summary="Return the current JSON schema",
)
async def get_current_schema(
    admin: Annotated[SchemaAdmin, Depends(get_schema_admin)],
) -> Dict[str, Any]:
    current = await admin.current()
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No JSON schema has been stored.",
        )
    return current


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove the current JSON schema version",
)
async def remove_current_schema(
    admin: Annotated[SchemaAdmin, Depends(get_schema_admin)],
) -> Response:
    await admin.remove_current()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
