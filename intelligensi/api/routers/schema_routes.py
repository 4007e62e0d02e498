# intelligensi/api/routers/schema_routes.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from intelligensi.api.deps import get_schema_service
from intelligensi.models.schema_models import LinkSchemaRequest, ValidateRecordRequest
from intelligensi.services.schema_service import SchemaService, normalize_create_schema_body

router = APIRouter(tags=["schemas"])
logger = logging.getLogger("intelligensi.api.schemas")


@router.post("/createSchema")
async def create_schema(
    body: Any = Body(default=None),
    svc: SchemaService = Depends(get_schema_service),
) -> Dict[str, Any]:
    """
    Infer a schema from one example Drupal record and store it as a new `schemas` row.
    Accepts snake_case or camelCase field names.
    """
    request = normalize_create_schema_body(body)
    schema = await svc.create_schema(request)
    return {"success": True, "message": "Schema created", "schema": schema}


@router.get("/schemas")
async def list_schemas(
    site_id: Optional[int] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    svc: SchemaService = Depends(get_schema_service),
) -> Dict[str, Any]:
    rows = await svc.list_schemas(site_id=site_id, limit=limit)
    return {"success": True, "schemas": rows}


@router.get("/schemas/{schema_id}")
async def get_schema(schema_id: int, svc: SchemaService = Depends(get_schema_service)) -> Dict[str, Any]:
    return {"success": True, "schema": await svc.get_schema(schema_id)}


@router.post("/schemas/{schema_id}/validate")
async def validate_record(
    schema_id: int,
    payload: ValidateRecordRequest,
    svc: SchemaService = Depends(get_schema_service),
) -> Dict[str, Any]:
    result = await svc.validate(schema_id, payload.record)
    return {"success": True, **result}


@router.post("/sites/{site_id}/schema")
async def link_site_schema(
    site_id: int,
    payload: LinkSchemaRequest,
    svc: SchemaService = Depends(get_schema_service),
) -> Dict[str, Any]:
    site = await svc.link_to_site(site_id, payload.schema_id)
    return {"success": True, "site": site}
