# intelligensi/api/routers/weaviate_routes.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from intelligensi.api.deps import get_weaviate_client
from intelligensi.clients.http_utils import ServiceClientError
from intelligensi.clients.weaviate_service import WeaviateServiceClient
from intelligensi.core.errors import Internal, InvalidArgument
from intelligensi.models.content_models import SearchRequest, WriteObjectsRequest
from intelligensi.services.vectorize_service import write_objects

router = APIRouter(tags=["weaviate"])
logger = logging.getLogger("intelligensi.api.weaviate")


def _weaviate_error(e: ServiceClientError) -> Internal:
    return Internal("Weaviate API error", details={"status": e.status, "url": e.url, "body": e.body[:500]})


@router.get("/checkWeaviate")
async def check_weaviate(client: WeaviateServiceClient = Depends(get_weaviate_client)) -> Dict[str, Any]:
    if not await client.is_ready():
        raise Internal("Weaviate initialization failed: service not ready")
    return {"success": True, "message": "Weaviate is ready."}


@router.post("/writeSchema")
async def write_schema(client: WeaviateServiceClient = Depends(get_weaviate_client)) -> Dict[str, Any]:
    try:
        created = await client.ensure_class()
    except ServiceClientError as e:
        logger.error("Schema creation error: %s", e)
        raise _weaviate_error(e) from e
    if not created:
        return {"success": True, "created": False, "message": "Schema already exists."}
    return {
        "success": True,
        "created": True,
        "message": f"Schema created successfully for {client.default_class} class.",
    }


@router.post("/writeWeaviate")
async def write_weaviate(
    body: Any = Body(default=None),
    client: WeaviateServiceClient = Depends(get_weaviate_client),
) -> Dict[str, Any]:
    """
    Write one `{class, properties}` object or a batch `{objects: [...]}`, in order.
    """
    request = WriteObjectsRequest.from_body(body)
    if request is None:
        raise InvalidArgument("Invalid request format. Expected either single object or batch operation")

    try:
        results = await write_objects(client, request.objects)
    except ServiceClientError as e:
        logger.error("Weaviate write error: %s", e)
        raise _weaviate_error(e) from e

    return {
        "success": True,
        "message": f"{len(results)} object(s) successfully written to Weaviate",
        "results": [r.model_dump() for r in results],
    }


async def _search(client: WeaviateServiceClient, request: SearchRequest) -> Dict[str, Any]:
    if not request.query or not request.query.strip():
        raise InvalidArgument("Query parameter is required")
    try:
        results = await client.search(request.query, prompt=request.prompt, limit=request.limit)
    except ServiceClientError as e:
        logger.error("Search error: %s", e)
        raise Internal("Failed to perform search", details=e.body[:500] or str(e)) from e
    return {"success": True, "results": results}


@router.get("/simpleSearch")
async def simple_search(
    query: Optional[str] = Query(default=None),
    prompt: Optional[str] = Query(default=None),
    limit: int = Query(default=1, ge=1, le=100),
    client: WeaviateServiceClient = Depends(get_weaviate_client),
) -> Dict[str, Any]:
    """
    nearText search over vectorized content, with a generated rewrite of each hit.
    """
    return await _search(client, SearchRequest(query=query, prompt=prompt, limit=limit))


@router.post("/simpleSearch")
async def simple_search_post(
    body: Any = Body(default=None),
    client: WeaviateServiceClient = Depends(get_weaviate_client),
) -> Dict[str, Any]:
    request = SearchRequest.model_validate(body if isinstance(body, dict) else {})
    return await _search(client, request)
