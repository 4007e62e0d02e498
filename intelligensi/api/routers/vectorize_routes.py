# intelligensi/api/routers/vectorize_routes.py
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, List, Sequence

import orjson
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from intelligensi.api.deps import get_site_service, get_vectorizer
from intelligensi.core.errors import InvalidArgument, NoContentError
from intelligensi.models.content_models import VectorizeRequest
from intelligensi.services.site_service import SiteContentService
from intelligensi.services.vectorize_service import ContentVectorizer, ItemOutcome, NodeInput, summarize

router = APIRouter(tags=["vectorize"])
logger = logging.getLogger("intelligensi.api.vectorize")

NDJSON = "application/x-ndjson"


async def _stream_run(
    vectorizer: ContentVectorizer, nodes: Sequence[NodeInput], site_name: str
) -> AsyncIterator[bytes]:
    outcomes: List[ItemOutcome] = []
    async for event in vectorizer.iter_run(nodes):
        outcomes.append(event.outcome)
        yield orjson.dumps(event.to_dict()) + b"\n"
    summary = summarize(outcomes, site_name)
    logger.info("Streamed vectorization for %s: %d/%d created", site_name, summary.objects_created, summary.total)
    yield orjson.dumps({"event": "complete", "success": True, **summary.to_response()}) + b"\n"


async def _respond(
    vectorizer: ContentVectorizer, nodes: Sequence[NodeInput], site_name: str, stream: bool
) -> Any:
    if not nodes:
        raise NoContentError()
    if stream:
        return StreamingResponse(_stream_run(vectorizer, nodes, site_name), media_type=NDJSON)

    progress: List[int] = []
    summary = await vectorizer.run(nodes, site_name, on_progress=progress.append)
    return {"success": True, **summary.to_response(), "progress": progress}


@router.post("/vectorize")
async def vectorize(
    payload: VectorizeRequest,
    stream: bool = Query(default=False, description="Emit NDJSON progress events"),
    vectorizer: ContentVectorizer = Depends(get_vectorizer),
    sites: SiteContentService = Depends(get_site_service),
) -> Any:
    """
    Vectorize nodes given in the body, or pulled from `site_url`'s bulk export.
    """
    if payload.class_name:
        vectorizer.class_name = payload.class_name

    if payload.nodes is not None:
        nodes: Sequence[NodeInput] = payload.nodes
    elif payload.site_url:
        nodes = await sites.fetch_nodes(payload.site_url)
    else:
        raise InvalidArgument("Either nodes or site_url is required")

    return await _respond(vectorizer, nodes, payload.site_name, stream)


@router.post("/sites/{site_id}/vectorize")
async def vectorize_site(
    site_id: int,
    stream: bool = Query(default=False, description="Emit NDJSON progress events"),
    vectorizer: ContentVectorizer = Depends(get_vectorizer),
    sites: SiteContentService = Depends(get_site_service),
) -> Any:
    """
    Vectorize a registered site; the site must already have a schema.
    """
    site = await sites.load_site(site_id)
    nodes = await sites.fetch_nodes(site.site_url)
    return await _respond(vectorizer, nodes, site.site_name, stream)
