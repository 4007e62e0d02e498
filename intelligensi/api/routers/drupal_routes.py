# intelligensi/api/routers/drupal_routes.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from intelligensi.api.deps import get_site_service
from intelligensi.services.site_service import SiteContentService

router = APIRouter(prefix="/drupal7", tags=["drupal"])


@router.get("/structure")
async def get_structure(
    endpoint: str = Query(..., min_length=1, description="Site URL or its bulk-export URL"),
    svc: SiteContentService = Depends(get_site_service),
) -> Dict[str, Any]:
    """
    Proxy a Drupal 7 bulk export as `{structure: [...]}`.
    """
    return {"structure": await svc.fetch_structure(endpoint)}
