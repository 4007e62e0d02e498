# intelligensi/api/routers/health_routes.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter

from intelligensi.config import settings

logger = logging.getLogger("intelligensi.api.health")

router = APIRouter(tags=["meta"])


@router.get("/", summary="Root metadata")
def root() -> Dict[str, Any]:
    return {
        "service": settings.service_name,
        "status": "ok",
        "message": "intelligensi content service",
        "docs": "/docs",
        "health": "/health",
        "version": "/version",
    }


@router.get("/health", summary="Liveness check")
def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": settings.service_name,
        "at": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/version", summary="Service version")
def version() -> Dict[str, Any]:
    return {
        "service": settings.service_name,
        "version": settings.service_version,
    }
