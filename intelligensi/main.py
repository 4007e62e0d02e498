# intelligensi/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from intelligensi.api.routers import (
    drupal_router,
    health_router,
    schema_router,
    vectorize_router,
    weaviate_router,
)
from intelligensi.clients.http_utils import ServiceClientError, close_http_clients
from intelligensi.config import settings
from intelligensi.core.errors import ServiceError
from intelligensi.infra.logging import setup_logging

logger = logging.getLogger("intelligensi.main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    App lifespan:
      - configure logging
      - graceful shutdown: pooled HTTP clients
    """
    setup_logging(settings.service_name, settings.log_level)
    logger.info("%s starting up", settings.service_name)
    if not settings.supabase_url or not settings.supabase_anon_key:
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set; schema persistence will fail")
    if not settings.weaviate_url:
        logger.warning("WEAVIATE_URL not set; vector writes will fail")

    try:
        yield
    finally:
        try:
            await close_http_clients()
            logger.info("HTTP clients closed")
        except Exception:
            logger.warning("Error closing HTTP clients", exc_info=True)
        logger.info("%s shutdown complete", settings.service_name)


app = FastAPI(
    title="Intelligensi Content Service",
    description="Drupal schema inference and Weaviate vectorization",
    version=settings.service_version,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────────────────────────
# Error envelopes: every failure is {success: false, error, details?}
# ─────────────────────────────────────────────────────────────

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> ORJSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return ORJSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(ServiceClientError)
async def service_client_error_handler(request: Request, exc: ServiceClientError) -> ORJSONResponse:
    logger.error("%s %s downstream failure: %s", request.method, request.url.path, exc)
    return ORJSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": f"{exc.service} request failed",
            "code": "internal",
            "details": {"status": exc.status, "url": exc.url},
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request body",
            "code": "invalid-argument",
            "details": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()
            ],
        },
    )


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request body",
            "code": "invalid-argument",
            "details": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()
            ],
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return ORJSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc) or "Unknown error", "code": "internal"},
    )


app.include_router(health_router)
app.include_router(schema_router)
app.include_router(weaviate_router)
app.include_router(drupal_router)
app.include_router(vectorize_router)
