# intelligensi/clients/http_utils.py
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from intelligensi.config import settings

logger = logging.getLogger("intelligensi.clients.http")


# One shared AsyncClient per configured base_url (Weaviate, Supabase).
# Caller-supplied hosts never go through this pool.
_clients: dict[str, httpx.AsyncClient] = {}
_clients_lock = asyncio.Lock()


async def get_http_client(
    base_url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> httpx.AsyncClient:
    async with _clients_lock:
        client = _clients.get(base_url)
        if client is None or client.is_closed:
            client = httpx.AsyncClient(
                base_url=base_url,
                timeout=timeout or settings.http_client_timeout_seconds,
                headers={
                    "Accept": "application/json",
                    "User-Agent": f"intelligensi/{settings.service_name}",
                    **(headers or {}),
                },
            )
            _clients[base_url] = client
            logger.info("HTTP client created for %s", base_url)
        return client


async def close_http_clients() -> None:
    async with _clients_lock:
        for base_url, client in list(_clients.items()):
            try:
                await client.aclose()
            except Exception:
                logger.warning("Error closing HTTP client for %s", base_url, exc_info=True)
        _clients.clear()


class ServiceClientError(RuntimeError):
    def __init__(self, *, service: str, status: int, url: str, body: str) -> None:
        super().__init__(f"{service} HTTP {status}: {url} :: {body[:500]}")
        self.service = service
        self.status = status
        self.url = url
        self.body = body


def _raise_for_status(service: str, resp: httpx.Response) -> None:
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        # keep body for debugging (limited)
        body = ""
        try:
            body = resp.text
        except Exception:
            pass
        raise ServiceClientError(service=service, status=resp.status_code, url=str(resp.request.url), body=body) from e


# Idempotent GETs only; transport errors and 5xx are worth a second try, 4xx are not
def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, ServiceClientError):
        return exc.status >= 500
    return isinstance(exc, httpx.TransportError)


def retryable_get(fn):
    return retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=0.2, max=2.0),
        reraise=True,
    )(fn)
