# intelligensi/clients/drupal_service.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from intelligensi.clients.http_utils import ServiceClientError, _raise_for_status, retryable_get
from intelligensi.config import Settings, settings as default_settings

logger = logging.getLogger("intelligensi.clients.drupal")


def construct_endpoint_url(site_url: str, export_path: str = "/api/bulk-export") -> str:
    """
    'example.com/' -> 'https://example.com/api/bulk-export'. A URL that already
    points at the export path is returned normalized but otherwise unchanged.
    """
    url = (site_url or "").strip()
    if not url:
        raise ValueError("No site URL provided")
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    url = url.rstrip("/")
    if url.endswith(export_path.rstrip("/")):
        return url
    return f"{url}/{export_path.strip('/')}"


def parse_bulk_export(data: Any, *, url: str = "") -> List[Dict[str, Any]]:
    """Accepts a JSON array of records or `{"structure": [...]}`."""
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    if isinstance(data, dict) and isinstance(data.get("structure"), list):
        return [r for r in data["structure"] if isinstance(r, dict)]
    raise ServiceClientError(
        service="drupal",
        status=422,
        url=url,
        body="bulk export did not return a list of records",
    )


class DrupalServiceClient:
    """
    Reads content from Drupal 7 sites exposing the bulk-export module.

    Site URLs come from callers, so each fetch opens its own short-lived
    AsyncClient instead of adding an origin to the shared pool.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or default_settings
        self.service_name = "drupal"
        self._transport = transport

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        async with httpx.AsyncClient(
            timeout=self.config.http_client_timeout_seconds,
            verify=self.config.drupal_verify_ssl,
            headers={"Accept": "application/json", "User-Agent": f"intelligensi/{self.config.service_name}"},
            transport=self._transport,
        ) as client:
            yield client

    def endpoint_for(self, site_url: str) -> str:
        return construct_endpoint_url(site_url, self.config.drupal_export_path)

    @retryable_get
    async def fetch_structure(self, site_url: str) -> List[Dict[str, Any]]:
        """
        GET <site>/api/bulk-export -> raw records
        """
        endpoint = self.endpoint_for(site_url)
        async with self._session() as client:
            resp = await client.get(endpoint)
        _raise_for_status(self.service_name, resp)
        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceClientError(
                service=self.service_name, status=422, url=endpoint, body=f"invalid JSON: {e}"
            ) from e
        records = parse_bulk_export(data, url=endpoint)
        logger.info("Fetched %d records from %s", len(records), endpoint)
        return records

    async def fetch_content(self, site_url: str) -> List[Dict[str, Any]]:
        """
        Export records that carry a nid. Records are left raw; the vectorizer
        validates each one in its own write step.
        """
        records = await self.fetch_structure(site_url)
        nodes: List[Dict[str, Any]] = []
        for r in records:
            if r.get("nid") in (None, ""):
                logger.warning("Skipping export record without nid (keys=%s)", sorted(r)[:10])
                continue
            nodes.append(r)
        return nodes
