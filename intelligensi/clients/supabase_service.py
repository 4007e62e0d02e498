# intelligensi/clients/supabase_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from intelligensi.clients.http_utils import _raise_for_status, get_http_client, retryable_get
from intelligensi.config import Settings, settings as default_settings

logger = logging.getLogger("intelligensi.clients.supabase")

SCHEMA_COLUMNS = ",".join(
    [
        "id", "site_id", "cms_id", "schema_json",
        "description", "version", "created_by",
        "created_at", "updated_at",
    ]
)
SITE_COLUMNS = "id,site_name,site_url,cms_id,schema_id,status"


class SupabaseServiceClient:
    """
    Thin async client for the Supabase REST (PostgREST) API.
    Returns plain dicts; callers validate into models.
    """

    def __init__(self, config: Optional[Settings] = None, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config or default_settings
        self.base_url = f"{self.config.supabase_url.rstrip('/')}/rest/v1"
        self.service_name = "supabase"
        self._http = http_client

    async def _client(self) -> httpx.AsyncClient:
        if self._http is not None:
            return self._http
        return await get_http_client(self.base_url)

    def _headers(self, **extra: str) -> Dict[str, str]:
        key = self.config.supabase_anon_key
        return {"apikey": key, "Authorization": f"Bearer {key}", **extra}

    # --------- Schemas --------- #

    async def insert_schema(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST /schemas (always inserts; there is no upsert on site_id)
        """
        client = await self._client()
        resp = await client.post(
            "/schemas",
            params={"select": SCHEMA_COLUMNS},
            json=row,
            headers=self._headers(Prefer="return=representation"),
        )
        _raise_for_status(self.service_name, resp)
        rows = resp.json() or []
        return rows[0] if rows else {}

    @retryable_get
    async def get_schema(self, schema_id: int) -> Optional[Dict[str, Any]]:
        """
        GET /schemas?id=eq.{schema_id}
        """
        client = await self._client()
        resp = await client.get("/schemas", params={"id": f"eq.{schema_id}", "select": SCHEMA_COLUMNS}, headers=self._headers())
        _raise_for_status(self.service_name, resp)
        rows = resp.json() or []
        return rows[0] if rows else None

    @retryable_get
    async def list_schemas(self, *, site_id: Optional[int] = None, limit: int = 50) -> List[Dict[str, Any]]:
        """
        GET /schemas?site_id=eq.{site_id}&order=created_at.desc
        """
        client = await self._client()
        params: Dict[str, Any] = {"select": SCHEMA_COLUMNS, "order": "created_at.desc", "limit": limit}
        if site_id is not None:
            params["site_id"] = f"eq.{site_id}"
        resp = await client.get("/schemas", params=params, headers=self._headers())
        _raise_for_status(self.service_name, resp)
        return resp.json() or []

    # --------- Sites --------- #

    @retryable_get
    async def get_site(self, site_id: int) -> Optional[Dict[str, Any]]:
        """
        GET /sites?id=eq.{site_id}
        """
        client = await self._client()
        resp = await client.get("/sites", params={"id": f"eq.{site_id}", "select": SITE_COLUMNS}, headers=self._headers())
        _raise_for_status(self.service_name, resp)
        rows = resp.json() or []
        return rows[0] if rows else None

    async def link_site_schema(self, site_id: int, schema_id: int) -> Optional[Dict[str, Any]]:
        """
        PATCH /sites?id=eq.{site_id} -> schema_id + status 'active'
        """
        client = await self._client()
        resp = await client.patch(
            "/sites",
            params={"id": f"eq.{site_id}", "select": SITE_COLUMNS},
            json={
                "schema_id": schema_id,
                "status": "active",
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            headers=self._headers(Prefer="return=representation"),
        )
        _raise_for_status(self.service_name, resp)
        rows = resp.json() or []
        return rows[0] if rows else None
