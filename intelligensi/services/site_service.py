# intelligensi/services/site_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from intelligensi.clients.drupal_service import DrupalServiceClient
from intelligensi.clients.http_utils import ServiceClientError
from intelligensi.clients.supabase_service import SupabaseServiceClient
from intelligensi.core.errors import Internal, InvalidArgument, NotFound
from intelligensi.models.schema_models import Site

logger = logging.getLogger("intelligensi.services.site")


class SiteContentService:
    """
    Resolves sites from Supabase and pulls their content from the Drupal bulk export.
    """

    def __init__(self, drupal: DrupalServiceClient, store: SupabaseServiceClient) -> None:
        self.drupal = drupal
        self.store = store

    async def load_site(self, site_id: int, *, require_schema: bool = True) -> Site:
        try:
            row = await self.store.get_site(site_id)
        except Exception as e:
            logger.exception("Failed to load site %s", site_id)
            raise Internal(str(e)) from e
        if not row:
            raise NotFound(f"Site {site_id} not found")
        site = Site.model_validate(row)
        if require_schema and not site.schema_id:
            logger.warning("Vectorization attempt for site %r (id=%s) which has no schema_id", site.site_name, site.id)
            raise InvalidArgument(
                f'The site "{site.site_name}" does not have an associated schema. Vectorization cannot proceed.'
            )
        return site

    async def fetch_structure(self, site_url: str) -> List[Dict[str, Any]]:
        try:
            return await self.drupal.fetch_structure(site_url)
        except ValueError as e:
            raise InvalidArgument(str(e)) from e
        except ServiceClientError as e:
            logger.error("Drupal export failed for %s: %s", site_url, e)
            raise Internal(
                "Failed to fetch Drupal structure.",
                details={"service": e.service, "status": e.status, "url": e.url},
            ) from e

    async def fetch_nodes(self, site_url: str) -> List[Dict[str, Any]]:
        try:
            return await self.drupal.fetch_content(site_url)
        except ValueError as e:
            raise InvalidArgument(str(e)) from e
        except ServiceClientError as e:
            logger.error("Drupal export failed for %s: %s", site_url, e)
            raise Internal(
                "Could not fetch Drupal content",
                details={"service": e.service, "status": e.status, "url": e.url},
            ) from e
