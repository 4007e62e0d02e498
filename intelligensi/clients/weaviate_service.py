# intelligensi/clients/weaviate_service.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from intelligensi.clients.http_utils import ServiceClientError, _raise_for_status, get_http_client, retryable_get
from intelligensi.config import Settings, settings as default_settings
from intelligensi.models.content_models import VectorObject

logger = logging.getLogger("intelligensi.clients.weaviate")

CONTENT_PROPERTIES: List[Dict[str, Any]] = [
    {"name": "nid", "dataType": ["string"], "description": "Unique node ID from Drupal"},
    {"name": "title", "dataType": ["text"], "description": "Article title"},
    {"name": "body", "dataType": ["text"], "description": "Main content of the article"},
    {"name": "created", "dataType": ["string"], "description": "Creation timestamp"},
    {"name": "status", "dataType": ["string"], "description": "Published status"},
    {"name": "type", "dataType": ["string"], "description": "Content type"},
]


def default_search_prompt(query: str) -> str:
    return (
        f"Transform this article into a captivating read about {query}.\n"
        "Follow this structure:\n"
        "1. Start with a surprising fact or question to hook readers.\n"
        "2. Simplify technical terms for a general audience.\n"
        "3. End with an intriguing thought about future discoveries.\n\n"
        "Title: {title}\n"
        "Content: {body}"
    )


def build_search_query(
    class_name: str,
    query: str,
    *,
    prompt: Optional[str] = None,
    limit: int = 1,
    certainty: float = 0.72,
) -> str:
    """
    GraphQL Get with nearText and a single-result generative prompt.
    User text is embedded as JSON string literals, which GraphQL accepts as-is.
    """
    prompt_literal = json.dumps(prompt or default_search_prompt(query))
    return (
        "{ Get { "
        f"{class_name}(nearText: {{concepts: [{json.dumps(query)}], certainty: {certainty}}}, limit: {int(limit)}) "
        "{ title body _additional { "
        f"generate(singleResult: {{prompt: {prompt_literal}}}) {{ singleResult error }} "
        "certainty } } } }"
    )


def content_class_definition(class_name: str) -> Dict[str, Any]:
    return {
        "class": class_name,
        "description": "Articles with OpenAI embeddings for semantic search",
        "vectorizer": "text2vec-openai",
        "moduleConfig": {
            "text2vec-openai": {"model": "text-embedding-3-small", "type": "text"},
        },
        "properties": CONTENT_PROPERTIES,
    }


class WeaviateServiceClient:
    """
    Thin async client for the Weaviate REST API (objects, search, schema).
    """

    def __init__(self, config: Optional[Settings] = None, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config or default_settings
        self.base_url = self.config.weaviate_url.rstrip("/")
        self.default_class = self.config.weaviate_class
        self.service_name = "weaviate"
        self._http = http_client

    async def _client(self) -> httpx.AsyncClient:
        if self._http is not None:
            return self._http
        return await get_http_client(self.base_url)

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.config.weaviate_api_key}"}
        if self.config.openai_api_key:
            headers["X-OpenAI-Api-Key"] = self.config.openai_api_key
        return headers

    # --------- Objects --------- #

    async def create_object(self, obj: VectorObject) -> Optional[str]:
        """
        POST /v1/objects. Non-2xx raises ServiceClientError; returns the new object id.
        """
        client = await self._client()
        body = obj.to_request_body(self.default_class)
        logger.debug("Sending to Weaviate: class=%s nid=%s", body["class"], body["properties"].get("nid"))
        resp = await client.post(
            "/v1/objects",
            json=body,
            headers=self.headers,
            timeout=self.config.weaviate_write_timeout_seconds,
        )
        _raise_for_status(self.service_name, resp)
        object_id = (resp.json() or {}).get("id")
        logger.info("Created Weaviate object %s with nid %s", object_id, body["properties"].get("nid"))
        return object_id

    # --------- Search --------- #

    @retryable_get
    async def search(
        self,
        query: str,
        prompt: Optional[str] = None,
        limit: int = 1,
        class_name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        POST /v1/graphql nearText search. A read, so transient failures are retried.
        """
        name = class_name or self.default_class
        gql = build_search_query(
            name, query, prompt=prompt, limit=limit, certainty=self.config.search_certainty
        )
        client = await self._client()
        resp = await client.post(
            "/v1/graphql",
            json={"query": gql},
            headers=self.headers,
            timeout=self.config.weaviate_write_timeout_seconds,
        )
        _raise_for_status(self.service_name, resp)
        data = resp.json() or {}
        if data.get("errors"):
            messages = "; ".join(str(e.get("message", e) if isinstance(e, dict) else e) for e in data["errors"])
            raise ServiceClientError(service=self.service_name, status=422, url=str(resp.request.url), body=messages)
        results = ((data.get("data") or {}).get("Get") or {}).get(name) or []
        logger.info("Search %r on %s returned %d result(s)", query, name, len(results))
        return results

    # --------- Schema --------- #

    async def is_ready(self) -> bool:
        client = await self._client()
        try:
            resp = await client.get("/v1/.well-known/ready", headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning("Weaviate readiness check failed: %s", e)
            return False
        return resp.status_code == 200

    @retryable_get
    async def list_classes(self) -> List[str]:
        client = await self._client()
        resp = await client.get("/v1/schema", headers=self.headers)
        _raise_for_status(self.service_name, resp)
        classes = (resp.json() or {}).get("classes") or []
        return [c.get("class") for c in classes if c.get("class")]

    async def ensure_class(self, class_name: Optional[str] = None) -> bool:
        """
        Create the content class when absent. Returns True if it was created.
        """
        name = class_name or self.default_class
        existing = await self.list_classes()
        # Weaviate capitalizes class names on write
        if any(c.lower() == name.lower() for c in existing):
            logger.info("Weaviate class %s already exists", name)
            return False
        client = await self._client()
        resp = await client.post("/v1/schema", json=content_class_definition(name), headers=self.headers)
        _raise_for_status(self.service_name, resp)
        logger.info("Weaviate class %s created", name)
        return True


__all__ = ["WeaviateServiceClient", "ServiceClientError", "build_search_query", "content_class_definition"]
