from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional

from intelligensi.clients.http_utils import ServiceClientError
from intelligensi.models.content_models import ContentNode, VectorObject


class FakeWriter:
    """In-memory stand-in for the Weaviate objects endpoint."""

    def __init__(self, fail_nids: Iterable[str] = (), default_class: str = "IntelligensiAi") -> None:
        self.fail_nids = set(fail_nids)
        self.default_class = default_class
        self.written: List[Dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def create_object(self, obj: VectorObject) -> Optional[str]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            nid = obj.properties.nid
            if nid in self.fail_nids:
                raise ServiceClientError(
                    service="weaviate", status=422, url="http://weaviate.test/v1/objects", body=f"rejected {nid}"
                )
            self.written.append(obj.to_request_body(self.default_class))
            return f"uuid-{nid}"
        finally:
            self.in_flight -= 1


def make_nodes(count: int) -> List[ContentNode]:
    return [
        ContentNode(
            nid=str(i),
            title=f"Article {i}",
            body=f"<p>Body {i}</p>",
            created="1690000000",
            status="1" if i % 2 else "0",
            type="article",
        )
        for i in range(1, count + 1)
    ]
