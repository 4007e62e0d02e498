# intelligensi/services/vectorize_service.py
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, AsyncIterator, Awaitable, Callable, Iterator, List, Mapping, Optional, Protocol, Sequence, Union

from intelligensi.core.errors import NoContentError
from intelligensi.core.text import clean_body_text
from intelligensi.models.content_models import (
    ContentNode,
    FailedItem,
    SucceededItem,
    VectorizationSummary,
    VectorObject,
    VectorProperties,
    WriteResult,
)

logger = logging.getLogger("intelligensi.services.vectorize")

DEFAULT_CLASS_NAME = "IntelligensiAi"
DEFAULT_BATCH_SIZE = 5


class ObjectWriter(Protocol):
    async def create_object(self, obj: VectorObject) -> Optional[str]: ...


ProgressCallback = Callable[[int], Union[None, Awaitable[None]]]

# export records stay raw until their own write step
NodeInput = Union[ContentNode, Mapping[str, Any]]


# ─────────────────────────────────────────────────────────────
# Per-item outcomes
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ItemSucceeded:
    nid: str
    id: Optional[str]


@dataclass(frozen=True)
class ItemFailed:
    nid: str
    reason: str


ItemOutcome = Union[ItemSucceeded, ItemFailed]


@dataclass(frozen=True)
class ProgressEvent:
    processed: int
    total: int
    percent: int
    outcome: ItemOutcome

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "event": "progress",
            "processed": self.processed,
            "total": self.total,
            "progress": self.percent,
            "nid": self.outcome.nid,
        }
        if isinstance(self.outcome, ItemSucceeded):
            body.update(status="created", id=self.outcome.id)
        else:
            body.update(status="failed", error=self.outcome.reason)
        return body


# ─────────────────────────────────────────────────────────────
# Pure helpers
# ─────────────────────────────────────────────────────────────

def progress_percent(processed: int, total: int) -> int:
    """round(processed / total * 100), halves rounded up."""
    if total <= 0:
        return 0
    pct = Decimal(processed) * 100 / Decimal(total)
    return int(pct.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def publication_status(flag: Any) -> str:
    return "published" if str(flag) == "1" else "unpublished"


def build_vector_object(node: ContentNode, class_name: Optional[str] = None) -> VectorObject:
    return VectorObject(
        class_name=class_name or DEFAULT_CLASS_NAME,
        properties=VectorProperties(
            nid=node.nid,
            title=node.title,
            body=clean_body_text(node.body),
            created=node.created,
            status=publication_status(node.status),
            type=node.type,
        ),
    )


def chunked(items: Sequence[NodeInput], size: int) -> Iterator[Sequence[NodeInput]]:
    size = max(1, size)
    for i in range(0, len(items), size):
        yield items[i : i + size]


def record_nid(item: NodeInput) -> str:
    if isinstance(item, ContentNode):
        return item.nid
    value = item.get("nid") if isinstance(item, Mapping) else None
    return "" if value is None else str(value)


def summarize(outcomes: Sequence[ItemOutcome], site_name: str) -> VectorizationSummary:
    succeeded = [SucceededItem(id=o.id, nid=o.nid) for o in outcomes if isinstance(o, ItemSucceeded)]
    failures = [FailedItem(nid=o.nid, error=o.reason) for o in outcomes if isinstance(o, ItemFailed)]
    total = len(outcomes)
    return VectorizationSummary(
        objects_created=len(succeeded),
        site_name=site_name,
        total=total,
        failed=len(failures),
        succeeded=succeeded,
        failures=failures,
        progress_percent=progress_percent(total, total),
    )


# ─────────────────────────────────────────────────────────────
# Orchestrator
# ─────────────────────────────────────────────────────────────

class ContentVectorizer:
    """
    Writes content nodes to the vector store one at a time.

    Nodes are grouped in chunks of `batch_size` to pace the vector store, but
    every write is still awaited before the next one starts. A failed write is
    logged and recorded; it never stops the run and is never retried.
    """

    def __init__(
        self,
        writer: ObjectWriter,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        class_name: Optional[str] = None,
    ) -> None:
        self.writer = writer
        self.batch_size = batch_size
        self.class_name = class_name or DEFAULT_CLASS_NAME

    async def _write_one(self, item: NodeInput) -> ItemOutcome:
        nid = record_nid(item)
        try:
            node = item if isinstance(item, ContentNode) else ContentNode.model_validate(item)
            obj = build_vector_object(node, self.class_name)
            object_id = await self.writer.create_object(obj)
            return ItemSucceeded(nid=node.nid, id=object_id)
        except Exception as e:
            logger.warning("Failed to vectorize item %s: %s", nid or "(no nid)", e)
            return ItemFailed(nid=nid, reason=str(e) or e.__class__.__name__)

    async def iter_run(self, nodes: Sequence[NodeInput]) -> AsyncIterator[ProgressEvent]:
        total = len(nodes)
        processed = 0
        for batch_no, batch in enumerate(chunked(nodes, self.batch_size), start=1):
            logger.debug("Vectorizing batch %d (%d items)", batch_no, len(batch))
            for node in batch:
                outcome = await self._write_one(node)
                processed += 1
                yield ProgressEvent(
                    processed=processed,
                    total=total,
                    percent=progress_percent(processed, total),
                    outcome=outcome,
                )

    async def run(
        self,
        nodes: Sequence[NodeInput],
        site_name: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> VectorizationSummary:
        if not nodes:
            raise NoContentError()

        logger.info("Vectorizing %d items for site %s (class=%s)", len(nodes), site_name, self.class_name)
        outcomes: List[ItemOutcome] = []
        async for event in self.iter_run(nodes):
            outcomes.append(event.outcome)
            if on_progress is not None:
                maybe = on_progress(event.percent)
                if inspect.isawaitable(maybe):
                    await maybe

        summary = summarize(outcomes, site_name)
        logger.info(
            "Vectorization finished for %s: %d/%d created, %d failed",
            site_name,
            summary.objects_created,
            summary.total,
            summary.failed,
        )
        return summary


async def write_objects(writer: ObjectWriter, objects: Sequence[VectorObject]) -> List[WriteResult]:
    """
    Sequential writes for `/writeWeaviate`. The first failing write aborts the
    request; objects already written stay written.
    """
    results: List[WriteResult] = []
    for obj in objects:
        object_id = await writer.create_object(obj)
        results.append(WriteResult(id=object_id, nid=obj.properties.nid, status="created"))
    return results
