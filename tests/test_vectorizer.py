from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from intelligensi.core.errors import NoContentError
from intelligensi.models.content_models import ContentNode, VectorObject, VectorProperties
from intelligensi.services.vectorize_service import (
    ContentVectorizer,
    ItemFailed,
    ItemSucceeded,
    build_vector_object,
    chunked,
    progress_percent,
    publication_status,
    summarize,
    write_objects,
)
from tests.helpers import FakeWriter, make_nodes


# ─────────────────────────────────────────────────────────────
# Pure helpers
# ─────────────────────────────────────────────────────────────

def test_progress_rounds_half_up():
    assert progress_percent(1, 8) == 13
    assert progress_percent(1, 3) == 33
    assert progress_percent(2, 3) == 67
    assert progress_percent(3, 3) == 100
    assert progress_percent(0, 0) == 0


@pytest.mark.parametrize("flag,expected", [("1", "published"), (1, "published"), ("0", "unpublished"), ("", "unpublished"), (None, "unpublished")])
def test_publication_status(flag, expected):
    assert publication_status(flag) == expected


def test_build_vector_object_cleans_and_maps():
    node = ContentNode.model_validate(
        {"nid": 9, "title": "T", "body": {"und": [{"value": "<p>x &amp; y</p>"}]}, "created": 1690000000, "status": 1, "type": "page"}
    )
    obj = build_vector_object(node)
    assert obj.class_name == "IntelligensiAi"
    assert obj.properties.model_dump(exclude_none=True) == {
        "nid": "9",
        "title": "T",
        "body": "x & y",
        "created": "1690000000",
        "status": "published",
        "type": "page",
    }
    assert build_vector_object(node, "Articles").class_name == "Articles"


def test_chunked_preserves_order():
    nodes = make_nodes(7)
    chunks = list(chunked(nodes, 5))
    assert [len(c) for c in chunks] == [5, 2]
    assert [n.nid for c in chunks for n in c] == [str(i) for i in range(1, 8)]


def test_summarize_is_a_pure_fold():
    outcomes = [ItemSucceeded(nid="1", id="a"), ItemFailed(nid="2", reason="boom")]
    summary = summarize(outcomes, "Site")
    assert (summary.objects_created, summary.failed, summary.total) == (1, 1, 2)
    assert summary.progress_percent == 100
    assert summarize(outcomes, "Site") == summary


# ─────────────────────────────────────────────────────────────
# Runs
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_all_items_succeed():
    writer = FakeWriter()
    progress = []
    summary = await ContentVectorizer(writer).run(make_nodes(7), "Demo", on_progress=progress.append)

    assert summary.objects_created == 7
    assert summary.failed == 0
    assert summary.progress_percent == 100
    assert progress[-1] == 100
    assert [w["properties"]["nid"] for w in writer.written] == [str(i) for i in range(1, 8)]
    assert all(w["class"] == "IntelligensiAi" for w in writer.written)


@pytest.mark.asyncio
async def test_failed_item_is_recorded_and_run_continues():
    writer = FakeWriter(fail_nids={"4"})
    progress = []
    summary = await ContentVectorizer(writer).run(make_nodes(7), "Demo", on_progress=progress.append)

    assert summary.objects_created == 6
    assert summary.failed == 1
    assert summary.failures[0].nid == "4"
    assert "rejected 4" in summary.failures[0].error
    assert progress == [14, 29, 43, 57, 71, 86, 100]
    assert all(a < b for a, b in zip(progress, progress[1:]))


@pytest.mark.asyncio
async def test_every_item_failing_still_completes():
    writer = FakeWriter(fail_nids={"1", "2"})
    summary = await ContentVectorizer(writer).run(make_nodes(2), "Demo")
    assert summary.objects_created == 0
    assert summary.failed == 2
    assert summary.progress_percent == 100


@pytest.mark.asyncio
async def test_empty_input_raises_no_content():
    writer = FakeWriter()
    with pytest.raises(NoContentError) as exc:
        await ContentVectorizer(writer).run([], "Demo")
    assert exc.value.message == "No content available to vectorize"
    assert writer.written == []


@pytest.mark.asyncio
async def test_writes_are_sequential():
    writer = FakeWriter()
    await ContentVectorizer(writer, batch_size=3).run(make_nodes(8), "Demo")
    assert writer.max_in_flight == 1
    assert len(writer.written) == 8


@pytest.mark.asyncio
async def test_async_progress_callback_is_awaited():
    callback = AsyncMock()
    await ContentVectorizer(FakeWriter()).run(make_nodes(2), "Demo", on_progress=callback)
    assert [c.args[0] for c in callback.await_args_list] == [50, 100]


@pytest.mark.asyncio
async def test_iter_run_events():
    writer = FakeWriter(fail_nids={"2"})
    events = [e async for e in ContentVectorizer(writer).iter_run(make_nodes(2))]
    assert [e.to_dict()["status"] for e in events] == ["created", "failed"]
    assert events[0].to_dict()["id"] == "uuid-1"
    assert events[1].to_dict()["processed"] == 2


@pytest.mark.asyncio
async def test_custom_class_name():
    writer = FakeWriter()
    await ContentVectorizer(writer, class_name="Articles").run(make_nodes(1), "Demo")
    assert writer.written[0]["class"] == "Articles"


@pytest.mark.asyncio
async def test_write_objects_aborts_on_first_failure():
    writer = FakeWriter(fail_nids={"2"})
    objects = [VectorObject(properties=VectorProperties(nid=str(i), title="t")) for i in (1, 2, 3)]
    with pytest.raises(Exception, match="rejected 2"):
        await write_objects(writer, objects)
    assert [w["properties"]["nid"] for w in writer.written] == ["1"]


@pytest.mark.asyncio
async def test_malformed_record_fails_only_itself():
    writer = FakeWriter()
    records = [
        {"nid": "1", "title": "One", "status": "1"},
        {"nid": "2", "title": {"value": "x"}, "body": 5},
        {"nid": "3", "title": "Three", "status": "0"},
    ]
    progress = []
    summary = await ContentVectorizer(writer).run(records, "Demo", on_progress=progress.append)

    assert summary.objects_created == 2
    assert summary.failed == 1
    assert summary.failures[0].nid == "2"
    assert progress == [33, 67, 100]
    assert [w["properties"]["nid"] for w in writer.written] == ["1", "3"]


@pytest.mark.asyncio
async def test_record_without_nid_is_a_failed_item():
    writer = FakeWriter()
    summary = await ContentVectorizer(writer).run([{"nid": None, "title": "x"}, {"nid": 7}], "Demo")
    assert summary.objects_created == 1
    assert summary.failures[0].nid == ""
    assert writer.written[0]["properties"]["nid"] == "7"
