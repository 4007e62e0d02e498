from __future__ import annotations

import pytest
from pydantic import ValidationError

from intelligensi.models.content_models import ContentNode, SearchRequest, WriteObjectsRequest


@pytest.mark.parametrize("nid", [None, "", "   "])
def test_content_node_requires_nid(nid):
    with pytest.raises(ValidationError):
        ContentNode.model_validate({"nid": nid, "title": "x"})


def test_content_node_coerces_numeric_fields():
    node = ContentNode.model_validate({"nid": 12, "created": 1690000000, "status": 1, "title": None})
    assert (node.nid, node.created, node.status, node.title) == ("12", "1690000000", "1", "")


def test_single_object_with_empty_properties_is_accepted():
    request = WriteObjectsRequest.from_body({"class": "IntelligensiAi", "properties": {}})
    assert request is not None
    assert request.objects[0].to_request_body("Fallback") == {"class": "IntelligensiAi", "properties": {}}


@pytest.mark.parametrize(
    "body",
    [
        None,
        [],
        {"properties": {"nid": "1"}},
        {"class": "IntelligensiAi"},
        {"class": "IntelligensiAi", "properties": "nid=1"},
    ],
)
def test_unrecognized_write_bodies(body):
    assert WriteObjectsRequest.from_body(body) is None


def test_search_request_defaults():
    request = SearchRequest.model_validate({"query": "space"})
    assert (request.query, request.prompt, request.limit) == ("space", None, 1)
    with pytest.raises(ValidationError):
        SearchRequest.model_validate({"query": "space", "limit": 0})
