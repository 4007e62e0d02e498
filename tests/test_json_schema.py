from __future__ import annotations

from intelligensi.core.json_schema import coerce_record, to_json_schema, validate_record
from intelligensi.core.schema_builder import build_schema
from intelligensi.models.schema_models import InferredFieldSchema


def _mapping():
    return build_schema(
        {
            "nid": "42",
            "title": "Hello",
            "created": "1690000000",
            "field_tags": ["a", "b"],
            "author": {"uid": "1", "name": "admin"},
        }
    )


def test_required_lists_non_optional_fields_only():
    doc = to_json_schema(_mapping())
    assert doc["$schema"].endswith("2020-12/schema")
    assert sorted(doc["required"]) == ["author", "created", "nid", "title"]
    assert doc["properties"]["field_tags"] == {
        "anyOf": [{"type": "array", "items": {}}, {"type": "null"}]
    }


def test_valid_record_is_coerced():
    ok, errors, record = validate_record(
        _mapping(),
        {"nid": "7", "title": "x", "created": "1700000000", "author": {"uid": "3", "name": "ed"}},
    )
    assert ok, errors
    assert record["nid"] == 7
    assert record["created"] == 1700000000
    assert record["author"]["uid"] == 3


def test_optional_field_may_be_null():
    ok, _, _ = validate_record(
        _mapping(),
        {"nid": 1, "title": "x", "created": 1, "author": {"uid": 1, "name": "a"}, "field_tags": None},
    )
    assert ok


def test_invalid_record_reports_paths():
    ok, errors, _ = validate_record(_mapping(), {"nid": "n/a", "title": 5, "created": 1, "author": {"uid": 1}})
    assert not ok
    assert any("nid" in e for e in errors)
    assert any("title" in e for e in errors)
    assert any("author" in e for e in errors)


def test_coercion_round_trip_matches_float_parse():
    mapping = {"value": InferredFieldSchema.number(coerce=True)}
    for text in ("0", "42", "-3.5", "1e3", "0.25"):
        assert coerce_record(mapping, {"value": text})["value"] == float(text)


def test_coerce_record_does_not_mutate():
    record = {"nid": "1"}
    coerce_record(_mapping(), record)
    assert record == {"nid": "1"}
