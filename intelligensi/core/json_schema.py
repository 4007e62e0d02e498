# intelligensi/core/json_schema.py
from __future__ import annotations

import copy
from typing import Any, Dict, List, Tuple

from jsonschema import Draft202012Validator

from intelligensi.core.type_inference import coerce_number
from intelligensi.models.schema_models import InferredFieldSchema, SchemaMapping

_PRIMITIVES = {"number": "number", "string": "string", "boolean": "boolean"}


def field_to_json_schema(field: InferredFieldSchema) -> Dict[str, Any]:
    if field.kind in _PRIMITIVES:
        return {"type": _PRIMITIVES[field.kind]}
    if field.kind == "date":
        return {"type": "string", "format": "date-time"}
    if field.kind == "array":
        items = field_to_json_schema(field.of) if field.of is not None else {}
        return {"type": "array", "items": items}
    if field.kind == "object":
        if field.fields is None:
            return {"type": "object"}
        return mapping_to_json_schema(field.fields)
    return {}


def mapping_to_json_schema(mapping: SchemaMapping) -> Dict[str, Any]:
    """
    Unknown keys are allowed (stripped by consumers, not rejected). Optional
    fields may be missing or null.
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for name, field in mapping.items():
        prop = field_to_json_schema(field)
        if field.optional and prop:
            prop = {"anyOf": [prop, {"type": "null"}]}
        properties[name] = prop
        if not field.optional:
            required.append(name)
    return {"type": "object", "properties": properties, "required": required}


def to_json_schema(mapping: SchemaMapping) -> Dict[str, Any]:
    doc = mapping_to_json_schema(mapping)
    doc["$schema"] = "https://json-schema.org/draft/2020-12/schema"
    return doc


def _coerce_value(field: InferredFieldSchema, value: Any) -> Any:
    if field.kind == "number" and field.coerce:
        return coerce_number(value)
    if field.kind == "object" and field.fields and isinstance(value, dict):
        return _coerce_fields(field.fields, value)
    if field.kind == "array" and field.of is not None and isinstance(value, list):
        return [_coerce_value(field.of, v) for v in value]
    return value


def _coerce_fields(mapping: SchemaMapping, record: Dict[str, Any]) -> Dict[str, Any]:
    for name, field in mapping.items():
        if name in record:
            record[name] = _coerce_value(field, record[name])
    return record


def coerce_record(mapping: SchemaMapping, record: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of `record` with coercing numeric fields converted from numeric strings."""
    return _coerce_fields(mapping, copy.deepcopy(record))


def validate_record(mapping: SchemaMapping, record: Dict[str, Any]) -> Tuple[bool, List[str], Dict[str, Any]]:
    """
    Coerce on read, then validate against the JSON Schema rendering of `mapping`.
    Returns (ok, errors, coerced_record).
    """
    coerced = coerce_record(mapping, record)
    validator = Draft202012Validator(to_json_schema(mapping))
    errors = [
        f"{err.message} at path: {'/'.join(map(str, err.path)) or '<root>'}"
        for err in sorted(validator.iter_errors(coerced), key=str)
    ]
    return len(errors) == 0, errors, coerced
