# intelligensi/core/schema_builder.py
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Mapping

from intelligensi.core.errors import InvalidPayload
from intelligensi.core.type_inference import NUMERIC_FIELDS, coerce_number, infer_field_type
from intelligensi.models.schema_models import InferredFieldSchema, SchemaMapping

logger = logging.getLogger("intelligensi.core.schema_builder")

# ─────────────────────────────────────────────────────────────
# Drupal field conventions
# ─────────────────────────────────────────────────────────────

DRUPAL_FIELD_PREFIX = "field_"

OPTIONAL_FIELDS: frozenset[str] = frozenset(
    {
        "field_image",
        "field_tags",
        "field_category",
        "field_body",
        "field_summary",
        "field_media",
        "field_date",
        "field_link",
        "field_reference",
        "field_boolean",
        "field_paragraph",
        "field_entity_reference",
        "field_taxonomy",
        "field_terms",
    }
)

# checked as prefixes, object-like first
OBJECT_FIELD_PREFIXES: tuple[str, ...] = (
    "field_image",
    "field_media",
    "field_paragraph",
    "field_entity_reference",
)
ARRAY_FIELD_PREFIXES: tuple[str, ...] = (
    "field_tags",
    "field_terms",
    "field_reference",
    "field_paragraph",
)
TEXT_FORMAT_SUFFIXES: tuple[str, ...] = ("_value", "_format", "_summary")
OPTIONAL_SUFFIXES: tuple[str, ...] = ("_value", "_format")


def extract_inference_target(payload: Any) -> Dict[str, Any]:
    """
    Bulk-export payloads wrap records as `{"structure": [record, ...]}`; the first
    record is the example. Anything else is taken as the record itself.
    """
    if not isinstance(payload, dict):
        raise InvalidPayload("Received invalid payload: not an object or null.")

    structure = payload.get("structure")
    if isinstance(structure, list) and structure and isinstance(structure[0], dict):
        logger.debug("Using payload.structure[0] as the inference target")
        target = structure[0]
    else:
        target = payload

    if not target:
        raise InvalidPayload("Could not derive valid object for schema inference.")
    return target


def _classify_drupal_field(key: str) -> InferredFieldSchema:
    if key.startswith(OBJECT_FIELD_PREFIXES):
        return InferredFieldSchema.object(None, optional=True)
    if key.startswith(ARRAY_FIELD_PREFIXES):
        return InferredFieldSchema.array(InferredFieldSchema.unknown(), optional=True)
    if key.endswith(TEXT_FORMAT_SUFFIXES):
        return InferredFieldSchema.string(optional=True)
    return InferredFieldSchema.unknown(optional=True)


def build_schema(example: Mapping[str, Any]) -> SchemaMapping:
    """
    Build the field-name -> schema mapping for one example record.

    Precedence per key: numeric allowlist, then Drupal `field_*` conventions,
    then generic inference (made optional for known optional names and
    text-format suffixes). The caller's object is never mutated.
    """
    if not isinstance(example, Mapping) or not example:
        raise InvalidPayload("Example payload must be a non-empty object.")

    record: Dict[str, Any] = copy.deepcopy(dict(example))
    for name in NUMERIC_FIELDS:
        if isinstance(record.get(name), str):
            record[name] = coerce_number(record[name])

    shape: SchemaMapping = {}
    for key, value in record.items():
        key = str(key)
        if key in NUMERIC_FIELDS:
            field_schema = InferredFieldSchema.number(coerce=True)
        elif key.startswith(DRUPAL_FIELD_PREFIX):
            field_schema = _classify_drupal_field(key)
        else:
            field_schema = infer_field_type(value, key)
            if key in OPTIONAL_FIELDS or key.endswith(OPTIONAL_SUFFIXES):
                field_schema = field_schema.as_optional()
        shape[key] = field_schema
    return shape


def schema_to_dict(mapping: SchemaMapping) -> Dict[str, Any]:
    return {name: s.to_json_dict() for name, s in mapping.items()}


def serialize_schema(mapping: SchemaMapping) -> str:
    return json.dumps(schema_to_dict(mapping), separators=(",", ":"))


def deserialize_schema(text: str) -> SchemaMapping:
    raw = json.loads(text)
    if not isinstance(raw, dict):
        raise InvalidPayload("Stored schema is not an object mapping.")
    return {name: InferredFieldSchema.model_validate(s) for name, s in raw.items()}
