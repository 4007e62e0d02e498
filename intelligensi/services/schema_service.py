# intelligensi/services/schema_service.py
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from intelligensi.clients.supabase_service import SupabaseServiceClient
from intelligensi.core.errors import Internal, InvalidArgument, InvalidPayload, NotFound
from intelligensi.core.json_schema import validate_record
from intelligensi.core.schema_builder import (
    build_schema,
    deserialize_schema,
    extract_inference_target,
    serialize_schema,
)
from intelligensi.core.type_inference import NUMERIC_FIELDS, coerce_number, is_numeric_string
from intelligensi.models.schema_models import CreateSchemaRequest, InferredFieldSchema, SchemaMapping, SiteSchema

logger = logging.getLogger("intelligensi.services.schema")

MISSING_FIELDS_MESSAGE = "Request missing fields: siteId, cmsId, payload, createdBy"

# (canonical, camelCase) spellings; the snake_case value wins when non-null
_FIELD_SPELLINGS = (
    ("site_id", "siteId"),
    ("cms_id", "cmsId"),
    ("example_payload", "examplePayload"),
    ("description", "description"),
    ("version", "version"),
    ("created_by", "createdBy"),
)


def _first_non_null(body: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = body.get(name)
        if value is not None:
            return value
    return None


def _as_int_id(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if is_numeric_string(value):
        n = coerce_number(value)
        return n if isinstance(n, int) else None
    return None


def normalize_create_schema_body(body: Any) -> CreateSchemaRequest:
    """
    Merge snake_case/camelCase spellings into one canonical request, then validate it.
    """
    if not isinstance(body, Mapping):
        raise InvalidArgument(MISSING_FIELDS_MESSAGE)

    merged = {canonical: _first_non_null(body, canonical, alt) for canonical, alt in _FIELD_SPELLINGS}

    site_id = _as_int_id(merged["site_id"])
    cms_id = _as_int_id(merged["cms_id"])
    payload = merged["example_payload"]
    created_by = merged["created_by"]

    if site_id is None or cms_id is None or not payload or not isinstance(created_by, str) or not created_by:
        logger.error(
            "Validation error: missing or invalid required fields (site_id=%r cms_id=%r payload_present=%s created_by=%r)",
            merged["site_id"],
            merged["cms_id"],
            bool(payload),
            created_by,
        )
        raise InvalidArgument(MISSING_FIELDS_MESSAGE)

    return CreateSchemaRequest(
        site_id=site_id,
        cms_id=cms_id,
        example_payload=payload,
        description=str(merged["description"] if merged["description"] is not None else ""),
        version=str(merged["version"] if merged["version"] is not None else "1.0.0"),
        created_by=created_by,
    )


def force_numeric_fields(record: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep copy of `record` with allowlisted numeric fields converted from numeric
    strings; for object values, each numeric-string member is converted.
    """
    raw: Dict[str, Any] = copy.deepcopy(dict(record))
    for name in NUMERIC_FIELDS:
        value = raw.get(name)
        if value is None:
            continue
        if isinstance(value, str):
            raw[name] = coerce_number(value)
        elif isinstance(value, dict):
            raw[name] = {k: coerce_number(v) for k, v in value.items()}
    return raw


def infer_site_schema(example_payload: Any) -> SchemaMapping:
    target = extract_inference_target(example_payload)
    raw = force_numeric_fields(target)
    mapping = build_schema(raw)
    # consumers coerce these on read whatever generic inference produced
    for name in NUMERIC_FIELDS:
        if name in mapping:
            mapping[name] = InferredFieldSchema.number(coerce=True)
    return mapping


class SchemaService:
    def __init__(self, store: SupabaseServiceClient) -> None:
        self.store = store

    async def create_schema(self, request: CreateSchemaRequest) -> Dict[str, Any]:
        mapping = infer_site_schema(request.example_payload)
        logger.info(
            "Schema inferred for site_id=%s cms_id=%s (%d fields, nid=%s)",
            request.site_id,
            request.cms_id,
            len(mapping),
            mapping["nid"].kind if "nid" in mapping else "(absent)",
        )

        row = SiteSchema(
            site_id=request.site_id,
            cms_id=request.cms_id,
            schema_json=serialize_schema(mapping),
            description=request.description,
            version=request.version,
            created_by=request.created_by,
        )
        try:
            stored = await self.store.insert_schema(row.to_insert_row())
        except Exception as e:
            logger.exception("Failed to insert schema for site_id=%s", request.site_id)
            raise Internal(str(e)) from e
        return stored

    async def get_schema(self, schema_id: int) -> Dict[str, Any]:
        try:
            row = await self.store.get_schema(schema_id)
        except Exception as e:
            logger.exception("Failed to read schema %s", schema_id)
            raise Internal(str(e)) from e
        if not row:
            raise NotFound(f"Schema {schema_id} not found")
        return row

    async def list_schemas(self, *, site_id: Optional[int] = None, limit: int = 50) -> List[Dict[str, Any]]:
        try:
            return await self.store.list_schemas(site_id=site_id, limit=limit)
        except Exception as e:
            logger.exception("Failed to list schemas (site_id=%s)", site_id)
            raise Internal(str(e)) from e

    async def link_to_site(self, site_id: int, schema_id: int) -> Dict[str, Any]:
        await self.get_schema(schema_id)
        try:
            site = await self.store.link_site_schema(site_id, schema_id)
        except Exception as e:
            logger.exception("Failed to link schema %s to site %s", schema_id, site_id)
            raise Internal(str(e)) from e
        if not site:
            raise NotFound(f"Site {site_id} not found")
        logger.info("Site %s linked to schema %s", site_id, schema_id)
        return site

    async def validate(self, schema_id: int, record: Dict[str, Any]) -> Dict[str, Any]:
        row = await self.get_schema(schema_id)
        text = row.get("schema_json")
        if isinstance(text, (dict, list)):
            text = json.dumps(text)
        try:
            mapping = deserialize_schema(text or "{}")
        except (ValueError, InvalidPayload) as e:
            raise Internal(f"Stored schema {schema_id} is unreadable: {e}") from e
        ok, errors, coerced = validate_record(mapping, record)
        return {"valid": ok, "errors": errors, "record": coerced}
