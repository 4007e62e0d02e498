# intelligensi/models/schema_models.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FieldKind = Literal["number", "string", "boolean", "date", "array", "object", "unknown"]


# ─────────────────────────────────────────────────────────────
# Inferred schema
# ─────────────────────────────────────────────────────────────

class InferredFieldSchema(BaseModel):
    """
    Structural description of one field of an example record.

    - `of` is set for arrays (element schema, inferred from the first element).
    - `fields` is set for objects; `None` on an object means an open record of unknown values.
    - `coerce` marks numbers that may arrive as numeric strings and are converted on read.
    """
    model_config = ConfigDict(frozen=True)

    kind: FieldKind
    of: Optional[InferredFieldSchema] = None
    fields: Optional[Dict[str, InferredFieldSchema]] = None
    optional: bool = False
    coerce: bool = False

    # constructors keep call sites short
    @classmethod
    def number(cls, *, coerce: bool = False, optional: bool = False) -> "InferredFieldSchema":
        return cls(kind="number", coerce=coerce, optional=optional)

    @classmethod
    def string(cls, *, optional: bool = False) -> "InferredFieldSchema":
        return cls(kind="string", optional=optional)

    @classmethod
    def unknown(cls, *, optional: bool = False) -> "InferredFieldSchema":
        return cls(kind="unknown", optional=optional)

    @classmethod
    def array(cls, of: "InferredFieldSchema", *, optional: bool = False) -> "InferredFieldSchema":
        return cls(kind="array", of=of, optional=optional)

    @classmethod
    def object(
        cls, fields: Optional[Dict[str, "InferredFieldSchema"]], *, optional: bool = False
    ) -> "InferredFieldSchema":
        return cls(kind="object", fields=fields, optional=optional)

    def as_optional(self) -> "InferredFieldSchema":
        return self.model_copy(update={"optional": True})

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_defaults=True)


InferredFieldSchema.model_rebuild()

SchemaMapping = Dict[str, InferredFieldSchema]


# ─────────────────────────────────────────────────────────────
# Persisted rows (Supabase)
# ─────────────────────────────────────────────────────────────

class SiteSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[int] = None
    site_id: int
    cms_id: int
    # column is `schema_json`, which would shadow a BaseModel method
    schema_text: str = Field(..., alias="schema_json")
    description: str = ""
    version: str = "1.0.0"
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_insert_row(self) -> Dict[str, Any]:
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"id", "created_at", "updated_at"},
        )


class Site(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    site_name: str
    site_url: str
    cms_id: Optional[int] = None
    schema_id: Optional[int] = None
    status: Optional[str] = None


# ─────────────────────────────────────────────────────────────
# Request bodies
# ─────────────────────────────────────────────────────────────

class CreateSchemaRequest(BaseModel):
    """
    Canonical createSchema request. Built by `normalize_create_schema_body`,
    never parsed straight from the wire.
    """
    site_id: int
    cms_id: int
    example_payload: Any
    description: str = ""
    version: str = "1.0.0"
    created_by: str = Field(..., min_length=1)


class LinkSchemaRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_id: int = Field(..., alias="schemaId")


class ValidateRecordRequest(BaseModel):
    record: Dict[str, Any]
