# intelligensi/models/content_models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _scalar_to_str(v: Any) -> Any:
    if isinstance(v, bool):
        return "1" if v else "0"
    if isinstance(v, (int, float)):
        return str(int(v)) if float(v).is_integer() else str(v)
    return v

# ─────────────────────────────────────────────────────────────
# Source content (Drupal bulk export)
# ─────────────────────────────────────────────────────────────

class ContentNode(BaseModel):
    """
    One node from a Drupal bulk export. Ids and flags may arrive as numbers;
    they are kept as strings, the way the export usually sends them.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    nid: str
    title: str = ""
    body: Union[str, Dict[str, Any], List[Any], None] = None
    created: str = ""
    status: str = ""
    type: str = ""

    @field_validator("nid", mode="before")
    @classmethod
    def _require_nid(cls, v: Any) -> Any:
        v = _scalar_to_str(v)
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("nid is required")
        return v

    @field_validator("created", "status", "type", "title", mode="before")
    @classmethod
    def _coerce_scalars(cls, v: Any) -> Any:
        return "" if v is None else _scalar_to_str(v)


# ─────────────────────────────────────────────────────────────
# Vector store objects (Weaviate)
# ─────────────────────────────────────────────────────────────

class VectorProperties(BaseModel):
    model_config = ConfigDict(extra="allow")

    nid: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    created: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None

    @field_validator("nid", "created", "status", "type", mode="before")
    @classmethod
    def _coerce_scalars(cls, v: Any) -> Any:
        return _scalar_to_str(v)


class VectorObject(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_name: Optional[str] = Field(default=None, alias="class")
    properties: VectorProperties

    def to_request_body(self, default_class: str) -> Dict[str, Any]:
        return {
            "class": self.class_name or default_class,
            "properties": self.properties.model_dump(exclude_none=True),
        }


class WriteObjectsRequest(BaseModel):
    """
    `/writeWeaviate` accepts either `{objects: [...]}` or a single `{class, properties}`.
    """
    objects: List[VectorObject]

    @classmethod
    def from_body(cls, body: Any) -> Optional["WriteObjectsRequest"]:
        if not isinstance(body, dict):
            return None
        if isinstance(body.get("objects"), list):
            return cls.model_validate({"objects": body["objects"]})
        if body.get("class") and isinstance(body.get("properties"), dict):
            return cls.model_validate({"objects": [body]})
        return None


class WriteResult(BaseModel):
    id: Optional[str] = None
    nid: Optional[str] = None
    status: str = "created"


# ─────────────────────────────────────────────────────────────
# Vectorization runs
# ─────────────────────────────────────────────────────────────

class VectorizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    site_name: str = Field(..., alias="siteName", min_length=1)
    site_url: Optional[str] = Field(default=None, alias="siteUrl")
    # validated per item so one malformed record only fails itself
    nodes: Optional[List[Dict[str, Any]]] = None
    class_name: Optional[str] = Field(default=None, alias="className")


class SucceededItem(BaseModel):
    id: Optional[str] = None
    nid: str


class FailedItem(BaseModel):
    nid: str
    error: str


class VectorizationSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    objects_created: int = Field(..., alias="objectsCreated")
    site_name: str = Field(..., alias="siteName")
    total: int
    failed: int
    succeeded: List[SucceededItem] = Field(default_factory=list)
    failures: List[FailedItem] = Field(default_factory=list)
    progress_percent: int = Field(0, alias="progressPercent")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ─────────────────────────────────────────────────────────────
# Semantic search
# ─────────────────────────────────────────────────────────────

class SearchRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    prompt: Optional[str] = None
    limit: int = Field(1, ge=1, le=100)
