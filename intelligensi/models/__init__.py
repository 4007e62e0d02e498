from .content_models import (
    ContentNode,
    FailedItem,
    SearchRequest,
    SucceededItem,
    VectorizationSummary,
    VectorizeRequest,
    VectorObject,
    VectorProperties,
    WriteObjectsRequest,
    WriteResult,
)
from .schema_models import (
    CreateSchemaRequest,
    InferredFieldSchema,
    LinkSchemaRequest,
    SchemaMapping,
    Site,
    SiteSchema,
    ValidateRecordRequest,
)

__all__ = [
    "ContentNode",
    "FailedItem",
    "SearchRequest",
    "SucceededItem",
    "VectorizationSummary",
    "VectorizeRequest",
    "VectorObject",
    "VectorProperties",
    "WriteObjectsRequest",
    "WriteResult",
    "CreateSchemaRequest",
    "InferredFieldSchema",
    "LinkSchemaRequest",
    "SchemaMapping",
    "Site",
    "SiteSchema",
    "ValidateRecordRequest",
]
