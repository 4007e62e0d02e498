# intelligensi/core/type_inference.py
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional, Union

from intelligensi.models.schema_models import InferredFieldSchema

# Drupal serializes these integer columns as strings on some endpoints and as
# numbers on others; they are always typed as numbers.
NUMERIC_FIELDS: tuple[str, ...] = (
    "nid",
    "created",
    "changed",
    "uid",
    "vid",
    "revision_id",
    "revision_uid",
)

_NUMERIC_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def is_numeric_string(value: Any) -> bool:
    """True for non-blank strings that parse fully as a decimal number (surrounding whitespace allowed)."""
    if not isinstance(value, str):
        return False
    s = value.strip()
    if not s:
        return False
    return bool(_NUMERIC_RE.match(s))


def coerce_number(value: Any) -> Union[int, float, Any]:
    """
    Numeric strings become int (when integral) or float; anything else is returned as-is.
    """
    if not is_numeric_string(value):
        return value
    s = value.strip()
    try:
        return int(s)
    except ValueError:
        pass
    f = float(s)
    if f.is_integer() and abs(f) < 2**53:
        return int(f)
    return f


def infer_field_type(value: Any, key: Optional[str] = None) -> InferredFieldSchema:
    """
    Infer the schema of one JSON value. `key` enables the numeric-field allowlist;
    every other string is only typed as a number when its content is numeric.

    Arrays are described by their first element only.
    """
    if value is None:
        return InferredFieldSchema.unknown(optional=True)

    if key is not None and key in NUMERIC_FIELDS:
        return InferredFieldSchema.number(coerce=True)

    if isinstance(value, (list, tuple)):
        if not value:
            return InferredFieldSchema.array(InferredFieldSchema.unknown())
        return InferredFieldSchema.array(infer_field_type(value[0]))

    if isinstance(value, (datetime, date)):
        return InferredFieldSchema(kind="date")

    if isinstance(value, dict):
        return InferredFieldSchema.object(
            {str(k): infer_field_type(v, str(k)) for k, v in value.items()}
        )

    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return InferredFieldSchema(kind="boolean")

    if isinstance(value, str):
        if is_numeric_string(value):
            return InferredFieldSchema.number(coerce=True)
        return InferredFieldSchema.string()

    if isinstance(value, (int, float)):
        return InferredFieldSchema.number()

    return InferredFieldSchema.unknown()
