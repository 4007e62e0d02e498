# intelligensi/core/text.py
from __future__ import annotations

import html
import re
from typing import Any, Optional

_TAG_RE = re.compile(r"<[^>]*>?")
_ESCAPE_ARTIFACT_RE = re.compile(r"\\[rn\"']")
_WS_RE = re.compile(r"\s+")

_BODY_TEXT_KEYS = ("value", "safe_value")


def _first_text_value(body: Any) -> Optional[str]:
    """
    Drupal 7 bodies arrive either as a string or as `{"und": [{"value": ..., "format": ...}]}`.
    Returns the first `value`/`safe_value` string found depth-first.
    """
    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        for k in _BODY_TEXT_KEYS:
            if isinstance(body.get(k), str):
                return body[k]
        for v in body.values():
            found = _first_text_value(v)
            if found is not None:
                return found
        return None
    if isinstance(body, (list, tuple)):
        for item in body:
            found = _first_text_value(item)
            if found is not None:
                return found
    return None


def clean_body_text(body: Any) -> str:
    """Decode entities, strip tags and escaped quote/newline artifacts, collapse whitespace."""
    text = _first_text_value(body)
    if not text:
        return ""
    cleaned = html.unescape(text)
    cleaned = _TAG_RE.sub("", cleaned)
    cleaned = _ESCAPE_ARTIFACT_RE.sub("", cleaned)
    cleaned = _WS_RE.sub(" ", cleaned)
    return cleaned.strip()
