from __future__ import annotations

from typing import Any, Dict

import pytest

from intelligensi.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        supabase_url="http://supabase.test",
        supabase_anon_key="anon-key",
        weaviate_url="http://weaviate.test",
        weaviate_api_key="wv-key",
        weaviate_class="IntelligensiAi",
        weaviate_write_timeout_seconds=30,
        drupal_export_path="/api/bulk-export",
        vectorize_batch_size=5,
    )


@pytest.fixture
def example_record() -> Dict[str, Any]:
    return {
        "nid": "42",
        "title": "Hello",
        "created": "1690000000",
        "field_tags": ["a", "b"],
    }
