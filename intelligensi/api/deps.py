# intelligensi/api/deps.py
from __future__ import annotations

from fastapi import Depends

from intelligensi.clients.drupal_service import DrupalServiceClient
from intelligensi.clients.supabase_service import SupabaseServiceClient
from intelligensi.clients.weaviate_service import WeaviateServiceClient
from intelligensi.config import Settings, settings
from intelligensi.services.schema_service import SchemaService
from intelligensi.services.site_service import SiteContentService
from intelligensi.services.vectorize_service import ContentVectorizer


def get_settings() -> Settings:
    return settings


def get_supabase_client(config: Settings = Depends(get_settings)) -> SupabaseServiceClient:
    return SupabaseServiceClient(config)


def get_weaviate_client(config: Settings = Depends(get_settings)) -> WeaviateServiceClient:
    return WeaviateServiceClient(config)


def get_drupal_client(config: Settings = Depends(get_settings)) -> DrupalServiceClient:
    return DrupalServiceClient(config)


def get_schema_service(store: SupabaseServiceClient = Depends(get_supabase_client)) -> SchemaService:
    return SchemaService(store)


def get_site_service(
    drupal: DrupalServiceClient = Depends(get_drupal_client),
    store: SupabaseServiceClient = Depends(get_supabase_client),
) -> SiteContentService:
    return SiteContentService(drupal, store)


def get_vectorizer(
    writer: WeaviateServiceClient = Depends(get_weaviate_client),
    config: Settings = Depends(get_settings),
) -> ContentVectorizer:
    return ContentVectorizer(writer, batch_size=config.vectorize_batch_size, class_name=config.weaviate_class)
