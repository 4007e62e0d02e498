# intelligensi/config.py
from __future__ import annotations

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


def _as_bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseSettings):
    # Identity
    service_name: str = os.getenv("SERVICE_NAME", "intelligensi-content-service")
    service_version: str = os.getenv("SERVICE_VERSION", "0.1.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_host: str = os.getenv("APP_HOST", "0.0.0.0")
    app_port: int = int(os.getenv("APP_PORT", "8080"))

    # CORS (comma-separated origins; "*" allowed for dev)
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    # Supabase (relational metadata store)
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY", "")

    # Weaviate (vector store)
    weaviate_url: str = os.getenv("WEAVIATE_URL", "")
    weaviate_api_key: str = os.getenv("WEAVIATE_API_KEY", "")
    weaviate_class: str = os.getenv("WEAVIATE_CLASS", "IntelligensiAi")
    # writes wait on server-side vectorization
    weaviate_write_timeout_seconds: float = float(
        os.getenv("WEAVIATE_WRITE_TIMEOUT_SECONDS", "30")
    )
    # forwarded to Weaviate for nearText embeddings and generative search
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    search_certainty: float = float(os.getenv("SEARCH_CERTAINTY", "0.72"))

    # Drupal 7 source sites
    drupal_export_path: str = os.getenv("DRUPAL_EXPORT_PATH", "/api/bulk-export")
    drupal_verify_ssl: bool = _as_bool(os.getenv("DRUPAL_VERIFY_SSL"), default=True)

    # HTTP client
    http_client_timeout_seconds: float = float(
        os.getenv("HTTP_CLIENT_TIMEOUT_SECONDS", "30")
    )

    # Vectorization
    vectorize_batch_size: int = int(os.getenv("VECTORIZE_BATCH_SIZE", "5"))

    model_config = SettingsConfigDict(env_file=None, extra="ignore", frozen=True)

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


settings = Settings()
