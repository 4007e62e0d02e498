from .drupal_routes import router as drupal_router
from .health_routes import router as health_router
from .schema_routes import router as schema_router
from .vectorize_routes import router as vectorize_router
from .weaviate_routes import router as weaviate_router

__all__ = ["drupal_router", "health_router", "schema_router", "vectorize_router", "weaviate_router"]
