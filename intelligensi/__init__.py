"""Intelligensi content service: Drupal schema inference and Weaviate vectorization."""

__version__ = "0.1.0"
