"""Schema-driven client for LLM chat APIs."""

from .config import ClientSettings, ContextConfig, ProviderSettings
from .context import GeneralContext
from .errors import (
    ExtractionError,
    MediaError,
    PathResolutionError,
    SchemaError,
    SchemaLLMError,
    SchemaNotFoundError,
    ValidationError,
)
from .factory import CacheStats, ContextFactory, ProviderContext
from .registry import SchemaRegistry, create_registry
from .schema import bundled_schema_directory, load_schema

__all__ = [
    "CacheStats",
    "ClientSettings",
    "ContextConfig",
    "ContextFactory",
    "ExtractionError",
    "GeneralContext",
    "MediaError",
    "PathResolutionError",
    "ProviderContext",
    "ProviderSettings",
    "SchemaError",
    "SchemaLLMError",
    "SchemaNotFoundError",
    "SchemaRegistry",
    "ValidationError",
    "bundled_schema_directory",
    "create_registry",
    "load_schema",
]
