"""Configuration values consumed by the context engine and the client."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field

from schema_llm.registry import SchemaRegistry, create_registry


class ContextConfig(BaseModel):
    """Options applied by a GeneralContext."""

    enable_validation: bool = True
    # advisory, read by the factory only
    enable_caching: bool = True
    default_max_tokens: int | None = None
    default_temperature: float | None = None


class ProviderSettings(BaseModel):
    """Per-provider credentials and request defaults."""

    api_key: str | None = None
    api_key_env_var: str | None = None
    model: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class ClientSettings(BaseModel):
    """Settings for LLMClient; populated by whatever configuration layer the caller uses."""

    schema_directory: str = "./schemas"
    schema_overrides: dict[str, str] = Field(default_factory=dict)
    default_provider: str | None = None
    enable_validation: bool = True
    default_max_tokens: int | None = None
    default_temperature: float | None = None
    timeout_s: float = 60.0
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)

    def build_registry(self) -> SchemaRegistry:
        return create_registry(self.schema_directory, self.schema_overrides)

    def context_config(self) -> ContextConfig:
        return ContextConfig(
            enable_validation=self.enable_validation,
            default_max_tokens=self.default_max_tokens,
            default_temperature=self.default_temperature,
        )

    def resolve_api_key(self, provider: str) -> str | None:
        """Return the configured key for ``provider``, falling back to its environment variable."""
        provider_settings = self.providers.get(provider)
        if provider_settings is None:
            return None
        if provider_settings.api_key:
            return provider_settings.api_key
        if provider_settings.api_key_env_var:
            return os.environ.get(provider_settings.api_key_env_var) or None
        return None
