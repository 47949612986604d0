"""Package specific exception hierarchy."""

from __future__ import annotations


class SchemaLLMError(Exception):
    """Base exception for schema_llm package."""


class SchemaError(SchemaLLMError):
    """Raised when a schema cannot be read, parsed or is missing a required field."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class SchemaNotFoundError(SchemaError):
    """Raised when the factory cannot build a context for a provider."""

    def __init__(self, provider: str, path: object) -> None:
        super().__init__(f"Schema file not found for provider: {provider} at {path}")
        self.provider = provider
        self.path = path


class ValidationError(SchemaLLMError):
    """Raised when a model, parameter, message or credential is rejected."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class PathResolutionError(SchemaLLMError):
    """Raised when a path segment cannot be followed inside a JSON tree."""

    def __init__(self, segment: str, operation: str) -> None:
        super().__init__(f"Invalid {operation} access: {segment}")
        self.segment = segment
        self.operation = operation


class ExtractionError(SchemaLLMError):
    """Raised when a response value cannot be located."""


class MediaError(SchemaLLMError):
    """Raised when an attachment cannot be read or encoded."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ProviderNotAvailable(SchemaLLMError):
    """Raised when the requested provider cannot be used."""


class UnsupportedProviderError(SchemaLLMError):
    """Raised when no schema is registered for a provider."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Provider '{provider}' is not available.")
        self.provider = provider


class UnsupportedFeatureError(SchemaLLMError):
    """Raised when a requested feature is unsupported."""

    def __init__(self, feature: str) -> None:
        super().__init__(f"Feature '{feature}' is not supported.")


class ProviderError(SchemaLLMError):
    """Represents provider-specific HTTP or API errors."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        suffix = f" (status {status_code})" if status_code is not None else ""
        super().__init__(f"{provider}: {message}{suffix}")
        self.provider = provider
        self.status_code = status_code
