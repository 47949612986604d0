"""Async client sending schema-built requests over HTTP."""

from __future__ import annotations

import logging
import time
from typing import Any, cast

import httpx

from schema_llm.config import ClientSettings
from schema_llm.context import GeneralContext
from schema_llm.errors import (
    ProviderError,
    ProviderNotAvailable,
    UnsupportedFeatureError,
    UnsupportedProviderError,
)
from schema_llm.factory import ContextFactory
from schema_llm.types import ChatRequest, ChatResponse, Message


class LLMClient:
    """High-level coordinator for chatting with schema-described providers."""

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        factory: ContextFactory,
        *,
        settings: ClientSettings | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._factory = factory
        self._settings = settings or ClientSettings()
        self._client = httpx.AsyncClient(
            timeout=timeout_s if timeout_s is not None else self._settings.timeout_s,
            transport=transport,
        )
        self._api_keys: dict[str, str] = {}

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> LLMClient:
        factory = ContextFactory(settings.build_registry(), settings.context_config())
        return cls(factory, settings=settings, transport=transport)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def configure_provider(self, provider: str, api_key: str) -> None:
        self._api_keys[provider] = api_key

    def available_providers(self) -> list[str]:
        return self._factory.get_available_providers()

    def is_provider_available(self, provider: str) -> bool:
        return self._factory.is_provider_available(provider)

    def get_context(self, provider: str) -> GeneralContext:
        """Return a fresh context with credentials and configured defaults applied."""
        if not self._factory.is_provider_available(provider):
            raise UnsupportedProviderError(provider)

        api_key = self._api_keys.get(provider) or self._settings.resolve_api_key(provider)
        if not api_key:
            raise ProviderNotAvailable(f"No API key configured for provider: {provider}")

        context = self._factory.create_context(provider)
        context.set_api_key(api_key)

        provider_settings = self._settings.providers.get(provider)
        if provider_settings is not None:
            if provider_settings.model:
                context.set_model(provider_settings.model)
            context.set_parameters(provider_settings.parameters)
        return context

    async def chat(self, provider: str, req: ChatRequest) -> ChatResponse:
        """Send ``req`` to ``provider`` and normalize the reply."""
        if req.stream:
            raise UnsupportedFeatureError("streaming")

        context = self.get_context(provider)
        self._apply_request(context, req)
        payload = context.build_request()

        started = time.monotonic()
        response = await self._client.post(context.endpoint, headers=context.get_headers(), json=payload)
        duration_ms = int((time.monotonic() - started) * 1000)
        self._logger.debug("%s responded with status %s in %d ms", provider, response.status_code, duration_ms)

        data = self._json_or_error(context, response)
        model = data.get("model") or context.model_name or "unknown"
        return ChatResponse(
            provider=provider,
            model=str(model),
            text=context.extract_text_response(data),
            duration_ms=duration_ms,
            raw=data,
        )

    async def chat_text(self, text: str, provider: str | None = None) -> ChatResponse:
        """Send a single user message, to the configured default provider unless one is given."""
        provider = provider or self._settings.default_provider
        if not provider:
            raise UnsupportedProviderError("<default>")
        return await self.chat(provider, ChatRequest(messages=[Message(role="user", content=text)]))

    @staticmethod
    def _apply_request(context: GeneralContext, req: ChatRequest) -> None:
        if req.model is not None:
            context.set_model(req.model)
        if req.system_message is not None:
            context.set_system_message(req.system_message)
        context.set_parameters(req.parameters)

        for message in req.messages:
            if message.role == "user":
                context.add_user_message(message.content, message.media_type, message.media_data)
            else:
                context.add_assistant_message(message.content)

    @staticmethod
    def _json_or_error(context: GeneralContext, response: httpx.Response) -> dict[str, Any]:
        if response.status_code >= 400:
            try:
                message = context.extract_error(response.json())
            except ValueError:
                message = response.text or response.reason_phrase
            raise ProviderError(context.provider_name, message, status_code=response.status_code)
        return cast(dict[str, Any], response.json())
