import asyncio
import json
import unittest

import httpx

from schema_llm.client import LLMClient
from schema_llm.config import ClientSettings, ProviderSettings
from schema_llm.errors import (
    ProviderError,
    ProviderNotAvailable,
    UnsupportedFeatureError,
    UnsupportedProviderError,
)
from schema_llm.schema import bundled_schema_directory
from schema_llm.types import ChatRequest, Message


class ClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.requests: list[httpx.Request] = []
        self.reply: tuple[int, dict] = (
            200,
            {"model": "claude-3-5-haiku-20241022", "content": [{"type": "text", "text": "ok"}]},
        )
        self.settings = ClientSettings(
            schema_directory=bundled_schema_directory(),
            default_max_tokens=128,
            providers={
                "claude": ProviderSettings(api_key="sk-claude", parameters={"temperature": 0.2}),
                "openai": ProviderSettings(api_key_env_var="SCHEMA_LLM_TEST_UNSET_KEY"),
            },
        )

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            status, body = self.reply
            return httpx.Response(status, json=body)

        self.transport = httpx.MockTransport(handler)
        self.client = LLMClient.from_settings(self.settings, transport=self.transport)
        self.addCleanup(lambda: asyncio.run(self.client.aclose()))

    def test_chat_sends_schema_built_request(self) -> None:
        req = ChatRequest(
            system_message="Be brief",
            messages=[Message(role="user", content="Hi")],
        )
        resp = asyncio.run(self.client.chat("claude", req))

        self.assertEqual(resp.text, "ok")
        self.assertEqual(resp.provider, "claude")
        self.assertEqual(resp.model, "claude-3-5-haiku-20241022")

        sent = self.requests[0]
        self.assertEqual(str(sent.url), "https://api.anthropic.com/v1/messages")
        self.assertEqual(sent.headers["x-api-key"], "sk-claude")
        body = json.loads(sent.content)
        self.assertEqual(body["system"], "Be brief")
        self.assertEqual(body["temperature"], 0.2)
        self.assertEqual(body["max_tokens"], 1024)
        self.assertIs(body["stream"], False)
        self.assertEqual(body["messages"], [{"role": "user", "content": [{"type": "text", "text": "Hi"}]}])

    def test_chat_text(self) -> None:
        resp = asyncio.run(self.client.chat_text("Hi", "claude"))
        self.assertEqual(resp.text, "ok")

    def test_chat_text_uses_default_provider(self) -> None:
        settings = self.settings.model_copy(update={"default_provider": "claude"})
        client = LLMClient.from_settings(settings, transport=self.transport)
        self.addCleanup(lambda: asyncio.run(client.aclose()))

        resp = asyncio.run(client.chat_text("Hi"))
        self.assertEqual(resp.provider, "claude")
        self.assertEqual(str(self.requests[0].url), "https://api.anthropic.com/v1/messages")

    def test_chat_text_without_any_provider(self) -> None:
        with self.assertRaises(UnsupportedProviderError):
            asyncio.run(self.client.chat_text("Hi"))
        self.assertEqual(self.requests, [])

    def test_error_message_extracted_from_schema_path(self) -> None:
        self.reply = (401, {"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}})
        with self.assertRaises(ProviderError) as ctx:
            asyncio.run(self.client.chat_text("Hi", "claude"))
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn("invalid x-api-key", str(ctx.exception))

    def test_configured_key_takes_precedence(self) -> None:
        self.client.configure_provider("openai", "sk-openai")
        self.reply = (200, {"model": "gpt-4o", "choices": [{"message": {"role": "assistant", "content": "hey"}}]})
        resp = asyncio.run(self.client.chat_text("Hi", "openai"))
        self.assertEqual(resp.text, "hey")
        self.assertEqual(self.requests[0].headers["Authorization"], "Bearer sk-openai")

    def test_missing_api_key(self) -> None:
        with self.assertRaises(ProviderNotAvailable):
            self.client.get_context("openai")

    def test_unknown_provider(self) -> None:
        with self.assertRaises(UnsupportedProviderError):
            self.client.get_context("nope")

    def test_streaming_requests_rejected(self) -> None:
        req = ChatRequest(messages=[Message(role="user", content="Hi")], stream=True)
        with self.assertRaises(UnsupportedFeatureError):
            asyncio.run(self.client.chat("claude", req))
        self.assertEqual(self.requests, [])

    def test_available_providers(self) -> None:
        self.assertEqual(self.client.available_providers(), ["claude", "mistral", "openai"])
        self.assertTrue(self.client.is_provider_available("mistral"))


if __name__ == "__main__":
    unittest.main()
