"""Provider-agnostic request/response models used by LLMClient."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Message(BaseModel):
    """Single conversation turn; ``media_data`` is base64 or an image path."""

    role: Literal["user", "assistant"]
    content: str
    media_type: str | None = None
    media_data: str | None = None


class ChatRequest(BaseModel):
    """Normalized request shared by all providers."""

    messages: list[Message]
    model: str | None = None
    system_message: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    stream: bool = False


class ChatResponse(BaseModel):
    """Simplified chat response."""

    provider: str
    model: str
    text: str
    duration_ms: int
    # provider-specific payload kept for debugging or advanced use
    raw: dict[str, Any]
