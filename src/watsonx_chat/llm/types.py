"""Core request/response types for the watsonx chat client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from watsonx_chat.options import WatsonxChatOptions


@dataclass
class ChatRequest:
    messages: list[dict[str, Any]]
    options: WatsonxChatOptions
    extra_body: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatResponse:
    text: str
    raw: dict[str, Any]
    usage: dict[str, Any] | None
    model_requested: str | None
    model_returned: str | None
    finish_reason: str | None
    tool_calls: list[dict[str, Any]]
    latency_ms: int
    request_id: str | None
