"""Chat model combining default options with per-call options."""

from __future__ import annotations

import logging
import time
from typing import Any

from watsonx_chat.llm.client import ChatClient, build_request_body
from watsonx_chat.llm.types import ChatRequest, ChatResponse
from watsonx_chat.options import WatsonxChatOptions

logger = logging.getLogger(__name__)


class WatsonxChatModel:
    def __init__(
        self,
        client: ChatClient,
        default_options: WatsonxChatOptions,
        *,
        project_id: str | None = None,
        space_id: str | None = None,
    ) -> None:
        if default_options is None:
            raise ValueError("default_options is required.")
        self._client = client
        self._default_options = default_options
        self._project_id = project_id
        self._space_id = space_id

    @property
    def default_options(self) -> WatsonxChatOptions:
        return self._default_options

    def build_request(
        self,
        messages: list[dict[str, Any]],
        options: WatsonxChatOptions | None = None,
        *,
        extra_body: dict[str, Any] | None = None,
    ) -> ChatRequest:
        merged = self._default_options.merge(options)
        _advertise_callbacks(merged)
        return ChatRequest(messages=messages, options=merged, extra_body=dict(extra_body or {}))

    async def call(
        self,
        messages: list[dict[str, Any]],
        options: WatsonxChatOptions | None = None,
        *,
        extra_body: dict[str, Any] | None = None,
    ) -> ChatResponse:
        request = self.build_request(messages, options, extra_body=extra_body)
        body, overrides = build_request_body(
            request,
            project_id=self._project_id,
            space_id=self._space_id,
        )
        if overrides:
            request.metadata.setdefault("overrides", overrides)
            logger.info("extra_body overrode request keys: %s", ", ".join(sorted(overrides)))

        start = time.monotonic()
        payload, request_id = await self._client.chat(body)
        latency_ms = int((time.monotonic() - start) * 1000)

        choice = _first_choice(payload)
        message = choice.get("message") or {}
        return ChatResponse(
            text=_extract_text(message),
            raw=payload,
            usage=payload.get("usage"),
            model_requested=request.options.model,
            model_returned=payload.get("model_id") or payload.get("model"),
            finish_reason=choice.get("finish_reason"),
            tool_calls=list(message.get("tool_calls") or []),
            latency_ms=latency_ms,
            request_id=request_id,
        )


def _advertise_callbacks(options: WatsonxChatOptions) -> None:
    # Callback definitions are only added when no tool of that name is declared.
    if not options.tool_callbacks:
        return
    tools = list(options.tools or [])
    declared = {tool.name for tool in tools}
    for callback in options.tool_callbacks:
        definition = callback.tool_definition
        if definition.name not in declared:
            tools.append(definition)
            declared.add(definition.name)
    options.tools = tools


def _first_choice(payload: dict[str, Any]) -> dict[str, Any]:
    choices = payload.get("choices") or []
    if not choices:
        return {}
    return choices[0] or {}


def _extract_text(message: dict[str, Any]) -> str:
    text = message.get("content")
    if text is None:
        return ""
    if isinstance(text, str):
        return text
    return str(text)
