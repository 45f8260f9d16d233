"""Client interface and shared helpers for watsonx chat access."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from watsonx_chat.errors import InvalidOptionError
from watsonx_chat.llm.types import ChatRequest
from watsonx_chat.options import filter_non_supported_fields

logger = logging.getLogger(__name__)


@runtime_checkable
class ChatClient(Protocol):
    async def chat(self, body: dict[str, Any]) -> tuple[dict[str, Any], str | None]:
        """Send one chat request body and return the payload and request id."""

    async def aclose(self) -> None:
        """Release any underlying client resources."""


def create_client(mode: str, **kwargs: Any) -> ChatClient:
    if mode == "mock":
        from watsonx_chat.llm.mock import MockClient

        return MockClient(**kwargs)
    if mode == "watsonx":
        from watsonx_chat.llm.watsonx import WatsonxClient

        return WatsonxClient(**kwargs)
    raise ValueError(f"Unsupported client mode: {mode}")


def build_request_body(
    request: ChatRequest,
    *,
    project_id: str | None = None,
    space_id: str | None = None,
) -> tuple[dict[str, Any], list[str]]:
    """Assemble the ``/ml/v1/text/chat`` body for ``request``.

    Returns the body and the keys that ``extra_body`` overrode.
    """
    parameters = request.options.to_wire_map()
    if not parameters.get("model_id"):
        raise InvalidOptionError("A model id is required to build a chat request.")

    overrides: list[str] = []
    body: dict[str, Any] = {"messages": request.messages}
    if project_id:
        body["project_id"] = project_id
    if space_id:
        body["space_id"] = space_id
    body.update(parameters)

    for key, value in filter_non_supported_fields(request.extra_body).items():
        if key in body:
            overrides.append(key)
        body[key] = value

    logger.debug("Built chat request for %s with keys %s", body["model_id"], sorted(body))
    return body, overrides
