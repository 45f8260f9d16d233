from __future__ import annotations

import json

import httpx
import pytest

from watsonx_chat.config import WatsonxSettings
from watsonx_chat.errors import InvalidOptionError, WatsonxError
from watsonx_chat.llm.client import build_request_body, create_client
from watsonx_chat.llm.mock import MockClient
from watsonx_chat.llm.model import WatsonxChatModel
from watsonx_chat.llm.types import ChatRequest
from watsonx_chat.llm.watsonx import WatsonxClient
from watsonx_chat.options import WatsonxChatOptions
from watsonx_chat.tools import FunctionToolCallback, TextChatParameterFunction, TextChatParameterTool

MESSAGES = [{"role": "user", "content": "Hello"}]


def test_build_request_body_applies_extra_body() -> None:
    options = WatsonxChatOptions.builder().model("m").temperature(0.2).build()
    request = ChatRequest(
        messages=MESSAGES,
        options=options,
        extra_body={"model": "other", "temperature": 0.9, "top_p": None},
    )

    body, overrides = build_request_body(request, project_id="p-1")

    assert body == {
        "messages": MESSAGES,
        "project_id": "p-1",
        "model_id": "m",
        "temperature": 0.9,
    }
    assert overrides == ["temperature"]


def test_build_request_body_requires_model() -> None:
    request = ChatRequest(messages=MESSAGES, options=WatsonxChatOptions(temperature=0.1))
    with pytest.raises(InvalidOptionError):
        build_request_body(request)


def test_create_client_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        create_client("nope")


def test_chat_model_exposes_defaults(granite_options: WatsonxChatOptions) -> None:
    model = WatsonxChatModel(MockClient(), granite_options)
    assert model.default_options.model == "ibm/granite-3-3-8b-instruct"
    assert model.default_options.temperature == 0.7


@pytest.mark.asyncio
async def test_chat_model_call(granite_options: WatsonxChatOptions) -> None:
    client = MockClient(reply="Hello! How can I help you today?")
    model = WatsonxChatModel(client, granite_options, project_id="p-1")

    response = await model.call(MESSAGES)

    assert response.text == "Hello! How can I help you today?"
    assert response.finish_reason == "stop"
    assert response.model_returned == "ibm/granite-3-3-8b-instruct"
    assert len(client.requests) == 1
    body = client.requests[0]
    assert body["model_id"] == "ibm/granite-3-3-8b-instruct"
    assert body["max_tokens"] == 1024
    assert body["logprobs"] is False
    assert body["stop"] == []
    assert body["project_id"] == "p-1"


@pytest.mark.asyncio
async def test_chat_model_runtime_options_win(granite_options: WatsonxChatOptions) -> None:
    client = MockClient()
    model = WatsonxChatModel(client, granite_options)

    runtime = WatsonxChatOptions.builder().model("custom-model").temperature(0.8).build()
    response = await model.call(MESSAGES, runtime)

    body = client.requests[0]
    assert body["model_id"] == "custom-model"
    assert body["temperature"] == 0.8
    assert body["top_p"] == 1.0
    assert response.model_requested == "custom-model"
    assert granite_options.model == "ibm/granite-3-3-8b-instruct"


@pytest.mark.asyncio
async def test_chat_model_advertises_callbacks(granite_options: WatsonxChatOptions) -> None:
    definition = TextChatParameterTool(
        function=TextChatParameterFunction(name="get_weather", parameters={"type": "object"})
    )
    callback = FunctionToolCallback(definition=definition, handler=lambda arguments, context: "sunny")
    client = MockClient()
    model = WatsonxChatModel(client, granite_options)

    await model.call(MESSAGES, WatsonxChatOptions.builder().tool_callbacks(callback).build())

    tools = client.requests[0]["tools"]
    assert [tool["function"]["name"] for tool in tools] == ["get_weather"]
    assert granite_options.tools is None


@pytest.mark.asyncio
async def test_chat_model_propagates_client_errors(granite_options: WatsonxChatOptions) -> None:
    error = WatsonxError(status_code=500, response_text="boom", request_id="r-1", request={})
    model = WatsonxChatModel(MockClient(error=error), granite_options)
    with pytest.raises(WatsonxError):
        await model.call(MESSAGES)


def _watsonx_transport(seen: list[httpx.Request], chat_status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/identity/token":
            return httpx.Response(200, json={"access_token": "token-1", "expires_in": 3600})
        if request.url.path == "/ml/v1/text/chat":
            if chat_status != 200:
                return httpx.Response(chat_status, text="bad request", headers={"x-request-id": "r-9"})
            return httpx.Response(
                200,
                json={
                    "id": "chat-1",
                    "model_id": "ibm/granite-3-3-8b-instruct",
                    "choices": [
                        {
                            "index": 0,
                            "message": {"role": "assistant", "content": "Hi there"},
                            "finish_reason": "stop",
                        }
                    ],
                    "usage": {"prompt_tokens": 10, "completion_tokens": 15, "total_tokens": 25},
                },
                headers={"x-request-id": "r-1"},
            )
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_watsonx_client_round_trip(granite_options: WatsonxChatOptions) -> None:
    seen: list[httpx.Request] = []
    settings = WatsonxSettings(api_key="key-1", project_id="p-1")
    client = WatsonxClient(settings=settings, transport=_watsonx_transport(seen))
    model = WatsonxChatModel(client, granite_options, project_id=settings.project_id)

    async with client:
        response = await model.call(MESSAGES)
        await model.call(MESSAGES)

    assert response.text == "Hi there"
    assert response.request_id == "r-1"
    assert response.usage == {"prompt_tokens": 10, "completion_tokens": 15, "total_tokens": 25}

    token_calls = [request for request in seen if request.url.path == "/identity/token"]
    chat_calls = [request for request in seen if request.url.path == "/ml/v1/text/chat"]
    assert len(token_calls) == 1
    assert len(chat_calls) == 2
    assert chat_calls[0].headers["Authorization"] == "Bearer token-1"
    assert chat_calls[0].url.params["version"] == settings.api_version
    sent = json.loads(chat_calls[0].content)
    assert sent["model_id"] == "ibm/granite-3-3-8b-instruct"
    assert sent["project_id"] == "p-1"


@pytest.mark.asyncio
async def test_watsonx_client_raises_on_error_status(granite_options: WatsonxChatOptions) -> None:
    seen: list[httpx.Request] = []
    client = WatsonxClient(settings=WatsonxSettings(api_key="key-1"), transport=_watsonx_transport(seen, 400))
    model = WatsonxChatModel(client, granite_options)

    async with client:
        with pytest.raises(WatsonxError) as excinfo:
            await model.call(MESSAGES)

    assert excinfo.value.status_code == 400
    assert excinfo.value.request_id == "r-9"
    assert "Authorization" not in excinfo.value.request["headers"]


def test_watsonx_client_requires_api_key() -> None:
    with pytest.raises(ValueError):
        WatsonxClient(settings=WatsonxSettings(api_key=None))
