"""watsonx chat client interfaces and implementations."""

from watsonx_chat.llm.client import ChatClient, build_request_body, create_client
from watsonx_chat.llm.mock import MockClient
from watsonx_chat.llm.model import WatsonxChatModel
from watsonx_chat.llm.types import ChatRequest, ChatResponse
from watsonx_chat.llm.watsonx import WatsonxClient

__all__ = [
    "ChatClient",
    "ChatRequest",
    "ChatResponse",
    "MockClient",
    "WatsonxChatModel",
    "WatsonxClient",
    "build_request_body",
    "create_client",
]
