"""Request options and a thin chat client for the watsonx.ai chat API."""

from watsonx_chat.errors import InvalidOptionError, OptionsSerializationError, WatsonxError
from watsonx_chat.options import (
    WatsonxChatOptions,
    WatsonxChatOptionsBuilder,
    filter_non_supported_fields,
    to_snake_case,
)

__all__ = [
    "InvalidOptionError",
    "OptionsSerializationError",
    "WatsonxChatOptions",
    "WatsonxChatOptionsBuilder",
    "WatsonxError",
    "filter_non_supported_fields",
    "to_snake_case",
]
