from __future__ import annotations

import pytest

from watsonx_chat.diagnostics import CollectingSink
from watsonx_chat.options import WatsonxChatOptions


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def granite_options() -> WatsonxChatOptions:
    return (
        WatsonxChatOptions.builder()
        .model("ibm/granite-3-3-8b-instruct")
        .temperature(0.7)
        .top_p(1.0)
        .max_tokens(1024)
        .presence_penalty(0.0)
        .stop_sequences([])
        .logprobs(False)
        .n(1)
        .build()
    )
