"""Mock client for offline testing."""

from __future__ import annotations

import hashlib
import json
from typing import Any


class MockClient:
    def __init__(self, *, reply: str | None = None, error: Exception | None = None) -> None:
        self._reply = reply
        self._error = error
        self.requests: list[dict[str, Any]] = []

    async def chat(self, body: dict[str, Any]) -> tuple[dict[str, Any], str | None]:
        self.requests.append(body)
        if self._error is not None:
            raise self._error

        model = body.get("model_id", "mock")
        text = self._reply if self._reply is not None else _mock_text(body, model)
        payload = {
            "id": "mock",
            "model_id": model,
            "created": 0,
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": text},
                    "finish_reason": "stop",
                }
            ],
            "usage": _mock_usage(body, text),
        }
        return payload, None

    async def aclose(self) -> None:
        return


def _mock_text(body: dict[str, Any], model: str) -> str:
    digest = hashlib.sha256(json.dumps(body, sort_keys=True, default=str).encode("utf-8")).hexdigest()
    return f"Mock reply {digest[:8]} from {model}."


def _mock_usage(body: dict[str, Any], text: str) -> dict[str, Any]:
    prompt_text = " ".join(str(message) for message in body.get("messages", []))
    prompt_tokens = max(1, len(prompt_text) // 4)
    completion_tokens = max(1, len(text) // 4)
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }
