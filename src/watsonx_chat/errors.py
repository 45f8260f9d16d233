"""Error types raised by watsonx_chat."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class InvalidOptionError(ValueError):
    """An option value or combination of values was rejected at assignment."""


class OptionsSerializationError(RuntimeError):
    """The options could not be flattened into a wire mapping."""


@dataclass
class WatsonxError(RuntimeError):
    status_code: int
    response_text: str
    request_id: str | None
    request: dict[str, Any]

    def __str__(self) -> str:
        return f"WatsonxError(status={self.status_code}, request_id={self.request_id})"
