"""Advisory diagnostics emitted by option objects."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class DiagnosticSink(Protocol):
    def warning(self, message: str) -> None:
        """Record a non-fatal advisory."""


class LoggerSink:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("watsonx_chat")

    def warning(self, message: str) -> None:
        self._logger.warning(message)


class CollectingSink:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def warning(self, message: str) -> None:
        self.messages.append(message)


DEFAULT_SINK = LoggerSink()
