"""Tool descriptors sent to the watsonx chat API and the callback protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class TextChatParameterFunction:
    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None
    strict: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            payload["description"] = self.description
        if self.parameters is not None:
            payload["parameters"] = self.parameters
        if self.strict is not None:
            payload["strict"] = self.strict
        return payload


@dataclass(frozen=True)
class TextChatParameterTool:
    function: TextChatParameterFunction
    type: str = "function"

    @property
    def name(self) -> str:
        return self.function.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "function": self.function.to_dict(),
        }


@dataclass(frozen=True)
class TextChatFunctionName:
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass(frozen=True)
class TextChatToolChoiceTool:
    """Forces the model to call one specific tool."""

    function: TextChatFunctionName
    type: str = "function"

    @classmethod
    def for_tool(cls, name: str) -> "TextChatToolChoiceTool":
        return cls(function=TextChatFunctionName(name=name))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "function": self.function.to_dict(),
        }


@runtime_checkable
class ToolCallback(Protocol):
    @property
    def tool_definition(self) -> TextChatParameterTool:
        """Definition advertised to the model."""

    def call(self, arguments: str, tool_context: dict[str, Any] | None = None) -> str:
        """Run the tool with JSON-encoded arguments."""


@dataclass(frozen=True)
class FunctionToolCallback:
    """ToolCallback backed by a plain Python callable."""

    definition: TextChatParameterTool
    handler: Any

    @property
    def tool_definition(self) -> TextChatParameterTool:
        return self.definition

    def call(self, arguments: str, tool_context: dict[str, Any] | None = None) -> str:
        return str(self.handler(arguments, tool_context or {}))
