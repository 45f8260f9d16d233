"""Connection settings and option loading helpers."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any, Mapping

from watsonx_chat.options import WIRE_FIELDS, WatsonxChatOptions
from watsonx_chat.tools import (
    TextChatFunctionName,
    TextChatParameterFunction,
    TextChatParameterTool,
    TextChatToolChoiceTool,
)

DEFAULT_BASE_URL = "https://us-south.ml.cloud.ibm.com"
DEFAULT_IAM_URL = "https://iam.cloud.ibm.com"
DEFAULT_API_VERSION = "2024-05-31"
DEFAULT_MODEL = "ibm/granite-3-3-8b-instruct"

_WIRE_TO_ATTRIBUTE = {wire_key: attribute for attribute, wire_key in WIRE_FIELDS}
_ATTRIBUTES = {attribute for attribute, _ in WIRE_FIELDS} | {
    "tool_names",
    "internal_tool_execution_enabled",
    "tool_context",
}


@dataclass(frozen=True)
class WatsonxSettings:
    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    project_id: str | None = None
    space_id: str | None = None
    api_version: str = DEFAULT_API_VERSION
    iam_url: str = DEFAULT_IAM_URL
    timeout_s: float = 60.0

    @classmethod
    def from_env(cls) -> "WatsonxSettings":
        return cls(
            base_url=os.getenv("WATSONX_AI_URL", DEFAULT_BASE_URL),
            api_key=os.getenv("WATSONX_AI_API_KEY") or None,
            project_id=os.getenv("WATSONX_AI_PROJECT_ID") or None,
            space_id=os.getenv("WATSONX_AI_SPACE_ID") or None,
            api_version=os.getenv("WATSONX_AI_API_VERSION", DEFAULT_API_VERSION),
            iam_url=os.getenv("WATSONX_AI_IAM_URL", DEFAULT_IAM_URL),
            timeout_s=float(os.getenv("WATSONX_AI_TIMEOUT_S", "60")),
        )

    def to_dict(self) -> dict:
        return {
            "base_url": self.base_url,
            "api_key": "***" if self.api_key else None,
            "project_id": self.project_id,
            "space_id": self.space_id,
            "api_version": self.api_version,
            "iam_url": self.iam_url,
            "timeout_s": self.timeout_s,
        }


def _function_block(data: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{path} entries must be objects with a \"function\" block.")
    function = data.get("function") or {}
    if not isinstance(function, Mapping):
        raise ValueError(f"{path} \"function\" must be an object.")
    return function


def parse_tool(data: Mapping[str, Any]) -> TextChatParameterTool:
    function = _function_block(data, "tools")
    name = function.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("tool function name is required.")
    return TextChatParameterTool(
        function=TextChatParameterFunction(
            name=name,
            description=function.get("description"),
            parameters=function.get("parameters"),
            strict=function.get("strict"),
        ),
        type=str(data.get("type", "function")),
    )


def parse_tool_choice(data: Mapping[str, Any]) -> TextChatToolChoiceTool:
    function = _function_block(data, "tool_choice")
    name = function.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("tool_choice function name is required.")
    return TextChatToolChoiceTool(
        function=TextChatFunctionName(name=name),
        type=str(data.get("type", "function")),
    )


def options_from_dict(data: Mapping[str, Any]) -> WatsonxChatOptions:
    """Build options from a JSON object keyed by wire or attribute names.

    Keys that match neither are kept as additional properties.
    """
    values: dict[str, Any] = {}
    additional: dict[str, Any] = {}
    for key, value in data.items():
        attribute = _WIRE_TO_ATTRIBUTE.get(key, key)
        if attribute not in _ATTRIBUTES:
            additional[key] = value
            continue
        if value is None:
            continue
        if attribute == "tools":
            value = [parse_tool(item) for item in value]
        elif attribute == "tool_choice":
            value = parse_tool_choice(value)
        elif attribute == "tool_names":
            value = set(value)
        values[attribute] = value
    return WatsonxChatOptions(**values, additional=additional)
