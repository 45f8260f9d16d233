"""Request options for the watsonx.ai chat API."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import json
import re
from typing import Any, Callable, Iterable, Mapping

from watsonx_chat.diagnostics import DEFAULT_SINK, DiagnosticSink
from watsonx_chat.errors import InvalidOptionError, OptionsSerializationError
from watsonx_chat.tools import TextChatParameterTool, TextChatToolChoiceTool, ToolCallback

TOP_LOGPROBS_MESSAGE = "logprobs cannot be null/false when using topLogprobs."
TOP_K_ADVISORY = "watsonx.ai does not support top_k, returning None for compatibility"

# Attribute name -> wire key. Fields not listed here are never serialized.
WIRE_FIELDS: tuple[tuple[str, str], ...] = (
    ("temperature", "temperature"),
    ("top_p", "top_p"),
    ("stop_sequences", "stop"),
    ("presence_penalty", "presence_penalty"),
    ("frequency_penalty", "frequency_penalty"),
    ("seed", "seed"),
    ("model", "model_id"),
    ("tools", "tools"),
    ("tool_choice_option", "tool_choice_option"),
    ("tool_choice", "tool_choice"),
    ("logit_bias", "logit_bias"),
    ("logprobs", "logprobs"),
    ("top_logprobs", "top_logprobs"),
    ("max_tokens", "max_tokens"),
    ("max_completion_tokens", "max_completion_tokens"),
    ("n", "n"),
    ("time_limit", "time_limit"),
)

_SNAKE_BOUNDARY = re.compile(r"([a-z])([A-Z]+)")
_COLLECTION_FIELDS = {"tool_callbacks", "tool_names", "tool_context", "additional"}


def to_snake_case(name: str) -> str:
    return _SNAKE_BOUNDARY.sub(r"\1_\2", name).lower()


def filter_non_supported_fields(options: Mapping[str, Any]) -> dict[str, Any]:
    """Drop the internal ``model`` key and every None-valued entry."""
    return {key: value for key, value in options.items() if key != "model" and value is not None}


def _check_top_logprobs(logprobs: bool | None, top_logprobs: int | None) -> None:
    if top_logprobs is not None and logprobs is not True:
        raise InvalidOptionError(TOP_LOGPROBS_MESSAGE)


def _check_time_limit(time_limit: int | None) -> None:
    if time_limit is not None and time_limit <= 0:
        raise InvalidOptionError(f"Time limit must be greater than 0, got {time_limit}.")


def _check_tool_callbacks(tool_callbacks: Iterable[ToolCallback] | None) -> list[ToolCallback]:
    if tool_callbacks is None:
        raise InvalidOptionError("tool_callbacks cannot be None.")
    callbacks = tool_callbacks if isinstance(tool_callbacks, list) else list(tool_callbacks)
    if any(callback is None for callback in callbacks):
        raise InvalidOptionError("tool_callbacks cannot contain None elements.")
    return callbacks


def _check_tool_name(name: str | None) -> None:
    if name is None:
        raise InvalidOptionError("tool_names cannot contain None elements.")
    if not isinstance(name, str) or not name.strip():
        raise InvalidOptionError("tool_names cannot contain empty elements.")


def _check_tool_names(tool_names: Iterable[str] | None) -> set[str]:
    if tool_names is None:
        raise InvalidOptionError("tool_names cannot be None.")
    names = tool_names if isinstance(tool_names, set) else set(tool_names)
    for name in names:
        _check_tool_name(name)
    return names


def _checked_top_logprobs(options: "WatsonxChatOptions", value: int | None) -> int | None:
    _check_top_logprobs(getattr(options, "logprobs", None), value)
    return value


def _checked_time_limit(_options: "WatsonxChatOptions", value: int | None) -> int | None:
    _check_time_limit(value)
    return value


# Each check returns the value to store.
_ATTRIBUTE_CHECKS: dict[str, Callable[["WatsonxChatOptions", Any], Any]] = {
    "top_logprobs": _checked_top_logprobs,
    "time_limit": _checked_time_limit,
    "tool_callbacks": lambda _options, value: _check_tool_callbacks(value),
    "tool_names": lambda _options, value: _check_tool_names(value),
}


def _wire_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_wire_value(item) for item in value]
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return value


@dataclass(eq=False)
class WatsonxChatOptions:
    """Options for a single watsonx.ai chat request.

    Plain attributes are read and written directly; assignments to
    ``top_logprobs``, ``time_limit``, ``tool_callbacks`` and ``tool_names``
    are validated and raise :class:`InvalidOptionError` when rejected.

    ``max_tokens`` is kept for backward compatibility. When both it and
    ``max_completion_tokens`` are set, both are sent and the API honours
    ``max_completion_tokens``.
    """

    temperature: float | None = None
    top_p: float | None = None
    stop_sequences: list[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None
    model: str | None = None
    tools: list[TextChatParameterTool] | None = None
    tool_choice_option: str | None = None
    tool_choice: TextChatToolChoiceTool | None = None
    logit_bias: dict[str, float] | None = None
    logprobs: bool | None = None
    top_logprobs: int | None = None
    max_tokens: int | None = None
    max_completion_tokens: int | None = None
    n: int | None = None
    time_limit: int | None = None
    tool_callbacks: list[ToolCallback] = field(default_factory=list)
    tool_names: set[str] = field(default_factory=set)
    internal_tool_execution_enabled: bool | None = None
    tool_context: dict[str, Any] = field(default_factory=dict)
    additional: dict[str, Any] = field(default_factory=dict)
    diagnostics: DiagnosticSink = field(default=DEFAULT_SINK, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:
        check = _ATTRIBUTE_CHECKS.get(name)
        if check is not None:
            value = check(self, value)
        object.__setattr__(self, name, value)

    @staticmethod
    def builder() -> "WatsonxChatOptionsBuilder":
        return WatsonxChatOptionsBuilder()

    @property
    def top_k(self) -> None:
        self.diagnostics.warning(TOP_K_ADVISORY)
        return None

    @property
    def additional_properties(self) -> dict[str, Any]:
        return {to_snake_case(key): value for key, value in self.additional.items()}

    def add_additional_property(self, key: str, value: Any) -> None:
        self.additional[key] = value

    def copy(self) -> "WatsonxChatOptions":
        """Return a new instance carrying the same field values.

        Collections are shared with the source, not duplicated.
        """
        values = {item.name: getattr(self, item.name) for item in fields(self)}
        if values["logprobs"] is not True:
            values["top_logprobs"] = None
        return type(self)(**values)

    def merge(self, runtime: "WatsonxChatOptions | None") -> "WatsonxChatOptions":
        """Overlay per-call options on top of these defaults.

        Runtime scalars win when set. Tool names and callbacks are unioned,
        tool context and additional entries are merged with runtime winning.
        """
        if runtime is None:
            return self.copy()

        values: dict[str, Any] = {}
        for item in fields(self):
            if item.name in _COLLECTION_FIELDS or item.name == "diagnostics":
                continue
            runtime_value = getattr(runtime, item.name)
            values[item.name] = runtime_value if runtime_value is not None else getattr(self, item.name)
        if values["logprobs"] is not True:
            values["top_logprobs"] = None

        callbacks = list(self.tool_callbacks)
        for callback in runtime.tool_callbacks:
            if not any(callback is existing for existing in callbacks):
                callbacks.append(callback)

        values["tool_callbacks"] = callbacks
        values["tool_names"] = set(self.tool_names) | set(runtime.tool_names)
        values["tool_context"] = {**(self.tool_context or {}), **(runtime.tool_context or {})}
        values["additional"] = {**self.additional, **runtime.additional}
        values["diagnostics"] = runtime.diagnostics if runtime.diagnostics is not DEFAULT_SINK else self.diagnostics
        return type(self)(**values)

    def to_wire_map(self) -> dict[str, Any]:
        """Flatten into the watsonx request-body field names.

        Unset fields are omitted. Additional entries are merged under
        snake_case keys and win over modeled fields with the same key.
        """
        payload: dict[str, Any] = {}
        for attribute, wire_key in WIRE_FIELDS:
            value = getattr(self, attribute)
            if attribute == "top_logprobs" and self.logprobs is not True:
                continue
            if value is not None:
                payload[wire_key] = _wire_value(value)
        for key, value in self.additional_properties.items():
            if value is not None:
                payload[key] = _wire_value(value)

        try:
            return json.loads(json.dumps(payload, allow_nan=False))
        except (TypeError, ValueError) as exc:
            raise OptionsSerializationError(f"Unable to serialize chat options: {exc}") from exc

    to_map = to_wire_map


class WatsonxChatOptionsBuilder:
    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._tool_callbacks: list[ToolCallback] = []
        self._tool_names: set[str] = set()
        self._tool_context: dict[str, Any] = {}
        self._additional: dict[str, Any] = {}

    def _set(self, name: str, value: Any) -> "WatsonxChatOptionsBuilder":
        self._values[name] = value
        return self

    def temperature(self, temperature: float | None) -> "WatsonxChatOptionsBuilder":
        return self._set("temperature", temperature)

    def top_p(self, top_p: float | None) -> "WatsonxChatOptionsBuilder":
        return self._set("top_p", top_p)

    def stop_sequences(self, stop_sequences: list[str] | None) -> "WatsonxChatOptionsBuilder":
        return self._set("stop_sequences", stop_sequences)

    def presence_penalty(self, presence_penalty: float | None) -> "WatsonxChatOptionsBuilder":
        return self._set("presence_penalty", presence_penalty)

    def frequency_penalty(self, frequency_penalty: float | None) -> "WatsonxChatOptionsBuilder":
        return self._set("frequency_penalty", frequency_penalty)

    def seed(self, seed: int | None) -> "WatsonxChatOptionsBuilder":
        return self._set("seed", seed)

    def model(self, model: str | None) -> "WatsonxChatOptionsBuilder":
        return self._set("model", model)

    def tools(self, tools: list[TextChatParameterTool] | None) -> "WatsonxChatOptionsBuilder":
        return self._set("tools", tools)

    def tool_choice_option(self, tool_choice_option: str | None) -> "WatsonxChatOptionsBuilder":
        return self._set("tool_choice_option", tool_choice_option)

    def tool_choice(self, tool_choice: TextChatToolChoiceTool | None) -> "WatsonxChatOptionsBuilder":
        return self._set("tool_choice", tool_choice)

    def tool_callbacks(self, *tool_callbacks: ToolCallback) -> "WatsonxChatOptionsBuilder":
        """Append callbacks to the ones already configured."""
        _check_tool_callbacks(tool_callbacks)
        self._tool_callbacks.extend(tool_callbacks)
        return self

    def tool_callback_list(self, tool_callbacks: list[ToolCallback]) -> "WatsonxChatOptionsBuilder":
        """Replace the configured callbacks."""
        self._tool_callbacks = list(_check_tool_callbacks(tool_callbacks))
        return self

    def tool_names(self, tool_names: Iterable[str]) -> "WatsonxChatOptionsBuilder":
        self._tool_names = set(_check_tool_names(tool_names))
        return self

    def tool_name(self, tool_name: str) -> "WatsonxChatOptionsBuilder":
        _check_tool_name(tool_name)
        self._tool_names.add(tool_name)
        return self

    def internal_tool_execution_enabled(self, enabled: bool | None) -> "WatsonxChatOptionsBuilder":
        return self._set("internal_tool_execution_enabled", enabled)

    def tool_context(self, tool_context: Mapping[str, Any]) -> "WatsonxChatOptionsBuilder":
        self._tool_context.update(tool_context)
        return self

    def logit_bias(self, logit_bias: dict[str, float] | None) -> "WatsonxChatOptionsBuilder":
        return self._set("logit_bias", logit_bias)

    def logprobs(self, logprobs: bool | None) -> "WatsonxChatOptionsBuilder":
        return self._set("logprobs", logprobs)

    def top_logprobs(self, top_logprobs: int | None) -> "WatsonxChatOptionsBuilder":
        _check_top_logprobs(self._values.get("logprobs"), top_logprobs)
        return self._set("top_logprobs", top_logprobs)

    def max_tokens(self, max_tokens: int | None) -> "WatsonxChatOptionsBuilder":
        return self._set("max_tokens", max_tokens)

    def max_completion_tokens(self, max_completion_tokens: int | None) -> "WatsonxChatOptionsBuilder":
        return self._set("max_completion_tokens", max_completion_tokens)

    def n(self, n: int | None) -> "WatsonxChatOptionsBuilder":
        return self._set("n", n)

    def time_limit(self, time_limit: int | None) -> "WatsonxChatOptionsBuilder":
        _check_time_limit(time_limit)
        return self._set("time_limit", time_limit)

    def additional_property(self, key: str, value: Any) -> "WatsonxChatOptionsBuilder":
        self._additional[key] = value
        return self

    def additional_properties(self, properties: Mapping[str, Any]) -> "WatsonxChatOptionsBuilder":
        self._additional.update(properties)
        return self

    def diagnostics(self, sink: DiagnosticSink) -> "WatsonxChatOptionsBuilder":
        return self._set("diagnostics", sink)

    def build(self) -> WatsonxChatOptions:
        values = dict(self._values)
        if values.get("logprobs") is not True:
            values.pop("top_logprobs", None)
        return WatsonxChatOptions(
            **values,
            tool_callbacks=list(self._tool_callbacks),
            tool_names=set(self._tool_names),
            tool_context=dict(self._tool_context),
            additional=dict(self._additional),
        )
