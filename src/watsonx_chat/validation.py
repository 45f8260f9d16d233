"""Validation helpers for chat option files."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

from watsonx_chat.config import options_from_dict
from watsonx_chat.errors import InvalidOptionError, OptionsSerializationError
from watsonx_chat.options import WatsonxChatOptions


@dataclass(frozen=True)
class ValidationIssue:
    path: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    options: WatsonxChatOptions | None
    errors: list[ValidationIssue]
    warnings: list[ValidationIssue]


def load_and_validate_options(path: Path) -> ValidationResult:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return ValidationResult(
            options=None,
            errors=[ValidationIssue("options", f"Options file not found: {path}")],
            warnings=[],
        )
    except (OSError, json.JSONDecodeError) as exc:
        return ValidationResult(
            options=None,
            errors=[ValidationIssue("options", f"Invalid JSON: {exc}")],
            warnings=[],
        )
    if not isinstance(raw, dict):
        return ValidationResult(
            options=None,
            errors=[ValidationIssue("options", "Options must be a JSON object.")],
            warnings=[],
        )
    return validate_options_dict(raw)


def validate_options_dict(data: dict[str, Any]) -> ValidationResult:
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    model = data.get("model_id", data.get("model"))
    if model is None:
        warnings.append(ValidationIssue("model_id", "No model id; the chat model default will be used."))
    elif not isinstance(model, str) or not model.strip():
        errors.append(ValidationIssue("model_id", "model_id must be a non-empty string."))

    _require_number(data.get("temperature"), "temperature", errors)
    _require_number(data.get("top_p"), "top_p", errors)
    for key in ("presence_penalty", "frequency_penalty"):
        value = data.get(key)
        _require_number(value, key, errors)
        if _is_number(value) and not -2 <= value <= 2:
            warnings.append(ValidationIssue(key, f"{key} is usually within [-2, 2]."))
    for key in ("seed", "n", "max_tokens", "max_completion_tokens", "top_logprobs"):
        _require_int(data.get(key), key, errors)
    _require_positive_int(data.get("time_limit"), "time_limit", errors)

    stop = data.get("stop")
    if stop is not None and (not isinstance(stop, list) or not all(isinstance(item, str) for item in stop)):
        errors.append(ValidationIssue("stop", "stop must be a list of strings."))

    tool_choice = data.get("tool_choice")
    if isinstance(tool_choice, str):
        errors.append(
            ValidationIssue(
                "tool_choice",
                f"tool_choice must be an object naming a function; use tool_choice_option for '{tool_choice}'.",
            )
        )
    tools = data.get("tools")
    if tools is not None and not isinstance(tools, list):
        errors.append(ValidationIssue("tools", "tools must be a list of tool objects."))

    if data.get("max_tokens") is not None and data.get("max_completion_tokens") is not None:
        warnings.append(
            ValidationIssue(
                "max_tokens",
                "Both max_tokens and max_completion_tokens are set; max_completion_tokens takes precedence.",
            )
        )
    if data.get("tool_choice") is not None and data.get("tool_choice_option") is not None:
        warnings.append(
            ValidationIssue("tool_choice_option", "tool_choice forces a tool; tool_choice_option is advisory.")
        )

    if errors:
        return ValidationResult(options=None, errors=errors, warnings=warnings)

    try:
        options = options_from_dict(data)
        options.to_wire_map()
    except InvalidOptionError as exc:
        errors.append(ValidationIssue("options", str(exc)))
    except OptionsSerializationError as exc:
        errors.append(ValidationIssue("additional", str(exc)))
    except (TypeError, ValueError) as exc:
        errors.append(ValidationIssue("options", f"Invalid option value: {exc}"))
    if errors:
        return ValidationResult(options=None, errors=errors, warnings=warnings)
    return ValidationResult(options=options, errors=errors, warnings=warnings)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_number(value: Any, path: str, errors: list[ValidationIssue]) -> None:
    if value is not None and not _is_number(value):
        errors.append(ValidationIssue(path, f"{path} must be a number."))


def _require_int(value: Any, path: str, errors: list[ValidationIssue]) -> None:
    if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
        errors.append(ValidationIssue(path, f"{path} must be an integer."))


def _require_positive_int(value: Any, path: str, errors: list[ValidationIssue]) -> None:
    if value is None:
        return
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        errors.append(ValidationIssue(path, f"{path} must be a positive integer."))
