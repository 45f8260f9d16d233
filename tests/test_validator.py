from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from watsonx_chat.cli import app
from watsonx_chat.config import options_from_dict
from watsonx_chat.validation import load_and_validate_options, validate_options_dict

runner = CliRunner()


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_options_from_dict_accepts_wire_and_attribute_keys() -> None:
    options = options_from_dict(
        {
            "model_id": "ibm/granite-3-3-8b-instruct",
            "stop": ["END"],
            "max_completion_tokens": 256,
            "tool_choice": {"type": "function", "function": {"name": "get_weather"}},
            "tools": [{"type": "function", "function": {"name": "get_weather"}}],
            "tool_names": ["get_weather"],
            "logprobs": True,
            "top_logprobs": 2,
            "decodingMethod": "greedy",
        }
    )

    assert options.model == "ibm/granite-3-3-8b-instruct"
    assert options.stop_sequences == ["END"]
    assert options.max_completion_tokens == 256
    assert options.tool_choice.function.name == "get_weather"
    assert options.tools[0].name == "get_weather"
    assert options.tool_names == {"get_weather"}
    assert options.top_logprobs == 2
    assert options.to_wire_map()["decoding_method"] == "greedy"


def test_validate_reports_invariant_violations() -> None:
    result = validate_options_dict({"model_id": "m", "top_logprobs": 3})
    assert result.options is None
    assert any("logprobs" in issue.message for issue in result.errors)

    result = validate_options_dict({"model_id": "m", "time_limit": 0})
    assert [issue.path for issue in result.errors] == ["time_limit"]


def test_validate_warns_on_both_token_limits() -> None:
    result = validate_options_dict({"model_id": "m", "max_tokens": 10, "max_completion_tokens": 20})
    assert not result.errors
    assert result.options is not None
    assert [issue.path for issue in result.warnings] == ["max_tokens"]


def test_load_rejects_non_object(tmp_path: Path) -> None:
    result = load_and_validate_options(_write(tmp_path / "list.json", [1, 2]))
    assert result.errors and result.options is None

    missing = load_and_validate_options(tmp_path / "missing.json")
    assert missing.errors[0].message.startswith("Options file not found")


def test_validator_exit_codes(tmp_path: Path) -> None:
    valid_path = _write(tmp_path / "valid.json", {"model_id": "ibm/granite-3-3-8b-instruct", "temperature": 0.5})
    result_valid = runner.invoke(app, ["options", "validate", "--path", str(valid_path)])
    assert result_valid.exit_code == 0

    invalid_path = _write(tmp_path / "invalid.json", {"temperature": "hot"})
    result_invalid = runner.invoke(app, ["options", "validate", "--path", str(invalid_path)])
    assert result_invalid.exit_code == 1


def test_show_prints_wire_keys(tmp_path: Path) -> None:
    path = _write(tmp_path / "options.json", {"model": "test-model", "top_p": 0.9, "customFlag": True})
    result = runner.invoke(app, ["options", "show", "--path", str(path)])
    assert result.exit_code == 0
    assert "model_id" in result.output
    assert "custom_flag" in result.output


def test_dry_run_needs_no_network() -> None:
    result = runner.invoke(app, ["chat", "dry-run"])
    assert result.exit_code == 0
    assert "model_id" in result.output


def test_send_with_mock_client(monkeypatch) -> None:
    monkeypatch.delenv("WATSONX_AI_API_KEY", raising=False)
    result = runner.invoke(app, ["chat", "send", "Hello", "--mock"])
    assert result.exit_code == 0
    assert "Mock reply" in result.output


def test_send_without_key_fails(monkeypatch) -> None:
    monkeypatch.delenv("WATSONX_AI_API_KEY", raising=False)
    result = runner.invoke(app, ["chat", "send", "Hello"])
    assert result.exit_code == 1


def test_tool_choice_string_points_to_tool_choice_option() -> None:
    result = validate_options_dict({"model_id": "m", "tool_choice": "auto"})
    assert result.options is None
    assert [issue.path for issue in result.errors] == ["tool_choice"]
    assert "tool_choice_option" in result.errors[0].message


def test_malformed_tool_entries_are_errors() -> None:
    result = validate_options_dict({"model_id": "m", "tools": ["get_weather"]})
    assert result.options is None
    assert result.errors

    result = validate_options_dict({"model_id": "m", "tool_choice": {"function": "get_weather"}})
    assert result.options is None
    assert result.errors


def test_validator_rejects_string_tool_choice(tmp_path: Path) -> None:
    path = _write(tmp_path / "tool_choice.json", {"model_id": "m", "tool_choice": "auto"})
    for command in (["options", "validate"], ["options", "show"]):
        result = runner.invoke(app, [*command, "--path", str(path)])
        assert result.exit_code == 1
        assert not isinstance(result.exception, AttributeError)
