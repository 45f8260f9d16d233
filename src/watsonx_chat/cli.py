"""CLI entrypoint for watsonx-chat."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import typer

from watsonx_chat.config import DEFAULT_MODEL, WatsonxSettings
from watsonx_chat.diagnostics import CollectingSink
from watsonx_chat.env import load_dotenv
from watsonx_chat.errors import InvalidOptionError, OptionsSerializationError, WatsonxError
from watsonx_chat.llm.client import build_request_body, create_client
from watsonx_chat.llm.model import WatsonxChatModel
from watsonx_chat.llm.types import ChatRequest
from watsonx_chat.options import WatsonxChatOptions
from watsonx_chat.tools import TextChatToolChoiceTool
from watsonx_chat.ui.render import (
    render_banner,
    render_error,
    render_info,
    render_json,
    render_step_header,
    render_summary_table,
    render_validation_panel,
    render_warning,
)
from watsonx_chat.validation import load_and_validate_options

app = typer.Typer(add_completion=False, help="watsonx.ai chat options toolkit.")
options_app = typer.Typer(add_completion=False, help="Chat option files: validation and preview.")
chat_app = typer.Typer(add_completion=False, help="Chat request utilities.")
app.add_typer(options_app, name="options")
app.add_typer(chat_app, name="chat")


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """watsonx.ai chat options CLI."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@options_app.command("validate")
def options_validate(path: str = typer.Option("watsonx.options.json", "--path", "-p")) -> None:
    """Validate a chat options file without sending a request."""
    result = load_and_validate_options(Path(path))

    errors = [f"{issue.path}: {issue.message}" for issue in result.errors]
    warnings = [f"{issue.path}: {issue.message}" for issue in result.warnings]

    if errors:
        render_validation_panel("INVALID", errors, style="error")
        raise typer.Exit(code=1)

    if warnings:
        render_validation_panel("VALID (with warnings)", warnings, style="warning")
    else:
        render_validation_panel("VALID", ["No issues found."], style="success")


@options_app.command("show")
def options_show(path: str = typer.Option("watsonx.options.json", "--path", "-p")) -> None:
    """Print the wire mapping produced by a chat options file."""
    result = load_and_validate_options(Path(path))
    if result.errors or result.options is None:
        render_validation_panel("INVALID", [f"{i.path}: {i.message}" for i in result.errors], style="error")
        raise typer.Exit(code=1)

    options = result.options
    render_json(options.to_wire_map())
    render_summary_table(
        {
            "Model": options.model or "(default)",
            "Tool names": ", ".join(sorted(options.tool_names)) or "none",
            "Tool context keys": ", ".join(sorted(options.tool_context)) or "none",
            "Internal tool execution": _tri_state(options.internal_tool_execution_enabled),
            "Additional keys": ", ".join(sorted(options.additional_properties)) or "none",
        },
        title="Options",
    )
    for issue in result.warnings:
        render_warning(f"{issue.path}: {issue.message}")


@chat_app.command("dry-run")
def chat_dry_run() -> None:
    """Build and display watsonx chat request bodies without network access."""
    default_model = os.getenv("WATSONX_AI_MODEL", DEFAULT_MODEL)
    render_banner("watsonx-chat", "Chat request preview")
    project_id = os.getenv("WATSONX_AI_PROJECT_ID", "<project-id>")
    sink = CollectingSink()
    messages = [{"role": "user", "content": "Say hello in one sentence."}]

    cases = [
        (
            "Defaults",
            WatsonxChatOptions.builder()
            .model(default_model)
            .temperature(0.7)
            .top_p(1.0)
            .max_tokens(1024)
            .diagnostics(sink)
            .build(),
            {},
        ),
        (
            "Log probabilities with top_logprobs",
            WatsonxChatOptions.builder()
            .model(default_model)
            .logprobs(True)
            .top_logprobs(3)
            .time_limit(10_000)
            .build(),
            {},
        ),
        (
            "Forced tool with additional properties",
            WatsonxChatOptions.builder()
            .model(default_model)
            .tool_choice(TextChatToolChoiceTool.for_tool("get_weather"))
            .additional_property("repetitionPenalty", 1.1)
            .build(),
            {"model": "ignored", "temperature": None, "top_p": 0.5},
        ),
    ]

    for index, (title, options, extra_body) in enumerate(cases, start=1):
        request = ChatRequest(messages=messages, options=options, extra_body=extra_body)
        body, overrides = build_request_body(request, project_id=project_id)
        render_step_header(index, len(cases), title, "Request body with override tracking.")
        render_json(body)
        if overrides:
            render_warning(f"Overrides applied: {', '.join(sorted(overrides))}")
        else:
            render_info("No overrides detected.")

    render_info(f"top_k: {cases[0][1].top_k}")
    for message in sink.messages:
        render_warning(message)


@chat_app.command("send")
def chat_send(
    prompt: str = typer.Argument(..., help="User message to send."),
    path: str = typer.Option("", "--path", "-p", help="Optional chat options file."),
    mock: bool = typer.Option(False, "--mock", help="Use the offline mock client."),
) -> None:
    """Send one chat request and print the reply."""
    defaults = WatsonxChatOptions.builder().model(os.getenv("WATSONX_AI_MODEL", DEFAULT_MODEL)).build()
    runtime = None
    if path:
        result = load_and_validate_options(Path(path))
        if result.errors or result.options is None:
            render_validation_panel("INVALID", [f"{i.path}: {i.message}" for i in result.errors], style="error")
            raise typer.Exit(code=1)
        runtime = result.options

    settings = WatsonxSettings.from_env()
    if not mock and not settings.api_key:
        render_error("WATSONX_AI_API_KEY is not set. Use --mock for an offline reply.")
        raise typer.Exit(code=1)

    try:
        response = asyncio.run(_send(prompt, defaults, runtime, settings, mock=mock))
    except (InvalidOptionError, OptionsSerializationError, WatsonxError) as exc:
        render_error(str(exc))
        raise typer.Exit(code=1)

    typer.echo(response.text)
    render_summary_table(
        {
            "Model": response.model_returned or "n/a",
            "Finish reason": response.finish_reason or "n/a",
            "Latency (ms)": str(response.latency_ms),
            "Request id": response.request_id or "n/a",
        },
        title="Response",
    )


async def _send(prompt, defaults, runtime, settings: WatsonxSettings, *, mock: bool):
    client = create_client("mock") if mock else create_client("watsonx", settings=settings)
    try:
        model = WatsonxChatModel(
            client,
            defaults,
            project_id=settings.project_id,
            space_id=settings.space_id,
        )
        return await model.call([{"role": "user", "content": prompt}], runtime)
    finally:
        await client.aclose()


def _tri_state(value: bool | None) -> str:
    if value is None:
        return "unset"
    return "yes" if value else "no"


def main() -> None:
    app()


if __name__ == "__main__":
    main()
