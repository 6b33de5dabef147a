"""Main entry point for the gengateway command line."""

import asyncio
import json
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from gengateway._version import __version__
from gengateway.cli.helpers import get_rich_toolkit
from gengateway.config.settings import ConfigurationError, Settings
from gengateway.core.errors import GatewayError
from gengateway.core.logging import get_logger, setup_logging
from gengateway.formatters.selector import TRANSLATOR_CLASSES, resolve_api_format
from gengateway.models.canonical import (
    CanonicalRequest,
    CanonicalResponse,
    Content,
    GenerationConfig,
    Part,
)
from gengateway.models.types import ApiFormat
from gengateway.services.content_generator import CustomApiContentGenerator


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        toolkit = get_rich_toolkit()
        toolkit.print(f"gengateway {__version__}", tag="version")
        raise typer.Exit()


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

logger = get_logger(__name__)


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Multi-format generation gateway for OpenAI, Anthropic and Qwen backends."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


def _fail(message: str) -> NoReturn:
    toolkit = get_rich_toolkit()
    toolkit.print(message, tag="error")
    raise typer.Exit(1)


def _load_settings(ctx: typer.Context) -> Settings:
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    try:
        settings = Settings.from_config(config_path)
    except ConfigurationError as e:
        _fail(str(e))

    setup_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
    )
    return settings


def _build_request(
    settings: Settings,
    prompt: str,
    model: str | None = None,
    system: str | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> CanonicalRequest:
    return CanonicalRequest(
        model=model or settings.api.model,
        contents=[Content(role="user", parts=[Part.from_text(prompt)])],
        system_instruction=system,
        config=GenerationConfig(
            max_output_tokens=max_tokens, temperature=temperature
        ),
    )


def _print_response(console: Console, response: CanonicalResponse) -> None:
    toolkit = get_rich_toolkit()
    if response.text:
        console.print(response.text, markup=False, highlight=False)
    for call in response.function_calls:
        toolkit.print(f"{call.name} {json.dumps(call.args)}", tag="tool")
    if response.finish_reason is not None:
        toolkit.print(response.finish_reason.value, tag="finish")
    if response.usage is not None:
        toolkit.print(
            f"prompt={response.usage.prompt_token_count} "
            f"completion={response.usage.candidates_token_count} "
            f"total={response.usage.total_token_count}",
            tag="usage",
        )


async def _generate(
    settings: Settings, request: CanonicalRequest, stream: bool, console: Console
) -> None:
    async with CustomApiContentGenerator.from_settings(settings) as generator:
        if not stream:
            _print_response(console, await generator.generate_content(request))
            return

        toolkit = get_rich_toolkit()
        async for chunk in generator.generate_content_stream(request):
            if chunk.done:
                console.print()
                toolkit.print("done", tag="finish")
                continue
            if chunk.text:
                console.print(chunk.text, end="", markup=False, highlight=False)
            for call in chunk.function_calls:
                console.print()
                toolkit.print(f"{call.name} {json.dumps(call.args)}", tag="tool")


@app.command()
def generate(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="User prompt"),
    model: str | None = typer.Option(
        None, "--model", "-m", help="Model identifier (defaults to api.model)"
    ),
    system: str | None = typer.Option(
        None, "--system", "-s", help="System instruction"
    ),
    stream: bool = typer.Option(False, "--stream", help="Stream the response"),
    max_tokens: int | None = typer.Option(
        None, "--max-tokens", min=1, help="Maximum output tokens"
    ),
    temperature: float | None = typer.Option(
        None, "--temperature", "-t", help="Sampling temperature"
    ),
) -> None:
    """Send a prompt to the configured backend and print the answer."""
    settings = _load_settings(ctx)
    request = _build_request(settings, prompt, model, system, max_tokens, temperature)
    console = Console(soft_wrap=True)

    try:
        asyncio.run(_generate(settings, request, stream, console))
    except GatewayError as e:
        logger.debug("cli_generate_failed", error_type=type(e).__name__)
        _fail(str(e))


@app.command(name="count-tokens")
def count_tokens(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Text to estimate"),
) -> None:
    """Estimate the token count of a prompt (characters / 4, rounded up)."""
    settings = _load_settings(ctx)
    request = _build_request(settings, prompt)

    async def _count() -> int:
        async with CustomApiContentGenerator.from_settings(settings) as generator:
            return (await generator.count_tokens(request)).total_tokens

    toolkit = get_rich_toolkit()
    toolkit.print(str(asyncio.run(_count())), tag="tokens")


@app.command(name="resolve-format")
def resolve_format(
    ctx: typer.Context,
    base_url: str | None = typer.Option(
        None, "--base-url", help="Endpoint to check (defaults to api.base_url)"
    ),
    api_format: ApiFormat | None = typer.Option(
        None, "--format", help="Configured format (defaults to api.format)"
    ),
) -> None:
    """Show which wire protocol and URL a call would use."""
    settings = _load_settings(ctx)
    endpoint = base_url or settings.api.base_url
    configured = api_format or settings.api.format

    resolved = resolve_api_format(configured, endpoint)
    translator = TRANSLATOR_CLASSES[resolved]()

    toolkit = get_rich_toolkit()
    toolkit.print(resolved.value, tag="format")
    toolkit.print(translator.endpoint_url(endpoint), tag="endpoint")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
