"""Click CLI: config loading, provider wiring, and the discuss/models/check/serve commands."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import TextIO

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from wallbounce.dialogue import DialogueEngine, ParticipantUnavailableError
from wallbounce.healthcheck import run_health_checks
from wallbounce.models import PartialFailure, SessionParameters
from wallbounce.output import print_outcome, save_transcript
from wallbounce.server import build_engine, build_providers, build_tool_handlers, run_server
from wallbounce.validation import ValidationError

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

EXIT_PARTIAL = 2


def _setup_logging(verbose: bool, stream: TextIO | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    if stream is not None:
        # MCP stdio: stdout is reserved for the protocol
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            stream=stream,
        )
        return
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _load(ctx: click.Context) -> AppConfig:
    try:
        return load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        ctx.exit(1)


@click.group()
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Wall Bounce -- let a GPT model and a Gemini model discuss a topic."""
    load_dotenv()
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("topic")
@click.option("--rounds", default=None, type=int, help="Number of rounds, 1-10 (default: from config)")
@click.option("--temperature", default=None, type=float, help="Sampling temperature, 0-2 (default: from config)")
@click.option("--model1", default=None, help="Model for the first participant (default: from config)")
@click.option("--model2", default=None, help="Model for the second participant (default: from config)")
@click.option("--output", "output_path", default=None, help="Also save the transcript to this directory")
@click.pass_context
def discuss(
    ctx: click.Context,
    topic: str,
    rounds: int | None,
    temperature: float | None,
    model1: str | None,
    model2: str | None,
    output_path: str | None,
) -> None:
    """Run one wall-bounce discussion on TOPIC.

    Exits 2 when a provider failed mid-discussion; the partial transcript is
    still printed (and saved with --output).

    \b
    Examples:
      wallbounce discuss "Database performance" --rounds 2
      wallbounce discuss "Monorepo vs polyrepo?" --model1 gpt-5 --output ./output
    """
    _setup_logging(ctx.obj["verbose"])
    config = _load(ctx)
    defaults = config.defaults

    providers = build_providers(config)
    engine: DialogueEngine = build_engine(config, providers)
    params = SessionParameters(
        topic=topic,
        first_model=model1 or config.providers[defaults.first_provider].model,
        second_model=model2 or config.providers[defaults.second_provider].model,
        rounds=rounds if rounds is not None else defaults.rounds,
        temperature=temperature if temperature is not None else defaults.temperature,
    )

    console.print(
        f"\n[bold cyan]Wall Bounce[/bold cyan]: {params.first_model} vs {params.second_model}"
    )
    try:
        with console.status("Discussing..."):
            outcome = asyncio.run(engine.run(params))
    except (ParticipantUnavailableError, ValidationError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        ctx.exit(1)

    print_outcome(outcome, params.first_model, params.second_model)

    if output_path:
        saved = save_transcript(outcome.transcript, topic, Path(output_path))
        console.print(f"\n[dim]Saved to: {saved}[/dim]")

    if isinstance(outcome, PartialFailure):
        ctx.exit(EXIT_PARTIAL)


@main.command()
@click.pass_context
def models(ctx: click.Context) -> None:
    """List available OpenAI and Gemini models."""
    _setup_logging(ctx.obj["verbose"])
    handlers = build_tool_handlers(_load(ctx))
    result = asyncio.run(handlers.list_models())
    console.print(result["content"][0]["text"])


@main.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Ping both providers and report which ones respond."""
    _setup_logging(ctx.obj["verbose"])
    config = _load(ctx)
    providers = build_providers(config)

    console.print("\n[bold]Checking providers...[/bold]")
    results = asyncio.run(
        run_health_checks({n: (p, config.providers[n].model) for n, p in providers.items()})
    )

    failed = False
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed = True

    if failed:
        ctx.exit(1)


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP stdio server."""
    _setup_logging(ctx.obj["verbose"], stream=sys.stderr)
    run_server(_load(ctx))


if __name__ == "__main__":
    main()
