"""Main CLI application using Typer."""
import asyncio
import os

import typer
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ..catalog import DEFAULT_PRESET, MODEL_PRESETS, get_preset
from ..client import DEFAULT_RELAY_URL, ChatSession, Message, ProviderSelection, SessionObserver
from ..log import configure_logging, level_name
from ..relay import create_app, load_settings

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="chatrelay",
    help="Multi-provider streaming chat relay with a terminal client",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


class _LiveReply(SessionObserver):
    """Renders the streaming assistant reply into a Rich Live display."""

    def __init__(self, live: Live) -> None:
        self._live = live

    def message_updated(self, message: Message) -> None:
        if message.role == "assistant":
            self._live.update(Markdown(message.content))


def _relay_url(url: str | None) -> str:
    return url or os.getenv("RELAY_URL", DEFAULT_RELAY_URL)


def _selection(preset: str, model: str | None) -> ProviderSelection:
    try:
        selection = ProviderSelection.from_preset(get_preset(preset))
    except KeyError as e:
        console.print(f"[red]Error: {e.args[0]}[/red]")
        raise typer.Exit(code=1)
    if model:
        selection = ProviderSelection(provider=selection.provider, model=model)
    return selection


@app.command()
def serve(
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        help="Interface to bind"
    ),
    port: int = typer.Option(
        8000,
        "--port",
        "-p",
        help="Port to listen on"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="debug, info, warning or error (default: RELAY_LOG_LEVEL or info)"
    ),
):
    """Run the chat relay HTTP server."""
    settings = load_settings()
    try:
        level = level_name(log_level or settings.log_level)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    configure_logging(level)

    relay_app = create_app(settings)
    available = relay_app.state.relay.registry.available
    if not available:
        console.print(
            "[yellow]Warning: no provider API keys configured. "
            "Set OPENAI_API_KEY, ANTHROPIC_API_KEY or XAI_API_KEY.[/yellow]"
        )
    else:
        names = ", ".join(name.value for name in available)
        console.print(f"[dim]Providers: {names}[/dim]")

    console.print(f"[green]Relay listening on http://{host}:{port}[/green]")
    uvicorn.run(relay_app, host=host, port=port, log_level=level)


@app.command()
def chat(
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Relay URL (default: RELAY_URL or http://127.0.0.1:8000)"
    ),
    preset: str = typer.Option(
        DEFAULT_PRESET,
        "--preset",
        "-m",
        help=f"Initial model preset: {', '.join(MODEL_PRESETS)}"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch the interactive TUI chat client."""
    if preset not in MODEL_PRESETS:
        console.print(
            f"[red]Error: Unknown model preset: {preset}. "
            f"Available: {', '.join(MODEL_PRESETS)}[/red]"
        )
        raise typer.Exit(code=1)
    if log_level is not None:
        try:
            log_level = level_name(log_level)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

    async def _chat():
        from ..ui import run_textual_tui

        await run_textual_tui(
            base_url=_relay_url(url),
            preset_key=preset,
            log_level=log_level,
        )
        console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        pass


@app.command()
def ask(
    question: str = typer.Argument(..., help="Message to send"),
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Relay URL (default: RELAY_URL or http://127.0.0.1:8000)"
    ),
    preset: str = typer.Option(
        DEFAULT_PRESET,
        "--preset",
        "-m",
        help=f"Model preset: {', '.join(MODEL_PRESETS)}"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        help="Override the preset's model name"
    ),
    stream: bool = typer.Option(
        True,
        "--stream/--no-stream",
        help="Stream the reply as it is generated"
    ),
):
    """Send a single message to the relay and print the reply."""
    selection = _selection(preset, model)

    async def _ask():
        async with ChatSession(base_url=_relay_url(url), selection=selection) as session:
            if stream:
                with Live(Markdown(""), console=console, refresh_per_second=12) as live:
                    session.set_observer(_LiveReply(live))
                    await session.submit(question, stream=True)
            else:
                with console.status("[dim]Waiting for the relay...[/dim]"):
                    reply = await session.submit(question, stream=False)
                if reply is not None:
                    console.print(Markdown(reply.content))

            if session.error:
                console.print(f"[red]{session.error}[/red]")
                raise typer.Exit(code=1)

            usage = session.usage
            console.print(
                f"\n[dim]{selection.provider.value}/{selection.model} | "
                f"tokens: {usage.total_tokens} "
                f"(prompt {usage.prompt_tokens} / completion {usage.completion_tokens})[/dim]"
            )

    try:
        asyncio.run(_ask())
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelled.[/dim]")


@app.command()
def providers():
    """Show model presets and which providers have API keys configured."""
    settings = load_settings()

    table = Table(title="Model Presets")
    table.add_column("Preset", style="cyan")
    table.add_column("Provider", style="magenta")
    table.add_column("Model")
    table.add_column("Description", style="dim")
    for preset in MODEL_PRESETS.values():
        marker = " (default)" if preset.key == DEFAULT_PRESET else ""
        table.add_row(preset.key + marker, preset.provider.value, preset.model, preset.description)
    console.print(table)

    lines = []
    for name, provider_settings in settings.providers.items():
        status = "[green]configured[/green]" if provider_settings.configured else "[red]missing key[/red]"
        lines.append(f"[bold]{name.value}[/bold]: {provider_settings.model} {status}")
    console.print(Panel("\n".join(lines), title="Relay Providers"))


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
