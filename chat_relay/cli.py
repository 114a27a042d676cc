"""CLI entry point for the research chat relay."""

import asyncio
import logging
import sys

import click

from chat_relay.chat import ChatDisplayConfig, ChatTransport, ConversationStore
from chat_relay.chat.transport import DEFAULT_PORT
from chat_relay.core.config import load_settings
from chat_relay.core.errors import RelayError
from chat_relay.core.logging import configure_logging
from chat_relay.core.messages import (
    CLI_CHAT_CONNECTED,
    CLI_CHAT_SEND_FAILED,
    RESULTS_BANNER,
    TIP_MODEL_MISSING,
    TIP_OLLAMA_NOT_RUNNING,
)
from chat_relay.services.research_agent import ResearchAgent


logger = logging.getLogger("chat_relay.cli")


@click.group()
def main():
    """AI research assistant: web chat relay and command-line research."""
    pass


@main.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to.")
@click.option("--port", "-p", default=DEFAULT_PORT, help="Port to serve on.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def serve(host: str, port: int, verbose: bool):
    """Start the web server with the /ws chat endpoint."""
    from main import run

    click.echo(f"Server starting at http://localhost:{port}")
    run(host=host, port=port, verbose=verbose)


@main.command()
@click.argument("query")
@click.option("--quick", "-q", is_flag=True, help="Quick answer mode (no structured synthesis).")
@click.option("--model", "-m", default=None, envvar="OLLAMA_MODEL", help="Ollama model to use.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def ask(query: str, quick: bool, model: str | None, verbose: bool):
    """Research QUERY once and print the answer."""
    configure_logging(verbose)

    try:
        settings = load_settings()
        if model:
            logger.info("Using model from command line: %s", model)
            settings.OLLAMA_MODEL = model
        settings.validate_config()
    except RelayError as e:
        raise click.ClickException(f"Invalid configuration - {e}")

    logger.info("Configuration loaded: model=%s, host=%s", settings.OLLAMA_MODEL, settings.OLLAMA_HOST)
    agent = ResearchAgent(settings)
    run_query = agent.quick_search if quick else agent.invoke

    try:
        result = asyncio.run(run_query(query))
    except RelayError as e:
        logger.error("Research failed: %s", e)
        click.echo(f"\nResearch failed: {e}", err=True)
        message = str(e).lower()
        if "connection" in message:
            click.echo(f"\n{TIP_OLLAMA_NOT_RUNNING}", err=True)
        elif "model" in message:
            click.echo(f"\n{TIP_MODEL_MISSING.format(model=settings.OLLAMA_MODEL)}", err=True)
        sys.exit(1)

    rule = "=" * 60
    click.echo(f"\n{rule}\n{RESULTS_BANNER}\n{rule}\n")
    click.echo(result.content)
    click.echo(f"\n{rule}")


@main.command()
@click.option("--host", default="localhost", help="Relay server hostname.")
@click.option("--port", "-p", default=DEFAULT_PORT, help="Relay server port.")
@click.option("--light", is_flag=True, help="Light colour scheme.")
def chat(host: str, port: int, light: bool):
    """Interactive terminal chat against a running relay server."""
    display = ChatDisplayConfig(dark_mode=not light)
    asyncio.run(_chat_loop(host, port, display))


class _TerminalView:
    """Prints assistant text as the store commits it."""

    def __init__(self, display: ChatDisplayConfig):
        self.display = display
        self._printed = 0

    def __call__(self, store: ConversationStore) -> None:
        last = store.last_message
        if last is None or last.is_user:
            return
        if not last.text:
            self._printed = 0
            click.secho(f"{last.sender_name} [{last.timestamp}]:", fg=self._accent, bold=True)
            return
        click.echo(last.text[self._printed:], nl=False)
        self._printed = len(last.text)

    @property
    def _accent(self) -> str:
        return "bright_yellow" if self.display.dark_mode else "blue"


async def _chat_loop(host: str, port: int, display: ChatDisplayConfig) -> None:
    store = ConversationStore(display=display, on_change=_TerminalView(display))
    transport = ChatTransport.for_host(store, host, port)
    await transport.open()
    if transport.connected:
        click.echo(CLI_CHAT_CONNECTED.format(url=transport.url))

    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            query = line.rstrip("\n")
            if not query.strip():
                continue
            try:
                await transport.send(query)
            except RelayError as e:
                click.echo(CLI_CHAT_SEND_FAILED.format(error=e), err=True)
    finally:
        await transport.close()
        click.echo()


if __name__ == "__main__":
    main()
