"""
mcpbridge CLI - Interactive chat with a tool-using model.

Run `mcpbridge path/to/server.py` to launch a tool server and start chatting,
or `mcpbridge -c servers.json name` to launch a server from a servers file.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from mcpbridge import __version__
from mcpbridge.core.orchestrator import Orchestrator
from mcpbridge.core.session import Session
from mcpbridge.core.trace import StepTracer
from mcpbridge.providers.base import ChatAPIFactory
from mcpbridge.providers.gateway import ModelGateway
from mcpbridge.toolserver.gateway import DiscoveryError
from mcpbridge.toolserver.launch import resolve_server
from mcpbridge.toolserver.transport import MCPTransport, MCPTransportError
from mcpbridge.validation.config import Config, ConfigError

console = Console()
logger = logging.getLogger(__name__)

QUIT_SENTINEL = "quit"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(verbose: bool) -> None:
    """Send log records to stderr; --verbose wins over MCPBRIDGE_LOG_LEVEL."""
    level_name = "DEBUG" if verbose else os.environ.get("MCPBRIDGE_LOG_LEVEL", "WARNING")
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _show_usage() -> None:
    console.print("[bold blue]mcpbridge[/bold blue] - chat with a model that can call tool-server tools")
    console.print()
    console.print("Usage: mcpbridge [OPTIONS] SERVER", markup=False)
    console.print()
    console.print("  SERVER is a path to a server script (.py runs with python3),")
    console.print("  or a server name from the file given with --config.")
    console.print()
    console.print("[dim]Examples:[/dim]")
    console.print("[dim]  mcpbridge ../weather-server/server.py[/dim]")
    console.print("[dim]  mcpbridge -c servers.json weather[/dim]")
    console.print("[dim]  mcpbridge -c servers.json default[/dim]")


class BridgeREPL:
    """
    Interactive loop over one connected Session.

    Empty input is rejected, ``quit`` (any case) ends the loop, anything
    else is one turn.
    """

    def __init__(self, orchestrator: Orchestrator, model_name: str):
        self.orchestrator = orchestrator
        self.model_name = model_name

    def _get_input(self) -> str:
        console.print("\n[bold green]Question:[/bold green] ", end="")
        return input()

    def _print_banner(self) -> None:
        tools = self.orchestrator.session.tools.tools
        info = Text()
        info.append(f"mcpbridge v{__version__}", style="bold cyan")
        info.append("  |  ", style="dim")
        info.append(f"Model: {self.model_name}", style="dim")
        console.print(info)
        if tools:
            console.print(f"[bold]Available tools ({len(tools)}):[/bold]")
            for tool in tools:
                line = Text("  ")
                line.append(tool.name, style="cyan")
                if tool.description:
                    line.append(f"  {tool.description.splitlines()[0][:80]}", style="dim")
                console.print(line)
        else:
            console.print("[dim]The server offers no tools.[/dim]")
        console.print(f"[dim]Type your question, or '{QUIT_SENTINEL}' to exit.[/dim]")

    def _print_goodbye(self) -> None:
        console.print()
        console.print(Panel("[bold blue]Thanks for using mcpbridge![/bold blue]", border_style="blue"))

    def handle(self, user_input: str) -> bool:
        """Process one line of input. Returns False when the session should end."""
        if user_input.lower() == QUIT_SENTINEL:
            return False
        text = user_input.strip()
        if not text:
            console.print("[yellow]Please enter a question.[/yellow]")
            return True

        with console.status("[bold blue]Thinking...[/bold blue]", spinner="dots"):
            result = self.orchestrator.process_query(text)

        console.print("\n[bold]Answer:[/bold]")
        console.print(Markdown(result.output or "_(no answer)_"))
        if result.tool_calls:
            console.print(f"[dim]─ {self.model_name} · {result.tool_calls} tool call(s)[/dim]")
        return True

    def run(self) -> None:
        """Run until quit, end of input or Ctrl+C."""
        self._print_banner()
        while True:
            try:
                if not self.handle(self._get_input()):
                    break
            except EOFError:
                break
            except KeyboardInterrupt:
                console.print("\n[dim]Interrupted.[/dim]")
                break
        self._print_goodbye()


def run_session(server: str, servers_file: Optional[Path], config: Config) -> None:
    """Connect to ``server``, run the REPL, and always clean up."""
    settings = config.merged
    api_key = config.require_api_key()

    if servers_file is None and settings.session.servers_file:
        servers_file = Path(settings.session.servers_file)
    name, spec, system_prompt = resolve_server(server, servers_file)

    model = ModelGateway(ChatAPIFactory.create(settings.model, api_key))
    transport = MCPTransport(
        command=spec.command,
        args=spec.args,
        env=spec.env,
        client_name=settings.client.name,
        client_version=settings.client.version,
    )
    trace_dir = settings.session.trace_dir
    session = Session(
        transport,
        system_prompt=system_prompt,
        tracer=StepTracer(Path(trace_dir) if trace_dir else None),
    )

    console.print(f"[dim]Connecting to server: {name}[/dim]")
    with session:
        orchestrator = Orchestrator(session, model, settings.session.max_tool_rounds)
        BridgeREPL(orchestrator, model.model).run()


@click.command()
@click.option(
    "--config",
    "-c",
    "servers_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Servers file (JSON) mapping server names to launch commands",
)
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.argument("server", required=False)
def cli(servers_file: Optional[Path], verbose: bool, version: bool, server: Optional[str]) -> None:
    """
    mcpbridge - chat with a model that can call tool-server tools.

    \b
    Examples:
        mcpbridge ./server.py              # Launch a server script
        mcpbridge -c servers.json weather  # Launch a configured server
    """
    if version:
        console.print(f"mcpbridge v{__version__}")
        return

    if not server:
        _show_usage()
        return

    _configure_logging(verbose)
    load_dotenv()

    try:
        run_session(server, servers_file, Config.load())
    except (ConfigError, MCPTransportError, DiscoveryError, ValueError) as e:
        logger.error("%s", e)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")
    except Exception:
        logger.exception("Unexpected error while running mcpbridge")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
