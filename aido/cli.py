"""
AIDO Command-Line Interface
Main entry point: `ai <natural language request>`.
"""

import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from loguru import logger

from aido import __version__
from aido.core import credentials
from aido.core.config import config
from aido.core.delivery import DeliveryMode
from aido.core.environment import detect_shell, probe
from aido.core.errors import AidoError, DeliveryError
from aido.core.pipeline import CommandPipeline
from aido.core.status import StatusReporter
from aido.llm.llm_factory import LLMFactory
from aido.prompts import Mode, load_templates, with_piped_context

USAGE = "Usage: ai [options] <natural language command>"

app = typer.Typer(
    name="ai",
    help="AIDO - turn natural language into shell commands",
    add_completion=False
)

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def _version_callback(value: bool):
    if value:
        console.print(f"aido {__version__}")
        raise typer.Exit(0)


def _read_piped_input() -> Optional[str]:
    """Return stdin contents when it is not a terminal."""
    stdin = sys.stdin
    if stdin is None or stdin.isatty():
        return None
    return stdin.read()


def _list_models(model: Optional[str], mock: bool) -> None:
    client = LLMFactory.create_client(model=model, config=config, mock=mock)
    for model_id in client.list_models():
        console.print(model_id, markup=False, highlight=False)


@app.command(context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True})
def ai(
    request: Optional[List[str]] = typer.Argument(
        None,
        help="What you want to do, in plain language"
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Model to use (defaults to $AIDO_MODEL or gpt-4o)"
    ),
    debug: bool = typer.Option(
        False,
        "--debug", "-d",
        help="Enable debug output"
    ),
    execute: bool = typer.Option(
        False,
        "--execute", "-x",
        help="Execute the command instead of typing it out (dangerous!)"
    ),
    text: bool = typer.Option(
        False,
        "--text", "-t",
        help="Answer in prose instead of returning a command"
    ),
    shell: Optional[str] = typer.Option(
        None,
        "--shell",
        help="Shell to target instead of the detected one"
    ),
    init: bool = typer.Option(
        False,
        "--init",
        help="Prompt for the OpenAI API key and store it"
    ),
    list_models: bool = typer.Option(
        False,
        "--list-models",
        help="List available models"
    ),
    mock: bool = typer.Option(
        False,
        "--mock",
        help="Use built-in mock LLM responses (offline demo mode)"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit"
    )
):
    """
    Turn a natural-language request into a shell command.

    Examples:
        ai list files bigger than 10MB
        ai -x show disk usage
        ai -t what does chmod 755 mean
        cat error.log | ai explain this error
    """
    config.setup_logging(debug=debug)
    mock = mock or config.mock_mode
    model = model or config.default_model

    try:
        if init:
            credentials.init_api_key(config, console=err_console)

        if list_models:
            _list_models(model, mock)
            raise typer.Exit(0)

        user_input = " ".join(request or []).strip()
        if not user_input:
            if init:
                raise typer.Exit(0)
            err_console.print(USAGE)
            err_console.print("Run 'ai --help' for the list of options.")
            raise typer.Exit(1)

        piped = _read_piped_input()
        interactive = piped is None
        user_input = with_piped_context(user_input, piped)

        mode = Mode.TEXT if text else Mode.COMMAND
        delivery_mode = DeliveryMode.EXECUTE if execute else DeliveryMode.TYPE
        reporter = StatusReporter(console=console, err_console=err_console, interactive=interactive, verbose=debug)
        reporter.debug(f"Model: {model}")
        reporter.debug(f"Mode: {mode.value}")
        reporter.debug(f"User Input: {user_input}")

        env = probe(shell if shell is not None else detect_shell())
        client = LLMFactory.create_client(model=model, config=config, mock=mock)

        pipeline = CommandPipeline(
            client=client,
            env=env,
            mode=mode,
            delivery_mode=delivery_mode,
            templates=load_templates(config.prompts_file),
            reporter=reporter,
            interactive=interactive
        )
        pipeline.run(user_input)

    except DeliveryError as e:
        logger.error(f"Delivery failed: {e}")
        err_console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        raise typer.Exit(e.returncode or 1)
    except AidoError as e:
        logger.error(f"{type(e).__name__}: {e}")
        if debug:
            logger.exception("Details")
        err_console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Cancelled by user[/yellow]")
        raise typer.Exit(130)


def run():
    """Main entry point."""
    app()


def main():
    """Console script entry point (typer app shim)."""
    run()


if __name__ == "__main__":
    run()
