"""
Mnemo Command Line Interface

Runs the episodic memory engine over a JSON seed file.

Usage:
    mnemo --help
    mnemo recall seed.json --strategy exact_match --tag billing
    mnemo consolidate seed.json --write
    mnemo stats seed.json

Environment Variables:
    MNEMO_CONFIG_PATH: Path to an engine configuration override file
    MNEMO_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

import logging
import os
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from mnemo import __version__
from mnemo.cli.commands import memory
from mnemo.cli.commands.memory_utils import MemoryCLIContext
from mnemo.core.utils.logging import parse_log_level

LOG_LEVEL_ENV = "MNEMO_LOG_LEVEL"

console = Console()
logger = logging.getLogger(__name__)

app = typer.Typer(
    name="mnemo",
    help="Episodic memory recall and consolidation",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
memory.register(app)


def configure_cli_logging(level: Optional[str]) -> int:
    """Install a RichHandler on the root logger and return the resolved level."""
    resolved = parse_log_level(level or os.environ.get(LOG_LEVEL_ENV), default=logging.WARNING)
    logging.basicConfig(
        level=resolved,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
    return resolved


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Annotated[Optional[str], typer.Option(
        "--config",
        "-c",
        help="Path to an engine configuration file (YAML).",
    )] = None,
    log_level: Annotated[Optional[str], typer.Option(
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )] = None,
) -> None:
    """
    Mnemo episodic memory CLI.
    """
    resolved = configure_cli_logging(log_level)
    logger.debug("Logging configured at %s", logging.getLevelName(resolved))
    ctx.obj = MemoryCLIContext(config_path=config_path)


@app.command()
def version() -> None:
    """Display the current version of Mnemo."""
    console.print(f"Mnemo v[bold cyan]{__version__}[/bold cyan]")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
