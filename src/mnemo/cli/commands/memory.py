"""Operational CLI commands that run the engine over a JSON seed file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any, Callable, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from mnemo.cli.commands.memory_utils import (
    MemoryCLIContext,
    MemoryCLIError,
    build_consolidation_table,
    build_recall_table,
    build_service,
    build_statistics_table,
    load_seed_records,
    write_seed_records,
)
from mnemo.core.exceptions import MnemoError
from mnemo.memory.models import AUTO_STRATEGY, RecallQuery, RecallStrategy

logger = logging.getLogger(__name__)
console = Console()

STRATEGY_CHOICES = [strategy.value for strategy in RecallStrategy] + [AUTO_STRATEGY]


def _get_context(ctx: typer.Context) -> MemoryCLIContext:
    obj = ctx.obj
    if isinstance(obj, MemoryCLIContext):
        return obj
    context = MemoryCLIContext()
    ctx.obj = context
    return context


def _execute(operation: Callable[[], Any]) -> Any:
    """Run ``operation`` and turn expected failures into a red message and exit code 1."""

    try:
        return operation()
    except MemoryCLIError as error:
        console.print(f"[red]{escape(str(error))}[/]")
        raise typer.Exit(code=1) from error
    except MnemoError as error:
        console.print(f"[red]{escape(error.message)}[/]")
        raise typer.Exit(code=1) from error
    except ValueError as error:
        console.print(f"[red]{escape(str(error))}[/]")
        raise typer.Exit(code=1) from error


def recall_command(
    ctx: typer.Context,
    seed: Annotated[Path, typer.Argument(help="JSON seed file holding memory records.")],
    strategy: Annotated[str, typer.Option(
        "--strategy",
        "-s",
        help=f"Recall strategy: {', '.join(STRATEGY_CHOICES)}.",
    )] = RecallStrategy.HYBRID.value,
    text: Annotated[Optional[str], typer.Option("--text", "-t", help="Query text.")] = None,
    tags: Annotated[Optional[List[str]], typer.Option("--tag", help="Tag filter; repeat for several tags.")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum number of results.")] = 10,
) -> None:
    """Recall records from SEED and print them ranked by relevance."""

    context = _get_context(ctx)

    def _run():
        if strategy.strip().lower() not in STRATEGY_CHOICES:
            raise MemoryCLIError(
                f"Unknown strategy '{strategy}'. Choose from: {', '.join(STRATEGY_CHOICES)}"
            )
        service = build_service(context, load_seed_records(seed))
        try:
            return service.recall(
                RecallQuery(
                    strategy=strategy.strip().lower(),
                    query_text=text,
                    tags=tags or (),
                    max_results=limit,
                )
            )
        finally:
            service.close()

    result = _execute(_run)
    if not result.records:
        console.print(f"[yellow]No records matched ({result.total_candidates} candidates).[/]")
        return
    console.print(build_recall_table(result))


def consolidate_command(
    ctx: typer.Context,
    seed: Annotated[Path, typer.Argument(help="JSON seed file holding memory records.")],
    write: Annotated[bool, typer.Option(
        "--write",
        help="Write the surviving records back to SEED.",
    )] = False,
) -> None:
    """Run a consolidation pass over SEED and print the counts."""

    context = _get_context(ctx)

    def _run():
        service = build_service(context, load_seed_records(seed))
        try:
            result = service.consolidate()
            if write:
                write_seed_records(seed, service.memory_store.snapshot())
                logger.info("Wrote %d records to %s", service.memory_store.count(), seed)
            return result
        finally:
            service.close()

    result = _execute(_run)
    console.print(build_consolidation_table(result))
    if write:
        console.print(f"[green]Updated {seed}[/]")


def stats_command(
    ctx: typer.Context,
    seed: Annotated[Path, typer.Argument(help="JSON seed file holding memory records.")],
) -> None:
    """Print store-wide statistics for SEED."""

    context = _get_context(ctx)

    def _run():
        service = build_service(context, load_seed_records(seed))
        try:
            return service.get_statistics()
        finally:
            service.close()

    console.print(build_statistics_table(_execute(_run)))


def register(app: typer.Typer) -> None:
    """Attach the memory commands to the top-level application."""

    app.command("recall")(recall_command)
    app.command("consolidate")(consolidate_command)
    app.command("stats")(stats_command)
