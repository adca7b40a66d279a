"""Shared helpers for the memory CLI commands."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from pydantic import ValidationError
from rich.table import Table

from mnemo.core.exceptions import ConfigurationError, MnemoError
from mnemo.memory.backends.in_memory import InMemoryMemoryStore
from mnemo.memory.config.loader import ConfigurationLoader
from mnemo.memory.models import (
    ConsolidationResult,
    MemoryRecord,
    MemoryStatistics,
    RecallResult,
)
from mnemo.memory.service import EpisodicMemoryService


@dataclass
class MemoryCLIContext:
    """Shared CLI options resolved from the top-level callback."""

    config_path: str | None = None


class MemoryCLIError(RuntimeError):
    """Raised when a CLI operation encounters a user-facing error."""


def load_seed_records(path: Path) -> List[MemoryRecord]:
    """
    Load records from a JSON array (or JSONL) seed file.

    Each entry is an object using ``MemoryRecord`` field names, or a plain
    string taken as the content.
    """
    if not path.exists():
        raise MemoryCLIError(f"Seed file '{path}' does not exist.")

    raw_text = path.read_text(encoding="utf-8").strip()
    if not raw_text:
        return []

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError:
        entries: List[Any] = []
        for line_number, line in enumerate(raw_text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError as error:
                raise MemoryCLIError(f"Invalid JSON on line {line_number}: {error.msg}") from error
    else:
        entries = parsed if isinstance(parsed, list) else [parsed]

    records: List[MemoryRecord] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, str):
            entry = {"content": entry}
        if not isinstance(entry, dict):
            raise MemoryCLIError("Seed entries must be JSON objects or plain strings.")
        try:
            records.append(MemoryRecord.model_validate(entry))
        except ValidationError as error:
            raise MemoryCLIError(f"Invalid record at index {index}: {error}") from error
    return records


def write_seed_records(path: Path, records: Iterable[MemoryRecord]) -> None:
    """Write records back to a seed file as a JSON array."""
    payload = [_record_payload(record) for record in records]
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _record_payload(record: MemoryRecord) -> Dict[str, Any]:
    data = record.model_dump(mode="json")
    data["tags"] = sorted(record.tags)
    return data


def build_service(context: MemoryCLIContext, records: Sequence[MemoryRecord]) -> EpisodicMemoryService:
    """Create a service over an in-memory store seeded with ``records``."""
    try:
        config = ConfigurationLoader().load_engine_config(context.config_path)
        store = InMemoryMemoryStore(records)
    except ConfigurationError as error:
        raise MemoryCLIError(f"Failed to load configuration: {error}") from error
    except MnemoError as error:
        raise MemoryCLIError(str(error)) from error
    return EpisodicMemoryService(config, store=store)


def format_tags(tags: Iterable[str]) -> str:
    return ", ".join(sorted(tags))


def build_recall_table(result: RecallResult) -> Table:
    table = Table(title=f"Recall ({result.strategy_used.value})")
    table.add_column("Record", style="cyan", no_wrap=True)
    table.add_column("Score", justify="right")
    table.add_column("Content")
    table.add_column("Tags", style="magenta")

    for record in result.records:
        table.add_row(
            record.record_id,
            f"{result.relevance_scores.get(record.record_id, 0.0):.3f}",
            record.summary(),
            format_tags(record.tags),
        )
    return table


def build_consolidation_table(result: ConsolidationResult) -> Table:
    table = Table(title="Consolidation")
    table.add_column("Promoted", justify="right", style="green")
    table.add_column("Pruned", justify="right", style="red")
    table.add_column("Retained", justify="right")
    table.add_column("Duration (ms)", justify="right")
    table.add_row(
        str(result.promoted_count),
        str(result.pruned_count),
        str(result.retained_count),
        f"{result.duration_ms:.2f}",
    )
    return table


def build_statistics_table(stats: MemoryStatistics) -> Table:
    table = Table(title="Memory Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total records", str(stats.total_records))
    table.add_row("Consolidated", str(stats.consolidated_count))
    table.add_row("Provisional", str(stats.provisional_count))
    table.add_row("Average importance", f"{stats.avg_importance:.3f}")
    return table
