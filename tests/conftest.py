"""Global pytest configuration for the Mnemo test-suite.

Ensures the ``src`` tree is importable regardless of how the repository is
checked out and provides the shared fixtures: a frozen clock, an empty
in-memory store, a record factory and a fully wired service.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence

import pytest

# Add the src directory to the Python path so imports can work correctly
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"

if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from mnemo.memory.backends.in_memory import InMemoryMemoryStore  # noqa: E402
from mnemo.memory.config.settings import EngineConfig, MetricsSettings  # noqa: E402
from mnemo.memory.models import MemoryRecord  # noqa: E402
from mnemo.memory.service import EpisodicMemoryService  # noqa: E402

FROZEN_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = FROZEN_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


RecordFactory = Callable[..., MemoryRecord]


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryMemoryStore:
    return InMemoryMemoryStore()


@pytest.fixture
def make_record(clock: FrozenClock) -> RecordFactory:
    """Build records relative to the frozen clock.

    ``days_ago`` sets ``created_at``; ``accessed_days_ago`` (defaulting to
    ``days_ago``) sets ``last_accessed_at``.
    """

    def _make(
        record_id: str,
        content: str = "",
        *,
        importance: float = 0.5,
        tags: Iterable[str] = (),
        embedding: Optional[Sequence[float]] = None,
        access_count: int = 0,
        days_ago: float = 0.0,
        accessed_days_ago: Optional[float] = None,
        consolidated: bool = False,
    ) -> MemoryRecord:
        created_at = clock.now - timedelta(days=days_ago)
        last_accessed = (
            clock.now - timedelta(days=accessed_days_ago)
            if accessed_days_ago is not None
            else created_at
        )
        return MemoryRecord(
            record_id=record_id,
            content=content or f"memory {record_id}",
            importance=importance,
            tags=tags,
            embedding=embedding,
            access_count=access_count,
            created_at=created_at,
            last_accessed_at=last_accessed,
            consolidated=consolidated,
        )

    return _make


@pytest.fixture
def quiet_config() -> EngineConfig:
    """Default configuration with telemetry switched off."""
    return EngineConfig(metrics=MetricsSettings(enabled=False))


@pytest.fixture
def service(quiet_config: EngineConfig, store: InMemoryMemoryStore, clock: FrozenClock) -> Iterator[EpisodicMemoryService]:
    svc = EpisodicMemoryService(quiet_config, store=store, clock=clock)
    yield svc
    svc.close()
