"""
Engine Settings

Typed configuration for the recall engine, the consolidation engine and the
metrics publisher. Values are usually produced by
:class:`mnemo.memory.config.loader.ConfigurationLoader` from YAML, but every
section can be constructed directly in code.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from mnemo.core.exceptions import ConfigurationError
from mnemo.memory.models.recall import RecallStrategy

HYBRID_COMPONENTS: tuple[RecallStrategy, ...] = (
    RecallStrategy.EXACT_MATCH,
    RecallStrategy.FUZZY_MATCH,
    RecallStrategy.SEMANTIC_SIMILARITY,
    RecallStrategy.TEMPORAL_PROXIMITY,
)


def uniform_hybrid_weights() -> Dict[RecallStrategy, float]:
    return {strategy: 1.0 / len(HYBRID_COMPONENTS) for strategy in HYBRID_COMPONENTS}


def normalize_weights(weights: Mapping[Any, float]) -> Dict[RecallStrategy, float]:
    """
    Normalise hybrid weights so they sum to one.

    Missing components get weight 0. Raises ``ValueError`` for negative
    weights, unknown strategies or an all-zero mapping.
    """
    resolved: Dict[RecallStrategy, float] = {strategy: 0.0 for strategy in HYBRID_COMPONENTS}
    for key, value in weights.items():
        strategy = key if isinstance(key, RecallStrategy) else RecallStrategy.from_string(str(key))
        if strategy not in resolved:
            raise ValueError(f"{strategy.value} cannot be a hybrid component")
        weight = float(value)
        if weight < 0.0:
            raise ValueError(f"hybrid weight for {strategy.value} must be non-negative")
        resolved[strategy] = weight

    total = sum(resolved.values())
    if total <= 0.0:
        raise ValueError("hybrid weights must have a positive sum")
    return {strategy: weight / total for strategy, weight in resolved.items()}


class RecallSettings(BaseModel):
    """Matcher parameters and recall behaviour."""

    default_max_results: int = Field(default=10, gt=0)
    fuzzy_min_similarity: float = Field(default=0.5, ge=0.0, le=1.0)
    temporal_half_life_hours: float = Field(default=24.0, gt=0.0)
    adaptive_hybrid_weights: bool = False
    hybrid_weights: Dict[RecallStrategy, float] = Field(default_factory=uniform_hybrid_weights)
    track_access_on_auxiliary_recall: bool = True

    @field_validator("hybrid_weights", mode="before")
    @classmethod
    def validate_hybrid_weights(cls, v: Any) -> Dict[RecallStrategy, float]:
        if v is None:
            return uniform_hybrid_weights()
        if not isinstance(v, Mapping):
            raise ValueError("hybrid_weights must be a mapping of strategy -> weight")
        return normalize_weights(v)

    @property
    def temporal_half_life(self) -> timedelta:
        return timedelta(hours=self.temporal_half_life_hours)


class ConsolidationSettings(BaseModel):
    """Promotion and pruning thresholds."""

    promotion_access_threshold: int = Field(default=3, ge=0)
    promotion_importance_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    pruning_importance_threshold: float = Field(default=0.2, ge=0.0, le=1.0)
    pruning_staleness_days: float = Field(default=30.0, ge=0.0)

    @property
    def pruning_staleness_window(self) -> timedelta:
        return timedelta(days=self.pruning_staleness_days)


class MetricsSettings(BaseModel):
    """Telemetry publication options."""

    enabled: bool = True
    exporter: str = "logging"
    name: str = "mnemo"
    batch_size: int = Field(default=50, gt=0)
    flush_interval: int = Field(default=15, gt=0)

    @field_validator("exporter")
    @classmethod
    def validate_exporter(cls, v: str) -> str:
        normalized = v.strip().lower()
        if normalized not in {"logging", "prometheus"}:
            raise ValueError(f"Unsupported metrics exporter: {v!r}")
        return normalized


class EngineConfig(BaseModel):
    """Top-level configuration for the episodic memory engine."""

    recall: RecallSettings = Field(default_factory=RecallSettings)
    consolidation: ConsolidationSettings = Field(default_factory=ConsolidationSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None, *, source: str | None = None) -> "EngineConfig":
        """
        Build a validated configuration from a plain mapping.

        Raises:
            ConfigurationError: If any section fails validation.
        """
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid engine configuration: {exc}", source=source) from exc


__all__ = [
    "HYBRID_COMPONENTS",
    "ConsolidationSettings",
    "EngineConfig",
    "MetricsSettings",
    "RecallSettings",
    "normalize_weights",
    "uniform_hybrid_weights",
]
