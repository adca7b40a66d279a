"""
Memory Configuration Package

This package provides configuration loading and validation for the episodic
memory engine.
"""

from mnemo.memory.config.loader import (
    CONFIG_PATH_ENV,
    ConfigurationLoader,
    get_config_value,
    load_engine_config,
)
from mnemo.memory.config.settings import (
    HYBRID_COMPONENTS,
    ConsolidationSettings,
    EngineConfig,
    MetricsSettings,
    RecallSettings,
)

__all__ = [
    'CONFIG_PATH_ENV',
    'ConfigurationLoader',
    'get_config_value',
    'load_engine_config',
    'HYBRID_COMPONENTS',
    'ConsolidationSettings',
    'EngineConfig',
    'MetricsSettings',
    'RecallSettings',
]
