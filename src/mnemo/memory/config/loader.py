"""
Engine Configuration Loader

This module loads engine configuration from YAML files. The packaged
``defaults.yaml`` is always loaded first; an optional override file (given
explicitly or through ``MNEMO_CONFIG_PATH``) is deep-merged on top of it and
the result is validated into an :class:`EngineConfig`.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from mnemo.core.exceptions import ConfigurationError
from mnemo.memory.config.settings import EngineConfig

# Configure logger
logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "MNEMO_CONFIG_PATH"
DEFAULTS_FILE = Path(__file__).resolve().parent / "defaults.yaml"


class ConfigurationLoader:
    """
    Loader for engine configuration.

    This class is responsible for loading configuration from YAML files,
    merging an override file over the packaged defaults and providing a
    unified access interface for configuration values.
    """

    def __init__(self, defaults_path: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration loader.

        Args:
            defaults_path: File holding the base configuration. Defaults to the
                           ``defaults.yaml`` shipped with the package.
        """
        self.defaults_path = Path(defaults_path) if defaults_path else DEFAULTS_FILE
        self.config: Dict[str, Any] = {}
        self.loaded_files: List[str] = []

        logger.debug("Initialized ConfigurationLoader with defaults: %s", self.defaults_path)

    def load_config_file(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a single YAML configuration file.

        Args:
            file_path: Path of the file to load.

        Returns:
            Configuration dictionary. An empty file yields an empty dictionary.

        Raises:
            ConfigurationError: If the file is missing, unreadable or not a mapping.
        """
        path = Path(file_path)

        try:
            with open(path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except FileNotFoundError:
            logger.error("Configuration file not found: %s", path)
            raise ConfigurationError(f"Configuration file not found: {path}", source=str(path))
        except yaml.YAMLError as e:
            logger.error("Error parsing YAML in %s: %s", path, e)
            raise ConfigurationError(f"Error parsing YAML in {path}: {e}", source=str(path))
        except OSError as e:
            logger.error("Error reading configuration from %s: %s", path, e)
            raise ConfigurationError(f"Error reading configuration: {e}", source=str(path))

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Invalid configuration format in {path}", source=str(path))

        logger.debug("Loaded configuration from %s", path)
        self.loaded_files.append(str(path))
        return config

    def load_config(self, override_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Load the defaults and merge an optional override file over them.

        When ``override_path`` is omitted the ``MNEMO_CONFIG_PATH`` environment
        variable is consulted.

        Returns:
            Merged configuration dictionary.
        """
        merged = _deep_copy_dict(self.load_config_file(self.defaults_path))

        override = override_path or os.environ.get(CONFIG_PATH_ENV)
        if override:
            overrides = self.load_config_file(override)
            _deep_merge_dicts(merged, overrides)
            logger.info("Merged configuration overrides from %s", override)

        self.config = merged
        return merged

    def load_engine_config(self, override_path: Optional[Union[str, Path]] = None) -> EngineConfig:
        """
        Load, merge and validate the engine configuration.

        Raises:
            ConfigurationError: If loading or validation fails.
        """
        raw = self.load_config(override_path)
        source = str(override_path) if override_path else os.environ.get(CONFIG_PATH_ENV)
        return EngineConfig.from_mapping(raw, source=source or str(self.defaults_path))

    def get_value(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using a dot-separated path.

        For example, 'consolidation.promotion_access_threshold' would retrieve
        config['consolidation']['promotion_access_threshold'].

        Args:
            key_path: Dot-separated path to the configuration value.
            default: Default value to return if the key is not found.

        Returns:
            Configuration value, or default if not found.
        """
        if not self.config:
            logger.warning("No configuration loaded when trying to access: %s", key_path)
            return default

        config_section: Any = self.config
        for key in key_path.split('.'):
            if not isinstance(config_section, dict) or key not in config_section:
                return default
            config_section = config_section[key]

        return config_section


def _deep_copy_dict(d: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a deep copy of a dictionary.

    Args:
        d: Dictionary to copy.

    Returns:
        Deep copy of the dictionary.
    """
    result = {}
    for k, v in d.items():
        if isinstance(v, dict):
            result[k] = _deep_copy_dict(v)
        elif isinstance(v, list):
            result[k] = list(v)
        else:
            result[k] = v
    return result


def _deep_merge_dicts(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    """
    Deeply merge source dictionary into target dictionary.

    Nested mappings are merged key by key; every other value (lists included)
    replaces the target value.

    Args:
        target: Target dictionary to merge into (modified in-place).
        source: Source dictionary to merge from.
    """
    for key, value in source.items():
        if key in target and isinstance(target[key], dict) and isinstance(value, dict):
            _deep_merge_dicts(target[key], value)
        else:
            target[key] = value


def load_engine_config(override_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load the engine configuration with a fresh loader.

    This is a convenience function for callers that do not need to inspect
    the raw dictionaries.
    """
    return ConfigurationLoader().load_engine_config(override_path)


def get_config_value(key_path: str, override_path: Optional[Union[str, Path]] = None, default: Any = None) -> Any:
    """
    Get a configuration value using a dot-separated path.

    Args:
        key_path: Dot-separated path to the configuration value.
        override_path: Optional override file merged over the defaults.
        default: Default value to return if the key is not found.
    """
    loader = ConfigurationLoader()
    loader.load_config(override_path)
    return loader.get_value(key_path, default)
