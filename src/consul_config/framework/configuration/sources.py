"""
Sources of provider options.

Options may come from a section of a YAML settings file or from environment
variables; sources are merged by priority before validation.
"""

import os
import yaml
from abc import ABC, abstractmethod
from typing import Dict, Any, Union, Iterable
from pathlib import Path

from ...infrastructure.exceptions import ConfigurationError


class OptionsSource(ABC):
    """Abstract base class for option sources."""

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Load raw option data from the source."""
        pass

    @abstractmethod
    def get_priority(self) -> int:
        """Get the priority of this source (higher number = higher priority)."""
        pass


class YAMLOptionsSource(OptionsSource):
    """Options read from one section of a YAML settings file."""

    def __init__(self, file_path: Union[str, Path], section: str = "consul", priority: int = 100):
        self.file_path = Path(file_path)
        self.section = section
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        """Load the configured section from the YAML file."""
        if not self.file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.file_path}",
                config_path=str(self.file_path)
            )

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {self.file_path}",
                config_path=str(self.file_path),
                context={"yaml_error": str(e)},
                cause=e
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Error reading configuration file: {self.file_path}",
                config_path=str(self.file_path),
                cause=e
            ) from e

        if not self.section:
            return data

        section = data.get(self.section) if isinstance(data, dict) else None
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"Section '{self.section}' not found in configuration file: {self.file_path}",
                config_path=str(self.file_path)
            )
        return section

    def get_priority(self) -> int:
        return self.priority


class EnvironmentOptionsSource(OptionsSource):
    """Options read from environment variables."""

    FIELDS = {
        "ADDR": "address",
        "TOKEN": "token",
        "DC": "datacenter",
        "ROOT_FOLDER": "root_folder",
        "FOLDERS": "folders",
        "WAIT": "blocking_query_wait",
    }

    def __init__(self, prefix: str = "CONSUL_CONFIGURATION_", priority: int = 200):
        self.prefix = prefix.upper()
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        """Load options from environment variables."""
        options: Dict[str, Any] = {}

        for suffix, field_name in self.FIELDS.items():
            value = os.environ.get(self.prefix + suffix)
            if value is not None:
                options[field_name] = value

        log_level = os.environ.get(self.prefix + "LOG_LEVEL")
        if log_level is not None:
            options["logging_config"] = {"level": log_level}

        return options

    def get_priority(self) -> int:
        return self.priority


def merge_sources(sources: Iterable[OptionsSource]) -> Dict[str, Any]:
    """Load and merge sources from lowest to highest priority."""
    merged: Dict[str, Any] = {}
    for source in sorted(sources, key=lambda s: s.get_priority()):
        merged = _deep_merge(merged, source.load())
    return merged


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
