"""
Utility functions for common configuration patterns.
"""

from typing import Optional, Union
from pathlib import Path

from ...infrastructure.kv_client import KVClient
from ...infrastructure.observability.logging import configure_logging
from .builder import ConsulConfigurationBuilder
from .core import ConsulConfiguration
from .models import ConsulConfigurationOptions
from .sources import YAMLOptionsSource, EnvironmentOptionsSource, merge_sources
from .validation import ConfigurationValidator


def load_options_from_yaml(file_path: Union[str, Path], section: str = "consul") -> ConsulConfigurationOptions:
    """
    Load provider options from a section of a YAML file.

    Args:
        file_path: Path to the YAML settings file
        section: Top-level section holding the options

    Returns:
        Validated ConsulConfigurationOptions
    """
    return ConfigurationValidator.parse_options(YAMLOptionsSource(file_path, section).load())


def load_options_from_environment(prefix: str = "CONSUL_CONFIGURATION_") -> ConsulConfigurationOptions:
    """
    Load provider options from environment variables.

    Args:
        prefix: Environment variable prefix

    Returns:
        Validated ConsulConfigurationOptions
    """
    return ConfigurationValidator.parse_options(merge_sources([EnvironmentOptionsSource(prefix)]))


def create_configuration_builder() -> ConsulConfigurationBuilder:
    """
    Create a new configuration builder.

    Returns:
        ConsulConfigurationBuilder instance
    """
    return ConsulConfigurationBuilder()


async def load_consul_configuration(
    options: ConsulConfigurationOptions,
    client: Optional[KVClient] = None,
    setup_logging: bool = False
) -> ConsulConfiguration:
    """
    Create a configuration, perform the initial load and start watching.

    Args:
        options: Provider options
        client: Optional KV client; one is created from the options otherwise
        setup_logging: Configure the package logger from ``options.logging_config``

    Returns:
        A started ConsulConfiguration
    """
    if setup_logging:
        configure_logging(options.logging_config)
    return await ConsulConfiguration(options, client=client).start()
