"""
Configuration Management System

Dynamic configuration sourced from Consul KV: JSON values are flattened
into delimited keys, prioritized folders are overlaid, and a long-poll
watch loop keeps the snapshot current.
"""

from .models import (
    ConsulConfigurationOptions,
    LoggingConfiguration
)

from .flattener import (
    flatten,
    parse_json,
    TokenKind,
    JsonObject,
    JsonArray,
    JsonScalar
)

from .resolver import OverlayResolver, resolve, to_config_key

from .changes import ChangeDetector

from .provider import ConsulConfigurationProvider

from .watch import ConsulWatchLoop, WatchState, CycleResult

from .sources import (
    OptionsSource,
    YAMLOptionsSource,
    EnvironmentOptionsSource
)

from .validation import (
    ConfigurationValidator,
    ConfigurationValidationError
)

from .core import ConsulConfiguration

from .builder import ConsulConfigurationBuilder

from .utils import (
    load_options_from_yaml,
    load_options_from_environment,
    create_configuration_builder,
    load_consul_configuration
)

__all__ = [
    # Models
    'ConsulConfigurationOptions',
    'LoggingConfiguration',

    # Flattening and overlay
    'flatten',
    'parse_json',
    'TokenKind',
    'JsonObject',
    'JsonArray',
    'JsonScalar',
    'OverlayResolver',
    'resolve',
    'to_config_key',
    'ChangeDetector',

    # Provider and watch loop
    'ConsulConfigurationProvider',
    'ConsulWatchLoop',
    'WatchState',
    'CycleResult',

    # Sources
    'OptionsSource',
    'YAMLOptionsSource',
    'EnvironmentOptionsSource',

    # Validation
    'ConfigurationValidator',
    'ConfigurationValidationError',

    # Core
    'ConsulConfiguration',

    # Builder
    'ConsulConfigurationBuilder',

    # Utilities
    'load_options_from_yaml',
    'load_options_from_environment',
    'create_configuration_builder',
    'load_consul_configuration'
]
