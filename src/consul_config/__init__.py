"""
consul_config - dynamic configuration from Consul KV.

Flattens JSON values stored under watched KV folders into a flat,
case-insensitive configuration map, overlays folders by priority, and keeps
the map current through a long-poll watch loop.
"""

from .domain.models import FlatConfig, RawEntry, PrefixSpec, ChangeSet
from .infrastructure.exceptions import (
    ConsulConfigException, ConfigurationError, FormatError, TransportError
)
from .infrastructure.kv_client import KVClient, ConsulKVClient, QueryOptions
from .infrastructure.observability.logging import configure_logging
from .framework.configuration import (
    ConsulConfiguration,
    ConsulConfigurationBuilder,
    ConsulConfigurationOptions,
    ConsulConfigurationProvider,
    ConsulWatchLoop,
    OverlayResolver,
    ChangeDetector,
    flatten,
    resolve,
    load_consul_configuration,
)

__version__ = "0.1.0"

__all__ = [
    "FlatConfig",
    "RawEntry",
    "PrefixSpec",
    "ChangeSet",
    "ConsulConfigException",
    "ConfigurationError",
    "FormatError",
    "TransportError",
    "KVClient",
    "ConsulKVClient",
    "QueryOptions",
    "configure_logging",
    "ConsulConfiguration",
    "ConsulConfigurationBuilder",
    "ConsulConfigurationOptions",
    "ConsulConfigurationProvider",
    "ConsulWatchLoop",
    "OverlayResolver",
    "ChangeDetector",
    "flatten",
    "resolve",
    "load_consul_configuration",
]
