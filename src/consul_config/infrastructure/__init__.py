"""
Infrastructure layer: exceptions, the KV client and observability.
"""

from .exceptions import ConsulConfigException, ConfigurationError, FormatError, TransportError
from .kv_client import KVClient, ConsulKVClient, QueryOptions

__all__ = [
    "ConsulConfigException",
    "ConfigurationError",
    "FormatError",
    "TransportError",
    "KVClient",
    "ConsulKVClient",
    "QueryOptions",
]
