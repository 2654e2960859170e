"""
Core configuration class tying the provider to its watch loop.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ...domain.models import FlatConfig
from ...infrastructure.kv_client import ConsulKVClient, KVClient
from .models import ConsulConfigurationOptions
from .provider import ConsulConfigurationProvider, ReloadCallback
from .validation import ConfigurationValidator
from .watch import ConsulWatchLoop

logger = logging.getLogger(__name__)


class ConsulConfiguration:
    """
    Dynamic configuration sourced from Consul KV folders.

    Options are validated on construction; :meth:`start` performs the first
    load and begins watching, :meth:`stop` ends it. Lookups are served from
    the last committed snapshot and are safe from any thread.
    """

    def __init__(self, options: ConsulConfigurationOptions, client: Optional[KVClient] = None):
        self.options = ConfigurationValidator.validate_options(options)
        self._owns_client = client is None
        self.client = client or ConsulKVClient(
            self.options.address,
            token=self.options.token,
            datacenter=self.options.datacenter
        )
        self.provider = ConsulConfigurationProvider(self.options.prefix_specs())
        self.watch_loop = ConsulWatchLoop(
            self.provider,
            self.client,
            folder=self.options.root_folder,
            wait_time=self.options.blocking_query_wait,
            token=self.options.token,
            datacenter=self.options.datacenter
        )

    async def start(self) -> "ConsulConfiguration":
        """Load the initial snapshot and start the watch loop."""
        try:
            await self.watch_loop.start()
        except Exception:
            if self._owns_client:
                await self.client.close()
            raise
        return self

    async def stop(self) -> None:
        """Stop watching and release the KV client if this instance created it."""
        await self.watch_loop.stop()
        if self._owns_client:
            await self.client.close()

    async def __aenter__(self) -> "ConsulConfiguration":
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    def is_watching(self) -> bool:
        """Check if the watch loop is running."""
        return self.watch_loop.is_running()

    def snapshot(self) -> FlatConfig:
        return self.provider.snapshot()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.provider.get(key, default)

    def try_get(self, key: str) -> Tuple[bool, Optional[str]]:
        return self.provider.try_get(key)

    def __getitem__(self, key: str) -> str:
        return self.provider[key]

    def __contains__(self, key: object) -> bool:
        return key in self.provider

    def get_section(self, key: str) -> Dict[str, str]:
        return self.provider.get_section(key)

    def get_child_keys(self, parent_path: Optional[str] = None) -> List[str]:
        return self.provider.get_child_keys(parent_path)

    def add_reload_callback(self, callback: ReloadCallback) -> None:
        """Add a callback to be called when configuration is reloaded."""
        self.provider.add_reload_callback(callback)

    def remove_reload_callback(self, callback: ReloadCallback) -> None:
        """Remove a reload callback."""
        self.provider.remove_reload_callback(callback)
