"""
Configuration builder for creating ConsulConfiguration instances.
"""

from typing import Any, Dict, List, Optional, Union
from pathlib import Path

from ...infrastructure.kv_client import KVClient
from .core import ConsulConfiguration
from .sources import OptionsSource, YAMLOptionsSource, EnvironmentOptionsSource, merge_sources
from .validation import ConfigurationValidator


class ConsulConfigurationBuilder:
    """
    Builder for ConsulConfiguration instances.

    Explicit settings override values loaded from option sources, which are
    merged by priority (YAML file < environment by default).
    """

    def __init__(self):
        self._sources: List[OptionsSource] = []
        self._settings: Dict[str, Any] = {}
        self._folders: List[str] = []
        self._client: Optional[KVClient] = None

    def with_address(self, address: str) -> 'ConsulConfigurationBuilder':
        self._settings['address'] = address
        return self

    def with_token(self, token: str) -> 'ConsulConfigurationBuilder':
        self._settings['token'] = token
        return self

    def with_datacenter(self, datacenter: str) -> 'ConsulConfigurationBuilder':
        self._settings['datacenter'] = datacenter
        return self

    def with_root_folder(self, root_folder: str) -> 'ConsulConfigurationBuilder':
        self._settings['root_folder'] = root_folder
        return self

    def add_folder(self, folder: str) -> 'ConsulConfigurationBuilder':
        """
        Add a watched folder; folders added later take precedence.

        Args:
            folder: Folder relative to the root folder, ending with '/'
        """
        self._folders.append(folder)
        return self

    def with_blocking_query_wait(self, seconds: float) -> 'ConsulConfigurationBuilder':
        self._settings['blocking_query_wait'] = seconds
        return self

    def with_client(self, client: KVClient) -> 'ConsulConfigurationBuilder':
        """Use a specific KV client instead of creating one from the address."""
        self._client = client
        return self

    def from_yaml(self, path: Union[str, Path], section: str = "consul", priority: int = 100) -> 'ConsulConfigurationBuilder':
        """
        Read options from a section of a YAML file.

        Args:
            path: Path to the YAML settings file
            section: Top-level section holding the options
            priority: Priority of this source (higher = more important)
        """
        self._sources.append(YAMLOptionsSource(path, section, priority))
        return self

    def from_environment(self, prefix: str = "CONSUL_CONFIGURATION_", priority: int = 200) -> 'ConsulConfigurationBuilder':
        """
        Read options from environment variables.

        Args:
            prefix: Environment variable prefix
            priority: Priority of this source (higher = more important)
        """
        self._sources.append(EnvironmentOptionsSource(prefix, priority))
        return self

    def build(self) -> ConsulConfiguration:
        """
        Build the configuration with all sources merged and validated.

        Raises:
            ConfigurationError: If the resulting options are invalid
        """
        data = merge_sources(self._sources)
        data.update(self._settings)
        if self._folders:
            data['folders'] = list(self._folders)

        options = ConfigurationValidator.parse_options(data)
        return ConsulConfiguration(options, client=self._client)
