"""
Configuration provider state.

Holds the committed FlatConfig in a single cell that is replaced wholesale,
serves key lookups to any thread, and notifies reload subscribers.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ...domain.models import (
    ChangeSet, EMPTY_CONFIG, FlatConfig, PrefixSpec, RawEntry, KEY_DELIMITER
)
from .changes import ChangeDetector
from .resolver import OverlayResolver

logger = logging.getLogger(__name__)

ReloadCallback = Callable[[ChangeSet], None]


class ConsulConfigurationProvider:
    """
    Flat, case-insensitive configuration backed by watched KV folders.

    Only the watch loop writes (through :meth:`commit`); readers always see
    one complete snapshot.
    """

    def __init__(self, prefixes: Sequence[PrefixSpec]):
        self._resolver = OverlayResolver(prefixes)
        self._data: FlatConfig = EMPTY_CONFIG
        self._initialized = False
        self._config_lock = threading.RLock()
        self._reload_callbacks: List[ReloadCallback] = []

    @property
    def prefixes(self) -> Tuple[PrefixSpec, ...]:
        return self._resolver.prefixes

    def is_initialized(self) -> bool:
        """True once the first load has been committed."""
        with self._config_lock:
            return self._initialized

    def snapshot(self) -> FlatConfig:
        """Get the current configuration map."""
        with self._config_lock:
            return self._data

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.snapshot().get(key, default)

    def try_get(self, key: str) -> Tuple[bool, Optional[str]]:
        data = self.snapshot()
        if key in data:
            return True, data[key]
        return False, None

    def __getitem__(self, key: str) -> str:
        return self.snapshot()[key]

    def __contains__(self, key: object) -> bool:
        return key in self.snapshot()

    def get_section(self, key: str) -> Dict[str, str]:
        """Get every value below ``key``, keyed relative to it."""
        section_prefix = (key.rstrip(KEY_DELIMITER) + KEY_DELIMITER).casefold()
        return {
            name[len(section_prefix):]: value
            for name, value in self.snapshot().items()
            if name.casefold().startswith(section_prefix)
        }

    def get_child_keys(self, parent_path: Optional[str] = None) -> List[str]:
        """Distinct immediate child segments below ``parent_path`` (top level when None)."""
        data = self.snapshot()
        if parent_path:
            names = self.get_section(parent_path).keys()
        else:
            names = data.keys()

        children: Dict[str, str] = {}
        for name in names:
            segment = name.split(KEY_DELIMITER, 1)[0]
            children.setdefault(segment.casefold(), segment)
        return sorted(children.values(), key=str.casefold)

    def resolve(self, entries: Sequence[RawEntry]) -> FlatConfig:
        """
        Resolve a raw snapshot without touching provider state.

        Raises:
            FormatError: if a stored value is not valid JSON.
        """
        return self._resolver.resolve(entries)

    def commit(self, next_config: FlatConfig, changes: Optional[ChangeSet] = None) -> Optional[ChangeSet]:
        """
        Replace the current map with ``next_config`` if consumers must reload.

        Args:
            next_config: The resolved snapshot
            changes: Diff of the current snapshot against ``next_config``
                when the caller has already computed it

        Returns:
            The ChangeSet that was signalled, or None when nothing changed.
        """
        with self._config_lock:
            previous = self._data
            if changes is None:
                changes = ChangeDetector.diff(previous, next_config)
            if not ChangeDetector.should_reload(previous, next_config, self._initialized, changes):
                return None

            self._data = next_config
            self._initialized = True

        ChangeDetector.log_changes(previous, next_config, changes)
        logger.info(
            f"Configuration reloaded: {len(next_config)} keys "
            f"(+{len(changes.added)} -{len(changes.removed)} ~{len(changes.changed)})"
        )
        self._notify(changes)
        return changes

    def load(self, entries: Sequence[RawEntry]) -> Optional[ChangeSet]:
        """Resolve and commit a snapshot in one step."""
        return self.commit(self.resolve(entries))

    def add_reload_callback(self, callback: ReloadCallback) -> None:
        """Add a callback to be called when configuration is reloaded."""
        self._reload_callbacks.append(callback)

    def remove_reload_callback(self, callback: ReloadCallback) -> None:
        """Remove a reload callback."""
        if callback in self._reload_callbacks:
            self._reload_callbacks.remove(callback)

    def _notify(self, changes: ChangeSet) -> None:
        for callback in list(self._reload_callbacks):
            try:
                callback(changes)
            except Exception as e:
                logger.error(f"Error in reload callback: {e}")
