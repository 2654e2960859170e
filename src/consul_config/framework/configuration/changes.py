"""
Change detection between configuration snapshots.
"""

import logging
from typing import Optional

from ...domain.models import ChangeSet, FlatConfig

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Pure comparison of two FlatConfig snapshots."""

    @staticmethod
    def diff(previous: FlatConfig, next_config: FlatConfig) -> ChangeSet:
        """Compute added, removed and changed keys (case-insensitive, exact values)."""
        previous_keys = previous.folded_keys()
        next_keys = next_config.folded_keys()

        added = frozenset(next_config.original_key(k) for k in next_keys - previous_keys)
        removed = frozenset(previous.original_key(k) for k in previous_keys - next_keys)
        changed = frozenset(
            next_config.original_key(k)
            for k in previous_keys & next_keys
            if previous[k] != next_config[k]
        )
        return ChangeSet(added=added, removed=removed, changed=changed)

    @classmethod
    def should_reload(
        cls,
        previous: FlatConfig,
        next_config: FlatConfig,
        initialized: bool = True,
        changes: Optional[ChangeSet] = None
    ) -> bool:
        """
        Decide whether consumers must be told about ``next_config``.

        ``initialized`` is False until the first successful load has been
        committed; that first load always reloads, even from empty to empty.
        ``changes`` is the already computed diff of the two maps, if any.
        """
        if not initialized:
            return True
        if previous and not next_config:
            return True
        if changes is None:
            changes = cls.diff(previous, next_config)
        return not changes.is_empty

    @staticmethod
    def log_changes(previous: FlatConfig, next_config: FlatConfig, changes: ChangeSet) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for key in sorted(changes.removed, key=str.casefold):
            logger.debug(f"Remove key [{key}]")
        for key in sorted(changes.added, key=str.casefold):
            logger.debug(f"Added key [{key}][{next_config[key]}]")
        for key in sorted(changes.changed, key=str.casefold):
            logger.debug(f"The value of key [{key}] is changed from [{previous[key]}] to [{next_config[key]}]")
