"""
Overlay resolution of KV snapshots.

Entries read from several watched folders are rewritten relative to their
folder, grouped by local key, and the entry from the highest-priority folder
wins. The winning values are flattened into a single FlatConfig.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ...domain.models import (
    FlatConfig, EMPTY_CONFIG, PendingItem, PrefixSpec, RawEntry,
    KEY_DELIMITER, PATH_SEPARATOR
)
from ...infrastructure.exceptions import FormatError
from .flattener import flatten

logger = logging.getLogger(__name__)


def to_config_key(local_key: str) -> str:
    """Turn a store-relative key (``db/host``) into a configuration key (``db:host``)."""
    return local_key.replace(PATH_SEPARATOR, KEY_DELIMITER).strip(KEY_DELIMITER)


class OverlayResolver:
    """
    Resolves a raw KV snapshot against an ordered list of prefixes.

    Later prefixes in the list override earlier ones. The resolver keeps no
    state between calls.
    """

    def __init__(self, prefixes: Sequence[PrefixSpec]):
        self._prefixes: Tuple[PrefixSpec, ...] = tuple(prefixes)
        self._priorities: Dict[str, int] = {spec.prefix: spec.priority for spec in self._prefixes}
        # Longest first so an entry belongs to the deepest folder that contains it
        self._match_order: List[str] = sorted(self._priorities, key=len, reverse=True)

    @property
    def prefixes(self) -> Tuple[PrefixSpec, ...]:
        return self._prefixes

    def match_prefix(self, key: str) -> Optional[str]:
        """Return the configured prefix ``key`` lives under, if any."""
        for prefix in self._match_order:
            if key.startswith(prefix):
                return prefix
        return None

    def pending_items(self, raw_entries: Iterable[RawEntry]) -> List[PendingItem]:
        """Rewrite entries relative to their folder, dropping those that don't belong."""
        items = []
        for sequence, entry in enumerate(raw_entries):
            prefix = self.match_prefix(entry.key)
            if prefix is None:
                logger.debug(f"Dropping key [{entry.key}]: not under a watched folder")
                continue

            local_key = entry.key[len(prefix):]
            if not local_key.strip() or not to_config_key(local_key).strip():
                continue
            # Folder placeholders
            if local_key.endswith(PATH_SEPARATOR):
                continue

            items.append(PendingItem(
                local_key=local_key,
                prefix=prefix,
                value=entry.value,
                priority_index=self._priorities[prefix],
                sequence=sequence,
            ))
        return items

    @staticmethod
    def select_winners(items: Iterable[PendingItem]) -> List[PendingItem]:
        """Pick the highest-ranked item per local key, in first-seen key order."""
        winners: Dict[str, PendingItem] = {}
        for item in items:
            group = to_config_key(item.local_key).casefold()
            current = winners.get(group)
            if current is None or item.rank > current.rank:
                winners[group] = item
        return list(winners.values())

    def resolve(self, raw_entries: Sequence[RawEntry]) -> FlatConfig:
        """
        Build the flat configuration for one snapshot.

        Raises:
            FormatError: if a winning value is not valid UTF-8 encoded JSON.
        """
        if not raw_entries:
            return EMPTY_CONFIG

        pairs: List[Tuple[str, str]] = []
        for item in self.select_winners(self.pending_items(raw_entries)):
            config_key = to_config_key(item.local_key)
            try:
                text = RawEntry(item.local_key, item.value).decode() or '""'
            except UnicodeDecodeError as e:
                raise FormatError(
                    f"Value of '{config_key}' is not valid UTF-8: {e}",
                    FormatError.UNSUPPORTED_TOKEN,
                    path=config_key,
                    cause=e,
                ) from e
            pairs.extend(flatten(config_key, text).items())
        return FlatConfig(pairs)


def resolve(raw_entries: Sequence[RawEntry], prefixes: Sequence[PrefixSpec]) -> FlatConfig:
    """Functional form of :meth:`OverlayResolver.resolve`."""
    return OverlayResolver(prefixes).resolve(raw_entries)
