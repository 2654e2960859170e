"""
Core Domain Models

Defines the value objects exchanged between the KV client, the overlay
resolver and the configuration provider.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Iterable, Iterator, Mapping, Tuple, FrozenSet, Union


KEY_DELIMITER = ":"
PATH_SEPARATOR = "/"


def combine_path(segments: Iterable[str]) -> str:
    """Join configuration path segments with the key delimiter."""
    return KEY_DELIMITER.join(segments)


@dataclass(frozen=True)
class RawEntry:
    """A key/value pair exactly as read from the KV store."""
    key: str
    value: Optional[bytes] = None

    def decode(self) -> str:
        """Decode the stored bytes; absent or empty values decode to ''."""
        if not self.value:
            return ""
        return self.value.decode("utf-8")


@dataclass(frozen=True)
class PrefixSpec:
    """A watched folder and its overlay priority (higher wins)."""
    prefix: str
    priority: int


@dataclass(frozen=True)
class PendingItem:
    """A raw entry rewritten relative to the folder it was found in."""
    local_key: str
    prefix: str
    value: Optional[bytes]
    priority_index: int
    sequence: int

    @property
    def rank(self) -> Tuple[int, int]:
        return (self.priority_index, self.sequence)


@dataclass(frozen=True)
class KVListResult:
    """Answer of a KV list query together with its blocking-query index."""
    entries: Tuple[RawEntry, ...] = ()
    last_index: int = 0


class FlatConfig(Mapping[str, str]):
    """
    Immutable flat configuration map with case-insensitive keys.

    Keys keep the spelling of their first insertion; a later pair with the
    same key (in any casing) replaces the value.
    """

    __slots__ = ("_items",)

    def __init__(self, data: Union[Mapping[str, str], Iterable[Tuple[str, str]], None] = None):
        items: Dict[str, Tuple[str, str]] = {}
        if data is not None:
            pairs = data.items() if isinstance(data, Mapping) else data
            for key, value in pairs:
                folded = key.casefold()
                existing = items.get(folded)
                items[folded] = (existing[0] if existing else key, value)
        self._items = items

    def __getitem__(self, key: str) -> str:
        return self._items[key.casefold()][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._items

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FlatConfig):
            return {k: v for k, (_, v) in self._items.items()} == \
                {k: v for k, (_, v) in other._items.items()}
        if isinstance(other, Mapping):
            return self == FlatConfig(other)
        return NotImplemented

    def __hash__(self):
        return hash(frozenset((k, v) for k, (_, v) in self._items.items()))

    def __repr__(self) -> str:
        return f"FlatConfig({dict(self.items())!r})"

    def folded_keys(self) -> FrozenSet[str]:
        """Keys in their case-folded comparison form."""
        return frozenset(self._items)

    def original_key(self, key: str) -> str:
        """Return the stored spelling of ``key``."""
        return self._items[key.casefold()][0]

    def to_dict(self) -> Dict[str, str]:
        return dict(self.items())


EMPTY_CONFIG = FlatConfig()


@dataclass(frozen=True)
class ChangeSet:
    """Keys added, removed and changed between two configuration snapshots."""
    added: FrozenSet[str] = field(default_factory=frozenset)
    removed: FrozenSet[str] = field(default_factory=frozenset)
    changed: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": sorted(self.added),
            "removed": sorted(self.removed),
            "changed": sorted(self.changed),
        }
