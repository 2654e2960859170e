from .models import (
    RawEntry, PrefixSpec, PendingItem, KVListResult, FlatConfig, ChangeSet,
    EMPTY_CONFIG, KEY_DELIMITER, PATH_SEPARATOR, combine_path
)

__all__ = [
    "RawEntry",
    "PrefixSpec",
    "PendingItem",
    "KVListResult",
    "FlatConfig",
    "ChangeSet",
    "EMPTY_CONFIG",
    "KEY_DELIMITER",
    "PATH_SEPARATOR",
    "combine_path",
]
