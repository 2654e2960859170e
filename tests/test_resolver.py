"""
Tests for overlay resolution of KV snapshots.
"""

import pytest

from consul_config.domain.models import PrefixSpec, RawEntry
from consul_config.framework.configuration.resolver import OverlayResolver, resolve, to_config_key
from consul_config.infrastructure.exceptions import FormatError

from .fixtures.mock_objects import make_entries


BASE_AND_OVERRIDE = [PrefixSpec("base/", 0), PrefixSpec("override/", 1)]


class TestOverlay:
    """Test priority resolution between folders."""

    def test_higher_priority_folder_wins(self):
        entries = make_entries({"base/db/host": "a", "override/db/host": "b"})

        assert resolve(entries, BASE_AND_OVERRIDE) == {"db:host": "b"}

    def test_priority_does_not_depend_on_entry_order(self):
        entries = make_entries({"override/db/host": "b", "base/db/host": "a"})

        assert resolve(entries, BASE_AND_OVERRIDE) == {"db:host": "b"}

    def test_prefix_order_defines_priority(self):
        entries = make_entries({"base/db/host": "a", "override/db/host": "b"})
        reversed_prefixes = [PrefixSpec("override/", 0), PrefixSpec("base/", 1)]

        assert resolve(entries, reversed_prefixes) == {"db:host": "a"}

    def test_keys_only_in_lower_priority_folder_survive(self):
        entries = make_entries({
            "base/db/host": "a",
            "base/db/port": 5432,
            "override/db/host": "b",
        })

        assert resolve(entries, BASE_AND_OVERRIDE) == {"db:host": "b", "db:port": "5432"}

    def test_winning_entry_replaces_whole_value(self):
        """Overlay is per stored key: a JSON object is not merged member by member."""
        entries = make_entries({
            "base/db": {"host": "a", "port": 1},
            "override/db": {"host": "b"},
        })

        assert resolve(entries, BASE_AND_OVERRIDE) == {"db:host": "b"}

    def test_equal_priority_later_entry_wins(self):
        entries = make_entries({"left/key": "first", "right/key": "second"})
        prefixes = [PrefixSpec("left/", 1), PrefixSpec("right/", 1)]

        assert resolve(entries, prefixes) == {"key": "second"}

    def test_same_key_in_different_case_is_one_group(self):
        entries = (
            RawEntry("base/Db/Host", b'"first"'),
            RawEntry("base/db/host", b'"second"'),
        )

        result = resolve(entries, [PrefixSpec("base/", 0)])

        assert result == {"db:host": "second"}
        assert len(result) == 1

    def test_overlapping_groups_last_write_wins(self):
        entries = make_entries({"base/db": {"host": "x"}, "base/db/host": "y"})

        assert resolve(entries, [PrefixSpec("base/", 0)]) == {"db:host": "y"}

    def test_entry_belongs_to_deepest_configured_folder(self):
        entries = make_entries({"app/prod/db": "prod", "app/db": "default"})
        prefixes = [PrefixSpec("app/", 0), PrefixSpec("app/prod/", 1)]

        assert resolve(entries, prefixes) == {"db": "prod"}

    def test_nested_values_are_flattened_under_local_key(self):
        entries = make_entries({"base/app": {"name": "svc", "ports": [80, 443]}})

        assert resolve(entries, BASE_AND_OVERRIDE) == {
            "app:name": "svc",
            "app:ports:0": "80",
            "app:ports:1": "443",
        }


class TestFiltering:
    """Test entries that are excluded from the result."""

    def test_empty_snapshot(self):
        assert resolve([], BASE_AND_OVERRIDE) == {}

    def test_key_outside_watched_folders_is_dropped(self):
        entries = make_entries({"other/db/host": "x", "base/db/host": "a"})

        assert resolve(entries, BASE_AND_OVERRIDE) == {"db:host": "a"}

    def test_prefix_match_is_case_sensitive(self):
        entries = make_entries({"Base/db/host": "x"})

        assert resolve(entries, BASE_AND_OVERRIDE) == {}

    def test_folder_key_itself_is_dropped(self):
        entries = (RawEntry("base/", None), RawEntry("base/  ", b'"x"'))

        assert resolve(entries, BASE_AND_OVERRIDE) == {}

    def test_folder_placeholders_are_dropped(self):
        entries = (RawEntry("base/db/", None), RawEntry("base/db/host", b'"a"'))

        assert resolve(entries, BASE_AND_OVERRIDE) == {"db:host": "a"}

    def test_empty_value_becomes_empty_string(self):
        entries = (RawEntry("base/flag", None), RawEntry("base/other", b""))

        assert resolve(entries, BASE_AND_OVERRIDE) == {"flag": "", "other": ""}

    def test_root_prefix_matches_everything(self):
        entries = make_entries({"db/host": "a"})

        assert resolve(entries, [PrefixSpec("", 0)]) == {"db:host": "a"}


class TestResolverErrors:
    """Test malformed values."""

    def test_malformed_winner_raises(self):
        entries = make_entries({"base/db/host": "localhost"}, raw=True)

        with pytest.raises(FormatError):
            resolve(entries, BASE_AND_OVERRIDE)

    def test_value_that_is_not_utf8_raises_format_error(self):
        entries = (RawEntry("base/db/host", b'"\xff\xfe"'),)

        with pytest.raises(FormatError) as exc_info:
            resolve(entries, BASE_AND_OVERRIDE)

        error = exc_info.value
        assert error.reason == FormatError.UNSUPPORTED_TOKEN
        assert error.path == "db:host"
        assert isinstance(error.cause, UnicodeDecodeError)

    def test_malformed_overridden_value_is_ignored(self):
        entries = (
            RawEntry("base/db/host", b"not json"),
            RawEntry("override/db/host", b'"b"'),
        )

        assert resolve(entries, BASE_AND_OVERRIDE) == {"db:host": "b"}


class TestDeterminism:
    """Test that resolution has no hidden state."""

    def test_same_input_same_output(self):
        entries = make_entries({
            "base/a": {"x": [1, 2]},
            "override/a": {"y": True},
            "base/b": "text",
            "ignored/c": 3,
        })
        resolver = OverlayResolver(BASE_AND_OVERRIDE)

        first = resolver.resolve(entries)
        second = resolver.resolve(entries)

        assert first == second
        assert list(first.items()) == list(second.items())
        assert first == resolve(entries, BASE_AND_OVERRIDE)

    def test_pending_items_are_tagged_with_priority(self):
        resolver = OverlayResolver(BASE_AND_OVERRIDE)
        items = resolver.pending_items(make_entries({"base/a": 1, "override/a": 2, "x/a": 3}))

        assert [(i.local_key, i.prefix, i.priority_index, i.sequence) for i in items] == [
            ("a", "base/", 0, 0),
            ("a", "override/", 1, 1),
        ]


class TestConfigKey:
    def test_separators_become_delimiters(self):
        assert to_config_key("db/primary/host") == "db:primary:host"

    def test_leading_separator_is_stripped(self):
        assert to_config_key("/db") == "db"
