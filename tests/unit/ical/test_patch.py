"""Unit tests for JMAP patch objects."""

import pytest

from jmapical.ical.exceptions import PatchError
from jmapical.ical.patch import apply, diff


class TestDiff:
    """Test patch creation."""

    def test_diff_when_equal_then_empty(self) -> None:
        """Test that identical objects need no patch."""
        assert diff({"a": 1, "b": {"c": 2}}, {"a": 1, "b": {"c": 2}}) == {}

    def test_diff_when_nested_change_then_member_pointer(self) -> None:
        """Test that nested objects are compared member by member."""
        base = {"locations": {"l1": {"name": "Office", "rel": "unknown"}}}
        target = {"locations": {"l1": {"name": "Cafe", "rel": "unknown"}}}
        assert diff(base, target) == {"locations/l1/name": "Cafe"}

    def test_diff_when_member_removed_then_null(self) -> None:
        """Test that removed members are patched to null."""
        assert diff({"title": "x", "color": "red"}, {"title": "x"}) == {"color": None}

    def test_diff_when_list_changed_then_replaced_whole(self) -> None:
        """Test that arrays are not diffed element-wise."""
        assert diff({"keywords": ["a", "b"]}, {"keywords": ["a"]}) == {"keywords": ["a"]}

    def test_diff_when_key_has_slash_then_escaped(self) -> None:
        """Test JSON pointer escaping of member names."""
        assert diff({}, {"a/b": 1, "c~d": 2}) == {"a~1b": 1, "c~0d": 2}


class TestApply:
    """Test patch application."""

    def test_apply_when_patch_then_copy_modified(self) -> None:
        """Test that the base object is left unmodified."""
        base = {"title": "x", "locations": {"l1": {"name": "Office"}}}

        result = apply(base, {"locations/l1/name": "Cafe", "title": None})

        assert result == {"locations": {"l1": {"name": "Cafe"}}}
        assert base == {"title": "x", "locations": {"l1": {"name": "Office"}}}

    def test_apply_when_diff_then_round_trips(self) -> None:
        """Test that applying a diff reproduces the target."""
        base = {"title": "x", "alerts": {"a1": {"offset": "PT5M"}}, "color": "red"}
        target = {"title": "y", "alerts": {"a1": {"offset": "PT10M"}}}
        assert apply(base, diff(base, target)) == target

    def test_apply_when_escaped_pointer_then_decoded(self) -> None:
        """Test that escaped reference tokens address the right member."""
        assert apply({}, {"a~1b": 1}) == {"a/b": 1}

    @pytest.mark.parametrize(
        "patch",
        [
            {"": 1},
            {"locations//name": "x"},
            {"locations/l9/name": "x"},
            {"title/sub": "x"},
        ],
    )
    def test_apply_when_bad_pointer_then_raises(self, patch) -> None:
        """Test that pointers without an existing parent are rejected."""
        with pytest.raises(PatchError):
            apply({"title": "x", "locations": {}}, patch)
