# tests/property/test_value_tree_properties.py
"""Property-based tests for ValueTree path and merge laws.

Properties:
- A value written at a path reads back unchanged
- Merging a tree into itself is idempotent
- After a merge, every leaf of the incoming tree is visible at its path
- Merging never mutates the incoming tree
- Reads never raise, whatever the path text
"""

from __future__ import annotations

import copy
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from nodeflow.contracts.errors import TypeMismatchError
from nodeflow.core.value_tree import ValueTree

# Object keys without dots, so they address exactly one segment
keys = st.from_regex(r"[a-z][a-z0-9_]{0,6}", fullmatch=True)

scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**31), max_value=2**31),
    st.text(max_size=10),
)

json_values = st.recursive(
    scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(keys, children, max_size=4),
    ),
    max_leaves=20,
)

objects = st.dictionaries(keys, json_values, max_size=5)
paths = st.lists(keys, min_size=1, max_size=4).map(".".join)

# Any single segment that is not a plain ASCII list index
non_index_segments = st.text(min_size=1, max_size=8).filter(
    lambda segment: "." not in segment and not (segment.isascii() and segment.isdecimal())
)


def _leaves(data: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    found: list[tuple[str, Any]] = []
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            # An empty incoming object merges into an existing one unchanged
            found.extend(_leaves(value, path))
        else:
            found.append((path, value))
    return found


class TestValueTreeProperties:
    """Laws that hold for arbitrary JSON-like objects."""

    @given(path=paths, value=json_values)
    def test_set_then_get_round_trips(self, path: str, value: Any) -> None:
        tree = ValueTree()

        tree.set(path, value)

        assert tree.get(path) == value

    @given(data=objects)
    def test_self_merge_is_idempotent(self, data: dict[str, Any]) -> None:
        tree = ValueTree(data)

        tree.merge(ValueTree(data))

        assert tree == data

    @given(base=objects, incoming=objects)
    def test_incoming_leaves_win(self, base: dict[str, Any], incoming: dict[str, Any]) -> None:
        tree = ValueTree(base)

        tree.merge(incoming)

        for path, value in _leaves(incoming):
            assert tree.get(path) == value

    @given(base=objects, incoming=objects)
    def test_merge_leaves_source_untouched(self, base: dict[str, Any], incoming: dict[str, Any]) -> None:
        snapshot = copy.deepcopy(incoming)

        ValueTree(base).merge(incoming)

        assert incoming == snapshot

    @given(path=st.text(max_size=20))
    def test_get_never_raises(self, path: str) -> None:
        tree = ValueTree({"a": [1, {"b": [2]}], "c": "text"})

        tree.get(path)
        tree.get(f"a.{path}")

    @given(segment=non_index_segments)
    def test_non_index_segment_on_list_is_type_mismatch(self, segment: str) -> None:
        tree = ValueTree({"a": [1, 2]})

        with pytest.raises(TypeMismatchError):
            tree.set(f"a.{segment}", 3)

        assert tree.get(f"a.{segment}") is None
