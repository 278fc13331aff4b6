# src/nodeflow/core/value_tree.py
"""Hierarchical JSON-like values addressed by dotted paths.

A ValueTree wraps an object root of plain data (dict / list / str / int /
float / bool / None). Paths are dotted segment strings; on a list, a segment
that parses as a non-negative integer selects an element.

Reads never raise: a missing key, an out-of-range index or a path that runs
into a scalar simply yields the default. Writes create missing objects on the
way down and raise TypeMismatchError when they would have to descend into a
scalar.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from typing import Any

from nodeflow.contracts.errors import TypeMismatchError

_MISSING = object()


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split(".") if segment] if path else []


def _as_index(segment: str) -> int | None:
    return int(segment) if segment.isascii() and segment.isdecimal() else None


def _unwrap(value: Any) -> Any:
    if isinstance(value, ValueTree):
        return value.to_plain()
    return copy.deepcopy(value)


def get_path(data: Any, path: str, default: Any = None) -> Any:
    """Read ``path`` from plain data, returning ``default`` when absent."""
    current = data
    for segment in _segments(path):
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, list):
            index = _as_index(segment)
            current = current[index] if index is not None and index < len(current) else _MISSING
        else:
            return default
        if current is _MISSING:
            return default
    return current


def set_path(data: dict[str, Any], path: str, value: Any) -> None:
    """Write ``value`` at ``path`` inside ``data`` in place.

    Raises:
        ValueError: If path is empty
        TypeMismatchError: If a segment must descend into a scalar, or a
            non-numeric segment is applied to a list
    """
    segments = _segments(path)
    if not segments:
        raise ValueError("Cannot set an empty path")

    current: Any = data
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        if isinstance(current, dict):
            if last:
                current[segment] = value
                return
            child = current.get(segment)
            if child is None:
                child = current[segment] = {}
            elif not isinstance(child, dict | list):
                raise TypeMismatchError(path, segments[position + 1], child)
            current = child
        elif isinstance(current, list):
            index = _as_index(segment)
            if index is None:
                raise TypeMismatchError(path, segment, current)
            if index >= len(current):
                current.extend([None] * (index + 1 - len(current)))
            if last:
                current[index] = value
                return
            child = current[index]
            if child is None:
                child = current[index] = {}
            elif not isinstance(child, dict | list):
                raise TypeMismatchError(path, segments[position + 1], child)
            current = child
        else:
            raise TypeMismatchError(path, segment, current)


def deep_merge(target: dict[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``source`` into ``target`` in place; ``source`` wins.

    Nested objects merge recursively. Lists and scalars are replaced.
    """
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            deep_merge(existing, value)
        else:
            target[key] = copy.deepcopy(value)
    return target


class ValueTree:
    """Object-rooted tree of plain JSON-like data."""

    __slots__ = ("_root",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._root: dict[str, Any] = copy.deepcopy(dict(data)) if data else {}

    @classmethod
    def from_plain(cls, value: Any) -> ValueTree:
        """Wrap a plain value; non-object values become ``{"value": ...}``."""
        if isinstance(value, ValueTree):
            return value.copy()
        if isinstance(value, Mapping):
            return cls(value)
        return cls({"value": value})

    def get(self, path: str, default: Any = None) -> Any:
        return get_path(self._root, path, default)

    def contains(self, path: str) -> bool:
        return get_path(self._root, path, _MISSING) is not _MISSING

    def set(self, path: str, value: Any) -> ValueTree:
        set_path(self._root, path, _unwrap(value))
        return self

    def merge(self, other: ValueTree | Mapping[str, Any] | None) -> ValueTree:
        if other is None:
            return self
        source = other._root if isinstance(other, ValueTree) else other
        deep_merge(self._root, source)
        return self

    def to_plain(self) -> dict[str, Any]:
        return copy.deepcopy(self._root)

    def copy(self) -> ValueTree:
        return ValueTree(self._root)

    def keys(self) -> Iterator[str]:
        return iter(self._root)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.contains(path)

    def __bool__(self) -> bool:
        return bool(self._root)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValueTree):
            return self._root == other._root
        if isinstance(other, Mapping):
            return self._root == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ValueTree({self._root!r})"
