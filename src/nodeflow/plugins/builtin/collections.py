# src/nodeflow/plugins/builtin/collections.py
"""List operations.

A missing collection binds as None and is treated as empty. Operations
that need an element (first, last, max, min, get_at_index) raise, which
the node turns into an error result.
"""

from __future__ import annotations

from typing import Any

from nodeflow.plugins.operation import operation

# === Basics ===


@operation(category="Collections")
def count(collection: list[Any]) -> int:
    return len(collection or [])


@operation(category="Collections")
def get_at_index(collection: list[Any], index: int) -> Any:
    items = collection or []
    if index < 0 or index >= len(items):
        raise IndexError(f"Index {index} is out of range for a collection of {len(items)}")
    return items[index]


@operation(category="Collections")
def first(collection: list[Any]) -> Any:
    if not collection:
        raise ValueError("Collection is empty")
    return collection[0]


@operation(category="Collections")
def last(collection: list[Any]) -> Any:
    if not collection:
        raise ValueError("Collection is empty")
    return collection[-1]


@operation(category="Collections")
def contains(collection: list[Any], value: Any) -> bool:
    return value in (collection or [])


@operation(category="Collections")
def index_of(collection: list[Any], value: Any) -> int:
    """Position of ``value``, or -1."""
    items = collection or []
    return items.index(value) if value in items else -1


@operation(category="Collections")
def is_empty(collection: list[Any]) -> bool:
    return not collection


@operation(category="Collections")
def append(collection: list[Any], item: Any) -> list[Any]:
    return [*(collection or []), item]


@operation(category="Collections")
def concat(left: list[Any], right: list[Any]) -> list[Any]:
    return [*(left or []), *(right or [])]


@operation(category="Collections")
def create_string_list(item1: str, item2: str, item3: str) -> list[str]:
    return [item1, item2, item3]


# === Aggregates ===


@operation("sum", category="Collections")
def sum_(collection: list[float]) -> float:
    return sum(collection or [])


@operation(category="Collections")
def average(collection: list[float]) -> float:
    if not collection:
        return 0.0
    return sum(collection) / len(collection)


@operation("max", category="Collections")
def max_(collection: list[float]) -> float:
    if not collection:
        raise ValueError("Collection is empty")
    return max(collection)


@operation("min", category="Collections")
def min_(collection: list[float]) -> float:
    if not collection:
        raise ValueError("Collection is empty")
    return min(collection)


# === Text ===


@operation(category="Collections")
def join(collection: list[str], separator: str) -> str:
    return (separator or "").join(collection or [])


@operation(category="Collections")
def split(text: str, separator: str) -> list[str]:
    if not text:
        return []
    return text.split(separator) if separator else [text]


# === Generation ===


@operation("range", category="Collections")
def range_(start: int, count: int) -> list[int]:
    """``count`` consecutive integers from ``start``."""
    if count < 0:
        raise ValueError("Count must be non-negative")
    return list(range(start, start + count))


@operation(category="Collections")
def range_between(start: int, end: int) -> list[int]:
    """Integers from ``start`` to ``end`` inclusive."""
    if end < start:
        raise ValueError("End must be greater than or equal to start")
    return list(range(start, end + 1))


# === Filtering and shaping ===


@operation(category="Collections")
def filter_greater_than(collection: list[float], threshold: float) -> list[float]:
    return [item for item in collection or [] if item > threshold]


@operation(category="Collections")
def filter_less_than(collection: list[float], threshold: float) -> list[float]:
    return [item for item in collection or [] if item < threshold]


@operation(category="Collections")
def filter_contains(collection: list[str], substring: str) -> list[str]:
    return [item for item in collection or [] if substring in item]


@operation(category="Collections")
def sort(collection: list[Any], descending: bool = False) -> list[Any]:
    return sorted(collection or [], reverse=descending)


@operation(category="Collections")
def reverse(collection: list[Any]) -> list[Any]:
    return list(reversed(collection or []))


@operation(category="Collections")
def distinct(collection: list[Any]) -> list[Any]:
    """Remove duplicates, keeping first occurrences in order."""
    unique: list[Any] = []
    for item in collection or []:
        if item not in unique:
            unique.append(item)
    return unique


@operation(category="Collections")
def take(collection: list[Any], count: int) -> list[Any]:
    return (collection or [])[: max(count, 0)]


@operation(category="Collections")
def skip(collection: list[Any], count: int) -> list[Any]:
    return (collection or [])[max(count, 0) :]


@operation(category="Collections")
def filter_equals(collection: list[str], value: str) -> list[str]:
    return [item for item in collection or [] if item == value]


@operation(category="Collections")
def filter_not_equals(collection: list[str], value: str) -> list[str]:
    return [item for item in collection or [] if item != value]


@operation(category="Collections")
def filter_even(collection: list[int]) -> list[int]:
    return [item for item in collection or [] if item % 2 == 0]


@operation(category="Collections")
def filter_odd(collection: list[int]) -> list[int]:
    return [item for item in collection or [] if item % 2 != 0]


@operation(category="Collections")
def filter_not_empty(collection: list[str | None]) -> list[str]:
    """Drop None, empty and whitespace-only strings."""
    return [item for item in collection or [] if item and item.strip()]


# === Per-item transforms ===
# None items become "" (or 0 for lengths)


@operation(category="Collections")
def map_to_upper_case(collection: list[str | None]) -> list[str]:
    return [(item or "").upper() for item in collection or []]


@operation(category="Collections")
def map_to_lower_case(collection: list[str | None]) -> list[str]:
    return [(item or "").lower() for item in collection or []]


@operation(category="Collections")
def map_to_length(collection: list[str | None]) -> list[int]:
    return [len(item or "") for item in collection or []]


@operation(category="Collections")
def trim_all(collection: list[str | None]) -> list[str]:
    return [(item or "").strip() for item in collection or []]


@operation(category="Collections")
def replace_all(collection: list[str | None], old_value: str, new_value: str) -> list[str]:
    """Replace ``old_value`` in every item; an empty ``old_value`` changes nothing."""
    if not old_value:
        return [item or "" for item in collection or []]
    return [(item or "").replace(old_value, new_value or "") for item in collection or []]


@operation(category="Collections")
def prefix_all(collection: list[str | None], prefix: str) -> list[str]:
    return [f"{prefix or ''}{item or ''}" for item in collection or []]


@operation(category="Collections")
def suffix_all(collection: list[str | None], suffix: str) -> list[str]:
    return [f"{item or ''}{suffix or ''}" for item in collection or []]


@operation(category="Collections")
def multiply_all(collection: list[int], multiplier: int) -> list[int]:
    return [item * multiplier for item in collection or []]
