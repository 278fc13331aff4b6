"""Core infrastructure: logging, configuration, value trees and graphs."""

from nodeflow.core.value_tree import ValueTree, deep_merge, get_path, set_path

__all__ = [
    "ValueTree",
    "deep_merge",
    "get_path",
    "set_path",
]
