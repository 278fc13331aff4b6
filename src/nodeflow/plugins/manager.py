# src/nodeflow/plugins/manager.py
"""Operation registry for discovery, registration, and lookup.

Uses pluggy for hook-based plugin registration. The registry is populated
at startup and then frozen; after that it is read-only.
"""

from __future__ import annotations

import difflib
import importlib
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import pluggy

from nodeflow.contracts.errors import OperationNotFoundError
from nodeflow.contracts.operations import OperationSpec
from nodeflow.plugins.hookspecs import PROJECT_NAME, NodeflowOperationSpec

if TYPE_CHECKING:
    from nodeflow.core.config import RegistrySettings


class OperationRegistry:
    """Maps type tags to operation specs.

    Usage:
        registry = OperationRegistry()
        registry.register_builtin_operations()
        registry.register(MyPlugin())
        registry.freeze()

        spec = registry.get("for_each_string")
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(NodeflowOperationSpec)
        self._operations: dict[str, OperationSpec] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    def register_builtin_operations(self) -> None:
        """Register the operations shipped with nodeflow."""
        from nodeflow.plugins.builtin import BuiltinOperations

        self.register(BuiltinOperations())

    def register_module(self, dotted_path: str) -> None:
        """Import a module and register it as a plugin."""
        self.register(importlib.import_module(dotted_path))

    def register(self, plugin: Any) -> None:
        """Register a plugin.

        Args:
            plugin: Object or module implementing nodeflow_get_operations

        Raises:
            RuntimeError: If the registry is frozen
            ValueError: If a type tag is already registered
        """
        if self._frozen:
            raise RuntimeError("Operation registry is frozen; register operations at startup")
        self._pm.register(plugin)
        try:
            self._refresh_cache()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def _refresh_cache(self) -> None:
        """Rebuild the type tag cache from hooks.

        Raises:
            ValueError: If two operations share a type tag
        """
        operations: dict[str, OperationSpec] = {}
        for specs in self._pm.hook.nodeflow_get_operations():
            for spec in specs:
                if spec.type_tag in operations:
                    existing = operations[spec.type_tag].func
                    raise ValueError(
                        f"Duplicate operation type tag: '{spec.type_tag}'. "
                        f"Already registered by {existing.__module__}.{existing.__qualname__}"
                    )
                operations[spec.type_tag] = spec
        self._operations = operations

    def get(self, type_tag: str) -> OperationSpec:
        """Look up an operation.

        Raises:
            OperationNotFoundError: If the tag is unknown
        """
        try:
            return self._operations[type_tag]
        except KeyError:
            suggestions = difflib.get_close_matches(type_tag, list(self._operations), n=3, cutoff=0.6)
            raise OperationNotFoundError(type_tag, suggestions) from None

    def has(self, type_tag: str) -> bool:
        return type_tag in self._operations

    def type_tags(self) -> list[str]:
        return sorted(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[OperationSpec]:
        return iter([self._operations[tag] for tag in sorted(self._operations)])

    def __contains__(self, type_tag: object) -> bool:
        return type_tag in self._operations


def build_registry(settings: RegistrySettings | None = None) -> OperationRegistry:
    """Create and freeze the registry described by ``settings``."""
    registry = OperationRegistry()
    if settings is None or settings.include_builtins:
        registry.register_builtin_operations()
    if settings is not None:
        for dotted_path in settings.plugins:
            registry.register_module(dotted_path)
    registry.freeze()
    return registry
