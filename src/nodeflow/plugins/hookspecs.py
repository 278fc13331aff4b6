# src/nodeflow/plugins/hookspecs.py
"""pluggy hook specifications for nodeflow operation plugins.

Plugins implement these hooks to contribute operations to a registry.

Usage (implementing a plugin):
    from nodeflow.plugins.hookspecs import hookimpl

    class MyPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def nodeflow_get_operations(self):
            return collect_operations(my_module)

A plain module with a ``@hookimpl`` function also works as a plugin.
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from nodeflow.contracts.operations import OperationSpec

# Project name for pluggy
PROJECT_NAME = "nodeflow"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class NodeflowOperationSpec:
    """Hook specifications for operation plugins."""

    @hookspec
    def nodeflow_get_operations(self) -> list["OperationSpec"]:  # type: ignore[empty-body]
        """Return operation descriptors.

        Returns:
            List of OperationSpec built with the @operation decorator
        """
