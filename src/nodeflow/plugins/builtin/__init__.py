"""Built-in operations.

core: entry marker, branching, logic, comparison, logging and run access.
collections: list helpers.
iteration: port-driven loops (for-each, map, repeat, while).
http: HTTP requests through httpx.
"""

from nodeflow.contracts.operations import OperationSpec
from nodeflow.plugins.builtin import collections, core, http, iteration
from nodeflow.plugins.hookspecs import hookimpl
from nodeflow.plugins.operation import collect_operations


class BuiltinOperations:
    """Plugin contributing every built-in operation."""

    @hookimpl
    def nodeflow_get_operations(self) -> list[OperationSpec]:
        return [
            *collect_operations(core),
            *collect_operations(collections),
            *collect_operations(iteration),
            *collect_operations(http),
        ]


__all__ = ["BuiltinOperations"]
