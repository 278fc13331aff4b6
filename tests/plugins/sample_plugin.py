# tests/plugins/sample_plugin.py
"""Module-style plugin used by the registry tests."""

import sys

from nodeflow.contracts.operations import OperationSpec
from nodeflow.plugins.hookspecs import hookimpl
from nodeflow.plugins.operation import collect_operations, operation


@operation(category="Text")
def reverse_text(text: str) -> str:
    return (text or "")[::-1]


@hookimpl
def nodeflow_get_operations() -> list[OperationSpec]:
    return collect_operations(sys.modules[__name__])
