"""Operation plugins: hook specs, the @operation decorator and the registry."""

from nodeflow.plugins.hookspecs import hookimpl, hookspec
from nodeflow.plugins.manager import OperationRegistry, build_registry
from nodeflow.plugins.operation import build_operation_spec, collect_operations, get_operation_spec, operation

__all__ = [
    "OperationRegistry",
    "build_operation_spec",
    "build_registry",
    "collect_operations",
    "get_operation_spec",
    "hookimpl",
    "hookspec",
    "operation",
]
