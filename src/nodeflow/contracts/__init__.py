"""Shared contracts: enums, errors and operation descriptors.

Leaf module. Nothing here imports from core, engine or plugins.
"""

from nodeflow.contracts.enums import NodeState, ObserverEvent, ParameterKind
from nodeflow.contracts.errors import (
    BindingError,
    ExpressionError,
    GraphValidationError,
    InvocationError,
    NodeErrorPayload,
    NodeflowError,
    OperationNotFoundError,
    TypeMismatchError,
    UsageError,
)
from nodeflow.contracts.operations import OperationSpec, ParameterSpec, PathMapEntry

__all__ = [
    "BindingError",
    "ExpressionError",
    "GraphValidationError",
    "InvocationError",
    "NodeErrorPayload",
    "NodeState",
    "NodeflowError",
    "ObserverEvent",
    "OperationNotFoundError",
    "OperationSpec",
    "ParameterKind",
    "ParameterSpec",
    "PathMapEntry",
    "TypeMismatchError",
    "UsageError",
]
