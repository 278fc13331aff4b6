# src/nodeflow/plugins/builtin/core.py
"""Core operations: entry point, branching, boolean logic, comparison and utilities."""

from __future__ import annotations

import asyncio
import math
import uuid
from typing import Any

from nodeflow.core.graph.graph import ENTRY_TYPE_TAG
from nodeflow.core.logging import get_logger
from nodeflow.engine.context import ExecutionContext
from nodeflow.plugins.operation import operation

logger = get_logger(__name__)

# === Events ===


@operation(ENTRY_TYPE_TAG, category="Events")
def start() -> None:
    """Entry point of a graph run."""


# === Branching ===


@operation("if", ports=("true", "false"), category="Logic")
async def if_(condition: bool, context: ExecutionContext) -> None:
    """Trigger the ``true`` or ``false`` port."""
    await context.trigger_port("true" if condition else "false")


# === Boolean logic ===


@operation("and", category="Logic")
def and_(a: bool, b: bool) -> bool:
    return a and b


@operation("or", category="Logic")
def or_(a: bool, b: bool) -> bool:
    return a or b


@operation(category="Logic")
def xor(a: bool, b: bool) -> bool:
    return a != b


@operation("not", category="Logic")
def not_(value: bool) -> bool:
    return not value


@operation(category="Logic")
def ternary(condition: bool, true_value: str, false_value: str) -> str:
    """Pick one of two strings."""
    return true_value if condition else false_value


# === Comparison ===


@operation(category="Comparison")
def equal(a: int, b: int) -> bool:
    return a == b


@operation(category="Comparison")
def not_equal(a: int, b: int) -> bool:
    return a != b


@operation(category="Comparison")
def greater_than(a: int, b: int) -> bool:
    return a > b


@operation(category="Comparison")
def greater_or_equal(a: int, b: int) -> bool:
    return a >= b


@operation(category="Comparison")
def less_than(a: int, b: int) -> bool:
    return a < b


@operation(category="Comparison")
def less_or_equal(a: int, b: int) -> bool:
    return a <= b


@operation(category="Comparison")
def equal_within(a: float, b: float, tolerance: float = 0.0) -> bool:
    """Compare two floats with an absolute tolerance."""
    return math.isclose(a, b, rel_tol=0.0, abs_tol=abs(tolerance))


@operation(category="Comparison")
def string_equals(a: str, b: str, ignore_case: bool = False) -> bool:
    if a is None or b is None:
        return a is b
    if ignore_case:
        return a.casefold() == b.casefold()
    return a == b


# === Utility ===


@operation(category="Utility")
def log(message: str) -> None:
    logger.info(message, source="log_operation")


@operation(category="Utility")
def log_error(message: str) -> None:
    logger.error(message, source="log_operation")


@operation(category="Utility")
async def wait(time_ms: int) -> None:
    """Sleep for ``time_ms`` milliseconds (negative waits are zero)."""
    await asyncio.sleep(max(time_ms, 0) / 1000)


@operation(category="Utility")
def new_guid() -> str:
    return str(uuid.uuid4())


# === Run context ===


@operation(category="Run")
def get_parameter(name: str, context: ExecutionContext) -> Any:
    """Read a run parameter; absent outside a run or when not supplied."""
    if context.run is None:
        return None
    return context.run.parameters.get(name)


@operation(category="Run")
def set_output(key: str, value: Any, context: ExecutionContext) -> None:
    """Publish a value in the run's shared outputs.

    Raises:
        ValueError: Outside a graph run, or with an empty key
    """
    if context.run is None:
        raise ValueError("set_output requires a graph run")
    if not key:
        raise ValueError("set_output requires a non-empty key")
    context.run.outputs[key] = value
