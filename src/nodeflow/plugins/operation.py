# src/nodeflow/plugins/operation.py
"""The @operation decorator.

Turns a plain (sync or async) function into a registrable operation by
introspecting its signature once, at import time:

    @operation("greater_than", category="Comparison")
    def greater_than(a: float, b: float) -> bool:
        return a > b

The parameter annotated ``ExecutionContext`` receives the running node's
context. Everything else is bound from the node's input mappings.
"""

from __future__ import annotations

import dataclasses
import inspect
import typing
from collections.abc import Callable, Sequence
from types import ModuleType
from typing import Any, TypeVar, is_typeddict

from pydantic import BaseModel

from nodeflow.contracts.enums import ParameterKind
from nodeflow.contracts.operations import OperationSpec, ParameterSpec
from nodeflow.engine.context import ExecutionContext

F = TypeVar("F", bound=Callable[..., Any])

OPERATION_ATTR = "__nodeflow_operation__"


def _declared_outputs(annotation: Any) -> tuple[tuple[str, ...], bool]:
    """Return (output names, single_value) for a return annotation."""
    if annotation is None or annotation is type(None):
        return (), False
    if isinstance(annotation, type):
        if issubclass(annotation, BaseModel):
            return tuple(info.alias or name for name, info in annotation.model_fields.items()), False
        if dataclasses.is_dataclass(annotation):
            return tuple(f.name for f in dataclasses.fields(annotation)), False
        if is_typeddict(annotation):
            return tuple(annotation.__annotations__), False
    return ("result",), True


def _unwrap_awaitable(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is not None and getattr(origin, "__name__", "") in {"Awaitable", "Coroutine"}:
        return typing.get_args(annotation)[-1]
    return annotation


def build_operation_spec(
    func: Callable[..., Any],
    type_tag: str | None = None,
    *,
    ports: Sequence[str] = (),
    category: str = "General",
) -> OperationSpec:
    """Introspect ``func`` into an OperationSpec.

    Raises:
        TypeError: If more than one parameter takes the ExecutionContext,
            or the function uses *args / **kwargs
    """
    hints = typing.get_type_hints(func)
    parameters: list[ParameterSpec] = []
    for param in inspect.signature(func).parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise TypeError(f"Operation '{func.__name__}' cannot take *args or **kwargs")
        annotation = hints.get(param.name, Any)
        kind = ParameterKind.CONTEXT if annotation is ExecutionContext else ParameterKind.VALUE
        parameters.append(ParameterSpec(param.name, annotation, kind, param.default))

    if sum(p.is_context for p in parameters) > 1:
        raise TypeError(f"Operation '{func.__name__}' declares more than one ExecutionContext parameter")

    outputs, single_value = _declared_outputs(_unwrap_awaitable(hints.get("return", Any)))
    doc = inspect.getdoc(func) or ""
    return OperationSpec(
        type_tag=type_tag or func.__name__.rstrip("_"),
        func=func,
        parameters=tuple(parameters),
        ports=tuple(ports),
        outputs=outputs,
        single_value=single_value,
        category=category,
        description=doc.splitlines()[0] if doc else "",
    )


def operation(
    type_tag: str | None = None,
    *,
    ports: Sequence[str] = (),
    category: str = "General",
) -> Callable[[F], F]:
    """Mark a function as an operation. The function is returned unchanged."""

    def decorator(func: F) -> F:
        setattr(func, OPERATION_ATTR, build_operation_spec(func, type_tag, ports=ports, category=category))
        return func

    return decorator


def get_operation_spec(func: Callable[..., Any]) -> OperationSpec:
    """Return the spec attached by @operation.

    Raises:
        TypeError: If ``func`` was not decorated
    """
    spec = getattr(func, OPERATION_ATTR, None)
    if not isinstance(spec, OperationSpec):
        raise TypeError(f"{func!r} is not decorated with @operation")
    return spec


def collect_operations(module: ModuleType) -> list[OperationSpec]:
    """Gather the operation specs defined in ``module``, in definition order."""
    specs = []
    for value in vars(module).values():
        spec = getattr(value, OPERATION_ATTR, None)
        if isinstance(spec, OperationSpec) and getattr(value, "__module__", None) == module.__name__:
            specs.append(spec)
    return specs
