"""Operation descriptors.

An OperationSpec is the immutable, introspected description of a
registered callable: its type tag, its parameters in declared order,
the ports it may trigger and the shape of what it returns.
"""

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from nodeflow.contracts.enums import ParameterKind
from nodeflow.contracts.errors import InvocationError, UsageError

_ZERO_VALUES: dict[Any, Any] = {int: 0, float: 0.0, bool: False}


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """One declared parameter of an operation."""

    name: str
    annotation: Any = Any
    kind: ParameterKind = ParameterKind.VALUE
    default: Any = inspect.Parameter.empty

    @property
    def is_context(self) -> bool:
        return self.kind == ParameterKind.CONTEXT

    @property
    def is_text(self) -> bool:
        return self.annotation is str

    def zero_value(self) -> Any:
        """Value used when the parameter has no input mapping.

        The declared default wins; otherwise value types get their zero
        and everything else gets None.
        """
        if self.default is not inspect.Parameter.empty:
            return self.default
        return _ZERO_VALUES.get(self.annotation)


@dataclass(frozen=True, slots=True)
class PathMapEntry:
    """One mapping row: read ``source``, write ``destination``.

    Input maps use (source path or template -> parameter name).
    Output maps use (path in the returned value -> path under ``output``).
    """

    source: str
    destination: str


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """Registered operation.

    Attributes:
        type_tag: Registry key
        func: The wrapped callable (sync or async)
        parameters: Declared parameters, in call order
        ports: Named ports the operation may trigger; empty means linear
        outputs: Declared output names
        single_value: True when the whole return value is one output
        category: Grouping label for listings
        description: First line of the callable's docstring
    """

    type_tag: str
    func: Callable[..., Any]
    parameters: tuple[ParameterSpec, ...] = ()
    ports: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    single_value: bool = True
    category: str = "General"
    description: str = field(default="", compare=False)

    @property
    def is_port_driven(self) -> bool:
        return bool(self.ports)

    @property
    def context_parameter(self) -> ParameterSpec | None:
        for param in self.parameters:
            if param.is_context:
                return param
        return None

    async def invoke(self, arguments: Mapping[str, Any]) -> Any:
        """Call the operation with bound keyword arguments.

        Raises:
            UsageError: Propagated unchanged
            InvocationError: Wrapping any other exception
        """
        try:
            value = self.func(**arguments)
            if inspect.isawaitable(value):
                value = await value
        except UsageError:
            raise
        except Exception as exc:
            raise InvocationError(self.type_tag, exc) from exc
        return value
