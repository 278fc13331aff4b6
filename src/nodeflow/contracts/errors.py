"""Error contracts.

Exception taxonomy raised across the engine, plus the TypedDict schema of
the structured error tree a failed node stores as its result.
"""

from typing import Any, TypedDict


class NodeErrorDetails(TypedDict):
    """Schema for the ``error`` object of a failed node's result."""

    message: str  # "Node '<name>' failed: <reason>"
    nodeId: str
    nodeName: str
    timestamp: str  # ISO-8601, UTC


class NodeErrorPayload(TypedDict):
    """Schema for a failed node's entire result tree."""

    error: NodeErrorDetails


class NodeflowError(Exception):
    """Base class for all nodeflow errors."""


class TypeMismatchError(NodeflowError, TypeError):
    """Raised when a value tree write traverses a non-container value.

    Attributes:
        path: Dotted path being written
        segment: Segment at which traversal failed
    """

    def __init__(self, path: str, segment: str, found: Any) -> None:
        self.path = path
        self.segment = segment
        super().__init__(f"Cannot set '{path}': segment '{segment}' traverses a {type(found).__name__} value")


class ExpressionError(NodeflowError):
    """Raised when a template fails to parse or render."""


class BindingError(NodeflowError):
    """Raised when an operation argument cannot be produced.

    Covers malformed templates, invalid literals and type coercion failures.
    There is no partial binding: the first failing parameter aborts.

    Attributes:
        parameter: Name of the parameter that failed to bind
    """

    def __init__(self, parameter: str, message: str) -> None:
        self.parameter = parameter
        super().__init__(f"Cannot bind parameter '{parameter}': {message}")


class InvocationError(NodeflowError):
    """Raised when an operation raises while running.

    The original exception is chained as ``__cause__`` and kept on
    ``cause``; the message is the cause's message.
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class UsageError(NodeflowError, ValueError):
    """Raised for invalid arguments that must fail the call outright.

    Unlike BindingError and InvocationError this is not converted into an
    error result at the node boundary; it propagates to the caller.

    Attributes:
        node_id: Node whose operation raised it, set once at that node
    """

    node_id: str | None = None


class OperationNotFoundError(NodeflowError, KeyError):
    """Raised when a type tag is not registered."""

    def __init__(self, type_tag: str, suggestions: list[str] | None = None) -> None:
        self.type_tag = type_tag
        self.suggestions = suggestions or []
        message = f"Unknown operation type '{type_tag}'"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0])


class GraphValidationError(NodeflowError, ValueError):
    """Raised when graph wiring is invalid."""
