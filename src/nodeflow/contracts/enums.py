# src/nodeflow/contracts/enums.py
"""Status and kind enumerations.

StrEnum values render cleanly in logs and JSON output.
"""

from enum import StrEnum


class NodeState(StrEnum):
    """Evaluation state of a node.

    ABSENT: no result yet (initial, or after clear).
    IN_FLIGHT: one caller holds the node's lock and is computing.
    READY: a result is present.
    FAILED: a result is present and it is the structured error tree.
    """

    ABSENT = "absent"
    IN_FLIGHT = "in_flight"
    READY = "ready"
    FAILED = "failed"


class ParameterKind(StrEnum):
    """How a declared operation parameter receives its value."""

    VALUE = "value"
    CONTEXT = "context"


class ObserverEvent(StrEnum):
    """Node lifecycle notifications."""

    START = "start"
    STOP = "stop"
    ERROR = "error"
