# src/nodeflow/engine/context.py
"""Execution context handed to operations.

ExecutionContext is the explicit value an operation receives in its
context parameter. It is created fresh for every evaluation of a node, so
an operation can only reach the node that is running it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from nodeflow.core.value_tree import ValueTree

if TYPE_CHECKING:
    from nodeflow.engine.node import Node


@dataclass(slots=True)
class RunContext:
    """State shared by every node of one graph run.

    Attributes:
        parameters: Read-only run parameters (templates see them as ``parameters``)
        outputs: Values published by operations during the run
    """

    parameters: Mapping[str, Any] = field(default_factory=dict)
    outputs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.parameters = MappingProxyType(dict(self.parameters))


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Per-evaluation view of the running node."""

    node: Node
    run: RunContext | None = None

    @property
    def node_id(self) -> str:
        return self.node.node_id

    @property
    def upstream(self) -> list[Node]:
        return list(self.node.upstream)

    @property
    def downstream(self) -> list[Node]:
        return list(self.node.downstream)

    @property
    def declared_ports(self) -> tuple[str, ...]:
        return self.node.declared_ports

    async def trigger_port(self, name: str) -> None:
        await self.node.trigger_port(name)

    def downstream_of(self, port: str | None = None) -> list[Node]:
        return self.node.downstream_of(port)

    def clear(self, nodes: Iterable[Node]) -> None:
        from nodeflow.engine.node import Node

        Node.clear_nodes(nodes)

    @contextmanager
    def iteration_result(self, values: Mapping[str, Any]) -> Iterator[ValueTree]:
        """Expose ``values`` as this node's ``output`` for the duration.

        The node's previous result (normally absent while it is computing)
        is restored on every exit path. Yields the live step tree so the
        caller can read what downstream nodes left in it.
        """
        saved = self.node.result
        step = ValueTree({"output": dict(values)})
        self.node.result = step
        try:
            yield step
        finally:
            self.node.result = saved
