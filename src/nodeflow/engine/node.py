# src/nodeflow/engine/node.py
"""Graph node: a registered operation plus wiring and evaluation state.

Evaluation is pull-based. Asking a node for its result first asks every
upstream node for theirs, merges them, binds the operation's parameters
from the merged tree, invokes the operation and maps its return value
into the node's result. Results are memoized until cleared.

Concurrency model (asyncio):
    - get_result is single-flight: concurrent callers of an absent node
      wait on one asyncio.Lock and the second caller re-checks the result
      after acquiring it, so the operation runs once.
    - trigger_port on a node with no result yet only appends to a FIFO
      queue. The check and the append have no suspension point between
      them, so they cannot interleave with the result write. The queue is
      drained every time the node leaves the in-flight state.

Failure model:
    - BindingError and InvocationError become a structured error result
      ({"error": {...}}); the node is FAILED and nothing is raised.
    - UsageError is recorded and re-raised; the node stays ABSENT.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic_core import to_jsonable_python

from nodeflow.contracts.enums import NodeState, ObserverEvent
from nodeflow.contracts.errors import (
    BindingError,
    InvocationError,
    NodeErrorPayload,
    TypeMismatchError,
    UsageError,
)
from nodeflow.contracts.operations import OperationSpec, PathMapEntry
from nodeflow.core.logging import get_logger
from nodeflow.core.value_tree import ValueTree
from nodeflow.engine.binder import ParameterBinder
from nodeflow.engine.context import ExecutionContext, RunContext

logger = get_logger(__name__)

DEFAULT_PORT = "default"

type NodeCallback = Callable[[Node], Any]


def _port_key(port: str | None) -> str:
    return (port or DEFAULT_PORT).strip().casefold()


class Subscription:
    """Handle for one observer registration.

    Closing is idempotent. Usable as a context manager so the
    registration never outlives the block that made it.
    """

    __slots__ = ("_callbacks", "_callback", "_closed")

    def __init__(self, callbacks: list[NodeCallback], callback: NodeCallback) -> None:
        self._callbacks = callbacks
        self._callback = callback
        self._closed = False
        callbacks.append(callback)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._callbacks.remove(self._callback)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Node:
    """One vertex of a data-flow graph."""

    def __init__(
        self,
        node_id: str,
        operation: OperationSpec,
        *,
        name: str | None = None,
        input_map: Sequence[PathMapEntry] = (),
        output_map: Sequence[PathMapEntry] = (),
        merge_output_with_input: bool = False,
        declared_ports: Sequence[str] | None = None,
        binder: ParameterBinder | None = None,
    ) -> None:
        self.node_id = node_id
        self.operation = operation
        self.name = name or operation.type_tag
        self.input_map: tuple[PathMapEntry, ...] = tuple(input_map)
        self.output_map: tuple[PathMapEntry, ...] = tuple(output_map)
        self.merge_output_with_input = merge_output_with_input
        self._declared_ports: tuple[str, ...] = tuple(
            operation.ports if declared_ports is None else declared_ports
        )
        self._binder = binder if binder is not None else ParameterBinder()

        # Wiring
        self.upstream: list[Node] = []
        self.downstream: list[Node] = []
        self._output_ports: dict[str, tuple[str, list[Node]]] = {}
        self._closure_cache: dict[str | None, list[Node]] = {}

        # Computed state
        self.result: ValueTree | None = None
        self.input: ValueTree | None = None
        self.has_error = False
        self.error_message: str | None = None
        self.last_exception: BaseException | None = None
        self.error_at: datetime | None = None

        self.run_context: RunContext | None = None

        self._lock = asyncio.Lock()
        self._pending_ports: deque[str] = deque()
        self._observers: dict[ObserverEvent, list[NodeCallback]] = {event: [] for event in ObserverEvent}

    def __repr__(self) -> str:
        return f"Node({self.node_id!r}, {self.operation.type_tag!r}, state={self.state.value})"

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def declared_ports(self) -> tuple[str, ...]:
        return self._declared_ports

    @property
    def is_port_driven(self) -> bool:
        return bool(self._declared_ports)

    @property
    def output_ports(self) -> dict[str, list[Node]]:
        """Port name to ordered targets, as originally spelled."""
        return {label: list(targets) for label, targets in self._output_ports.values()}

    def add_output_connection(self, port: str | None, target: Node) -> None:
        key = _port_key(port)
        label, targets = self._output_ports.setdefault(key, ((port or DEFAULT_PORT).strip(), []))
        if target not in targets:
            targets.append(target)
        if target not in self.downstream:
            self.downstream.append(target)
        self._closure_cache.clear()

    def add_input_connection(self, source: Node) -> None:
        if source not in self.upstream:
            self.upstream.append(source)

    def invalidate_closures(self) -> None:
        self._closure_cache.clear()

    def port_targets(self, port: str | None) -> list[Node]:
        entry = self._output_ports.get(_port_key(port))
        return list(entry[1]) if entry else []

    def downstream_of(self, port: str | None = None) -> list[Node]:
        """Breadth-first closure below ``port`` (or below every output).

        Starts from the port's direct targets and follows all downstream
        edges from there. Ordered, de-duplicated and cached per port.
        """
        key = None if port is None else _port_key(port)
        cached = self._closure_cache.get(key)
        if cached is not None:
            return list(cached)

        frontier = deque(self.downstream if port is None else self.port_targets(port))
        seen: set[int] = set()
        closure: list[Node] = []
        while frontier:
            current = frontier.popleft()
            if id(current) in seen:
                continue
            seen.add(id(current))
            closure.append(current)
            frontier.extend(current.downstream)

        self._closure_cache[key] = closure
        return list(closure)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> NodeState:
        if self._lock.locked():
            return NodeState.IN_FLIGHT
        if self.result is None:
            return NodeState.ABSENT
        return NodeState.FAILED if self.has_error else NodeState.READY

    def clear_result(self) -> None:
        """Reset computed state. Wiring is untouched."""
        self.result = None
        self.input = None
        self.has_error = False
        self.error_message = None
        self.last_exception = None
        self.error_at = None
        self._pending_ports.clear()

    @staticmethod
    def clear_nodes(nodes: Iterable[Node]) -> None:
        for node in nodes:
            node.clear_result()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, event: ObserverEvent | str, callback: NodeCallback) -> Subscription:
        return Subscription(self._observers[ObserverEvent(event)], callback)

    @contextmanager
    def observe(
        self,
        *,
        on_start: NodeCallback | None = None,
        on_stop: NodeCallback | None = None,
        on_error: NodeCallback | None = None,
    ) -> Iterator[Node]:
        """Subscribe for the duration of the block."""
        subscriptions = [
            self.subscribe(event, callback)
            for event, callback in (
                (ObserverEvent.START, on_start),
                (ObserverEvent.STOP, on_stop),
                (ObserverEvent.ERROR, on_error),
            )
            if callback is not None
        ]
        try:
            yield self
        finally:
            for subscription in subscriptions:
                subscription.close()

    def _notify(self, event: ObserverEvent) -> None:
        for callback in list(self._observers[event]):
            try:
                callback(self)
            except Exception:
                logger.exception("Node observer failed", node_id=self.node_id, event=event.value)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def execute(self, caller: Node | None = None) -> ValueTree:
        """Compute (or reuse) the result; linear nodes then fan out."""
        result = await self.get_result(caller or self)
        if not self.is_port_driven:
            for target in list(self.downstream):
                await target.execute(self)
        return result

    async def get_result(self, caller: Node | None = None) -> ValueTree:
        """Return the memoized result, computing it at most once."""
        if self.result is not None:
            return self.result

        async with self._lock:
            if self.result is not None:
                return self.result
            self._notify(ObserverEvent.START)
            try:
                with structlog.contextvars.bound_contextvars(node_id=self.node_id):
                    result = await self._compute()
            except BaseException:
                self._discard_pending_ports()
                self._notify(ObserverEvent.STOP)
                raise
            self.result = result

        try:
            await self._drain_pending_ports()
        except BaseException:
            self._discard_pending_ports()
            raise
        finally:
            self._notify(ObserverEvent.STOP)
        return result

    async def _compute(self) -> ValueTree:
        self.has_error = False
        self.error_message = None
        self.last_exception = None
        self.error_at = None

        try:
            merged = ValueTree()
            for source in list(self.upstream):
                merged.merge(await source.get_result(self))

            input_tree = ValueTree()
            input_tree.set("input", merged.get("output"))
            self.input = input_tree

            context = ExecutionContext(self, self.run_context)
            arguments = self._binder.bind(self.operation, self.input_map, input_tree, context, self.run_context)
            logger.debug("Invoking operation", operation=self.operation.type_tag)
            returned = await self.operation.invoke(arguments)
            result = self._map_outputs(returned)
        except (BindingError, InvocationError) as exc:
            self._record_failure(exc)
            return self._error_result()
        except UsageError as exc:
            # Upstream and loop-body failures are recorded where they were raised
            if exc.node_id is None:
                exc.node_id = self.node_id
                self._record_failure(exc)
            raise

        if self.merge_output_with_input:
            result = merged.merge(result)
        logger.debug("Node completed", operation=self.operation.type_tag)
        return result

    def _map_outputs(self, returned: Any) -> ValueTree:
        result = ValueTree()
        if returned is None:
            return result
        try:
            plain = to_jsonable_python(returned, by_alias=True)
        except Exception as exc:
            raise InvocationError(self.operation.type_tag, exc) from exc

        whole = self.operation.single_value or not isinstance(plain, dict)
        source = None if whole else ValueTree(plain)
        try:
            for entry in self.output_map:
                value = plain if source is None else source.get(entry.source)
                result.set(f"output.{entry.destination}", value)
        except (TypeMismatchError, ValueError) as exc:
            raise InvocationError(self.operation.type_tag, exc) from exc
        return result

    def _record_failure(self, exc: BaseException) -> None:
        self.has_error = True
        self.error_message = f"Node '{self.name}' failed: {exc}"
        self.last_exception = exc
        self.error_at = datetime.now(UTC)
        logger.warning("Node failed", node_id=self.node_id, error=self.error_message)
        self._notify(ObserverEvent.ERROR)

    def _error_result(self) -> ValueTree:
        assert self.error_message is not None
        assert self.error_at is not None
        payload: NodeErrorPayload = {
            "error": {
                "message": self.error_message,
                "nodeId": self.node_id,
                "nodeName": self.name,
                "timestamp": self.error_at.isoformat(),
            }
        }
        return ValueTree(payload)

    # ------------------------------------------------------------------
    # Ports
    # ------------------------------------------------------------------

    async def trigger_port(self, name: str | None) -> None:
        """Run a port's targets now, or queue it until a result exists."""
        if not name or not name.strip():
            return
        if self.result is None:
            self._pending_ports.append(name)
            logger.debug("Port trigger queued", node_id=self.node_id, port=name)
            return
        await self._run_port(name)

    async def _run_port(self, name: str) -> None:
        targets = self.port_targets(name) if self.is_port_driven else list(self.downstream)
        for target in targets:
            await target.execute(self)

    async def _drain_pending_ports(self) -> None:
        while self._pending_ports:
            name = self._pending_ports.popleft()
            logger.debug("Draining queued port trigger", node_id=self.node_id, port=name)
            await self._run_port(name)

    def _discard_pending_ports(self) -> None:
        if self._pending_ports:
            logger.warning(
                "Discarding queued port triggers",
                node_id=self.node_id,
                ports=list(self._pending_ports),
            )
            self._pending_ports.clear()
