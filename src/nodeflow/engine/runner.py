# src/nodeflow/engine/runner.py
"""Whole-graph runs.

A run resets every node, installs a fresh RunContext, and executes all
entry nodes concurrently. Shared upstream nodes are still computed once
thanks to per-node single-flight evaluation.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from nodeflow.core.graph import Graph
from nodeflow.core.logging import get_logger
from nodeflow.engine.context import RunContext

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RunResult:
    """Outcome of one graph run.

    Attributes:
        outputs: Values published through the run context
        results: Plain result tree of every node that produced one
        errors: Error message of every failed node
        duration_ms: Wall-clock run time
    """

    outputs: dict[str, Any] = field(default_factory=dict)
    results: dict[str, dict[str, Any]] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "outputs": self.outputs,
            "results": self.results,
            "errors": self.errors,
            "duration_ms": self.duration_ms,
        }


class GraphRunner:
    """Runs a graph from its entry nodes."""

    def __init__(self, graph: Graph) -> None:
        self._graph = graph

    @property
    def graph(self) -> Graph:
        return self._graph

    async def run(self, parameters: Mapping[str, Any] | None = None) -> RunResult:
        """Execute the graph once.

        Raises:
            UsageError: If an operation rejects its arguments outright
        """
        run_context = RunContext(parameters=parameters or {})
        self._graph.reset()
        for node in self._graph:
            node.run_context = run_context

        entries = self._graph.entry_nodes()
        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(run_entries=[node.node_id for node in entries]):
            logger.info("Graph run started", nodes=len(self._graph))
            try:
                async with asyncio.TaskGroup() as group:
                    for node in entries:
                        group.create_task(node.execute())
            except ExceptionGroup as failures:
                if len(failures.exceptions) == 1:
                    raise failures.exceptions[0] from None
                raise

            result = RunResult(
                outputs=dict(run_context.outputs),
                results={node.node_id: node.result.to_plain() for node in self._graph if node.result is not None},
                errors={node.node_id: node.error_message or "" for node in self._graph if node.has_error},
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            logger.info(
                "Graph run finished",
                succeeded=result.succeeded,
                failed_nodes=sorted(result.errors),
                duration_ms=round(result.duration_ms, 3),
            )
        return result
