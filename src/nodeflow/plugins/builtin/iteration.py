# src/nodeflow/plugins/builtin/iteration.py
"""Port-driven iteration operations.

Every loop follows the same skeleton:

    body = downstream closure of the body port (computed once)
    for each step:
        clear every node in body
        expose the step values as this node's ``output``
        trigger the body port and wait for it
    trigger ``done``

Because the body is cleared before each step, downstream nodes re-evaluate
and pull the fresh step values. The ``done`` trigger fires after the step
values are withdrawn, so it is queued and runs once this node's aggregate
result has been stored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nodeflow.contracts.errors import UsageError
from nodeflow.core.value_tree import ValueTree
from nodeflow.engine.context import ExecutionContext
from nodeflow.plugins.operation import operation

DONE_PORT = "done"


class _IterationResult(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ProcessedItem(_IterationResult):
    index: int
    item: Any
    processed: bool = True


class ForEachResult(_IterationResult):
    results: list[ProcessedItem] = Field(default_factory=list)
    item_count: int = 0


class MapResult(_IterationResult):
    transformed_items: list[Any] = Field(default_factory=list)


class RepeatResult(_IterationResult):
    times_executed: int = 0


class WhileResult(_IterationResult):
    iterations_executed: int = 0
    completed_normally: bool = True


async def run_steps(
    context: ExecutionContext,
    port: str,
    steps: Iterable[Mapping[str, Any]],
) -> list[ValueTree]:
    """Drive ``port`` once per step, then trigger ``done``.

    Returns the step trees as they stood after each body pass.
    """
    body = context.downstream_of(port)
    passes: list[ValueTree] = []
    for values in steps:
        context.clear(body)
        with context.iteration_result(values) as step:
            await context.trigger_port(port)
            passes.append(step.copy())
    await context.trigger_port(DONE_PORT)
    return passes


def _for_each_steps(collection: list[Any]) -> list[dict[str, Any]]:
    total = len(collection)
    return [
        {
            "currentItem": item,
            "currentIndex": index,
            "totalCount": total,
            "isFirst": index == 0,
            "isLast": index == total - 1,
        }
        for index, item in enumerate(collection)
    ]


async def _for_each(collection: list[Any] | None, context: ExecutionContext) -> ForEachResult:
    items = list(collection or [])
    await run_steps(context, "item", _for_each_steps(items))
    return ForEachResult(
        results=[ProcessedItem(index=index, item=item) for index, item in enumerate(items)],
        item_count=len(items),
    )


async def _map(collection: list[Any] | None, context: ExecutionContext) -> MapResult:
    items = list(collection or [])
    steps = [{"item": item, "index": index} for index, item in enumerate(items)]
    passes = await run_steps(context, "transform", steps)
    return MapResult(transformed_items=[step.get("output.item") for step in passes])


# === For each ===


@operation(ports=("item", DONE_PORT), category="Iteration")
async def for_each_string(collection: list[str], context: ExecutionContext) -> ForEachResult:
    """Run the ``item`` port once per string."""
    return await _for_each(collection, context)


@operation(ports=("item", DONE_PORT), category="Iteration")
async def for_each_number(collection: list[int], context: ExecutionContext) -> ForEachResult:
    """Run the ``item`` port once per number."""
    return await _for_each(collection, context)


@operation(ports=("item", DONE_PORT), category="Iteration")
async def for_each_json(collection: list[Any], context: ExecutionContext) -> ForEachResult:
    """Run the ``item`` port once per element of a JSON array."""
    return await _for_each(collection, context)


# === Map ===


@operation(ports=("transform", DONE_PORT), category="Iteration")
async def map_strings(collection: list[str], context: ExecutionContext) -> MapResult:
    return await _map(collection, context)


@operation(ports=("transform", DONE_PORT), category="Iteration")
async def map_numbers(collection: list[int], context: ExecutionContext) -> MapResult:
    return await _map(collection, context)


@operation(ports=("transform", DONE_PORT), category="Iteration")
async def map_json(collection: list[Any], context: ExecutionContext) -> MapResult:
    return await _map(collection, context)


# === Counted loops ===


@operation(ports=("body", DONE_PORT), category="Iteration")
async def repeat(times: int, context: ExecutionContext) -> RepeatResult:
    """Run the ``body`` port ``times`` times.

    Raises:
        UsageError: If ``times`` is negative (before any port fires)
    """
    if times < 0:
        raise UsageError(f"times must be non-negative, got {times}")
    steps = [
        {"counter": counter, "total": times, "isFirst": counter == 0, "isLast": counter == times - 1}
        for counter in range(times)
    ]
    await run_steps(context, "body", steps)
    return RepeatResult(times_executed=times)


@operation(ports=("loop", DONE_PORT), category="Iteration")
async def for_range(start: int, end: int, context: ExecutionContext) -> RepeatResult:
    """Run the ``loop`` port for each index in ``[start, end)``."""
    steps = [{"index": index} for index in range(start, end)]
    await run_steps(context, "loop", steps)
    return RepeatResult(times_executed=len(steps))


@operation(ports=("loop", DONE_PORT), category="Iteration")
async def while_loop(initial_condition: bool, max_iterations: int, context: ExecutionContext) -> WhileResult:
    """Run the ``loop`` port while the condition holds, up to ``max_iterations``.

    The condition is fixed by the caller; the body cannot change it, so a
    true condition always runs to the iteration cap.
    """
    limit = max(max_iterations, 0)
    iterations = limit if initial_condition else 0
    steps = [{"iteration": iteration, "maxIterations": max_iterations} for iteration in range(iterations)]
    await run_steps(context, "loop", steps)
    return WhileResult(iterations_executed=iterations, completed_normally=iterations < max_iterations)
