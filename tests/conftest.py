# tests/conftest.py
"""Shared test fixtures and helpers.

Fixtures:
- registry: frozen OperationRegistry with the built-in operations
- build: builds a Graph from a plain graph document using ``registry``

Helpers:
- make_spec: OperationSpec from a plain function (no decorator needed)
- make_node: Node wrapping a function with input/output maps given as dicts

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from nodeflow.contracts.operations import OperationSpec, PathMapEntry
from nodeflow.core.graph import Graph
from nodeflow.engine.builder import build_graph
from nodeflow.engine.node import Node
from nodeflow.plugins.manager import OperationRegistry, build_registry
from nodeflow.plugins.operation import build_operation_spec


def make_spec(
    func: Callable[..., Any],
    type_tag: str | None = None,
    *,
    ports: Sequence[str] = (),
) -> OperationSpec:
    """Build an OperationSpec for a test function."""
    return build_operation_spec(func, type_tag, ports=ports)


def make_node(
    node_id: str,
    func: Callable[..., Any],
    *,
    inputs: Mapping[str, str] | None = None,
    outputs: Mapping[str, str] | None = None,
    ports: Sequence[str] = (),
    merge_output_with_input: bool = False,
) -> Node:
    """Node for ``func``.

    ``inputs`` maps parameter name -> source path/template.
    ``outputs`` maps returned path -> destination under ``output``;
    defaults to every declared output mapped to itself.
    """
    spec = make_spec(func, ports=ports)
    if outputs is None:
        output_map = [PathMapEntry(name, name) for name in spec.outputs]
    else:
        output_map = [PathMapEntry(source, destination) for source, destination in outputs.items()]
    return Node(
        node_id,
        spec,
        input_map=[PathMapEntry(source, parameter) for parameter, source in (inputs or {}).items()],
        output_map=output_map,
        merge_output_with_input=merge_output_with_input,
    )


def wire(graph: Graph, *nodes: Node) -> Graph:
    """Add nodes to ``graph`` and return it."""
    for node in nodes:
        graph.add_node(node)
    return graph


@pytest.fixture
def registry() -> OperationRegistry:
    """Frozen registry with the built-in operations."""
    return build_registry()


@pytest.fixture
def build(registry: OperationRegistry) -> Callable[[dict[str, Any]], Graph]:
    """Build a graph from a plain document with the built-in registry."""

    def _build(document: dict[str, Any]) -> Graph:
        return build_graph(document, registry)

    return _build


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
