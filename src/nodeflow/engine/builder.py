# src/nodeflow/engine/builder.py
"""Build a live Graph from a graph document.

Construction logic only; the Graph class holds the runtime queries.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from nodeflow.contracts.operations import OperationSpec, PathMapEntry
from nodeflow.core.graph import Graph, GraphDocument, NodeDocument
from nodeflow.core.logging import get_logger
from nodeflow.engine.binder import ParameterBinder
from nodeflow.engine.node import Node
from nodeflow.plugins.manager import OperationRegistry

logger = get_logger(__name__)


def _output_entries(document: NodeDocument, spec: OperationSpec) -> list[PathMapEntry]:
    if document.output_map is None:
        return [PathMapEntry(name, name) for name in spec.outputs]
    return [PathMapEntry(source, destination) for source, destination in document.output_map.items()]


def build_graph(
    document: GraphDocument | dict[str, Any],
    registry: OperationRegistry,
    *,
    binder: ParameterBinder | None = None,
    validate: bool = True,
) -> Graph:
    """Resolve type tags, create nodes and wire connections.

    Raises:
        pydantic.ValidationError: If ``document`` is a malformed mapping
        OperationNotFoundError: If a type tag is not registered
        GraphValidationError: If ``validate`` is set and the wiring is invalid
    """
    if not isinstance(document, GraphDocument):
        document = GraphDocument.model_validate(document)
    binder = binder if binder is not None else ParameterBinder()

    graph = Graph()
    for node_document in document.nodes:
        spec = registry.get(node_document.type)
        graph.add_node(
            Node(
                node_document.id,
                spec,
                name=node_document.name,
                input_map=[PathMapEntry(source, parameter) for parameter, source in node_document.input_map.items()],
                output_map=_output_entries(node_document, spec),
                merge_output_with_input=node_document.merge_output_with_input,
                binder=binder,
            )
        )
    for connection in document.connections:
        graph.connect(connection.source, connection.target, connection.port)

    if validate:
        graph.validate()
    logger.debug("Graph built", nodes=len(graph), edges=graph.edge_count)
    return graph


def load_graph_document(path: Path) -> GraphDocument:
    """Read a graph document from YAML or JSON.

    Raises:
        FileNotFoundError: If the file doesn't exist
        pydantic.ValidationError: If the document is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Graph document not found: {path}")
    text = path.read_text(encoding="utf-8")
    raw = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    return GraphDocument.model_validate(raw or {})
