# src/nodeflow/core/graph/graph.py
"""Graph: node ownership, wiring and structural queries.

Nodes keep their own adjacency lists (that is what evaluation walks).
The graph mirrors every connection in a NetworkX MultiDiGraph keyed by
port label so structural questions (cycles, ordering, reachability) are
answered by NetworkX.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

import networkx as nx
from networkx import MultiDiGraph

from nodeflow.contracts.errors import GraphValidationError

if TYPE_CHECKING:
    from nodeflow.engine.node import Node

ENTRY_TYPE_TAG = "start"
DEFAULT_PORT = "default"
PARAMETER_TYPE_TAG = "get_parameter"

# parameters.name or parameters['name'] inside an input source
_PARAMETER_REFERENCE = re.compile(r"""\bparameters(?:\.([A-Za-z_]\w*)|\[\s*['"]([^'"]+)['"]\s*\])""")


class Graph:
    """A set of nodes and the connections between them.

    Uses MultiDiGraph so one source can reach the same target through
    several ports.
    """

    def __init__(self) -> None:
        self._graph: MultiDiGraph[str] = nx.MultiDiGraph()
        self._nodes: dict[str, Node] = {}

    # === Construction ===

    def add_node(self, node: Node) -> Node:
        """Add a node.

        Raises:
            GraphValidationError: If the id is already taken
        """
        if node.node_id in self._nodes:
            raise GraphValidationError(f"Duplicate node id: '{node.node_id}'")
        self._nodes[node.node_id] = node
        self._graph.add_node(node.node_id, type=node.operation.type_tag)
        return node

    def connect(self, source_id: str, target_id: str, port: str | None = None) -> None:
        """Wire ``source`` -> ``target`` through ``port``.

        Raises:
            GraphValidationError: If either node is unknown
        """
        source = self.get(source_id)
        target = self.get(target_id)
        source.add_output_connection(port, target)
        target.add_input_connection(source)
        label = (port or DEFAULT_PORT).strip()
        if not self._graph.has_edge(source_id, target_id, key=label):
            self._graph.add_edge(source_id, target_id, key=label)
        # Closures below any node may now include new targets
        for node in self._nodes.values():
            node.invalidate_closures()

    # === Lookup ===

    def get(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            import difflib

            suggestions = difflib.get_close_matches(node_id, list(self._nodes), n=3, cutoff=0.6)
            hint = f". Did you mean: {', '.join(suggestions)}?" if suggestions else ""
            raise GraphValidationError(f"Unknown node id: '{node_id}'{hint}") from None

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)

    def get_nx_graph(self) -> MultiDiGraph[str]:
        """Read-only copy of the underlying NetworkX graph."""
        return nx.freeze(self._graph.copy())  # type: ignore[no-any-return]

    # === Evaluation helpers ===

    def downstream_of(self, node_id: str, port: str | None = None) -> list[Node]:
        return self.get(node_id).downstream_of(port)

    def clear(self, nodes: Iterable[Node]) -> None:
        for node in nodes:
            node.clear_result()

    def reset(self) -> None:
        """Clear the computed state of every node."""
        self.clear(self._nodes.values())

    def entry_nodes(self) -> list[Node]:
        """Nodes a run starts from.

        The ``start`` entry operations when the graph has any, otherwise
        every node without upstream connections.
        """
        entries = [node for node in self._nodes.values() if node.operation.type_tag == ENTRY_TYPE_TAG]
        if entries:
            return entries
        return [node for node in self._nodes.values() if not node.upstream]

    # === Structure ===

    def is_acyclic(self) -> bool:
        """Check if the graph is acyclic."""
        return nx.is_directed_acyclic_graph(self._graph)

    def validate(self) -> None:
        """Validate the graph structure.

        Validates:
        1. Graph is acyclic (pull evaluation of a cycle never terminates)
        2. Connections from port-driven nodes name a declared port

        Raises:
            GraphValidationError: If validation fails
        """
        if not self.is_acyclic():
            try:
                cycle = nx.find_cycle(self._graph)
                cycle_str = " -> ".join(f"{edge[0]}" for edge in cycle)
                raise GraphValidationError(f"Graph contains a cycle: {cycle_str}")
            except nx.NetworkXNoCycle:
                raise GraphValidationError("Graph contains a cycle") from None

        for source_id, target_id, label in self._graph.edges(keys=True):
            source = self._nodes[source_id]
            if not source.is_port_driven:
                continue
            declared = {port.casefold() for port in source.declared_ports}
            if label.casefold() not in declared:
                raise GraphValidationError(
                    f"Connection '{source_id}' -> '{target_id}' uses port '{label}', "
                    f"but '{source.operation.type_tag}' declares: {', '.join(source.declared_ports)}"
                )

    def topological_order(self) -> list[str]:
        """Return node ids in topological order.

        Raises:
            GraphValidationError: If graph has cycles
        """
        try:
            return list(nx.topological_sort(self._graph))
        except nx.NetworkXUnfeasible as e:
            raise GraphValidationError(f"Cannot sort graph: {e}") from e

    def reachable_from(self, node_id: str) -> set[str]:
        """Ids of every node downstream of ``node_id``."""
        self.get(node_id)
        return set(nx.descendants(self._graph, node_id))

    # === Run inputs ===

    def discover_inputs(self) -> list[str]:
        """Run parameter names this graph reads.

        Collects ``parameters.<name>`` and ``parameters['<name>']``
        references from every input map, plus the literal ``name`` given to
        ``get_parameter`` nodes. Names differing only in case count once;
        the result is sorted case-insensitively.
        """
        found: dict[str, str] = {}
        for node in self._nodes.values():
            for entry in node.input_map:
                names = [dotted or quoted for dotted, quoted in _PARAMETER_REFERENCE.findall(entry.source)]
                if node.operation.type_tag == PARAMETER_TYPE_TAG and entry.destination == "name":
                    literal = entry.source.strip().strip('"').strip()
                    if literal and "{" not in literal and literal.split(".")[0] != "input":
                        names.append(literal)
                for name in names:
                    found.setdefault(name.casefold(), name)
        return sorted(found.values(), key=str.casefold)
