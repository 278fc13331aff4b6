"""Graph structure and graph documents.

Public API re-exported here. Implementation split across:
- graph.py: Graph (node ownership, wiring, NetworkX-backed validation)
- models.py: Pydantic graph document models
"""

from nodeflow.core.graph.graph import DEFAULT_PORT, ENTRY_TYPE_TAG, Graph
from nodeflow.core.graph.models import ConnectionDocument, GraphDocument, GraphValidationError, NodeDocument

__all__ = [
    "DEFAULT_PORT",
    "ENTRY_TYPE_TAG",
    "ConnectionDocument",
    "Graph",
    "GraphDocument",
    "GraphValidationError",
    "NodeDocument",
]
