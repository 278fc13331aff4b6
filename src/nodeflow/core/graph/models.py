# src/nodeflow/core/graph/models.py
"""Graph document models.

A graph document is the serializable description of a graph: nodes with
their operation type tag and path mappings, and connections between them.
Documents are validated with Pydantic and then built into a live Graph by
builder.build_graph().
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from nodeflow.contracts.errors import GraphValidationError


class NodeDocument(BaseModel):
    """One node of a graph document.

    ``input_map`` maps parameter names to a source path or template;
    ``output_map`` maps a path in the returned value to a path under
    ``output``. Omitting ``output_map`` maps every declared output to
    itself.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(min_length=1)
    type: str = Field(min_length=1, description="Registered operation type tag")
    name: str | None = None
    input_map: dict[str, str] = Field(default_factory=dict)
    output_map: dict[str, str] | None = None
    merge_output_with_input: bool = False


class ConnectionDocument(BaseModel):
    """Directed edge; ``port`` names the source's output port."""

    model_config = {"frozen": True, "extra": "forbid"}

    source: str
    target: str
    port: str | None = None

    @field_validator("port")
    @classmethod
    def blank_port_is_default(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class GraphDocument(BaseModel):
    """Nodes plus connections."""

    model_config = {"frozen": True, "extra": "forbid"}

    nodes: list[NodeDocument] = Field(default_factory=list)
    connections: list[ConnectionDocument] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_references(self) -> GraphDocument:
        ids = [node.id for node in self.nodes]
        duplicates = sorted({node_id for node_id in ids if ids.count(node_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate node ids: {', '.join(duplicates)}")
        known = set(ids)
        for connection in self.connections:
            for endpoint in (connection.source, connection.target):
                if endpoint not in known:
                    raise ValueError(f"Connection references unknown node '{endpoint}'")
        return self


__all__ = [
    "ConnectionDocument",
    "GraphDocument",
    "GraphValidationError",
    "NodeDocument",
]
