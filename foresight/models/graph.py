"""
Organizational graph models.

Nodes are teams, systems, policies, metrics, vendors and similar entities;
edges are directed, weighted influence relations between them. Both are
immutable once a snapshot has been loaded.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import NodeType, Polarity, RelationType


class GraphNode(BaseModel):
    """
    An entity in the organizational graph.

    Attributes:
        id: Stable node identifier (e.g., "eng-team")
        type: Entity kind
        name: Display name
        weight: Importance of the node, 0-1
        sensitivity: How strongly the node passes disturbances on, 0-1
        inertia: Resistance to change, 0-1
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "eng-team",
                "type": "team",
                "name": "Engineering",
                "weight": 0.85,
                "sensitivity": 0.9,
                "inertia": 0.4,
            }
        },
    )

    id: str = Field(min_length=1, description="Stable node identifier")
    type: NodeType = Field(description="Entity kind")
    name: str = Field(min_length=1, description="Display name")
    weight: float = Field(ge=0.0, le=1.0, description="Importance, 0-1")
    sensitivity: float = Field(ge=0.0, le=1.0, description="Reactivity, 0-1")
    inertia: float = Field(default=0.5, ge=0.0, le=1.0, description="Resistance to change, 0-1")


class GraphEdge(BaseModel):
    """
    A directed influence relation between two nodes.

    Attributes:
        source: Source node id
        target: Target node id
        relation: Relation type
        strength: Coupling strength, 0-1
        latency_days: Days for an effect to travel along the edge
        polarity: Whether a disturbance at the source helps or harms the target
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    relation: RelationType
    strength: float = Field(ge=0.0, le=1.0)
    latency_days: int = Field(default=0, ge=0)
    polarity: Polarity = Polarity.NEGATIVE

    @field_validator("target")
    @classmethod
    def validate_no_self_loop(cls, v: str, info) -> str:
        """Reject edges that point back at their own source."""
        if info.data.get("source") == v:
            raise ValueError("Edge source and target must differ")
        return v


class GraphStats(BaseModel):
    """Summary statistics for the loaded graph snapshot."""

    version: str
    node_count: int
    edge_count: int
    avg_degree: float
    node_type_distribution: dict[str, int]
