"""
Organizational graph router.

Wired to:
- GraphStore for snapshot loading, stats and node listing
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from foresight.engine.graph_store import GraphStore, get_graph_store
from foresight.models.enums import NodeType
from foresight.models.graph import GraphEdge, GraphNode
from foresight.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class SnapshotRequest(BaseModel):
    """Complete replacement graph."""

    nodes: List[GraphNode]
    edges: List[GraphEdge] = []


@router.get("/stats")
async def graph_stats(store: GraphStore = Depends(get_graph_store)):
    """Node and edge counts, average degree and type distribution."""
    stats = store.snapshot().stats()
    return {"success": True, "data": stats.model_dump(mode="json")}


@router.get("/nodes")
async def list_nodes(
    type: Optional[NodeType] = None,
    store: GraphStore = Depends(get_graph_store),
):
    """All nodes of the current snapshot, optionally filtered by type."""
    nodes = store.snapshot().nodes()
    if type is not None:
        nodes = [n for n in nodes if n.type == type]
    return {
        "success": True,
        "data": [n.model_dump(mode="json") for n in nodes],
        "count": len(nodes),
    }


@router.post("/sample")
async def load_sample_graph(store: GraphStore = Depends(get_graph_store)):
    """Replace the current snapshot with the bundled sample organization."""
    graph = store.load_sample_graph()
    logger.info("sample_graph_loaded", version=graph.version)
    return {"success": True, "data": graph.stats().model_dump(mode="json")}


@router.post("/snapshot")
async def load_snapshot(
    request: SnapshotRequest,
    store: GraphStore = Depends(get_graph_store),
):
    """
    Replace the current snapshot with a caller-supplied graph.
    The previous snapshot stays in place if the new one is invalid.
    """
    graph = store.load_snapshot(request.nodes, request.edges)
    return {"success": True, "data": graph.stats().model_dump(mode="json")}
