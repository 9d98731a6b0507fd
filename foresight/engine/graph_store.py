"""
Graph Store: Organizational Entity Graph Snapshots.

Holds the organizational graph as an immutable snapshot. Loading a new
snapshot swaps the reference atomically; analyses capture the snapshot once
and never observe a half-loaded graph, so any number of analyses may share
one snapshot concurrently.

Each snapshot carries a content-derived version (sha256 over the canonical
node and edge JSON) that feeds into report identifiers.

Version: graph_store_v1
"""

import hashlib
import json
import threading
from collections import Counter
from typing import Iterable, Optional

import networkx as nx
import structlog

from foresight.models.graph import GraphEdge, GraphNode, GraphStats

from .errors import GraphUnavailable, ValidationError

logger = structlog.get_logger()


class Graph:
    """
    Read-only organizational graph snapshot.

    Wraps a frozen networkx DiGraph whose nodes carry a ``node`` attribute
    (GraphNode) and whose edges carry an ``edge`` attribute (GraphEdge).

    Attributes:
        version: Content hash of the snapshot
    """

    def __init__(self, graph: nx.DiGraph, version: str):
        self._graph = nx.freeze(graph)
        self.version = version

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def node(self, node_id: str) -> GraphNode:
        """Return a node by id. Raises KeyError for unknown ids."""
        return self._graph.nodes[node_id]["node"]

    def nodes(self) -> list[GraphNode]:
        """All nodes, sorted by id."""
        return [self._graph.nodes[n]["node"] for n in sorted(self._graph.nodes)]

    def edges(self) -> list[GraphEdge]:
        return [
            data["edge"]
            for _, _, data in sorted(self._graph.edges(data=True), key=lambda e: (e[0], e[1]))
        ]

    def neighbors(self, node_id: str) -> list[GraphEdge]:
        """
        Outgoing edges of a node, sorted by target id.

        Args:
            node_id: Source node id

        Returns:
            GraphEdges leaving the node; empty for sinks and unknown ids
        """
        if node_id not in self._graph:
            return []
        return [
            self._graph.edges[node_id, target]["edge"]
            for target in sorted(self._graph.successors(node_id))
        ]

    def stats(self) -> GraphStats:
        """Node/edge counts, mean out-degree and node type distribution."""
        node_count = self._graph.number_of_nodes()
        edge_count = self._graph.number_of_edges()
        avg_degree = (edge_count / node_count) if node_count else 0.0
        distribution = Counter(node.type.value for node in self.nodes())
        return GraphStats(
            version=self.version,
            node_count=node_count,
            edge_count=edge_count,
            avg_degree=round(avg_degree, 4),
            node_type_distribution=dict(sorted(distribution.items())),
        )


def build_graph(nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> Graph:
    """
    Validate nodes and edges and build an immutable Graph.

    Raises:
        ValidationError: Duplicate node ids, duplicate edges, or edges that
            reference nodes not in the snapshot
    """
    nodes = list(nodes)
    edges = list(edges)

    graph = nx.DiGraph()
    duplicates = []
    for node in nodes:
        if node.id in graph:
            duplicates.append(node.id)
            continue
        graph.add_node(node.id, node=node)
    if duplicates:
        raise ValidationError(
            f"Duplicate node ids: {', '.join(sorted(set(duplicates)))}", fields=["nodes"]
        )

    dangling = []
    for edge in edges:
        if edge.source not in graph or edge.target not in graph:
            dangling.append(f"{edge.source}->{edge.target}")
            continue
        if graph.has_edge(edge.source, edge.target):
            raise ValidationError(
                f"Duplicate edge {edge.source}->{edge.target}", fields=["edges"]
            )
        graph.add_edge(edge.source, edge.target, edge=edge)
    if dangling:
        raise ValidationError(
            f"Edges reference unknown nodes: {', '.join(dangling)}", fields=["edges"]
        )

    return Graph(graph, _content_version(nodes, edges))


def _content_version(nodes: list[GraphNode], edges: list[GraphEdge]) -> str:
    payload = {
        "nodes": [n.model_dump(mode="json") for n in sorted(nodes, key=lambda n: n.id)],
        "edges": [
            e.model_dump(mode="json")
            for e in sorted(edges, key=lambda e: (e.source, e.target))
        ],
    }
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8"))
    return digest.hexdigest()[:16]


class GraphStore:
    """
    Holder of the current graph snapshot.

    Example:
        >>> store = GraphStore()
        >>> store.load_snapshot(nodes, edges)
        >>> graph = store.snapshot()
        >>> graph.neighbors("eng-team")
    """

    def __init__(self):
        self._snapshot: Optional[Graph] = None
        self._lock = threading.Lock()
        self.logger = structlog.get_logger()

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    def load_snapshot(self, nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> Graph:
        """
        Replace the current snapshot.

        The new graph is fully built and validated before the swap, so a
        failed load leaves the previous snapshot in place.
        """
        graph = build_graph(nodes, edges)
        with self._lock:
            previous = self._snapshot.version if self._snapshot else None
            self._snapshot = graph
        self.logger.info(
            "graph_snapshot_loaded",
            version=graph.version,
            previous_version=previous,
            node_count=len(graph),
        )
        return graph

    def load_sample_graph(self) -> Graph:
        """Replace the current snapshot with the bundled sample organization."""
        from .sample_graph import build_sample_graph

        nodes, edges = build_sample_graph()
        return self.load_snapshot(nodes, edges)

    def snapshot(self) -> Graph:
        """
        Return the current snapshot.

        Raises:
            GraphUnavailable: If no snapshot has been loaded
        """
        graph = self._snapshot
        if graph is None:
            raise GraphUnavailable()
        return graph

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None


_graph_store = GraphStore()


def get_graph_store() -> GraphStore:
    """Process-wide graph store."""
    return _graph_store
