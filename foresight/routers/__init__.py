"""API routers for all endpoints."""

from foresight.routers import cascades, graph, simulation, system

__all__ = [
    "cascades",
    "graph",
    "simulation",
    "system",
]
