"""
Pytest configuration and shared fixtures for the Foresight test suite.

Data factories, an in-memory storage backend and reusable fixtures shared
across unit, integration, golden and property-based tests.
"""

import os
import tempfile
import uuid as _uuid
from typing import Optional

import pytest

# Set testing environment BEFORE importing the app.
# Use a temp path (must not exist - DuckDB creates the file). :memory: gives
# each thread-local connection its own database.
_test_db_path = os.path.join(tempfile.gettempdir(), f"foresight_test_{_uuid.uuid4().hex[:8]}.duckdb")
os.environ["TESTING"] = "true"
os.environ["DB_PATH"] = _test_db_path
os.environ["LOG_FORMAT"] = "console"


from foresight.engine.cascade import CascadeAnalyzer, CascadePropagator
from foresight.engine.graph_store import GraphStore, build_graph
from foresight.engine.mode_registry import get_mode_registry
from foresight.engine.multiverse import MultiverseSimulator
from foresight.models.cascade import Consequence
from foresight.models.change import ChangeRequest, ChangeSpecification
from foresight.models.enums import (
    ChangeCategory,
    ConsequenceCategory,
    Likelihood,
    NodeType,
    Polarity,
    RelationType,
    Severity,
)
from foresight.models.graph import GraphEdge, GraphNode
from foresight.models.modes import CascadeMode, IndustryBenchmark
from foresight.storage.base import StorageBackend


# ---------------------------------------------------------------------------
# Pydantic model factories, reusable across all test suites
# ---------------------------------------------------------------------------


def make_node(
    node_id: str,
    node_type: NodeType = NodeType.SYSTEM,
    weight: float = 0.8,
    sensitivity: float = 1.0,
    **overrides,
) -> GraphNode:
    """Factory function for creating test GraphNode objects."""
    defaults = dict(
        id=node_id,
        type=node_type,
        name=node_id.replace("-", " ").title(),
        weight=weight,
        sensitivity=sensitivity,
        inertia=0.5,
    )
    defaults.update(overrides)
    return GraphNode(**defaults)


def make_edge(
    source: str,
    target: str,
    strength: float = 0.9,
    latency_days: int = 5,
    polarity: Polarity = Polarity.NEGATIVE,
    relation: RelationType = RelationType.DRIVES,
) -> GraphEdge:
    """Factory function for creating test GraphEdge objects."""
    return GraphEdge(
        source=source,
        target=target,
        relation=relation,
        strength=strength,
        latency_days=latency_days,
        polarity=polarity,
    )


def make_graph(node_ids, edge_pairs, **edge_kwargs):
    """Graph from node ids and (source, target) pairs sharing edge settings."""
    nodes = [make_node(n) for n in node_ids]
    edges = [make_edge(s, t, **edge_kwargs) for s, t in edge_pairs]
    return build_graph(nodes, edges)


def make_chain_graph(length: int = 5, **edge_kwargs):
    """Linear chain n0 -> n1 -> ... -> n{length-1}."""
    ids = [f"n{i}" for i in range(length)]
    return make_graph(ids, list(zip(ids, ids[1:])), **edge_kwargs)


def make_change_request(**overrides) -> ChangeRequest:
    """Factory function for creating test ChangeRequest objects."""
    defaults = dict(
        change_type="staffing",
        title="Reduce headcount 15%",
        description="Cut engineering headcount by 15% to extend runway",
        affected_assets=["eng-team"],
        expected_benefit="Six extra months of runway",
        constraints=[],
    )
    defaults.update(overrides)
    return ChangeRequest(**defaults)


def make_change_spec(
    affected_assets=("n0",),
    change_type: ChangeCategory = ChangeCategory.TECHNOLOGY,
    **overrides,
) -> ChangeSpecification:
    """Factory function for creating test ChangeSpecification objects."""
    defaults = dict(
        change_type=change_type,
        title="Replace message broker",
        description="Swap the message broker for a managed service",
        affected_assets=tuple(affected_assets),
        constraints=(),
    )
    defaults.update(overrides)
    return ChangeSpecification(**defaults)


def make_cascade_mode(**overrides) -> CascadeMode:
    """Neutral cascade mode: unit weightings, depth 4, no default constraints."""
    defaults = dict(
        id="test-mode",
        name="Test Mode",
        risk_weighting=1.0,
        opportunity_weighting=1.0,
        analysis_depth=4,
    )
    defaults.update(overrides)
    return CascadeMode(**defaults)


def make_industry(**overrides) -> IndustryBenchmark:
    """Factory function for creating test IndustryBenchmark objects."""
    defaults = dict(
        id="test-industry",
        name="Test Industry",
        churn_rate_base=0.08,
        growth_volatility=0.25,
        regulatory_risk=0.35,
        competitive_intensity=0.65,
        data_reliability=0.75,
        forecast_accuracy=0.6,
    )
    defaults.update(overrides)
    return IndustryBenchmark(**defaults)


def make_consequence(
    node_id: str = "target",
    order: int = 3,
    risk_score: float = 50.0,
    confidence: float = 0.5,
    severity: Severity = Severity.HIGH,
    likelihood: Likelihood = Likelihood.POSSIBLE,
    **overrides,
) -> Consequence:
    """Factory function for creating test Consequence objects."""
    path = tuple(f"hop{i}" for i in range(order)) + (node_id,)
    defaults = dict(
        consequence_id=f"csq-{node_id}-{order}",
        node_id=node_id,
        node_name=node_id.title(),
        node_type=NodeType.METRIC,
        category=ConsequenceCategory.OPERATIONAL,
        severity=severity,
        likelihood=likelihood,
        probability=0.5,
        risk_score=risk_score,
        latency_days=10 * order,
        order=order,
        confidence=confidence,
        path=path,
        description=f"Effect on {node_id}",
        polarity=Polarity.NEGATIVE,
    )
    defaults.update(overrides)
    return Consequence(**defaults)


# ---------------------------------------------------------------------------
# Mock storage for unit tests
# ---------------------------------------------------------------------------


class MockStorage(StorageBackend):
    """
    In-memory storage backend for testing.

    Append-only like the real backend: writing an existing id is a no-op.
    """

    def __init__(self, fail_writes: bool = False):
        self.reports = {}
        self.simulations = {}
        self.fail_writes = fail_writes
        self.write_attempts = 0

    def write_cascade_report(self, report):
        self.write_attempts += 1
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.reports.setdefault(report.report_id, report)
        return report.report_id

    def read_cascade_report(self, report_id) -> Optional[object]:
        return self.reports.get(report_id)

    def list_cascade_reports(self, limit=50):
        return list(self.reports.values())[:limit]

    def write_simulation(self, simulation):
        self.write_attempts += 1
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.simulations.setdefault(simulation.simulation_id, simulation)
        return simulation.simulation_id

    def read_simulation(self, simulation_id):
        return self.simulations.get(simulation_id)

    def list_simulations(self, limit=50):
        return list(self.simulations.values())[:limit]


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_storage():
    """Fresh in-memory storage."""
    return MockStorage()


@pytest.fixture
def registry():
    return get_mode_registry()


@pytest.fixture
def sample_store():
    """Graph store holding the bundled sample organization."""
    store = GraphStore()
    store.load_sample_graph()
    return store


@pytest.fixture
def analyzer(sample_store, registry, mock_storage):
    """Analyzer over the sample graph, persisting to mock storage."""
    return CascadeAnalyzer(
        graph_store=sample_store,
        registry=registry,
        storage=mock_storage,
        propagator=CascadePropagator(),
    )


@pytest.fixture
def simulator(registry, mock_storage):
    return MultiverseSimulator(registry=registry, storage=mock_storage)
