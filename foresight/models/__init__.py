"""
Pydantic v2 data models for the Foresight engine.

Model Organization:
    - enums: Enumeration types for consistent classification
    - graph: Organizational graph nodes, edges and statistics
    - change: Change requests and canonical change specifications
    - modes: Cascade/simulation modes, industry benchmarks, calibration
    - cascade: Consequences, mitigations, guardrails, cascade reports
    - simulation: Universes, timelines and oracle simulations

Usage:
    >>> from foresight.models import ChangeRequest, GraphNode
    >>> node = GraphNode(id="eng-team", type="team", name="Engineering",
    ...                  weight=0.85, sensitivity=0.9)
"""

from .cascade import (
    CascadeReport,
    CascadeReportSummary,
    Consequence,
    Guardrail,
    Mitigation,
)
from .change import ChangeRequest, ChangeSpecification
from .enums import (
    BiasProfile,
    ChangeCategory,
    ConsequenceCategory,
    EventCategory,
    GuardrailType,
    Impact,
    Likelihood,
    MitigationType,
    NodeType,
    Polarity,
    Posture,
    Recommendation,
    RelationType,
    RiskBand,
    RiskTolerance,
    Severity,
    Trend,
)
from .graph import GraphEdge, GraphNode, GraphStats
from .modes import (
    Calibration,
    CascadeMode,
    IndustryBenchmark,
    IndustryModifiers,
    Mode,
    SimulationMode,
)
from .simulation import (
    HistoricalAnalogue,
    OracleRecommendation,
    OracleSimulation,
    OutcomeMetric,
    RiskProfile,
    SimulationSummary,
    TimelineEvent,
    Universe,
)

__all__ = [
    # Enums
    "BiasProfile",
    "ChangeCategory",
    "ConsequenceCategory",
    "EventCategory",
    "GuardrailType",
    "Impact",
    "Likelihood",
    "MitigationType",
    "NodeType",
    "Polarity",
    "Posture",
    "Recommendation",
    "RelationType",
    "RiskBand",
    "RiskTolerance",
    "Severity",
    "Trend",
    # Graph
    "GraphEdge",
    "GraphNode",
    "GraphStats",
    # Change
    "ChangeRequest",
    "ChangeSpecification",
    # Modes
    "Calibration",
    "CascadeMode",
    "IndustryBenchmark",
    "IndustryModifiers",
    "Mode",
    "SimulationMode",
    # Cascade
    "CascadeReport",
    "CascadeReportSummary",
    "Consequence",
    "Guardrail",
    "Mitigation",
    # Simulation
    "HistoricalAnalogue",
    "OracleRecommendation",
    "OracleSimulation",
    "OutcomeMetric",
    "RiskProfile",
    "SimulationSummary",
    "TimelineEvent",
    "Universe",
]
