"""
Consequence Cascade Engine.

Propagates a proposed change through the organizational graph, scores the
resulting consequences, recommends a decision and derives risk controls.

Components:
    CascadePropagator: Breadth-first consequence propagation
    MitigationGenerator: Mitigations and guardrails for top consequences
    CascadeAnalyzer: End-to-end analyzeChange pipeline

Example:
    >>> from foresight.engine.cascade import CascadeAnalyzer
    >>> analyzer = CascadeAnalyzer(graph_store, registry, storage)
    >>> report = analyzer.analyze_change(request, mode_id="due-diligence", seed=7)
    >>> print(report.butterfly_effect)
"""

from .analyzer import CascadeAnalyzer, get_cascade_analyzer
from .mitigations import MitigationGenerator
from .propagation import CascadePropagator, select_butterfly
from .synthesizer import aggregate_risk, recommend

__all__ = [
    "CascadeAnalyzer",
    "CascadePropagator",
    "MitigationGenerator",
    "aggregate_risk",
    "get_cascade_analyzer",
    "recommend",
    "select_butterfly",
]
