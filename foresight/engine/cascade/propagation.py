"""
Cascade Propagation Engine: Consequence Graph Traversal.

Breadth-first traversal of the organizational graph outward from the nodes a
change touches. Every edge that survives the probability floor and the
mode's depth limit yields one Consequence on its target node.

Traversal algorithm:
1. Seed the queue with every affected node (order 0, probability 1.0)
2. For each outgoing edge compute
       p_child = min(0.99, p_parent x strength x source.sensitivity
                           x weighting x industry_modifier)
   where weighting is the mode's opportunity weighting on positive edges
   and its risk weighting otherwise
3. Drop the edge if p_child < floor, if the target is already on the
   current path, or if the target was already reached at an equal or lower
   order; otherwise emit a Consequence and enqueue the target
4. Stop expanding at mode.analysis_depth

Scoring:
- risk score  = 100 x target.weight x p
- severity    = banded target.weight x (0.6 + 0.4 p)
- likelihood  = banded p
- confidence  = base(origin) x decay^order, strictly decreasing along a path

Version: cascade_propagation_v1
"""

import hashlib
from collections import deque
from typing import Optional

import structlog

from foresight.models.change import ChangeSpecification
from foresight.models.cascade import Consequence
from foresight.models.enums import Likelihood, Polarity, Severity
from foresight.models.graph import GraphEdge, GraphNode
from foresight.models.modes import IndustryBenchmark, Mode

from ..calibration import clamp
from ..cancellation import CancellationToken
from ..errors import Cancelled, TraversalBudgetExceeded
from ..graph_store import Graph
from .strategies import strategy_for

logger = structlog.get_logger()


# Banding thresholds, checked top-down
SEVERITY_BANDS = [
    (0.8, Severity.CRITICAL),
    (0.6, Severity.HIGH),
    (0.4, Severity.MODERATE),
    (0.2, Severity.LOW),
]
LIKELIHOOD_BANDS = [
    (0.8, Likelihood.ALMOST_CERTAIN),
    (0.6, Likelihood.LIKELY),
    (0.4, Likelihood.POSSIBLE),
    (0.2, Likelihood.UNLIKELY),
]

MAX_PROBABILITY = 0.99


def classify_severity(weight: float, probability: float) -> Severity:
    score = weight * (0.6 + 0.4 * probability)
    for threshold, severity in SEVERITY_BANDS:
        if score >= threshold:
            return severity
    return Severity.MINIMAL


def classify_likelihood(probability: float) -> Likelihood:
    for threshold, likelihood in LIKELIHOOD_BANDS:
        if probability >= threshold:
            return likelihood
    return Likelihood.RARE


def compute_risk_score(weight: float, probability: float) -> float:
    return round(clamp(100.0 * weight * probability, 0.0, 100.0), 4)


def base_confidence(origin: GraphNode) -> float:
    """Confidence at order 0: reactive origins make predictions shakier."""
    return clamp(0.9 - 0.2 * origin.sensitivity, 0.3, 0.95)


def industry_modifier(industry: Optional[IndustryBenchmark]) -> float:
    if industry is None:
        return 1.0
    return 0.75 + 0.25 * (industry.regulatory_risk + industry.competitive_intensity)


def select_butterfly(consequences: list[Consequence]) -> Optional[Consequence]:
    """
    Highest-risk consequence among those with order >= 3.

    Ties go to the lowest confidence, then to the lowest consequence id.
    """
    candidates = [c for c in consequences if c.order >= 3]
    if not candidates:
        return None
    return min(candidates, key=lambda c: (-c.risk_score, c.confidence, c.consequence_id))


def _consequence_id(path: tuple[str, ...]) -> str:
    return "csq-" + hashlib.sha1("|".join(path).encode("utf-8")).hexdigest()[:12]


class CascadePropagator:
    """
    Propagates a change through a graph snapshot.

    Attributes:
        floor: Probability below which a branch terminates
        decay: Per-order confidence decay factor
        node_visit_budget: Hard cap on node expansions
        logger: Structured logger

    Example:
        >>> propagator = CascadePropagator()
        >>> consequences = propagator.propagate(graph, change, mode)
        >>> butterfly = select_butterfly(consequences)
    """

    DEFAULT_FLOOR = 0.05
    DEFAULT_DECAY = 0.85
    DEFAULT_NODE_VISIT_BUDGET = 10000

    def __init__(
        self,
        floor: float = DEFAULT_FLOOR,
        decay: float = DEFAULT_DECAY,
        node_visit_budget: int = DEFAULT_NODE_VISIT_BUDGET,
    ):
        self.floor = floor
        self.decay = decay
        self.node_visit_budget = node_visit_budget
        self.logger = structlog.get_logger()

    def propagate(
        self,
        graph: Graph,
        change: ChangeSpecification,
        mode: Mode,
        industry: Optional[IndustryBenchmark] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> list[Consequence]:
        """
        Compute all consequences of a change, in traversal order.

        Args:
            graph: Snapshot captured for this analysis
            change: Canonical change; affected assets must exist in graph
            mode: Cascade mode supplying weightings and depth
            industry: Optional industry context scaling propagation
            cancellation: Token checked between node expansions

        Returns:
            Consequences ordered by (order, discovery)

        Raises:
            TraversalBudgetExceeded: Budget ran out; carries partial results
            Cancelled: Token was cancelled; carries partial results
        """
        strategy = strategy_for(change.change_type)
        modifier = industry_modifier(industry)

        consequences: list[Consequence] = []
        best_order: dict[str, int] = {}
        # (node_id, order, probability, path, latency_days, confidence_base)
        queue: deque[tuple[str, int, float, tuple[str, ...], int, float]] = deque()

        for asset in change.affected_assets:
            best_order[asset] = 0
            queue.append((asset, 0, 1.0, (asset,), 0, base_confidence(graph.node(asset))))

        visits = 0
        while queue:
            if cancellation is not None and cancellation.cancelled:
                self.logger.warning("propagation_cancelled", visits=visits, partial=len(consequences))
                raise Cancelled(consequences)

            node_id, order, probability, path, latency, conf_base = queue.popleft()

            # Depth-limited entries are never expanded and cost nothing
            if order >= mode.analysis_depth:
                continue

            if visits >= self.node_visit_budget:
                self.logger.warning(
                    "traversal_budget_exceeded",
                    budget=self.node_visit_budget,
                    partial=len(consequences),
                )
                raise TraversalBudgetExceeded(visits, self.node_visit_budget, consequences)
            visits += 1

            source = graph.node(node_id)
            for edge in graph.neighbors(node_id):
                target_id = edge.target
                child_order = order + 1

                # Cycle back into the current path, or already reached no later
                if target_id in path or best_order.get(target_id, child_order + 1) <= child_order:
                    continue

                child_probability = self._edge_probability(probability, source, edge, mode, modifier)
                if child_probability < self.floor:
                    continue

                best_order[target_id] = child_order
                child_path = path + (target_id,)
                child_latency = latency + edge.latency_days
                target = graph.node(target_id)

                consequences.append(
                    Consequence(
                        consequence_id=_consequence_id(child_path),
                        node_id=target.id,
                        node_name=target.name,
                        node_type=target.type,
                        category=strategy.categorize(target),
                        severity=classify_severity(target.weight, child_probability),
                        likelihood=classify_likelihood(child_probability),
                        probability=round(child_probability, 6),
                        risk_score=compute_risk_score(target.weight, child_probability),
                        latency_days=child_latency,
                        order=child_order,
                        confidence=round(conf_base * self.decay ** child_order, 6),
                        path=child_path,
                        description=strategy.describe(change, source, target, edge, child_order),
                        polarity=edge.polarity,
                    )
                )
                queue.append(
                    (target_id, child_order, child_probability, child_path, child_latency, conf_base)
                )

        self.logger.info(
            "propagation_completed",
            visits=visits,
            consequences=len(consequences),
            max_order=max((c.order for c in consequences), default=0),
            mode_id=mode.id,
        )
        return consequences

    def _edge_probability(
        self,
        parent_probability: float,
        source: GraphNode,
        edge: GraphEdge,
        mode: Mode,
        modifier: float,
    ) -> float:
        weighting = (
            mode.opportunity_weighting
            if edge.polarity == Polarity.POSITIVE
            else mode.risk_weighting
        )
        factor = edge.strength * source.sensitivity * weighting * modifier
        return min(MAX_PROBABILITY, parent_probability * factor)
