"""
Cascade Analyzer: change analysis pipeline.

Orchestrates a consequence cascade analysis:
1. Normalize the change (structural checks need no graph)
2. Capture the current graph snapshot and resolve assets against it
3. Resolve cascade mode and optional industry
4. Propagate through the graph with a seeded generator
5. Select the butterfly consequence
6. Synthesize aggregate risk, recommendation and rationale
7. Generate mitigations and guardrails
8. Persist the append-only report

Traversal aborts (budget or cancellation) still produce a report, flagged
incomplete. Persistence failures are logged and the report is returned.

Report ids are content-derived (uuid5 over change, mode, industry, graph
version and seed), so repeating an analysis reproduces the same report
apart from its creation timestamp.

Version: cascade_analyzer_v1
"""

import json
import secrets
import uuid
from typing import Optional, Union

import numpy as np
import structlog

from foresight.models.cascade import CascadeReport, Consequence
from foresight.models.change import ChangeRequest, ChangeSpecification
from foresight.storage.base import StorageBackend

from ..cancellation import CancellationToken
from ..errors import Cancelled, TraversalAborted, TraversalBudgetExceeded, ValidationError
from ..graph_store import GraphStore
from ..mode_registry import ModeRegistry
from ..normalizer import ensure_assets_in_graph, normalize_change
from .mitigations import MitigationGenerator
from .propagation import CascadePropagator, select_butterfly
from .synthesizer import aggregate_risk, build_rationale, recommend

logger = structlog.get_logger()

REPORT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "foresight/cascade-report")


def generate_seed() -> int:
    """Fresh 32-bit seed for callers that did not supply one."""
    return secrets.randbits(32)


def report_id_for(
    change: ChangeSpecification,
    mode_id: str,
    industry_id: Optional[str],
    graph_version: str,
    seed: int,
    synthetic: bool = False,
) -> str:
    fields = {
        "change": change.canonical_json(),
        "mode_id": mode_id,
        "industry_id": industry_id,
        "graph_version": graph_version,
        "seed": seed,
    }
    # Fallback reports never share an id with a genuine analysis
    if synthetic:
        fields["synthetic"] = True
    key = json.dumps(fields, sort_keys=True)
    return str(uuid.uuid5(REPORT_NAMESPACE, key))


def merge_constraints(*groups) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return tuple(seen)


class CascadeAnalyzer:
    """
    Runs consequence cascade analyses.

    Attributes:
        graph_store: Source of graph snapshots
        registry: Mode and industry registry
        storage: Optional report store; reports are not persisted when None
        propagator: Graph traversal engine
        mitigator: Mitigation and guardrail generator
        default_mode_id: Cascade mode used when none is given

    Example:
        >>> analyzer = CascadeAnalyzer(graph_store, registry, storage)
        >>> report = analyzer.analyze_change(request, mode_id="due-diligence", seed=7)
        >>> print(report.recommendation.value, report.aggregate_risk_score)
    """

    def __init__(
        self,
        graph_store: GraphStore,
        registry: ModeRegistry,
        storage: Optional[StorageBackend] = None,
        propagator: Optional[CascadePropagator] = None,
        mitigator: Optional[MitigationGenerator] = None,
        default_mode_id: str = "due-diligence",
    ):
        self.graph_store = graph_store
        self.registry = registry
        self.storage = storage
        self.propagator = propagator or CascadePropagator()
        self.mitigator = mitigator or MitigationGenerator()
        self.default_mode_id = default_mode_id
        self.logger = structlog.get_logger()

    def analyze_change(
        self,
        change: Union[ChangeRequest, ChangeSpecification, dict],
        mode_id: Optional[str] = None,
        industry_id: Optional[str] = None,
        seed: Optional[int] = None,
        cancellation: Optional[CancellationToken] = None,
        fallback_reason: Optional[str] = None,
    ) -> CascadeReport:
        """
        Analyze a proposed change.

        Args:
            change: Raw request or already-canonical specification
            mode_id: Cascade mode id (default mode when None)
            industry_id: Optional industry context for propagation
            seed: Seed for illustrative values; generated and recorded when None
            cancellation: Optional token checked between node expansions
            fallback_reason: Set when this runs in place of a remote engine; the
                report is flagged synthetic before it is persisted

        Returns:
            CascadeReport, possibly flagged incomplete

        Raises:
            ValidationError: Malformed change, negative seed or unknown affected assets
            GraphUnavailable: No graph snapshot loaded
            UnknownMode: Unknown mode or industry id
        """
        spec = change if isinstance(change, ChangeSpecification) else normalize_change(change)
        if seed is not None and seed < 0:
            raise ValidationError("seed must be a non-negative integer", fields=["seed"])

        graph = self.graph_store.snapshot()
        ensure_assets_in_graph(spec, graph)

        mode = self.registry.resolve_cascade_mode(mode_id or self.default_mode_id)
        industry = self.registry.resolve_industry(industry_id) if industry_id else None

        if seed is None:
            seed = generate_seed()
        rng = np.random.default_rng(seed)

        self.logger.info(
            "cascade_analysis_started",
            title=spec.title,
            change_type=spec.change_type.value,
            mode_id=mode.id,
            industry_id=industry_id,
            graph_version=graph.version,
            seed=seed,
        )

        complete = True
        incomplete_reason = None
        try:
            consequences = self.propagator.propagate(
                graph, spec, mode, industry=industry, cancellation=cancellation
            )
        except TraversalAborted as e:
            consequences = e.partial
            complete = False
            if isinstance(e, TraversalBudgetExceeded):
                incomplete_reason = f"node-visit budget of {e.budget} exceeded"
            elif isinstance(e, Cancelled):
                incomplete_reason = "cancelled by caller"
            else:
                incomplete_reason = str(e)

        consequences, butterfly = self._mark_butterfly(consequences)

        score = aggregate_risk(consequences)
        recommendation = recommend(score)
        rationale = build_rationale(consequences, score, recommendation, butterfly, incomplete_reason)

        constraints = merge_constraints(spec.constraints, mode.default_constraints)
        mitigations, guardrails = self.mitigator.generate(consequences, constraints, rng)

        report = CascadeReport(
            report_id=report_id_for(
                spec, mode.id, industry_id, graph.version, seed, synthetic=fallback_reason is not None
            ),
            change=spec,
            mode_id=mode.id,
            industry_id=industry_id,
            graph_version=graph.version,
            seed=seed,
            consequences=tuple(consequences),
            aggregate_risk_score=score,
            recommendation=recommendation,
            rationale=rationale,
            butterfly_effect=butterfly,
            mitigations=tuple(mitigations),
            guardrails=tuple(guardrails),
            complete=complete,
            incomplete_reason=incomplete_reason,
            synthetic=fallback_reason is not None,
            fallback_reason=fallback_reason,
        )

        if self.storage is not None:
            try:
                self.storage.write_cascade_report(report)
                self.logger.info("cascade_report_persisted", report_id=report.report_id)
            except Exception as e:
                self.logger.error(
                    "cascade_report_persistence_failed",
                    report_id=report.report_id,
                    error=str(e),
                )

        self.logger.info(
            "cascade_analysis_completed",
            report_id=report.report_id,
            consequences=len(consequences),
            aggregate_risk_score=score,
            recommendation=recommendation.value,
            butterfly=butterfly.node_id if butterfly else None,
            complete=complete,
        )
        return report

    @staticmethod
    def _mark_butterfly(
        consequences: list[Consequence],
    ) -> tuple[list[Consequence], Optional[Consequence]]:
        butterfly = select_butterfly(consequences)
        if butterfly is None:
            return list(consequences), None
        flagged = butterfly.model_copy(update={"is_butterfly": True})
        return [
            flagged if c.consequence_id == butterfly.consequence_id else c
            for c in consequences
        ], flagged


def get_cascade_analyzer() -> CascadeAnalyzer:
    """Analyzer wired to the process-wide graph store, registry, storage and settings."""
    from foresight.config import get_settings
    from foresight.storage import get_storage

    from ..graph_store import get_graph_store
    from ..mode_registry import get_mode_registry

    settings = get_settings()
    return CascadeAnalyzer(
        graph_store=get_graph_store(),
        registry=get_mode_registry(),
        storage=get_storage(),
        propagator=CascadePropagator(
            floor=settings.propagation_floor,
            decay=settings.confidence_decay,
            node_visit_budget=settings.node_visit_budget,
        ),
        mitigator=MitigationGenerator(top_n=settings.mitigation_top_n),
        default_mode_id=settings.default_cascade_mode,
    )
