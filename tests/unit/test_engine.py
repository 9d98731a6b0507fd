"""
Unit tests for the Foresight engine.

Covers graph snapshots, the mode registry, change normalization, cascade
propagation, risk synthesis, mitigations and guardrails, calibration and the
multiverse simulator.
"""

import json
import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from foresight.engine.calibration import calibrate
from foresight.engine.cancellation import CancellationToken
from foresight.engine.cascade import (
    CascadeAnalyzer,
    CascadePropagator,
    MitigationGenerator,
    aggregate_risk,
    recommend,
    select_butterfly,
)
from foresight.engine.cascade.analyzer import merge_constraints, report_id_for
from foresight.engine.cascade.propagation import (
    base_confidence,
    classify_likelihood,
    classify_severity,
    industry_modifier,
)
from foresight.engine.cascade.strategies import GENERIC_STRATEGY, strategy_for
from foresight.engine.cascade.synthesizer import build_rationale, top_consequences
from foresight.engine.errors import (
    Cancelled,
    GraphUnavailable,
    TraversalBudgetExceeded,
    UnknownMode,
    ValidationError,
)
from foresight.engine.graph_store import GraphStore, build_graph
from foresight.engine.multiverse import MultiverseSimulator, parse_time_horizon
from foresight.engine.normalizer import normalize_change
from foresight.engine.sample_graph import build_sample_graph
from foresight.models.enums import (
    BiasProfile,
    ChangeCategory,
    ConsequenceCategory,
    GuardrailType,
    Likelihood,
    MitigationType,
    NodeType,
    Polarity,
    Posture,
    Recommendation,
    Severity,
)
from foresight.models.modes import IndustryModifiers, SimulationMode
from tests.conftest import (
    MockStorage,
    make_cascade_mode,
    make_chain_graph,
    make_change_request,
    make_change_spec,
    make_consequence,
    make_edge,
    make_graph,
    make_industry,
    make_node,
)


# =============================================================================
# Graph Store
# =============================================================================


class TestGraphStore:
    """Tests for graph snapshot construction and swapping."""

    def test_build_graph_duplicate_node_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            build_graph([make_node("a"), make_node("a")], [])
        assert exc_info.value.fields == ["nodes"]

    def test_build_graph_dangling_edge_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            build_graph([make_node("a")], [make_edge("a", "ghost")])
        assert exc_info.value.fields == ["edges"]

    def test_build_graph_duplicate_edge_raises(self):
        with pytest.raises(ValidationError):
            build_graph(
                [make_node("a"), make_node("b")],
                [make_edge("a", "b"), make_edge("a", "b", strength=0.2)],
            )

    def test_graph_neighbors_sorted_by_target(self):
        graph = make_graph(["a", "b", "c", "d"], [("a", "d"), ("a", "b"), ("a", "c")])
        assert [e.target for e in graph.neighbors("a")] == ["b", "c", "d"]

    def test_graph_neighbors_unknown_node_empty(self):
        graph = make_chain_graph(3)
        assert graph.neighbors("missing") == []
        assert graph.neighbors("n2") == []

    def test_graph_version_independent_of_input_order(self):
        nodes = [make_node("a"), make_node("b"), make_node("c")]
        edges = [make_edge("a", "b"), make_edge("b", "c")]
        first = build_graph(nodes, edges)
        second = build_graph(list(reversed(nodes)), list(reversed(edges)))
        assert first.version == second.version

    def test_graph_version_changes_with_content(self):
        first = make_chain_graph(3)
        second = make_chain_graph(3, strength=0.5)
        assert first.version != second.version

    def test_graph_stats(self):
        graph = make_chain_graph(4)
        stats = graph.stats()
        assert stats.node_count == 4
        assert stats.edge_count == 3
        assert stats.avg_degree == pytest.approx(0.75)
        assert stats.node_type_distribution == {"system": 4}

    def test_store_snapshot_before_load_raises(self):
        store = GraphStore()
        assert not store.is_loaded
        with pytest.raises(GraphUnavailable):
            store.snapshot()

    def test_store_failed_load_keeps_previous_snapshot(self):
        store = GraphStore()
        store.load_sample_graph()
        version = store.snapshot().version

        with pytest.raises(ValidationError):
            store.load_snapshot([make_node("a")], [make_edge("a", "b")])

        assert store.snapshot().version == version

    def test_store_sample_graph_contents(self, sample_store):
        graph = sample_store.snapshot()
        assert "eng-team" in graph
        assert "revenue" in graph
        assert len(graph) == 28
        assert graph.stats().edge_count == 41


# =============================================================================
# Mode Registry
# =============================================================================


class TestModeRegistry:
    """Tests for mode and industry lookup."""

    def test_registry_catalogue_sizes(self, registry):
        assert len(registry.cascade_modes()) == 13
        assert len(registry.simulation_modes()) == 12
        assert len(registry.industries()) == 11

    def test_registry_core_only_filters(self, registry):
        core = registry.cascade_modes(core_only=True)
        assert core
        assert all(m.is_core for m in core)
        assert len(core) < len(registry.cascade_modes())

    def test_registry_due_diligence_is_conservative(self, registry):
        mode = registry.resolve_cascade_mode("due-diligence")
        assert mode.analysis_depth == 5
        assert mode.risk_weighting == 1.3
        assert mode.opportunity_weighting == 0.8
        assert mode.bias_profile == BiasProfile.PESSIMISTIC

    def test_registry_unknown_cascade_mode_raises(self, registry):
        with pytest.raises(UnknownMode) as exc_info:
            registry.resolve_cascade_mode("yolo")
        assert exc_info.value.mode_id == "yolo"

    def test_registry_unknown_industry_raises(self, registry):
        with pytest.raises(UnknownMode) as exc_info:
            registry.resolve_industry("space-mining")
        assert exc_info.value.kind == "industry"

    def test_registry_suggest_mode_for_change_type(self, registry):
        assert registry.suggest_mode_for_change_type(ChangeCategory.STAFFING) == "cost-reduction"
        assert registry.suggest_mode_for_change_type("pricing") == "pricing-change"
        assert registry.suggest_mode_for_change_type("other") == "due-diligence"
        assert registry.suggest_mode_for_change_type("nonsense") == "due-diligence"

    def test_registry_suggest_simulation_mode(self, registry):
        assert registry.suggest_simulation_mode("crisis") == "stress-test"
        assert registry.suggest_simulation_mode("unheard-of") == "balanced"

    def test_registry_industry_insight(self, registry):
        mode = registry.resolve_simulation_mode("pessimistic")
        industry = registry.resolve_industry("saas")
        note = registry.industry_insight("churn", mode, industry)
        assert "5.0%" in note
        assert "7.0%" in note

    def test_registry_industry_insight_unknown_metric(self, registry):
        mode = registry.resolve_simulation_mode("balanced")
        industry = registry.resolve_industry("general")
        with pytest.raises(ValueError):
            registry.industry_insight("weather", mode, industry)


# =============================================================================
# Change Normalizer
# =============================================================================


class TestNormalizeChange:
    """Tests for change validation and canonicalization."""

    def test_normalize_change_trims_and_dedupes(self):
        spec = normalize_change(
            make_change_request(
                title="  Reduce headcount 15%  ",
                change_type="Staffing",
                affected_assets=["eng-team", " eng-team", "support-team", ""],
                constraints=["No outages", "No outages"],
            )
        )
        assert spec.title == "Reduce headcount 15%"
        assert spec.change_type == ChangeCategory.STAFFING
        assert spec.affected_assets == ("eng-team", "support-team")
        assert spec.constraints == ("No outages",)

    def test_normalize_change_empty_assets_names_field(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_change(make_change_request(affected_assets=[]))
        assert exc_info.value.fields == ["affected_assets"]

    def test_normalize_change_reports_all_problems(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_change({"title": " ", "change_type": "astrology"})
        assert exc_info.value.fields == ["title", "description", "affected_assets", "change_type"]

    def test_normalize_change_accepts_dict(self):
        spec = normalize_change(make_change_request().model_dump())
        assert spec.affected_assets == ("eng-team",)

    def test_normalize_change_dict_with_wrong_type_names_field(self):
        payload = make_change_request().model_dump()
        payload["affected_assets"] = None
        with pytest.raises(ValidationError) as exc_info:
            normalize_change(payload)
        assert exc_info.value.fields == ["affected_assets"]

    def test_normalize_change_dict_type_errors_collected(self):
        payload = make_change_request().model_dump()
        payload.update(title=42, affected_assets=["eng-team", 7])
        with pytest.raises(ValidationError) as exc_info:
            normalize_change(payload)
        assert exc_info.value.fields == ["title", "affected_assets.1"]

    def test_normalize_change_unknown_asset_with_graph(self, sample_store):
        with pytest.raises(ValidationError) as exc_info:
            normalize_change(
                make_change_request(affected_assets=["eng-team", "moon-base"]),
                graph=sample_store.snapshot(),
            )
        assert exc_info.value.fields == ["affected_assets"]
        assert "moon-base" in str(exc_info.value)


# =============================================================================
# Propagation
# =============================================================================


class TestCascadePropagator:
    """Tests for graph traversal and consequence scoring."""

    def test_propagate_chain_probabilities(self):
        graph = make_chain_graph(5)
        consequences = CascadePropagator().propagate(graph, make_change_spec(), make_cascade_mode())

        assert [c.node_id for c in consequences] == ["n1", "n2", "n3", "n4"]
        assert [c.order for c in consequences] == [1, 2, 3, 4]
        for consequence in consequences:
            assert consequence.probability == pytest.approx(0.9 ** consequence.order, abs=1e-6)

    def test_propagate_depth_limit(self):
        graph = make_chain_graph(6)
        consequences = CascadePropagator().propagate(
            graph, make_change_spec(), make_cascade_mode(analysis_depth=2)
        )
        assert max(c.order for c in consequences) == 2
        assert len(consequences) == 2

    def test_propagate_floor_terminates_branch(self):
        graph = make_chain_graph(4, strength=0.2)
        consequences = CascadePropagator(floor=0.05).propagate(
            graph, make_change_spec(), make_cascade_mode()
        )
        # 0.2 survives, 0.04 does not
        assert [c.node_id for c in consequences] == ["n1"]

    def test_propagate_cycle_visits_each_node_once(self):
        graph = make_graph(["a", "b", "c"], [("a", "b"), ("b", "a"), ("b", "c"), ("c", "b")])
        consequences = CascadePropagator().propagate(
            graph, make_change_spec(affected_assets=("a",)), make_cascade_mode(analysis_depth=10)
        )
        assert sorted(c.node_id for c in consequences) == ["b", "c"]

    def test_propagate_diamond_keeps_first_lowest_order(self):
        graph = make_graph(["a", "b", "c", "d"], [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
        consequences = CascadePropagator().propagate(
            graph, make_change_spec(affected_assets=("a",)), make_cascade_mode()
        )
        d = [c for c in consequences if c.node_id == "d"]
        assert len(d) == 1
        assert d[0].path == ("a", "b", "d")
        assert d[0].order == 2

    def test_propagate_affected_assets_not_consequences(self):
        graph = make_graph(["a", "b"], [("a", "b"), ("b", "a")])
        consequences = CascadePropagator().propagate(
            graph, make_change_spec(affected_assets=("a", "b")), make_cascade_mode()
        )
        assert consequences == []

    def test_propagate_confidence_strictly_decreasing(self):
        graph = make_chain_graph(5)
        consequences = CascadePropagator(decay=0.85).propagate(
            graph, make_change_spec(), make_cascade_mode()
        )
        confidences = [c.confidence for c in consequences]
        assert all(a > b for a, b in zip(confidences, confidences[1:]))
        # origin sensitivity 1.0 -> base 0.7
        assert confidences[0] == pytest.approx(0.7 * 0.85, abs=1e-6)

    def test_propagate_latency_accumulates(self):
        graph = make_chain_graph(4, latency_days=7)
        consequences = CascadePropagator().propagate(graph, make_change_spec(), make_cascade_mode())
        assert [c.latency_days for c in consequences] == [7, 14, 21]

    def test_propagate_positive_edge_uses_opportunity_weighting(self):
        graph = make_chain_graph(2, strength=0.5, polarity=Polarity.POSITIVE)
        mode = make_cascade_mode(risk_weighting=1.8, opportunity_weighting=0.6)
        consequences = CascadePropagator().propagate(graph, make_change_spec(), mode)
        assert consequences[0].probability == pytest.approx(0.3)
        assert consequences[0].polarity == Polarity.POSITIVE

    def test_propagate_probability_capped(self):
        graph = make_chain_graph(2, strength=1.0)
        mode = make_cascade_mode(risk_weighting=2.0)
        consequences = CascadePropagator().propagate(graph, make_change_spec(), mode)
        assert consequences[0].probability == pytest.approx(0.99)

    def test_propagate_industry_modifier_scales(self):
        graph = make_chain_graph(2, strength=0.5)
        industry = make_industry(regulatory_risk=1.0, competitive_intensity=1.0)
        consequences = CascadePropagator().propagate(
            graph, make_change_spec(), make_cascade_mode(), industry=industry
        )
        assert consequences[0].probability == pytest.approx(0.625)

    def test_propagate_budget_exceeded_returns_partial(self):
        graph = make_chain_graph(6)
        with pytest.raises(TraversalBudgetExceeded) as exc_info:
            CascadePropagator(node_visit_budget=2).propagate(
                graph, make_change_spec(), make_cascade_mode(analysis_depth=10)
            )
        assert exc_info.value.budget == 2
        assert [c.node_id for c in exc_info.value.partial] == ["n1", "n2"]

    def test_propagate_budget_exactly_sufficient_completes(self):
        consequences = CascadePropagator(node_visit_budget=1).propagate(
            make_chain_graph(2), make_change_spec(), make_cascade_mode(analysis_depth=1)
        )
        assert [c.node_id for c in consequences] == ["n1"]

    def test_propagate_depth_limited_entries_not_charged(self):
        # Depth 2 on a 4-chain expands n0 and n1; n2 sits at the depth limit
        consequences = CascadePropagator(node_visit_budget=2).propagate(
            make_chain_graph(4), make_change_spec(), make_cascade_mode(analysis_depth=2)
        )
        assert [c.node_id for c in consequences] == ["n1", "n2"]

    def test_propagate_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(Cancelled) as exc_info:
            CascadePropagator().propagate(
                make_chain_graph(4), make_change_spec(), make_cascade_mode(), cancellation=token
            )
        assert exc_info.value.partial == []

    def test_propagate_consequence_ids_unique(self, sample_store, registry):
        spec = normalize_change(make_change_request())
        consequences = CascadePropagator().propagate(
            sample_store.snapshot(), spec, registry.resolve_cascade_mode("due-diligence")
        )
        ids = [c.consequence_id for c in consequences]
        assert len(ids) == len(set(ids))
        assert all(i.startswith("csq-") for i in ids)

    def test_classify_severity_bands(self):
        assert classify_severity(1.0, 1.0) == Severity.CRITICAL
        assert classify_severity(0.9, 0.5) == Severity.HIGH
        assert classify_severity(0.6, 0.5) == Severity.MODERATE
        assert classify_severity(0.3, 0.5) == Severity.LOW
        assert classify_severity(0.1, 0.5) == Severity.MINIMAL

    def test_classify_likelihood_bands(self):
        assert classify_likelihood(0.85) == Likelihood.ALMOST_CERTAIN
        assert classify_likelihood(0.6) == Likelihood.LIKELY
        assert classify_likelihood(0.45) == Likelihood.POSSIBLE
        assert classify_likelihood(0.2) == Likelihood.UNLIKELY
        assert classify_likelihood(0.05) == Likelihood.RARE

    def test_base_confidence_bounds(self):
        assert base_confidence(make_node("x", sensitivity=0.0)) == pytest.approx(0.9)
        assert base_confidence(make_node("x", sensitivity=1.0)) == pytest.approx(0.7)

    def test_industry_modifier_general_is_neutral(self, registry):
        assert industry_modifier(None) == 1.0
        assert industry_modifier(registry.resolve_industry("general")) == pytest.approx(1.0)


class TestSelectButterfly:
    """Tests for butterfly-effect selection."""

    def test_select_butterfly_none_below_order_three(self):
        assert select_butterfly([make_consequence(order=1), make_consequence(order=2)]) is None

    def test_select_butterfly_highest_risk(self):
        low = make_consequence("low", order=3, risk_score=40.0)
        high = make_consequence("high", order=4, risk_score=70.0)
        direct = make_consequence("direct", order=1, risk_score=95.0)
        assert select_butterfly([low, high, direct]).node_id == "high"

    def test_select_butterfly_tie_lowest_confidence(self):
        sure = make_consequence("sure", order=3, risk_score=60.0, confidence=0.6)
        unsure = make_consequence("unsure", order=4, risk_score=60.0, confidence=0.4)
        assert select_butterfly([sure, unsure]).node_id == "unsure"

    def test_select_butterfly_full_tie_lowest_id(self):
        b = make_consequence("b", order=3, risk_score=60.0, confidence=0.5)
        a = make_consequence("a", order=3, risk_score=60.0, confidence=0.5)
        assert select_butterfly([b, a]).consequence_id == a.consequence_id


# =============================================================================
# Strategies
# =============================================================================


class TestStrategies:
    def test_strategy_for_aliases(self):
        assert strategy_for(ChangeCategory.PROCESS) is strategy_for(ChangeCategory.TECHNOLOGY)
        assert strategy_for(ChangeCategory.DATA) is strategy_for(ChangeCategory.SECURITY)

    def test_strategy_for_other_is_generic(self):
        assert strategy_for(ChangeCategory.OTHER) is GENERIC_STRATEGY

    def test_strategy_categorize_override(self):
        node = make_node("churn", node_type=NodeType.METRIC)
        assert strategy_for(ChangeCategory.PRICING).categorize(node) == ConsequenceCategory.FINANCIAL


# =============================================================================
# Synthesizer
# =============================================================================


class TestSynthesizer:
    """Tests for aggregate risk and recommendation banding."""

    def test_aggregate_risk_order_weighted(self):
        consequences = [
            make_consequence("a", order=1, risk_score=40.0),
            make_consequence("b", order=2, risk_score=40.0),
        ]
        assert aggregate_risk(consequences) == pytest.approx(60.0)

    def test_aggregate_risk_empty(self):
        assert aggregate_risk([]) == 0.0

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.0, Recommendation.PROCEED),
            (29.99, Recommendation.PROCEED),
            (30.0, Recommendation.PROCEED_WITH_CAUTION),
            (59.99, Recommendation.PROCEED_WITH_CAUTION),
            (60.0, Recommendation.RECONSIDER),
            (85.0, Recommendation.RECONSIDER),
            (85.01, Recommendation.REJECT),
        ],
    )
    def test_recommend_bands(self, score, expected):
        assert recommend(score) == expected

    def test_top_consequences_ordering(self):
        a = make_consequence("a", order=2, risk_score=50.0)
        b = make_consequence("b", order=1, risk_score=50.0)
        c = make_consequence("c", order=1, risk_score=80.0)
        assert [x.node_id for x in top_consequences([a, b, c], 2)] == ["c", "b"]

    def test_build_rationale_mentions_butterfly_and_incomplete(self):
        butterfly = make_consequence("revenue", order=4, risk_score=70.0)
        text = build_rationale(
            [butterfly], 17.5, Recommendation.PROCEED, butterfly, "cancelled by caller"
        )
        assert "Butterfly effect: Revenue" in text
        assert "Analysis incomplete: cancelled by caller." in text

    def test_build_rationale_no_consequences(self):
        text = build_rationale([], 0.0, Recommendation.PROCEED)
        assert "No consequence cleared the propagation floor." in text


# =============================================================================
# Mitigations & Guardrails
# =============================================================================


class TestMitigationGenerator:
    """Tests for mitigation and guardrail derivation."""

    def test_generate_three_mitigations_per_top_consequence(self):
        consequences = [make_consequence(f"n{i}", order=1, risk_score=10.0 * i) for i in range(1, 8)]
        mitigations, _ = MitigationGenerator(top_n=5).generate(consequences, (), np.random.default_rng(1))

        assert len(mitigations) == 15
        covered = {m.consequence_id for m in mitigations}
        assert covered == {c.consequence_id for c in consequences[2:]}
        assert [m.type for m in mitigations[:3]] == [
            MitigationType.PREVENT,
            MitigationType.DETECT,
            MitigationType.RESPOND,
        ]

    def test_generate_costs_are_seeded(self):
        consequences = [make_consequence("x", order=1, risk_score=80.0, severity=Severity.CRITICAL)]
        first, _ = MitigationGenerator().generate(consequences, (), np.random.default_rng(9))
        second, _ = MitigationGenerator().generate(consequences, (), np.random.default_rng(9))
        assert [m.estimated_cost for m in first] == [m.estimated_cost for m in second]
        assert all(m.estimated_cost > 0 for m in first)

    def test_guardrails_for_critical_consequence(self):
        critical = make_consequence(
            "x", order=1, risk_score=80.0, severity=Severity.CRITICAL, likelihood=Likelihood.LIKELY
        )
        _, guardrails = MitigationGenerator().generate([critical], (), np.random.default_rng(0))

        hard_stop, escalation = guardrails
        assert hard_stop.type == GuardrailType.HARD_STOP
        assert hard_stop.threshold == pytest.approx(10.0)
        assert escalation.type == GuardrailType.ESCALATION
        assert escalation.threshold == pytest.approx(5.0)

    def test_guardrails_likely_noncritical_escalation_only(self):
        likely = make_consequence("x", order=1, risk_score=40.0, likelihood=Likelihood.LIKELY)
        _, guardrails = MitigationGenerator().generate([likely], (), np.random.default_rng(0))
        assert [g.type for g in guardrails] == [GuardrailType.ESCALATION]

    def test_guardrails_unlikely_noncritical_none(self):
        quiet = make_consequence("x", order=1, risk_score=10.0, likelihood=Likelihood.UNLIKELY)
        _, guardrails = MitigationGenerator().generate([quiet], (), np.random.default_rng(0))
        assert guardrails == []

    def test_guardrails_hard_stop_floor(self):
        extreme = make_consequence(
            "x", order=1, risk_score=99.0, severity=Severity.CRITICAL, likelihood=Likelihood.ALMOST_CERTAIN
        )
        _, guardrails = MitigationGenerator().generate([extreme], (), np.random.default_rng(0))
        assert guardrails[0].threshold == pytest.approx(5.0)

    def test_guardrails_constraints_append_hard_stops(self):
        _, guardrails = MitigationGenerator().generate(
            [], ("No outages", "No layoffs in support"), np.random.default_rng(0)
        )
        assert len(guardrails) == 2
        assert all(g.type == GuardrailType.HARD_STOP for g in guardrails)
        assert all(g.consequence_id is None for g in guardrails)
        assert "No outages" in guardrails[0].trigger_condition


# =============================================================================
# Cascade Analyzer
# =============================================================================


class TestCascadeAnalyzer:
    """Tests for the end-to-end analysis pipeline."""

    def test_analyze_change_persists_report(self, analyzer, mock_storage):
        report = analyzer.analyze_change(make_change_request(), mode_id="due-diligence", seed=7)
        assert mock_storage.reports[report.report_id] is report
        assert report.complete
        assert not report.synthetic
        assert report.seed == 7

    def test_analyze_change_generates_seed(self, analyzer):
        report = analyzer.analyze_change(make_change_request())
        assert 0 <= report.seed < 2**32

    def test_analyze_change_marks_single_butterfly(self, analyzer):
        report = analyzer.analyze_change(make_change_request(), mode_id="due-diligence", seed=1)
        flagged = [c for c in report.consequences if c.is_butterfly]
        assert len(flagged) == 1
        assert flagged[0] == report.butterfly_effect
        assert report.butterfly_effect.order >= 3

    def test_analyze_change_mode_constraints_become_guardrails(self, analyzer, registry):
        report = analyzer.analyze_change(
            make_change_request(constraints=["No customer-facing outages"]),
            mode_id="cost-reduction",
            seed=3,
        )
        constraint_guards = [g for g in report.guardrails if g.consequence_id is None]
        expected = merge_constraints(
            ("No customer-facing outages",),
            registry.resolve_cascade_mode("cost-reduction").default_constraints,
        )
        assert len(constraint_guards) == len(expected)

    def test_analyze_change_unknown_asset_not_persisted(self, analyzer, mock_storage):
        with pytest.raises(ValidationError):
            analyzer.analyze_change(make_change_request(affected_assets=["moon-base"]))
        assert mock_storage.write_attempts == 0

    def test_analyze_change_unknown_mode(self, analyzer):
        with pytest.raises(UnknownMode):
            analyzer.analyze_change(make_change_request(), mode_id="yolo")

    def test_analyze_change_without_graph(self, registry, mock_storage):
        analyzer = CascadeAnalyzer(GraphStore(), registry, storage=mock_storage)
        with pytest.raises(GraphUnavailable):
            analyzer.analyze_change(make_change_request())

    def test_analyze_change_budget_exceeded_flags_incomplete(self, sample_store, registry, mock_storage):
        analyzer = CascadeAnalyzer(
            sample_store,
            registry,
            storage=mock_storage,
            propagator=CascadePropagator(node_visit_budget=3),
        )
        report = analyzer.analyze_change(make_change_request(), mode_id="due-diligence", seed=5)
        assert not report.complete
        assert report.incomplete_reason == "node-visit budget of 3 exceeded"
        assert report.consequences
        assert report.report_id in mock_storage.reports

    def test_analyze_change_cancelled_flags_incomplete(self, analyzer):
        token = CancellationToken()
        token.cancel()
        report = analyzer.analyze_change(make_change_request(), seed=5, cancellation=token)
        assert not report.complete
        assert report.incomplete_reason == "cancelled by caller"
        assert report.consequences == ()
        assert report.recommendation == Recommendation.PROCEED

    def test_analyze_change_persistence_failure_still_returns(self, sample_store, registry):
        failing = MockStorage(fail_writes=True)
        analyzer = CascadeAnalyzer(sample_store, registry, storage=failing)
        report = analyzer.analyze_change(make_change_request(), seed=11)
        assert failing.write_attempts == 1
        assert report.report_id

    def test_analyze_change_negative_seed_rejected(self, analyzer, mock_storage):
        with pytest.raises(ValidationError) as exc_info:
            analyzer.analyze_change(make_change_request(), seed=-1)
        assert exc_info.value.fields == ["seed"]
        assert mock_storage.write_attempts == 0

    def test_analyze_change_fallback_flagged_before_persisting(self, analyzer, mock_storage):
        genuine = analyzer.analyze_change(make_change_request(), mode_id="due-diligence", seed=42)
        fallback = analyzer.analyze_change(
            make_change_request(), mode_id="due-diligence", seed=42, fallback_reason="engine down"
        )

        stored = mock_storage.reports[fallback.report_id]
        assert stored.synthetic is True
        assert stored.fallback_reason == "engine down"
        assert fallback.report_id != genuine.report_id
        assert mock_storage.reports[genuine.report_id].synthetic is False
        assert fallback.consequences == genuine.consequences

    def test_analyze_change_ignores_snapshot_swap_mid_analysis(self, registry):
        store = GraphStore()
        original = store.load_sample_graph()
        baseline = CascadeAnalyzer(store, registry).analyze_change(
            make_change_request(), mode_id="due-diligence", seed=9
        )

        class SwappingPropagator(CascadePropagator):
            def propagate(self, graph, *args, **kwargs):
                store.load_snapshot(
                    [make_node("eng-team"), make_node("elsewhere")],
                    [make_edge("eng-team", "elsewhere")],
                )
                return super().propagate(graph, *args, **kwargs)

        analyzer = CascadeAnalyzer(store, registry, propagator=SwappingPropagator())
        report = analyzer.analyze_change(make_change_request(), mode_id="due-diligence", seed=9)

        assert store.snapshot().version != original.version
        assert report.graph_version == original.version
        assert report.consequences == baseline.consequences

    def test_concurrent_analyses_each_see_one_snapshot(self, registry):
        nodes, edges = build_sample_graph()
        pruned_edges = [e for e in edges if e.source != "core-platform"]

        baselines = {}
        for edge_set in (edges, pruned_edges):
            store = GraphStore()
            graph = store.load_snapshot(nodes, edge_set)
            report = CascadeAnalyzer(store, registry).analyze_change(
                make_change_request(), mode_id="due-diligence", seed=3
            )
            baselines[graph.version] = report.consequences
        assert len(baselines) == 2

        shared = GraphStore()
        shared.load_snapshot(nodes, edges)
        analyzer = CascadeAnalyzer(shared, registry)
        stop = threading.Event()

        def swap_snapshots():
            toggle = False
            while not stop.is_set():
                shared.load_snapshot(nodes, pruned_edges if toggle else edges)
                toggle = not toggle

        swapper = threading.Thread(target=swap_snapshots)
        swapper.start()
        try:
            with ThreadPoolExecutor(max_workers=4) as pool:
                reports = list(
                    pool.map(
                        lambda _: analyzer.analyze_change(
                            make_change_request(), mode_id="due-diligence", seed=3
                        ),
                        range(12),
                    )
                )
        finally:
            stop.set()
            swapper.join()

        for report in reports:
            assert report.consequences == baselines[report.graph_version]

    def test_report_id_depends_on_seed(self):
        spec = make_change_spec()
        assert report_id_for(spec, "m", None, "v1", 1) != report_id_for(spec, "m", None, "v1", 2)
        assert report_id_for(spec, "m", None, "v1", 1) == report_id_for(spec, "m", None, "v1", 1)

    def test_report_id_separates_synthetic_reports(self):
        spec = make_change_spec()
        assert report_id_for(spec, "m", None, "v1", 1) != report_id_for(
            spec, "m", None, "v1", 1, synthetic=True
        )

    def test_report_id_follows_canonical_change_json(self):
        first = make_change_spec(constraints=("No outages",))
        same = make_change_spec(constraints=("No outages",))
        other = make_change_spec(constraints=("No layoffs",))
        assert first.canonical_json() == same.canonical_json()
        assert json.loads(first.canonical_json())["constraints"] == ["No outages"]
        assert report_id_for(first, "m", None, "v1", 1) == report_id_for(same, "m", None, "v1", 1)
        assert report_id_for(first, "m", None, "v1", 1) != report_id_for(other, "m", None, "v1", 1)


# =============================================================================
# Calibration
# =============================================================================


class TestCalibrate:
    """Tests for probability/confidence calibration."""

    def test_calibrate_pessimistic_saturates(self):
        mode = make_cascade_mode(
            risk_weighting=2.0,
            opportunity_weighting=1.0,
            confidence_adjustment=-0.25,
        )
        industry = make_industry(data_reliability=0.9, forecast_accuracy=0.6)

        result = calibrate(0.5, mode, industry)

        assert result.probability == pytest.approx(0.99)
        assert result.confidence == pytest.approx(0.3)
        assert result.range[0] == pytest.approx(0.78)
        assert result.range[1] == pytest.approx(0.99)

    def test_calibrate_opportunity_weighting_above_half(self):
        mode = make_cascade_mode(risk_weighting=2.0, opportunity_weighting=0.5)
        result = calibrate(0.8, mode, make_industry())
        assert result.probability == pytest.approx(0.4)

    def test_calibrate_floor(self):
        result = calibrate(0.0, make_cascade_mode(), make_industry())
        assert result.probability == pytest.approx(0.01)
        assert result.range[0] == pytest.approx(0.01)

    def test_calibrate_confidence_ceiling(self):
        mode = make_cascade_mode(confidence_adjustment=0.5)
        result = calibrate(0.5, mode, make_industry(data_reliability=1.0, forecast_accuracy=1.0))
        assert result.confidence == pytest.approx(0.95)

    def test_calibrate_risk_multiplier(self):
        mode = SimulationMode(
            id="x",
            name="X",
            industry_modifiers=IndustryModifiers(risk_multiplier=1.5),
        )
        result = calibrate(0.4, mode, make_industry())
        assert result.probability == pytest.approx(0.6)

    @pytest.mark.parametrize("base", [-0.1, 1.5])
    def test_calibrate_out_of_range_raises(self, base):
        with pytest.raises(ValidationError) as exc_info:
            calibrate(base, make_cascade_mode(), make_industry())
        assert exc_info.value.fields == ["base_probability"]


# =============================================================================
# Multiverse Simulator
# =============================================================================


class TestParseTimeHorizon:
    @pytest.mark.parametrize(
        "value,days",
        [("180d", 180), ("12w", 84), ("6m", 180), ("1y", 365), ("2 years", 730), ("90 Days", 90)],
    )
    def test_parse_time_horizon_valid(self, value, days):
        assert parse_time_horizon(value) == days

    @pytest.mark.parametrize("value", ["", "soon", "3d", "11y", "-5d", "10 fortnights"])
    def test_parse_time_horizon_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_time_horizon(value)
        assert exc_info.value.fields == ["time_horizon"]


class TestMultiverseSimulator:
    """Tests for universe generation and ranking."""

    def test_simulate_branch_count_and_distinct_decisions(self, simulator):
        sim = simulator.simulate("Should we enter Market X?", "180d", 3, seed=42)
        assert len(sim.universes) == 3
        assert len({u.decision for u in sim.universes}) == 3
        assert [u.posture for u in sim.universes] == [
            Posture.AGGRESSIVE,
            Posture.ACCELERATED,
            Posture.BALANCED,
        ]

    def test_simulate_exactly_one_recommended(self, simulator):
        sim = simulator.simulate("Should we enter Market X?", "1y", 8, seed=3)
        recommended = [u for u in sim.universes if u.is_recommended]
        assert len(recommended) == 1
        assert recommended[0].universe_id == sim.recommendation.universe_id
        assert recommended[0].overall_score == max(u.overall_score for u in sim.universes)

    def test_simulate_timeline_strictly_increasing(self, simulator):
        sim = simulator.simulate("Should we raise prices?", "7d", 8, seed=5)
        for universe in sim.universes:
            days = [e.day for e in universe.timeline]
            assert days[0] >= 1
            assert all(a < b for a, b in zip(days, days[1:]))
            confidences = [e.confidence for e in universe.timeline]
            assert all(a > b for a, b in zip(confidences, confidences[1:]))

    def test_simulate_universe_fields_in_range(self, simulator):
        sim = simulator.simulate("Should we open a second office?", "2y", 8, seed=8)
        for universe in sim.universes:
            assert 0.0 <= universe.probability <= 1.0
            assert 0.0 <= universe.reversibility <= 100.0
            low, high = universe.risk_profile.probability_range
            assert low <= universe.probability <= high
            assert len(universe.metrics) == 5

    def test_simulate_recommendation_factors(self, simulator):
        sim = simulator.simulate("Should we enter Market X?", "180d", 4, seed=1)
        assert 3 <= len(sim.recommendation.key_factors) <= 4
        assert 0.0 <= sim.recommendation.confidence <= 1.0
        assert all(a.illustrative for a in sim.historical_analogues)

    def test_simulate_deterministic_for_seed(self, simulator):
        first = simulator.simulate("Should we enter Market X?", "180d", 3, seed=99)
        second = simulator.simulate("Should we enter Market X?", "180d", 3, seed=99)
        assert first.model_dump(exclude={"created_at"}) == second.model_dump(exclude={"created_at"})

    def test_simulate_default_branch_count_from_mode(self, simulator):
        sim = simulator.simulate("Should we cut prices?", "6m", mode_id="stress-test", seed=2)
        assert len(sim.universes) == 6

    def test_simulate_default_branch_count_capped(self, registry):
        simulator = MultiverseSimulator(registry, max_universes=3)
        sim = simulator.simulate("Should we cut prices?", "6m", seed=2)
        assert len(sim.universes) == 3

    def test_simulate_empty_question_raises(self, simulator):
        with pytest.raises(ValidationError) as exc_info:
            simulator.simulate("   ", "180d", 3)
        assert exc_info.value.fields == ["question"]

    @pytest.mark.parametrize("count", [0, 9])
    def test_simulate_branch_count_out_of_range(self, simulator, count):
        with pytest.raises(ValidationError) as exc_info:
            simulator.simulate("Should we enter Market X?", "180d", count)
        assert exc_info.value.fields == ["branch_count"]

    def test_simulate_negative_seed_rejected(self, simulator, mock_storage):
        with pytest.raises(ValidationError) as exc_info:
            simulator.simulate("Should we enter Market X?", "180d", 3, seed=-5)
        assert exc_info.value.fields == ["seed"]
        assert mock_storage.write_attempts == 0

    def test_simulate_fallback_flagged_before_persisting(self, simulator, mock_storage):
        genuine = simulator.simulate("Should we enter Market X?", "180d", 3, seed=4)
        fallback = simulator.simulate(
            "Should we enter Market X?", "180d", 3, seed=4, fallback_reason="engine down"
        )
        assert mock_storage.simulations[fallback.simulation_id].synthetic is True
        assert mock_storage.simulations[genuine.simulation_id].synthetic is False
        assert fallback.simulation_id != genuine.simulation_id
        assert fallback.universes == genuine.universes

    def test_simulate_unknown_industry(self, simulator):
        with pytest.raises(UnknownMode):
            simulator.simulate("Should we enter Market X?", "180d", 3, industry_id="atlantis")

    def test_simulate_persists(self, simulator, mock_storage):
        sim = simulator.simulate("Should we enter Market X?", "180d", 2, seed=4)
        assert mock_storage.simulations[sim.simulation_id] is sim

    def test_simulate_persistence_failure_still_returns(self, registry):
        failing = MockStorage(fail_writes=True)
        sim = MultiverseSimulator(registry, storage=failing).simulate(
            "Should we enter Market X?", "180d", 2, seed=4
        )
        assert failing.write_attempts == 1
        assert len(sim.universes) == 2

    def test_simulate_decision_uses_question(self, simulator):
        sim = simulator.simulate("Should we enter Market X?", "180d", 1, seed=4)
        assert "enter Market X" in sim.universes[0].decision
