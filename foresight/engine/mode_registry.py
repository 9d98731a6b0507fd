"""
Mode Registry: Analysis Modes and Industry Benchmarks.

Static catalogue of cascade modes (how a consequence cascade is explored),
simulation modes (how the multiverse simulator biases its universes) and
industry benchmark profiles. The registry is built once per process and is
read-only afterwards: lookups go through immutable mappings keyed by id, and
adding a mode means adding a catalogue entry.

Cascade mode weights derive from the mode's risk tolerance:
- conservative: risk x1.3, opportunity x0.8, pessimistic lens
- balanced:     risk x1.0, opportunity x1.0, balanced lens
- aggressive:   risk x0.8, opportunity x1.2, optimistic lens

Version: mode_registry_v1
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

import structlog

from foresight.models.enums import BiasProfile, ChangeCategory, RiskTolerance
from foresight.models.modes import (
    CascadeMode,
    IndustryBenchmark,
    IndustryModifiers,
    SimulationMode,
)

from .errors import UnknownMode

logger = structlog.get_logger()


TOLERANCE_PROFILES = {
    RiskTolerance.CONSERVATIVE: (1.3, 0.8, BiasProfile.PESSIMISTIC),
    RiskTolerance.BALANCED: (1.0, 1.0, BiasProfile.BALANCED),
    RiskTolerance.AGGRESSIVE: (0.8, 1.2, BiasProfile.OPTIMISTIC),
}

GENERIC_CASCADE_MODE = "due-diligence"
GENERIC_SIMULATION_MODE = "balanced"

CHANGE_TYPE_MODES = {
    ChangeCategory.STAFFING: "cost-reduction",
    ChangeCategory.PRICING: "pricing-change",
    ChangeCategory.VENDOR: "vendor-change",
    ChangeCategory.TECHNOLOGY: "transformation",
    ChangeCategory.PROCESS: "transformation",
    ChangeCategory.PRODUCT: "market-expansion",
    ChangeCategory.MARKET: "market-expansion",
    ChangeCategory.REGULATORY: "compliance-check",
    ChangeCategory.SECURITY: "security-audit",
    ChangeCategory.POLICY: "policy-change",
    ChangeCategory.DATA: "security-audit",
}

SCENARIO_TYPE_MODES = {
    "strategic": "balanced",
    "risk": "pessimistic",
    "opportunity": "optimistic",
    "crisis": "stress-test",
    "growth": "growth",
    "defense": "defensive",
    "innovation": "moonshot",
    "board": "board-ready",
}


# =========================================================================
# Catalogue
# =========================================================================

# id, name, description, tolerance, horizon, depth, focus areas, constraints, core
_CASCADE_CATALOGUE = [
    (
        "due-diligence", "Due Diligence",
        "Thorough analysis for major investments or partnerships; explores deep chains and hidden dependencies.",
        RiskTolerance.CONSERVATIVE, "long", 5,
        ("financial", "compliance", "operational", "reputational"),
        ("No regulatory violations", "No material misstatements", "Preserve audit trail"),
        True,
    ),
    (
        "cost-reduction", "Cost Reduction",
        "Layoffs, budget cuts and efficiency programs; surfaces morale, knowledge-loss and operational risks.",
        RiskTolerance.CONSERVATIVE, "medium", 4,
        ("human", "operational", "financial", "reputational"),
        (
            "Cannot lose critical knowledge holders",
            "Must maintain production stability",
            "Cannot violate employment law",
        ),
        True,
    ),
    (
        "transformation", "Digital Transformation",
        "Major technology or process change balancing innovation speed against stability.",
        RiskTolerance.BALANCED, "long", 4,
        ("operational", "security", "human", "strategic"),
        ("Zero unplanned downtime", "No data loss", "Maintain security posture"),
        True,
    ),
    (
        "compliance-check", "Compliance Check",
        "Regulatory impact analysis surfacing compliance gaps and audit risk.",
        RiskTolerance.CONSERVATIVE, "long", 5,
        ("compliance", "financial", "reputational", "operational"),
        ("No regulatory violations", "Maintain audit readiness", "Document all decisions"),
        True,
    ),
    (
        "rapid-response", "Rapid Response",
        "Quick analysis for time-sensitive decisions; immediate consequences only.",
        RiskTolerance.AGGRESSIVE, "short", 2,
        ("operational", "financial", "reputational"),
        ("No irreversible actions without approval",),
        True,
    ),
    (
        "m-and-a", "M&A Analysis",
        "Merger and acquisition analysis focused on integration risk and synergy realization.",
        RiskTolerance.CONSERVATIVE, "long", 5,
        ("strategic", "human", "operational", "financial"),
        ("Preserve key talent", "Maintain customer relationships", "Realize stated synergies"),
        False,
    ),
    (
        "market-expansion", "Market Expansion",
        "New market entry; competitive, regulatory and operational expansion risk.",
        RiskTolerance.BALANCED, "long", 4,
        ("strategic", "compliance", "operational", "financial"),
        ("Comply with local regulations", "Maintain brand consistency"),
        False,
    ),
    (
        "restructuring", "Restructuring",
        "Organizational restructuring; reporting changes, role eliminations and cultural impact.",
        RiskTolerance.BALANCED, "medium", 4,
        ("human", "operational", "strategic"),
        ("Maintain clear accountability", "Preserve institutional knowledge"),
        False,
    ),
    (
        "vendor-change", "Vendor Change",
        "Vendor switch or termination; dependency risk, transition cost and operational impact.",
        RiskTolerance.CONSERVATIVE, "medium", 3,
        ("operational", "financial", "security", "compliance"),
        ("No service interruption", "Maintain data security", "Honor contractual obligations"),
        False,
    ),
    (
        "security-audit", "Security Audit",
        "Security-focused change analysis; attack vectors, compliance gaps and incident response.",
        RiskTolerance.CONSERVATIVE, "medium", 4,
        ("security", "compliance", "operational"),
        ("No security regression", "Maintain compliance certifications", "Preserve audit logs"),
        False,
    ),
    (
        "damage-control", "Damage Control",
        "Crisis response focused on containment and reputational protection.",
        RiskTolerance.AGGRESSIVE, "short", 3,
        ("reputational", "operational", "compliance", "financial"),
        ("Prioritize stakeholder safety", "Preserve evidence", "Maintain transparency"),
        False,
    ),
    (
        "pricing-change", "Pricing Change",
        "Price adjustment analysis; churn risk, competitive response and revenue impact.",
        RiskTolerance.BALANCED, "medium", 4,
        ("financial", "reputational", "strategic"),
        ("Honor existing contracts", "Communicate transparently"),
        False,
    ),
    (
        "policy-change", "Policy Change",
        "Internal policy change; employee reaction, compliance impact and cultural shift.",
        RiskTolerance.BALANCED, "medium", 3,
        ("human", "operational", "compliance"),
        ("Cannot violate employment law", "Must communicate clearly"),
        False,
    ),
]

# id, name, description, bias, confidence adj, risk w, opportunity w, universes,
# (churn, growth, risk, confidence) modifiers, core
_SIMULATION_CATALOGUE = [
    ("balanced", "Balanced Analysis",
     "Weighs risks and opportunities equally using industry benchmarks.",
     BiasProfile.BALANCED, 0.0, 1.0, 1.0, 5, (1.0, 1.0, 1.0, 1.0), True),
    ("optimistic", "Optimistic Scenario",
     "Emphasizes opportunities and best-case outcomes.",
     BiasProfile.OPTIMISTIC, 0.15, 0.7, 1.4, 4, (0.7, 1.3, 0.6, 1.1), True),
    ("pessimistic", "Pessimistic Scenario",
     "Emphasizes risks and worst-case outcomes.",
     BiasProfile.PESSIMISTIC, -0.15, 1.5, 0.6, 4, (1.4, 0.7, 1.5, 0.85), True),
    ("board-ready", "Board-Ready",
     "Conservative benchmarks with explicit confidence intervals.",
     BiasProfile.BALANCED, -0.05, 1.2, 0.9, 5, (1.1, 0.95, 1.15, 0.9), True),
    ("stress-test", "Stress Test",
     "Extreme adverse scenarios to test resilience.",
     BiasProfile.PESSIMISTIC, -0.25, 2.0, 0.5, 6, (2.0, 0.4, 2.5, 0.7), True),
    ("black-swan", "Black Swan",
     "Rare, high-impact events beyond normal benchmarks.",
     BiasProfile.PESSIMISTIC, -0.3, 2.0, 0.4, 8, (3.0, 0.2, 4.0, 0.5), False),
    ("moonshot", "Moonshot",
     "Transformative outcomes using top-performer benchmarks.",
     BiasProfile.OPTIMISTIC, 0.2, 0.5, 1.8, 4, (0.5, 2.0, 0.4, 1.2), False),
    ("contrarian", "Contrarian View",
     "Inverts typical assumptions to surface blind spots.",
     BiasProfile.CONTRARIAN, 0.0, 1.0, 1.0, 5, (1.0, 1.0, 1.0, 0.8), False),
    ("growth", "Growth Focus",
     "High-growth benchmarks, accepting more risk for more reward.",
     BiasProfile.OPTIMISTIC, 0.1, 0.8, 1.3, 5, (0.85, 1.25, 0.75, 1.05), False),
    ("defensive", "Defensive Posture",
     "Preservation over growth; stability and retention benchmarks.",
     BiasProfile.PESSIMISTIC, -0.1, 1.4, 0.7, 5, (1.2, 0.8, 1.3, 0.9), False),
    ("disruptor", "Disruptor",
     "Disruption scenarios that challenge industry structure.",
     BiasProfile.CONTRARIAN, 0.05, 0.9, 1.5, 6, (0.6, 1.8, 0.7, 1.1), False),
    ("long-range", "Long-Range Planning",
     "Extended horizons with reduced confidence for distant projections.",
     BiasProfile.BALANCED, -0.2, 1.1, 1.1, 5, (1.0, 1.0, 1.2, 0.6), False),
]

# id, name, churn, growth vol, regulatory, competitive, reliability, accuracy,
# cyclicality, planning horizon (years), disruption frequency
_INDUSTRY_CATALOGUE = [
    ("saas", "SaaS / Software", 0.05, 0.25, 0.15, 0.8, 0.85, 0.7, 0.3, 3, 2),
    ("fintech", "FinTech / Financial Services", 0.08, 0.3, 0.6, 0.7, 0.9, 0.65, 0.6, 5, 1.5),
    ("healthcare", "Healthcare / Life Sciences", 0.03, 0.15, 0.7, 0.5, 0.8, 0.6, 0.2, 7, 1),
    ("ecommerce", "E-Commerce / Retail", 0.15, 0.4, 0.2, 0.9, 0.75, 0.55, 0.7, 2, 3),
    ("manufacturing", "Manufacturing / Industrial", 0.04, 0.2, 0.4, 0.6, 0.85, 0.7, 0.8, 5, 1),
    ("energy", "Energy / Utilities", 0.02, 0.15, 0.65, 0.4, 0.9, 0.75, 0.5, 10, 0.5),
    ("media", "Media / Entertainment", 0.12, 0.35, 0.25, 0.85, 0.7, 0.5, 0.4, 2, 3),
    ("professional-services", "Professional Services", 0.1, 0.2, 0.35, 0.7, 0.75, 0.65, 0.5, 3, 1.5),
    ("real-estate", "Real Estate / Construction", 0.06, 0.3, 0.45, 0.6, 0.8, 0.55, 0.85, 7, 1),
    ("logistics", "Logistics / Supply Chain", 0.07, 0.25, 0.35, 0.75, 0.8, 0.6, 0.6, 3, 2),
    ("general", "General / Cross-Industry", 0.08, 0.25, 0.35, 0.65, 0.75, 0.6, 0.5, 3, 1.5),
]


def _build_cascade_modes() -> dict[str, CascadeMode]:
    modes = {}
    for mode_id, name, desc, tolerance, horizon, depth, focus, constraints, core in _CASCADE_CATALOGUE:
        risk_w, opp_w, bias = TOLERANCE_PROFILES[tolerance]
        modes[mode_id] = CascadeMode(
            id=mode_id,
            name=name,
            description=desc,
            risk_weighting=risk_w,
            opportunity_weighting=opp_w,
            analysis_depth=depth,
            default_constraints=constraints,
            bias_profile=bias,
            risk_tolerance=tolerance,
            time_horizon=horizon,
            focus_areas=focus,
            is_core=core,
        )
    return modes


def _build_simulation_modes() -> dict[str, SimulationMode]:
    modes = {}
    for mode_id, name, desc, bias, adj, risk_w, opp_w, universes, mods, core in _SIMULATION_CATALOGUE:
        churn, growth, risk, confidence = mods
        modes[mode_id] = SimulationMode(
            id=mode_id,
            name=name,
            description=desc,
            risk_weighting=risk_w,
            opportunity_weighting=opp_w,
            bias_profile=bias,
            confidence_adjustment=adj,
            default_universe_count=universes,
            industry_modifiers=IndustryModifiers(
                churn_multiplier=churn,
                growth_multiplier=growth,
                risk_multiplier=risk,
                confidence_multiplier=confidence,
            ),
            is_core=core,
        )
    return modes


def _build_industries() -> dict[str, IndustryBenchmark]:
    return {
        row[0]: IndustryBenchmark(
            id=row[0],
            name=row[1],
            churn_rate_base=row[2],
            growth_volatility=row[3],
            regulatory_risk=row[4],
            competitive_intensity=row[5],
            data_reliability=row[6],
            forecast_accuracy=row[7],
            cyclicality=row[8],
            typical_planning_horizon_years=row[9],
            disruption_frequency=row[10],
        )
        for row in _INDUSTRY_CATALOGUE
    }


# =========================================================================
# Registry
# =========================================================================


class ModeRegistry:
    """
    Read-only lookup of modes and industry benchmarks by id.

    Example:
        >>> registry = get_mode_registry()
        >>> mode = registry.resolve_cascade_mode("due-diligence")
        >>> mode.analysis_depth
        5
    """

    def __init__(
        self,
        cascade_modes: Mapping[str, CascadeMode],
        simulation_modes: Mapping[str, SimulationMode],
        industries: Mapping[str, IndustryBenchmark],
    ):
        self._cascade = MappingProxyType(dict(cascade_modes))
        self._simulation = MappingProxyType(dict(simulation_modes))
        self._industries = MappingProxyType(dict(industries))

    def resolve_cascade_mode(self, mode_id: str) -> CascadeMode:
        try:
            return self._cascade[mode_id]
        except KeyError:
            raise UnknownMode("cascade mode", mode_id) from None

    def resolve_simulation_mode(self, mode_id: str) -> SimulationMode:
        try:
            return self._simulation[mode_id]
        except KeyError:
            raise UnknownMode("simulation mode", mode_id) from None

    def resolve_industry(self, industry_id: str) -> IndustryBenchmark:
        try:
            return self._industries[industry_id]
        except KeyError:
            raise UnknownMode("industry", industry_id) from None

    def suggest_mode_for_change_type(self, change_type) -> str:
        """
        Cascade mode id suited to a change category.

        Accepts a ChangeCategory or its string value. Unrecognized types map
        to the generic conservative mode.
        """
        try:
            category = ChangeCategory(change_type)
        except ValueError:
            return GENERIC_CASCADE_MODE
        return CHANGE_TYPE_MODES.get(category, GENERIC_CASCADE_MODE)

    def suggest_simulation_mode(self, scenario_type: str) -> str:
        """Simulation mode id suited to a scenario type; balanced when unrecognized."""
        return SCENARIO_TYPE_MODES.get((scenario_type or "").lower(), GENERIC_SIMULATION_MODE)

    def cascade_modes(self, core_only: bool = False) -> list[CascadeMode]:
        return [m for m in self._cascade.values() if m.is_core or not core_only]

    def simulation_modes(self, core_only: bool = False) -> list[SimulationMode]:
        return [m for m in self._simulation.values() if m.is_core or not core_only]

    def industries(self) -> list[IndustryBenchmark]:
        return list(self._industries.values())

    def industry_insight(self, metric: str, mode: SimulationMode, industry: IndustryBenchmark) -> str:
        """
        One-line benchmark note for churn, growth or risk under a mode.

        Raises:
            ValueError: For any other metric name
        """
        mods = mode.industry_modifiers
        if metric == "churn":
            adjusted = industry.churn_rate_base * mods.churn_multiplier
            return (
                f"{industry.name} baseline churn: {industry.churn_rate_base * 100:.1f}%. "
                f"{mode.name} adjustment: {adjusted * 100:.1f}%"
            )
        if metric == "growth":
            adjusted = industry.growth_volatility * mods.growth_multiplier
            return (
                f"{industry.name} growth volatility: ±{industry.growth_volatility * 100:.0f}%. "
                f"{mode.name} range: ±{adjusted * 100:.0f}%"
            )
        if metric == "risk":
            adjusted = industry.regulatory_risk * mods.risk_multiplier
            return (
                f"{industry.name} regulatory risk: {industry.regulatory_risk * 100:.0f}%. "
                f"{mode.name} weighting: {adjusted * 100:.0f}%"
            )
        raise ValueError(f"Unsupported insight metric: {metric}")


@lru_cache
def get_mode_registry() -> ModeRegistry:
    """Process-wide registry, built on first use."""
    registry = ModeRegistry(
        cascade_modes=_build_cascade_modes(),
        simulation_modes=_build_simulation_modes(),
        industries=_build_industries(),
    )
    logger.info(
        "mode_registry_loaded",
        cascade_modes=len(registry.cascade_modes()),
        simulation_modes=len(registry.simulation_modes()),
        industries=len(registry.industries()),
    )
    return registry
