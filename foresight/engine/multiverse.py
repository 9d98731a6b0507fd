"""
Multiverse Simulator: Competing Decision Universes.

Answers a decision question ("Should we enter Market X?") by generating N
materially distinct strategic postures, projecting each one's outcome
metrics and timeline over the horizon, and recommending the best.

Projection per universe:
1. Start from the posture's baseline metric deltas, scaled to the horizon
2. Favorable movement is weighted by opportunity weighting, unfavorable by
   risk weighting, each tilted by the mode's bias profile
3. Industry benchmarks and the mode's churn/growth/risk multipliers apply
4. A seeded generator adds posture-dependent noise
5. Base probability of success comes from the net favorable movement
   (normal CDF), then goes through calibrate()

Ranking:
    overall = 0.5 x revenue component + 0.3 x (100 - risk score)
              + 0.2 x reversibility

Note: This is a structured thinking aid driven by benchmark parameters,
not a forecast. Historical analogues are canned reference patterns and
always flagged illustrative.

Version: multiverse_v1
"""

import json
import math
import re
import uuid
from typing import Optional, Sequence

import numpy as np
import structlog
from scipy import stats

from foresight.models.enums import (
    BiasProfile,
    EventCategory,
    Impact,
    Posture,
    RiskBand,
    Trend,
)
from foresight.models.modes import IndustryBenchmark, SimulationMode
from foresight.models.simulation import (
    HistoricalAnalogue,
    OracleRecommendation,
    OracleSimulation,
    OutcomeMetric,
    RiskProfile,
    TimelineEvent,
    Universe,
)
from foresight.storage.base import StorageBackend

from .calibration import calibrate, clamp
from .cascade.analyzer import generate_seed
from .errors import ValidationError
from .mode_registry import ModeRegistry

logger = structlog.get_logger()

SIMULATION_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "foresight/oracle-simulation")


# =========================================================================
# Catalogue
# =========================================================================

# name, unit, higher_is_better
METRICS = {
    "revenue_growth": ("Revenue Growth", "%", True),
    "market_share": ("Market Share", "%", True),
    "customer_churn": ("Customer Churn", "%", False),
    "operating_cost": ("Operating Cost", "index", False),
    "regulatory_exposure": ("Regulatory Exposure", "index", False),
}

# Relative change of each metric over a one-year horizon, in METRICS order
POSTURES = {
    Posture.AGGRESSIVE: {
        "name": "All-In",
        "decision": "Commit fully and move first: {action} at maximum speed and investment",
        "aggression": 0.95,
        "deltas": (0.35, 0.25, 0.10, 0.30, 0.25),
    },
    Posture.ACCELERATED: {
        "name": "Fast Track",
        "decision": "Accelerate: {action} within the quarter with a dedicated team",
        "aggression": 0.8,
        "deltas": (0.25, 0.18, 0.05, 0.20, 0.12),
    },
    Posture.BALANCED: {
        "name": "Measured Entry",
        "decision": "Proceed deliberately: {action} with staged budget gates",
        "aggression": 0.5,
        "deltas": (0.12, 0.08, -0.02, 0.08, 0.05),
    },
    Posture.COOPERATIVE: {
        "name": "Partnership",
        "decision": "Partner to {action}, sharing cost and risk with an established player",
        "aggression": 0.4,
        "deltas": (0.10, 0.10, -0.05, 0.05, 0.02),
    },
    Posture.PHASED: {
        "name": "Pilot First",
        "decision": "Run a limited pilot before deciding whether to {action}",
        "aggression": 0.3,
        "deltas": (0.07, 0.04, -0.04, 0.03, 0.0),
    },
    Posture.DEFENSIVE: {
        "name": "Fortify Core",
        "decision": "Hold off on the plan to {action}; reinvest in defending the core business",
        "aggression": 0.2,
        "deltas": (0.03, -0.02, -0.08, -0.05, -0.05),
    },
    Posture.CONTRARIAN: {
        "name": "Contrarian Bet",
        "decision": "Take the opposite bet: skip the plan to {action} and target the segment others ignore",
        "aggression": 0.7,
        "deltas": (0.15, 0.12, 0.03, 0.10, 0.08),
    },
    Posture.STATUS_QUO: {
        "name": "Status Quo",
        "decision": "Do nothing new; decline to {action} and keep the current course",
        "aggression": 0.0,
        "deltas": (-0.02, -0.04, 0.03, 0.0, 0.0),
    },
}

BIAS_TILT = {
    BiasProfile.OPTIMISTIC: (1.15, 0.85),
    BiasProfile.PESSIMISTIC: (0.85, 1.15),
    BiasProfile.BALANCED: (1.0, 1.0),
}

TIMELINE_FRACTIONS = (0.05, 0.15, 0.3, 0.5, 0.75, 1.0)

ANALOGUES = {
    Posture.AGGRESSIVE: (
        "Blitz market entry",
        "A challenger raised a large round and launched in several regions at once.",
        "Captured share quickly, then spent two years fixing unit economics.",
    ),
    Posture.ACCELERATED: (
        "Fast-follower launch",
        "A mid-size vendor shipped a competing product within one quarter of a rival.",
        "Won price-sensitive accounts; support load spiked for six months.",
    ),
    Posture.BALANCED: (
        "Gated expansion",
        "A growth-stage company released budget in tranches tied to adoption targets.",
        "Slower start, steady compounding, no major write-offs.",
    ),
    Posture.COOPERATIVE: (
        "Channel partnership",
        "A regional player entered a new market through a distributor agreement.",
        "Low capital outlay, thinner margins, dependency on the partner's roadmap.",
    ),
    Posture.PHASED: (
        "Pilot-led rollout",
        "An incumbent piloted with three design partners before a general launch.",
        "Pilot exposed pricing issues early; the launch landed cleanly a year later.",
    ),
    Posture.DEFENSIVE: (
        "Core-first retrenchment",
        "A market leader paused new bets to shore up retention during a downturn.",
        "Churn fell; a newer entrant took the adjacent segment.",
    ),
    Posture.CONTRARIAN: (
        "Underserved-segment bet",
        "A startup ignored the crowded enterprise tier and built for micro-businesses.",
        "Long quiet period, then outsized growth as the segment matured.",
    ),
    Posture.STATUS_QUO: (
        "Wait and see",
        "A profitable firm declined to respond to a new category entrant.",
        "Stable near term; lost relevance as the category grew.",
    ),
}

_UNIT_MULTIPLIERS = {
    "d": 1, "day": 1, "days": 1,
    "w": 7, "wk": 7, "week": 7, "weeks": 7,
    "m": 30, "mo": 30, "month": 30, "months": 30,
    "y": 365, "yr": 365, "year": 365, "years": 365,
}
_HORIZON_PATTERN = re.compile(r"^\s*(\d+)\s*([a-z]+)\s*$")
MIN_HORIZON_DAYS = 7
MAX_HORIZON_DAYS = 3650


def parse_time_horizon(value: str) -> int:
    """
    Parse a horizon such as "180d", "6m", "2 years" into days.

    Raises:
        ValidationError: Unparseable or outside 7-3650 days
    """
    match = _HORIZON_PATTERN.match((value or "").lower())
    if not match or match.group(2) not in _UNIT_MULTIPLIERS:
        raise ValidationError(
            f"Unrecognized time horizon {value!r}; use forms like 180d, 12w, 6m, 1y",
            fields=["time_horizon"],
        )
    days = int(match.group(1)) * _UNIT_MULTIPLIERS[match.group(2)]
    if not MIN_HORIZON_DAYS <= days <= MAX_HORIZON_DAYS:
        raise ValidationError(
            f"Time horizon must be between {MIN_HORIZON_DAYS} and {MAX_HORIZON_DAYS} days",
            fields=["time_horizon"],
        )
    return days


def _action_from_question(question: str) -> str:
    """'Should we enter Market X?' -> 'enter Market X'."""
    action = question.strip().rstrip("?.! ")
    action = re.sub(r"^(should|do|can|could|would|shall)\s+(we|i|our company)\s+", "", action, flags=re.I)
    return action[0].lower() + action[1:] if action else "act on this decision"


# =========================================================================
# Simulator
# =========================================================================


class MultiverseSimulator:
    """
    Generates and ranks competing decision universes.

    Attributes:
        registry: Mode and industry registry
        storage: Optional store; simulations are not persisted when None
        max_universes: Upper bound on branch count
        default_mode_id: Simulation mode used when none given
        default_industry_id: Industry used when none given

    Example:
        >>> simulator = MultiverseSimulator(registry)
        >>> sim = simulator.simulate("Should we enter Market X?", "180d", 3, seed=42)
        >>> [u.name for u in sim.universes]
        ['All-In', 'Fast Track', 'Measured Entry']
    """

    def __init__(
        self,
        registry: ModeRegistry,
        storage: Optional[StorageBackend] = None,
        max_universes: int = len(POSTURES),
        default_mode_id: str = "balanced",
        default_industry_id: str = "general",
    ):
        self.registry = registry
        self.storage = storage
        self.max_universes = min(max_universes, len(POSTURES))
        self.default_mode_id = default_mode_id
        self.default_industry_id = default_industry_id
        self.logger = structlog.get_logger()

    def simulate(
        self,
        question: str,
        time_horizon: str = "1y",
        branch_count: Optional[int] = None,
        mode_id: Optional[str] = None,
        industry_id: Optional[str] = None,
        seed: Optional[int] = None,
        context: Optional[str] = None,
        constraints: Sequence[str] = (),
        fallback_reason: Optional[str] = None,
    ) -> OracleSimulation:
        """
        Run a multiverse simulation.

        Args:
            question: Decision question; must be non-blank
            time_horizon: Horizon string ("180d", "6m", "1y")
            branch_count: Universes to generate; mode default when None
            mode_id: Simulation mode id
            industry_id: Industry benchmark id
            seed: Seed for the generator; generated and recorded when None
            context: Optional background, echoed into the rationale
            constraints: No-go lines surfaced as warnings on risky picks
            fallback_reason: Set when this runs in place of a remote engine; the
                simulation is flagged synthetic before it is persisted

        Returns:
            OracleSimulation with exactly branch_count universes

        Raises:
            ValidationError: Empty question, bad horizon, branch count or seed
            UnknownMode: Unknown mode or industry id
        """
        question = (question or "").strip()
        if not question:
            raise ValidationError("Question must not be empty", fields=["question"])
        horizon_days = parse_time_horizon(time_horizon)

        mode = self.registry.resolve_simulation_mode(mode_id or self.default_mode_id)
        industry = self.registry.resolve_industry(industry_id or self.default_industry_id)

        if branch_count is None:
            count = min(mode.default_universe_count, self.max_universes)
        else:
            count = branch_count
        if not 1 <= count <= self.max_universes:
            raise ValidationError(
                f"branch_count must be between 1 and {self.max_universes}",
                fields=["branch_count"],
            )
        if seed is not None and seed < 0:
            raise ValidationError("seed must be a non-negative integer", fields=["seed"])

        if seed is None:
            seed = generate_seed()
        rng = np.random.default_rng(seed)

        self.logger.info(
            "simulation_started",
            mode_id=mode.id,
            industry_id=industry.id,
            horizon_days=horizon_days,
            branch_count=count,
            seed=seed,
        )

        action = _action_from_question(question)
        postures = list(POSTURES)[:count]
        universes = [
            self._build_universe(index, posture, action, horizon_days, mode, industry, rng)
            for index, posture in enumerate(postures)
        ]

        winner_index = max(
            range(len(universes)),
            key=lambda i: (universes[i].overall_score, -universes[i].risk_profile.score, -i),
        )
        universes[winner_index] = universes[winner_index].model_copy(update={"is_recommended": True})

        recommendation = self._recommend(universes, winner_index, context, constraints)
        analogues = self._analogues(universes, rng)

        simulation = OracleSimulation(
            simulation_id=self._simulation_id(
                question,
                horizon_days,
                count,
                mode.id,
                industry.id,
                seed,
                context,
                constraints,
                synthetic=fallback_reason is not None,
            ),
            question=question,
            time_horizon=time_horizon,
            horizon_days=horizon_days,
            mode_id=mode.id,
            industry_id=industry.id,
            seed=seed,
            universes=tuple(universes),
            historical_analogues=tuple(analogues),
            recommendation=recommendation,
            synthetic=fallback_reason is not None,
            fallback_reason=fallback_reason,
        )

        if self.storage is not None:
            try:
                self.storage.write_simulation(simulation)
            except Exception as e:
                self.logger.error(
                    "simulation_persistence_failed",
                    simulation_id=simulation.simulation_id,
                    error=str(e),
                )

        self.logger.info(
            "simulation_completed",
            simulation_id=simulation.simulation_id,
            universes=len(universes),
            recommended=recommendation.universe_id,
            confidence=recommendation.confidence,
        )
        return simulation

    # =========================================================================
    # Universe construction
    # =========================================================================

    def _build_universe(
        self,
        index: int,
        posture: Posture,
        action: str,
        horizon_days: int,
        mode: SimulationMode,
        industry: IndustryBenchmark,
        rng: np.random.Generator,
    ) -> Universe:
        profile = POSTURES[posture]
        aggression = profile["aggression"]
        horizon_scale = clamp(math.sqrt(horizon_days / 365.0), 0.25, 2.0)

        changes = self._project_changes(posture, mode, industry, horizon_scale, rng)
        favorable = {
            key: (change if METRICS[key][2] else -change) for key, change in changes.items()
        }

        net = sum(favorable.values())
        base_probability = float(stats.norm.cdf(net / (0.1 + industry.growth_volatility)))
        calibration = calibrate(base_probability, mode, industry)

        metric_confidence = calibration.confidence * (1.0 - 0.25 * aggression)
        baselines = self._baselines(industry)
        metrics = tuple(
            self._metric(key, baselines[key], changes[key], favorable[key], metric_confidence)
            for key in METRICS
        )

        volatility = clamp(0.1 + 0.6 * aggression * (0.5 + industry.growth_volatility), 0.0, 1.0)
        adverse = sum(max(0.0, -f) for f in favorable.values())
        risk_score = round(clamp(50.0 * volatility + 60.0 * adverse, 0.0, 100.0), 2)
        low, high = (round(bound, 4) for bound in calibration.range)
        risk_profile = RiskProfile(
            band=self._risk_band(risk_score),
            score=risk_score,
            volatility=round(volatility, 4),
            probability_range=(low, high),
        )

        reversibility = round(
            clamp(100.0 - 60.0 * aggression - 20.0 * volatility - 10.0 * max(0.0, changes["operating_cost"]), 0.0, 100.0),
            2,
        )
        revenue_component = clamp(50.0 + 200.0 * changes["revenue_growth"], 0.0, 100.0)
        overall = round(0.5 * revenue_component + 0.3 * (100.0 - risk_score) + 0.2 * reversibility, 4)

        probability = round(clamp(calibration.probability + float(rng.uniform(-0.02, 0.02)), low, high), 4)

        return Universe(
            universe_id=f"universe-{index + 1}-{posture.value}",
            name=profile["name"],
            posture=posture,
            decision=profile["decision"].format(action=action),
            probability=probability,
            metrics=metrics,
            risk_profile=risk_profile,
            reversibility=reversibility,
            timeline=tuple(
                self._timeline(posture, metrics, horizon_days, metric_confidence, rng)
            ),
            overall_score=overall,
        )

    def _project_changes(
        self,
        posture: Posture,
        mode: SimulationMode,
        industry: IndustryBenchmark,
        horizon_scale: float,
        rng: np.random.Generator,
    ) -> dict[str, float]:
        """Relative change per metric after mode, bias and industry adjustments."""
        profile = POSTURES[posture]
        aggression = profile["aggression"]
        mods = mode.industry_modifiers

        if mode.bias_profile == BiasProfile.CONTRARIAN:
            # Contrarian lens distrusts bold moves and credits cautious ones
            tilt_fav, tilt_unfav = (0.85, 1.15) if aggression >= 0.5 else (1.15, 0.85)
        else:
            tilt_fav, tilt_unfav = BIAS_TILT[mode.bias_profile]

        industry_factor = {
            "revenue_growth": (0.5 + 2.0 * industry.growth_volatility) * mods.growth_multiplier,
            "market_share": (0.35 + industry.competitive_intensity) * mods.growth_multiplier,
            "customer_churn": mods.churn_multiplier,
            "operating_cost": 1.0,
            "regulatory_exposure": (0.65 + industry.regulatory_risk) * mods.risk_multiplier,
        }

        changes = {}
        for key, base in zip(METRICS, profile["deltas"]):
            higher_is_better = METRICS[key][2]
            is_favorable = (base > 0) == higher_is_better
            weight = (
                mode.opportunity_weighting * tilt_fav
                if is_favorable
                else mode.risk_weighting * tilt_unfav
            )
            noise = float(rng.normal(0.0, 0.01 + 0.02 * aggression))
            change = (base * weight * industry_factor[key] + noise) * horizon_scale
            changes[key] = round(max(-0.95, change), 6)
        return changes

    @staticmethod
    def _baselines(industry: IndustryBenchmark) -> dict[str, float]:
        return {
            "revenue_growth": 10.0,
            "market_share": 12.0,
            "customer_churn": round(industry.churn_rate_base * 100.0, 4),
            "operating_cost": 100.0,
            "regulatory_exposure": round(industry.regulatory_risk * 100.0, 4),
        }

    @staticmethod
    def _metric(key: str, baseline: float, change: float, favorable: float, confidence: float) -> OutcomeMetric:
        name, unit, higher_is_better = METRICS[key]
        projected = baseline * (1.0 + change)
        if favorable > 0.02:
            trend = Trend.IMPROVING
        elif favorable < -0.02:
            trend = Trend.DECLINING
        else:
            trend = Trend.STABLE
        return OutcomeMetric(
            name=name,
            unit=unit,
            baseline=baseline,
            projected=round(projected, 4),
            delta=round(projected - baseline, 4),
            delta_pct=round(change * 100.0, 2),
            confidence=round(clamp(confidence, 0.0, 1.0), 4),
            trend=trend,
            higher_is_better=higher_is_better,
        )

    @staticmethod
    def _risk_band(score: float) -> RiskBand:
        if score < 25:
            return RiskBand.LOW
        if score < 50:
            return RiskBand.MEDIUM
        if score < 75:
            return RiskBand.HIGH
        return RiskBand.CRITICAL

    def _timeline(
        self,
        posture: Posture,
        metrics: Sequence[OutcomeMetric],
        horizon_days: int,
        confidence: float,
        rng: np.random.Generator,
    ) -> list[TimelineEvent]:
        """Six events at strictly increasing offsets, confidence falling with offset."""
        name = POSTURES[posture]["name"]
        best = max(metrics, key=lambda m: m.delta_pct if m.higher_is_better else -m.delta_pct)
        worst = min(metrics, key=lambda m: m.delta_pct if m.higher_is_better else -m.delta_pct)
        revenue = metrics[0]

        templates = [
            (EventCategory.MILESTONE, Impact.NEUTRAL, f"{name} kickoff",
             "Decision communicated; owners and budget assigned."),
            (EventCategory.CHECKPOINT, Impact.NEUTRAL, "First checkpoint",
             "Early indicators reviewed against plan."),
            (EventCategory.OPPORTUNITY, Impact.POSITIVE, f"{best.name} gains traction",
             f"{best.name} moves {best.delta_pct:+.1f}% toward target."),
            (
                (EventCategory.PIVOT, Impact.NEUTRAL, "Strategy pivot point",
                 "Evidence forces a choice between doubling down and reverting.")
                if posture == Posture.CONTRARIAN
                else (EventCategory.CASCADE, Impact.NEGATIVE, f"{worst.name} pressure builds",
                      f"Second-order effects push {worst.name} {worst.delta_pct:+.1f}%.")
            ),
            (EventCategory.EXTERNAL, Impact.NEUTRAL, "Market response",
             "Competitors and customers react to the move."),
            (EventCategory.MILESTONE,
             Impact.POSITIVE if revenue.trend == Trend.IMPROVING
             else Impact.NEGATIVE if revenue.trend == Trend.DECLINING else Impact.NEUTRAL,
             "Horizon review",
             f"Revenue growth lands at {revenue.projected:.1f}% vs {revenue.baseline:.1f}% baseline."),
        ]

        events = []
        previous_day = 0
        for fraction, (category, impact, title, description) in zip(TIMELINE_FRACTIONS, templates):
            jitter = float(rng.uniform(-0.03, 0.03)) * horizon_days
            day = max(previous_day + 1, int(round(horizon_days * fraction + jitter)), 1)
            previous_day = day
            events.append(
                TimelineEvent(
                    day=day,
                    title=title,
                    description=description,
                    category=category,
                    impact=impact,
                    confidence=round(clamp(confidence * (1.0 - 0.5 * day / (horizon_days + day)), 0.0, 1.0), 4),
                )
            )
        return events

    # =========================================================================
    # Recommendation
    # =========================================================================

    def _recommend(
        self,
        universes: list[Universe],
        winner_index: int,
        context: Optional[str],
        constraints: Sequence[str],
    ) -> OracleRecommendation:
        winner = universes[winner_index]
        others = [u for i, u in enumerate(universes) if i != winner_index]
        runner_up = max(others, key=lambda u: u.overall_score) if others else None
        margin = winner.overall_score - runner_up.overall_score if runner_up else 10.0

        mean_confidence = float(np.mean([m.confidence for m in winner.metrics]))
        confidence = round(clamp(mean_confidence * (0.8 + 0.2 * min(1.0, margin / 10.0)), 0.0, 1.0), 4)

        def contribution(metric: OutcomeMetric) -> float:
            return abs(metric.delta_pct)

        drivers = sorted(winner.metrics, key=contribution, reverse=True)[:4]
        key_factors = tuple(
            f"{m.name} {m.delta_pct:+.1f}% ({m.trend.value})" for m in drivers
        )

        warnings = [
            f"{m.name} trending unfavorably ({m.delta_pct:+.1f}%)"
            for m in winner.metrics
            if m.trend == Trend.DECLINING
        ]
        if confidence < 0.5:
            warnings.append("Low confidence: treat this ranking as directional only")
        if winner.risk_profile.band in (RiskBand.HIGH, RiskBand.CRITICAL):
            warnings.extend(f"Verify against constraint: {c}" for c in constraints)

        rationale = f"{winner.name} scores {winner.overall_score:.1f}"
        if runner_up is not None:
            rationale += f", {margin:.1f} ahead of {runner_up.name}"
        rationale += (
            f"; {winner.risk_profile.band.value} risk ({winner.risk_profile.score:.0f}), "
            f"reversibility {winner.reversibility:.0f}/100."
        )
        if context:
            rationale += f" Context considered: {context.strip()}"

        return OracleRecommendation(
            universe_id=winner.universe_id,
            confidence=confidence,
            rationale=rationale,
            key_factors=key_factors,
            warnings=tuple(warnings),
        )

    @staticmethod
    def _analogues(universes: list[Universe], rng: np.random.Generator) -> list[HistoricalAnalogue]:
        ranked = sorted(universes, key=lambda u: -u.overall_score)[:3]
        analogues = []
        for universe in ranked:
            title, summary, outcome = ANALOGUES[universe.posture]
            analogues.append(
                HistoricalAnalogue(
                    title=title,
                    posture=universe.posture,
                    summary=summary,
                    outcome=outcome,
                    similarity=round(float(rng.uniform(0.55, 0.85)), 4),
                )
            )
        return analogues

    @staticmethod
    def _simulation_id(
        question, horizon_days, count, mode_id, industry_id, seed, context, constraints, synthetic=False
    ) -> str:
        fields = {
            "question": question,
            "horizon_days": horizon_days,
            "branch_count": count,
            "mode_id": mode_id,
            "industry_id": industry_id,
            "seed": seed,
            "context": context,
            "constraints": list(constraints),
        }
        if synthetic:
            fields["synthetic"] = True
        key = json.dumps(fields, sort_keys=True)
        return str(uuid.uuid5(SIMULATION_NAMESPACE, key))


def get_multiverse_simulator() -> MultiverseSimulator:
    """Simulator wired to the process-wide registry, storage and settings."""
    from foresight.config import get_settings
    from foresight.storage import get_storage

    from .mode_registry import get_mode_registry

    settings = get_settings()
    return MultiverseSimulator(
        registry=get_mode_registry(),
        storage=get_storage(),
        max_universes=settings.max_universes,
        default_mode_id=settings.default_simulation_mode,
        default_industry_id=settings.default_industry,
    )
