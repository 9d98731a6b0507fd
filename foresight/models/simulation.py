"""
Multiverse simulation models.

A simulation answers one decision question by generating several competing
universes (alternative decisions), each with outcome metrics, a risk profile
and a day-indexed timeline, then recommending one of them.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import EventCategory, Impact, Posture, RiskBand, Trend


class OutcomeMetric(BaseModel):
    """Projected movement of one business metric over the horizon."""

    model_config = ConfigDict(frozen=True)

    name: str
    unit: str
    baseline: float
    projected: float
    delta: float
    delta_pct: float
    confidence: float = Field(ge=0.0, le=1.0)
    trend: Trend
    higher_is_better: bool = True


class RiskProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    band: RiskBand
    score: float = Field(ge=0.0, le=100.0)
    volatility: float = Field(ge=0.0, le=1.0)
    probability_range: tuple[float, float]


class TimelineEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(ge=1)
    title: str
    description: str
    category: EventCategory
    impact: Impact
    confidence: float = Field(ge=0.0, le=1.0)


class Universe(BaseModel):
    """
    One alternative decision branch.

    Attributes:
        universe_id: Identifier unique within the simulation
        name: Display name
        posture: Strategic posture the branch represents
        decision: Decision text, distinct across universes
        probability: Independent likelihood of this path being chosen
        metrics: Outcome metrics
        risk_profile: Overall risk band and score
        reversibility: 0-100, how easily the decision can be unwound
        timeline: Events ordered by strictly increasing day offset
        overall_score: Ranking score used for the recommendation
        is_recommended: True for exactly one universe per simulation
    """

    model_config = ConfigDict(frozen=True)

    universe_id: str
    name: str
    posture: Posture
    decision: str
    probability: float = Field(ge=0.0, le=1.0)
    metrics: tuple[OutcomeMetric, ...]
    risk_profile: RiskProfile
    reversibility: float = Field(ge=0.0, le=100.0)
    timeline: tuple[TimelineEvent, ...]
    overall_score: float
    is_recommended: bool = False


class HistoricalAnalogue(BaseModel):
    """Reference pattern resembling a universe's posture. Always illustrative."""

    model_config = ConfigDict(frozen=True)

    title: str
    posture: Posture
    summary: str
    outcome: str
    similarity: float = Field(ge=0.0, le=1.0)
    illustrative: bool = True


class OracleRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    universe_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    rationale: str
    key_factors: tuple[str, ...]
    warnings: tuple[str, ...] = ()


class OracleSimulation(BaseModel):
    """Complete multiverse simulation result."""

    model_config = ConfigDict(frozen=True)

    simulation_id: str
    question: str
    time_horizon: str
    horizon_days: int
    mode_id: str
    industry_id: str
    seed: int
    universes: tuple[Universe, ...]
    historical_analogues: tuple[HistoricalAnalogue, ...] = ()
    recommendation: OracleRecommendation
    synthetic: bool = False
    fallback_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SimulationSummary(BaseModel):
    simulation_id: str
    question: str
    mode_id: str
    universe_count: int
    recommended_universe_id: str
    synthetic: bool
    created_at: datetime
