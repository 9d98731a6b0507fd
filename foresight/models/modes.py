"""
Analysis mode and industry benchmark models.

These are immutable configuration records served by the mode registry.
"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import BiasProfile, RiskTolerance


class IndustryModifiers(BaseModel):
    """Multipliers a simulation mode applies on top of industry baselines."""

    model_config = ConfigDict(frozen=True)

    churn_multiplier: float = Field(default=1.0, gt=0.0)
    growth_multiplier: float = Field(default=1.0, gt=0.0)
    risk_multiplier: float = Field(default=1.0, gt=0.0)
    confidence_multiplier: float = Field(default=1.0, gt=0.0)


class Mode(BaseModel):
    """
    Shared analysis mode record.

    Attributes:
        id: Registry key
        name: Display name
        description: One-line summary
        risk_weighting: Multiplier applied to harmful effects
        opportunity_weighting: Multiplier applied to beneficial effects
        analysis_depth: Maximum causal order explored
        default_constraints: No-go lines added to every analysis in this mode
        bias_profile: Optimistic, pessimistic, balanced or contrarian lens
        confidence_adjustment: Additive confidence shift used by calibration
        industry_modifiers: Multipliers over industry baselines
        default_universe_count: Universes generated when no branch count is given
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    risk_weighting: float = Field(default=1.0, gt=0.0)
    opportunity_weighting: float = Field(default=1.0, gt=0.0)
    analysis_depth: int = Field(default=4, ge=1, le=10)
    default_constraints: tuple[str, ...] = ()
    bias_profile: BiasProfile = BiasProfile.BALANCED
    confidence_adjustment: float = Field(default=0.0, ge=-1.0, le=1.0)
    industry_modifiers: IndustryModifiers = Field(default_factory=IndustryModifiers)
    default_universe_count: int = Field(default=5, ge=1, le=8)


class CascadeMode(Mode):
    """Mode used by consequence cascade analysis."""

    risk_tolerance: RiskTolerance = RiskTolerance.BALANCED
    time_horizon: str = "medium"
    focus_areas: tuple[str, ...] = ()
    is_core: bool = False


class SimulationMode(Mode):
    """Mode used by the multiverse simulator."""

    is_core: bool = False


class IndustryBenchmark(BaseModel):
    """
    Baseline characteristics of an industry.

    Used by calibration and the multiverse simulator, and optionally by the
    cascade engine as a propagation modifier.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    churn_rate_base: float = Field(ge=0.0, le=1.0)
    growth_volatility: float = Field(ge=0.0, le=1.0)
    regulatory_risk: float = Field(ge=0.0, le=1.0)
    competitive_intensity: float = Field(ge=0.0, le=1.0)
    data_reliability: float = Field(ge=0.0, le=1.0)
    forecast_accuracy: float = Field(ge=0.0, le=1.0)
    cyclicality: float = Field(default=0.5, ge=0.0, le=1.0)
    typical_planning_horizon_years: float = Field(default=3.0, gt=0.0)
    disruption_frequency: float = Field(default=1.5, ge=0.0)


class Calibration(BaseModel):
    """Calibrated probability, confidence and probability range."""

    model_config = ConfigDict(frozen=True)

    probability: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    range: tuple[float, float]
