"""
Consequence cascade models.

This module defines consequences produced by graph propagation, the
mitigations and guardrails derived from them, and the persisted cascade
report. The CascadeReport field set is the durable contract consumed by
presentation layers.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .change import ChangeSpecification
from .enums import (
    ConsequenceCategory,
    GuardrailType,
    Likelihood,
    MitigationType,
    NodeType,
    Polarity,
    Recommendation,
    Severity,
)


class Consequence(BaseModel):
    """
    A single downstream effect of a change on one graph node.

    Attributes:
        consequence_id: Content-derived identifier (stable for a given path)
        node_id: Affected node
        node_name: Display name of the affected node
        node_type: Kind of the affected node
        category: Business domain the effect lands in
        severity: Severity band
        likelihood: Likelihood band
        probability: Cumulative propagation probability along the path
        risk_score: 0-100
        latency_days: Accumulated edge latency along the path
        order: Hop distance from the originating change (1 = direct)
        confidence: 0-1, strictly decreasing with order along a path
        path: Node ids from the affected asset to this node
        description: Human-readable statement of the effect
        polarity: Local direction of the final edge
        is_butterfly: True only for the report's distinguished consequence
    """

    model_config = ConfigDict(frozen=True)

    consequence_id: str
    node_id: str
    node_name: str
    node_type: NodeType
    category: ConsequenceCategory
    severity: Severity
    likelihood: Likelihood
    probability: float = Field(ge=0.0, le=1.0)
    risk_score: float = Field(ge=0.0, le=100.0)
    latency_days: int = Field(ge=0)
    order: int = Field(ge=1)
    confidence: float = Field(ge=0.0, le=1.0)
    path: tuple[str, ...] = Field(min_length=2)
    description: str
    polarity: Polarity
    is_butterfly: bool = False


class Mitigation(BaseModel):
    """A risk control derived from one consequence."""

    model_config = ConfigDict(frozen=True)

    type: MitigationType
    consequence_id: str
    description: str
    implementation_note: str
    estimated_cost: float = Field(ge=0.0, description="Estimated cost in USD")
    effectiveness: float = Field(ge=0.0, le=1.0)


class Guardrail(BaseModel):
    """
    A tripwire to watch while the change rolls out.

    Consequence guardrails carry the consequence id; guardrails derived from
    no-go lines carry None.
    """

    model_config = ConfigDict(frozen=True)

    type: GuardrailType
    consequence_id: Optional[str] = None
    trigger_condition: str
    threshold: Optional[float] = Field(default=None, description="Deviation percent that trips the guardrail")
    required_action: str


class CascadeReport(BaseModel):
    """
    Complete result of a consequence cascade analysis.

    Append-only once persisted. For identical change, mode, industry, graph
    version and seed, every field except created_at is identical.
    """

    model_config = ConfigDict(frozen=True)

    report_id: str
    change: ChangeSpecification
    mode_id: str
    industry_id: Optional[str] = None
    graph_version: str
    seed: int
    consequences: tuple[Consequence, ...] = ()
    aggregate_risk_score: float = Field(ge=0.0)
    recommendation: Recommendation
    rationale: str
    butterfly_effect: Optional[Consequence] = None
    mitigations: tuple[Mitigation, ...] = ()
    guardrails: tuple[Guardrail, ...] = ()
    complete: bool = True
    incomplete_reason: Optional[str] = None
    synthetic: bool = False
    fallback_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CascadeReportSummary(BaseModel):
    """Listing entry for a persisted cascade report."""

    report_id: str
    title: str
    change_type: str
    mode_id: str
    aggregate_risk_score: float
    recommendation: Recommendation
    consequence_count: int
    complete: bool
    created_at: datetime
