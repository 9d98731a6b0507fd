"""
Risk & Recommendation Synthesizer.

Aggregates consequence risk into a single score and maps it to a
recommendation. Read-only over consequences.

Aggregate score: sum of risk_score / order, so direct effects dominate.

Recommendation thresholds:
- PROCEED:              score < 30
- PROCEED_WITH_CAUTION: 30 <= score < 60
- RECONSIDER:           60 <= score <= 85
- REJECT:               score > 85

Version: risk_synthesizer_v1
"""

from typing import Optional, Sequence

from foresight.models.cascade import Consequence
from foresight.models.enums import Recommendation

RECOMMENDATION_THRESHOLDS = {
    "PROCEED": 30.0,
    "PROCEED_WITH_CAUTION": 60.0,
    "RECONSIDER": 85.0,
}

RATIONALE_TOP_K = 3

_OPENERS = {
    Recommendation.PROCEED: "Proceed: aggregate risk is low",
    Recommendation.PROCEED_WITH_CAUTION: "Proceed with caution: aggregate risk is material",
    Recommendation.RECONSIDER: "Reconsider: aggregate risk is high",
    Recommendation.REJECT: "Reject as proposed: aggregate risk is severe",
}


def aggregate_risk(consequences: Sequence[Consequence]) -> float:
    """Order-weighted sum of risk scores; within [0, 100 x len]."""
    return round(sum(c.risk_score / c.order for c in consequences), 4)


def recommend(score: float) -> Recommendation:
    """Pure banding of an aggregate score."""
    if score < RECOMMENDATION_THRESHOLDS["PROCEED"]:
        return Recommendation.PROCEED
    if score < RECOMMENDATION_THRESHOLDS["PROCEED_WITH_CAUTION"]:
        return Recommendation.PROCEED_WITH_CAUTION
    if score <= RECOMMENDATION_THRESHOLDS["RECONSIDER"]:
        return Recommendation.RECONSIDER
    return Recommendation.REJECT


def top_consequences(consequences: Sequence[Consequence], k: int) -> list[Consequence]:
    """Top k by risk score; ties by lower order, then id."""
    return sorted(consequences, key=lambda c: (-c.risk_score, c.order, c.consequence_id))[:k]


def build_rationale(
    consequences: Sequence[Consequence],
    score: float,
    recommendation: Recommendation,
    butterfly: Optional[Consequence] = None,
    incomplete_reason: Optional[str] = None,
) -> str:
    """Summarize the recommendation from the top consequences."""
    parts = [f"{_OPENERS[recommendation]} ({score:.1f} across {len(consequences)} consequences)."]

    top = top_consequences(consequences, RATIONALE_TOP_K)
    if top:
        drivers = "; ".join(
            f"{c.node_name} ({c.severity.value}, order {c.order}, risk {c.risk_score:.0f})"
            for c in top
        )
        parts.append(f"Main drivers: {drivers}.")
    else:
        parts.append("No consequence cleared the propagation floor.")

    if butterfly is not None:
        parts.append(
            f"Butterfly effect: {butterfly.node_name} at order {butterfly.order}, "
            f"about {butterfly.latency_days} days out."
        )
    if incomplete_reason:
        parts.append(f"Analysis incomplete: {incomplete_reason}.")

    return " ".join(parts)
