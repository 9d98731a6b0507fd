"""
Enumeration types for the Foresight engine.

All enums inherit from str so they serialize cleanly to JSON and compare
equal to their wire values.
"""

from enum import Enum


class NodeType(str, Enum):
    """Kinds of organizational entities held in the graph."""

    TEAM = "team"
    SYSTEM = "system"
    POLICY = "policy"
    METRIC = "metric"
    VENDOR = "vendor"
    PROCESS = "process"
    CUSTOMER_SEGMENT = "customer_segment"
    ASSET = "asset"


class RelationType(str, Enum):
    """How one entity influences another."""

    OWNS = "owns"
    DEPENDS_ON = "depends_on"
    SUPPLIES = "supplies"
    GOVERNS = "governs"
    DRIVES = "drives"
    SUPPORTS = "supports"
    FEEDS = "feeds"
    CONSTRAINS = "constrains"


class Polarity(str, Enum):
    """
    Local direction of an edge's effect.

    POSITIVE means a disturbance at the source is locally beneficial to the
    target (opportunity weighting applies); NEGATIVE means it is harmful
    (risk weighting applies).
    """

    POSITIVE = "positive"
    NEGATIVE = "negative"


class ChangeCategory(str, Enum):
    """Enumerated type tag on a change specification."""

    STAFFING = "staffing"
    PRICING = "pricing"
    VENDOR = "vendor"
    TECHNOLOGY = "technology"
    PROCESS = "process"
    PRODUCT = "product"
    MARKET = "market"
    REGULATORY = "regulatory"
    SECURITY = "security"
    POLICY = "policy"
    DATA = "data"
    OTHER = "other"


class ConsequenceCategory(str, Enum):
    """Business domain a consequence lands in."""

    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    PEOPLE = "people"
    CUSTOMER = "customer"
    TECHNICAL = "technical"
    COMPLIANCE = "compliance"
    REPUTATIONAL = "reputational"
    STRATEGIC = "strategic"


class Severity(str, Enum):
    """Consequence severity bands, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    MINIMAL = "minimal"


class Likelihood(str, Enum):
    """Consequence likelihood bands, most likely first."""

    ALMOST_CERTAIN = "almost_certain"
    LIKELY = "likely"
    POSSIBLE = "possible"
    UNLIKELY = "unlikely"
    RARE = "rare"


class Recommendation(str, Enum):
    """Decision recommendation for a cascade report."""

    PROCEED = "proceed"
    PROCEED_WITH_CAUTION = "proceed_with_caution"
    RECONSIDER = "reconsider"
    REJECT = "reject"


class MitigationType(str, Enum):
    PREVENT = "prevent"
    DETECT = "detect"
    RESPOND = "respond"


class GuardrailType(str, Enum):
    HARD_STOP = "hard_stop"
    ESCALATION = "escalation"


class RiskTolerance(str, Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class BiasProfile(str, Enum):
    OPTIMISTIC = "optimistic"
    PESSIMISTIC = "pessimistic"
    BALANCED = "balanced"
    CONTRARIAN = "contrarian"


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class RiskBand(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EventCategory(str, Enum):
    """Timeline event categories."""

    MILESTONE = "milestone"
    RISK = "risk"
    OPPORTUNITY = "opportunity"
    PIVOT = "pivot"
    CASCADE = "cascade"
    EXTERNAL = "external"
    CHECKPOINT = "checkpoint"


class Impact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Posture(str, Enum):
    """
    Strategic postures available to the multiverse simulator.

    Declared in the order universes are generated; the first N are used
    for a request with branch count N.
    """

    AGGRESSIVE = "aggressive"
    ACCELERATED = "accelerated"
    BALANCED = "balanced"
    COOPERATIVE = "cooperative"
    PHASED = "phased"
    DEFENSIVE = "defensive"
    CONTRARIAN = "contrarian"
    STATUS_QUO = "status_quo"
