"""
Consequence strategies.

A strategy decides which business domain a consequence lands in and how it
is worded, given the change category and the affected node. Strategies are
selected from a dispatch table keyed by ChangeCategory; categories without
an entry use the generic strategy.
"""

from pydantic import BaseModel, ConfigDict, Field

from foresight.models.change import ChangeSpecification
from foresight.models.enums import (
    ChangeCategory,
    ConsequenceCategory,
    NodeType,
    Polarity,
)
from foresight.models.graph import GraphEdge, GraphNode

_GENERIC_CATEGORIES = {
    NodeType.TEAM: ConsequenceCategory.PEOPLE,
    NodeType.SYSTEM: ConsequenceCategory.TECHNICAL,
    NodeType.POLICY: ConsequenceCategory.COMPLIANCE,
    NodeType.METRIC: ConsequenceCategory.FINANCIAL,
    NodeType.VENDOR: ConsequenceCategory.OPERATIONAL,
    NodeType.PROCESS: ConsequenceCategory.OPERATIONAL,
    NodeType.CUSTOMER_SEGMENT: ConsequenceCategory.CUSTOMER,
    NodeType.ASSET: ConsequenceCategory.OPERATIONAL,
}


class ConsequenceStrategy(BaseModel):
    """
    Category mapping and wording for one family of changes.

    Attributes:
        name: Strategy name
        verb_negative: Phrase for harmful effects ("strains", "erodes")
        verb_positive: Phrase for beneficial effects
        overrides: Node type to category overrides on top of the generic map
    """

    model_config = ConfigDict(frozen=True)

    name: str
    verb_negative: str
    verb_positive: str
    overrides: dict[NodeType, ConsequenceCategory] = Field(default_factory=dict)

    def categorize(self, node: GraphNode) -> ConsequenceCategory:
        return self.overrides.get(node.type, _GENERIC_CATEGORIES[node.type])

    def describe(
        self,
        change: ChangeSpecification,
        source: GraphNode,
        target: GraphNode,
        edge: GraphEdge,
        order: int,
    ) -> str:
        verb = self.verb_positive if edge.polarity == Polarity.POSITIVE else self.verb_negative
        relation = edge.relation.value.replace("_", " ")
        if order == 1:
            return f'"{change.title}" {verb} {target.name} directly ({source.name} {relation} {target.name}).'
        return (
            f'"{change.title}" {verb} {target.name} at order {order}, '
            f"via {source.name} ({relation})."
        )


GENERIC_STRATEGY = ConsequenceStrategy(
    name="generic",
    verb_negative="disrupts",
    verb_positive="lifts",
)

STRATEGIES: dict[ChangeCategory, ConsequenceStrategy] = {
    ChangeCategory.STAFFING: ConsequenceStrategy(
        name="staffing",
        verb_negative="stretches capacity behind",
        verb_positive="frees capacity for",
        overrides={NodeType.METRIC: ConsequenceCategory.OPERATIONAL},
    ),
    ChangeCategory.PRICING: ConsequenceStrategy(
        name="pricing",
        verb_negative="puts pressure on",
        verb_positive="improves",
        overrides={
            NodeType.METRIC: ConsequenceCategory.FINANCIAL,
            NodeType.TEAM: ConsequenceCategory.STRATEGIC,
        },
    ),
    ChangeCategory.VENDOR: ConsequenceStrategy(
        name="vendor",
        verb_negative="introduces transition risk to",
        verb_positive="strengthens",
        overrides={NodeType.SYSTEM: ConsequenceCategory.OPERATIONAL},
    ),
    ChangeCategory.TECHNOLOGY: ConsequenceStrategy(
        name="technology",
        verb_negative="destabilizes",
        verb_positive="modernizes",
        overrides={NodeType.METRIC: ConsequenceCategory.TECHNICAL},
    ),
    ChangeCategory.SECURITY: ConsequenceStrategy(
        name="security",
        verb_negative="widens exposure of",
        verb_positive="hardens",
        overrides={
            NodeType.SYSTEM: ConsequenceCategory.COMPLIANCE,
            NodeType.CUSTOMER_SEGMENT: ConsequenceCategory.REPUTATIONAL,
        },
    ),
    ChangeCategory.REGULATORY: ConsequenceStrategy(
        name="regulatory",
        verb_negative="creates compliance obligations for",
        verb_positive="de-risks",
        overrides={
            NodeType.PROCESS: ConsequenceCategory.COMPLIANCE,
            NodeType.METRIC: ConsequenceCategory.COMPLIANCE,
        },
    ),
    ChangeCategory.MARKET: ConsequenceStrategy(
        name="market",
        verb_negative="exposes",
        verb_positive="opens opportunity for",
        overrides={
            NodeType.METRIC: ConsequenceCategory.STRATEGIC,
            NodeType.TEAM: ConsequenceCategory.STRATEGIC,
        },
    ),
    ChangeCategory.POLICY: ConsequenceStrategy(
        name="policy",
        verb_negative="unsettles",
        verb_positive="clarifies expectations for",
        overrides={NodeType.METRIC: ConsequenceCategory.PEOPLE},
    ),
}
STRATEGIES[ChangeCategory.PROCESS] = STRATEGIES[ChangeCategory.TECHNOLOGY]
STRATEGIES[ChangeCategory.PRODUCT] = STRATEGIES[ChangeCategory.MARKET]
STRATEGIES[ChangeCategory.DATA] = STRATEGIES[ChangeCategory.SECURITY]


def strategy_for(category: ChangeCategory) -> ConsequenceStrategy:
    """Strategy for a change category, falling back to the generic one."""
    return STRATEGIES.get(category, GENERIC_STRATEGY)
