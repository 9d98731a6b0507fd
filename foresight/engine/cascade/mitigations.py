"""
Mitigation & Guardrail Generator.

Derives risk controls from the highest-risk consequences of a change.

Mitigations: each of the top-N consequences by risk score receives one
prevent, one detect and one respond mitigation. Cost scales with severity
and category, with a small seeded jitter; effectiveness starts from the
mitigation type and shrinks as severity grows.

Guardrails: critical consequences get an escalation tripwire and a hard
stop; other consequences that are at least likely get an escalation
tripwire. Thresholds are percent deviations of the affected node from its
baseline:
    hard stop  = max(5, 50 x (1 - risk / 100))
    escalation = hard stop / 2
Each no-go line adds a hard stop after the consequence guardrails.

Version: mitigation_generator_v1
"""

from typing import Sequence

import numpy as np
import structlog

from foresight.models.cascade import Consequence, Guardrail, Mitigation
from foresight.models.enums import (
    ConsequenceCategory,
    GuardrailType,
    Likelihood,
    MitigationType,
    Severity,
)

from ..calibration import clamp
from .synthesizer import top_consequences

logger = structlog.get_logger()


SEVERITY_BASE_COST = {
    Severity.CRITICAL: 250000.0,
    Severity.HIGH: 100000.0,
    Severity.MODERATE: 40000.0,
    Severity.LOW: 15000.0,
    Severity.MINIMAL: 5000.0,
}

CATEGORY_COST_FACTOR = {
    ConsequenceCategory.TECHNICAL: 1.2,
    ConsequenceCategory.COMPLIANCE: 1.3,
    ConsequenceCategory.FINANCIAL: 1.0,
    ConsequenceCategory.CUSTOMER: 1.1,
    ConsequenceCategory.PEOPLE: 0.8,
    ConsequenceCategory.OPERATIONAL: 1.0,
    ConsequenceCategory.REPUTATIONAL: 0.9,
    ConsequenceCategory.STRATEGIC: 1.1,
}

TYPE_COST_SHARE = {
    MitigationType.PREVENT: 1.0,
    MitigationType.DETECT: 0.35,
    MitigationType.RESPOND: 0.6,
}

TYPE_BASE_EFFECTIVENESS = {
    MitigationType.PREVENT: 0.7,
    MitigationType.DETECT: 0.6,
    MitigationType.RESPOND: 0.5,
}

SEVERITY_EFFECTIVENESS_FACTOR = {
    Severity.CRITICAL: 0.85,
    Severity.HIGH: 0.95,
    Severity.MODERATE: 1.0,
    Severity.LOW: 1.05,
    Severity.MINIMAL: 1.1,
}

# (prevent, detect, respond) wording per category
_PLAYBOOK = {
    ConsequenceCategory.PEOPLE: (
        "Secure coverage and knowledge transfer for {node} before the change lands",
        "Run pulse surveys and attrition tracking on {node}",
        "Prepare retention offers and backfill plans for {node}",
    ),
    ConsequenceCategory.TECHNICAL: (
        "Add redundancy and freeze risky work on {node} during rollout",
        "Alert on error rates and saturation for {node}",
        "Keep a tested rollback and on-call runbook for {node}",
    ),
    ConsequenceCategory.FINANCIAL: (
        "Budget a contingency reserve against {node}",
        "Track {node} weekly against forecast",
        "Pre-approve cost levers to offset a shortfall in {node}",
    ),
    ConsequenceCategory.CUSTOMER: (
        "Brief account owners and communicate early with {node}",
        "Watch satisfaction and usage signals for {node}",
        "Stand up a save desk and service credits for {node}",
    ),
    ConsequenceCategory.COMPLIANCE: (
        "Obtain legal and compliance sign-off covering {node}",
        "Schedule control testing for {node}",
        "Prepare a remediation plan and regulator communication for {node}",
    ),
    ConsequenceCategory.OPERATIONAL: (
        "Document handoffs and add slack capacity around {node}",
        "Monitor throughput and backlog for {node}",
        "Activate a fallback procedure for {node}",
    ),
    ConsequenceCategory.REPUTATIONAL: (
        "Align messaging before announcing changes that touch {node}",
        "Monitor public sentiment related to {node}",
        "Keep a crisis communication plan ready for {node}",
    ),
    ConsequenceCategory.STRATEGIC: (
        "Validate assumptions about {node} with a limited pilot",
        "Track competitive and market signals around {node}",
        "Define pivot criteria and an exit path for {node}",
    ),
}

_NOTES = {
    MitigationType.PREVENT: "Complete before rollout; owner sits with the team responsible for {node}.",
    MitigationType.DETECT: "Instrument within the first week; review at each guardrail checkpoint.",
    MitigationType.RESPOND: "Rehearse once; expected to manifest around day {latency}.",
}


class MitigationGenerator:
    """
    Builds mitigations and guardrails for a set of consequences.

    Attributes:
        top_n: Number of consequences that receive mitigations

    Example:
        >>> generator = MitigationGenerator(top_n=5)
        >>> mitigations, guardrails = generator.generate(consequences, constraints, rng)
    """

    DEFAULT_TOP_N = 5

    def __init__(self, top_n: int = DEFAULT_TOP_N):
        self.top_n = top_n
        self.logger = structlog.get_logger()

    def generate(
        self,
        consequences: Sequence[Consequence],
        constraints: Sequence[str],
        rng: np.random.Generator,
    ) -> tuple[list[Mitigation], list[Guardrail]]:
        """
        Derive mitigations and guardrails.

        Args:
            consequences: Consequences of the analysis (not mutated)
            constraints: No-go lines, already merged and de-duplicated
            rng: Seeded generator for cost jitter

        Returns:
            (mitigations, guardrails), each ordered by consequence risk score
        """
        ranked = top_consequences(consequences, len(consequences))

        mitigations: list[Mitigation] = []
        for consequence in ranked[: self.top_n]:
            mitigations.extend(self._mitigate(consequence, rng))

        guardrails: list[Guardrail] = []
        for consequence in ranked:
            guardrails.extend(self._guard(consequence))
        for constraint in constraints:
            guardrails.append(
                Guardrail(
                    type=GuardrailType.HARD_STOP,
                    trigger_condition=f"No-go line breached: {constraint}",
                    required_action="Halt rollout and convene the decision owners",
                )
            )

        self.logger.debug(
            "mitigations_generated",
            mitigations=len(mitigations),
            guardrails=len(guardrails),
        )
        return mitigations, guardrails

    def _mitigate(self, consequence: Consequence, rng: np.random.Generator) -> list[Mitigation]:
        templates = _PLAYBOOK[consequence.category]
        base_cost = SEVERITY_BASE_COST[consequence.severity] * CATEGORY_COST_FACTOR[consequence.category]
        severity_factor = SEVERITY_EFFECTIVENESS_FACTOR[consequence.severity]

        mitigations = []
        for mitigation_type, template in zip(
            (MitigationType.PREVENT, MitigationType.DETECT, MitigationType.RESPOND), templates
        ):
            jitter = float(rng.uniform(0.9, 1.1))
            cost = round(base_cost * TYPE_COST_SHARE[mitigation_type] * jitter, -2)
            effectiveness = clamp(TYPE_BASE_EFFECTIVENESS[mitigation_type] * severity_factor, 0.0, 1.0)
            mitigations.append(
                Mitigation(
                    type=mitigation_type,
                    consequence_id=consequence.consequence_id,
                    description=template.format(node=consequence.node_name),
                    implementation_note=_NOTES[mitigation_type].format(
                        node=consequence.node_name, latency=consequence.latency_days
                    ),
                    estimated_cost=cost,
                    effectiveness=round(effectiveness, 4),
                )
            )
        return mitigations

    def _guard(self, consequence: Consequence) -> list[Guardrail]:
        critical = consequence.severity == Severity.CRITICAL
        likely = consequence.likelihood in (Likelihood.ALMOST_CERTAIN, Likelihood.LIKELY)
        if not (critical or likely):
            return []

        hard_stop = round(max(5.0, 50.0 * (1.0 - consequence.risk_score / 100.0)), 2)
        escalation = round(hard_stop / 2.0, 2)

        guardrails = []
        if critical:
            guardrails.append(
                Guardrail(
                    type=GuardrailType.HARD_STOP,
                    consequence_id=consequence.consequence_id,
                    trigger_condition=(
                        f"{consequence.node_name} deviates more than {hard_stop:.1f}% from baseline"
                    ),
                    threshold=hard_stop,
                    required_action="Pause the change and roll back to the last safe state",
                )
            )
        guardrails.append(
            Guardrail(
                type=GuardrailType.ESCALATION,
                consequence_id=consequence.consequence_id,
                trigger_condition=(
                    f"{consequence.node_name} deviates more than {escalation:.1f}% from baseline"
                ),
                threshold=escalation,
                required_action="Escalate to the change owner and review mitigations within 48 hours",
            )
        )
        return guardrails
