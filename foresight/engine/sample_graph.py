"""
Sample organization graph.

A small software company: teams, the systems they run, the policies that
govern them, vendors, customer segments and the metrics everything feeds.
Used for demos, local development and the golden-path tests.
"""

from foresight.models.enums import NodeType, Polarity, RelationType
from foresight.models.graph import GraphEdge, GraphNode

# (id, type, name, weight, sensitivity, inertia)
_NODES = [
    # Teams
    ("eng-team", NodeType.TEAM, "Engineering", 0.85, 0.9, 0.4),
    ("product-team", NodeType.TEAM, "Product Management", 0.7, 0.6, 0.5),
    ("sales-team", NodeType.TEAM, "Sales", 0.75, 0.7, 0.4),
    ("support-team", NodeType.TEAM, "Customer Support", 0.65, 0.75, 0.3),
    ("finance-team", NodeType.TEAM, "Finance", 0.6, 0.4, 0.6),
    ("security-team", NodeType.TEAM, "Security", 0.7, 0.6, 0.5),
    # Systems
    ("core-platform", NodeType.SYSTEM, "Core Platform", 0.9, 0.8, 0.7),
    ("billing-system", NodeType.SYSTEM, "Billing System", 0.8, 0.6, 0.7),
    ("data-warehouse", NodeType.SYSTEM, "Data Warehouse", 0.6, 0.5, 0.6),
    ("ci-pipeline", NodeType.SYSTEM, "CI/CD Pipeline", 0.5, 0.7, 0.4),
    ("crm-system", NodeType.SYSTEM, "CRM", 0.55, 0.5, 0.6),
    # Policies
    ("security-policy", NodeType.POLICY, "Security Policy", 0.7, 0.3, 0.8),
    ("pricing-policy", NodeType.POLICY, "Pricing Policy", 0.75, 0.5, 0.6),
    ("remote-work-policy", NodeType.POLICY, "Remote Work Policy", 0.4, 0.3, 0.5),
    ("data-retention-policy", NodeType.POLICY, "Data Retention Policy", 0.6, 0.3, 0.8),
    # Processes
    ("incident-response", NodeType.PROCESS, "Incident Response", 0.7, 0.6, 0.5),
    ("onboarding-process", NodeType.PROCESS, "Customer Onboarding", 0.5, 0.5, 0.4),
    # Vendors
    ("cloud-provider", NodeType.VENDOR, "Cloud Provider", 0.8, 0.4, 0.9),
    ("payment-processor", NodeType.VENDOR, "Payment Processor", 0.75, 0.5, 0.8),
    # Customer segments
    ("enterprise-customers", NodeType.CUSTOMER_SEGMENT, "Enterprise Customers", 0.9, 0.65, 0.6),
    ("smb-customers", NodeType.CUSTOMER_SEGMENT, "SMB Customers", 0.7, 0.7, 0.3),
    # Metrics
    ("platform-uptime", NodeType.METRIC, "Platform Uptime", 0.85, 0.85, 0.2),
    ("release-velocity", NodeType.METRIC, "Release Velocity", 0.7, 0.7, 0.3),
    ("customer-satisfaction", NodeType.METRIC, "Customer Satisfaction", 0.9, 0.8, 0.3),
    ("churn-rate", NodeType.METRIC, "Churn Rate", 0.9, 0.7, 0.3),
    ("revenue", NodeType.METRIC, "Revenue", 0.95, 0.6, 0.4),
    ("employee-morale", NodeType.METRIC, "Employee Morale", 0.65, 0.8, 0.4),
    ("support-backlog", NodeType.METRIC, "Support Backlog", 0.55, 0.7, 0.2),
]

# (source, target, relation, strength, latency_days, polarity)
_NEG = Polarity.NEGATIVE
_POS = Polarity.POSITIVE
_EDGES = [
    # Engineering capacity
    ("eng-team", "core-platform", RelationType.OWNS, 0.9, 7, _NEG),
    ("eng-team", "release-velocity", RelationType.DRIVES, 0.85, 14, _NEG),
    ("eng-team", "ci-pipeline", RelationType.OWNS, 0.7, 7, _NEG),
    ("eng-team", "employee-morale", RelationType.DRIVES, 0.6, 21, _NEG),
    ("eng-team", "incident-response", RelationType.SUPPORTS, 0.75, 3, _NEG),
    ("ci-pipeline", "release-velocity", RelationType.DRIVES, 0.8, 7, _NEG),
    # Platform reliability
    ("cloud-provider", "core-platform", RelationType.SUPPLIES, 0.85, 1, _NEG),
    ("core-platform", "platform-uptime", RelationType.DRIVES, 0.9, 3, _NEG),
    ("core-platform", "billing-system", RelationType.SUPPORTS, 0.6, 7, _NEG),
    ("core-platform", "data-warehouse", RelationType.FEEDS, 0.5, 7, _NEG),
    ("incident-response", "platform-uptime", RelationType.SUPPORTS, 0.7, 1, _NEG),
    ("platform-uptime", "customer-satisfaction", RelationType.DRIVES, 0.9, 14, _NEG),
    ("platform-uptime", "enterprise-customers", RelationType.DRIVES, 0.8, 21, _NEG),
    # Customers and revenue
    ("release-velocity", "customer-satisfaction", RelationType.DRIVES, 0.5, 30, _NEG),
    ("release-velocity", "sales-team", RelationType.SUPPORTS, 0.4, 30, _NEG),
    ("customer-satisfaction", "churn-rate", RelationType.DRIVES, 0.85, 30, _NEG),
    ("churn-rate", "revenue", RelationType.DRIVES, 0.9, 60, _NEG),
    ("enterprise-customers", "revenue", RelationType.DRIVES, 0.8, 45, _NEG),
    ("smb-customers", "churn-rate", RelationType.DRIVES, 0.75, 30, _NEG),
    ("sales-team", "revenue", RelationType.DRIVES, 0.85, 30, _NEG),
    ("sales-team", "crm-system", RelationType.DEPENDS_ON, 0.4, 7, _NEG),
    ("crm-system", "support-team", RelationType.SUPPORTS, 0.4, 7, _NEG),
    ("billing-system", "revenue", RelationType.FEEDS, 0.7, 7, _NEG),
    ("payment-processor", "billing-system", RelationType.SUPPLIES, 0.8, 1, _NEG),
    # People
    ("employee-morale", "eng-team", RelationType.DRIVES, 0.6, 30, _NEG),
    ("employee-morale", "support-team", RelationType.DRIVES, 0.4, 30, _NEG),
    ("remote-work-policy", "employee-morale", RelationType.DRIVES, 0.7, 14, _POS),
    ("remote-work-policy", "eng-team", RelationType.GOVERNS, 0.4, 30, _NEG),
    ("support-team", "support-backlog", RelationType.DRIVES, 0.8, 7, _NEG),
    ("support-backlog", "customer-satisfaction", RelationType.DRIVES, 0.7, 14, _NEG),
    # Product and pricing
    ("product-team", "release-velocity", RelationType.DRIVES, 0.7, 14, _NEG),
    ("product-team", "onboarding-process", RelationType.OWNS, 0.5, 21, _NEG),
    ("onboarding-process", "smb-customers", RelationType.DRIVES, 0.6, 14, _NEG),
    ("pricing-policy", "revenue", RelationType.DRIVES, 0.8, 30, _POS),
    ("pricing-policy", "smb-customers", RelationType.DRIVES, 0.7, 14, _NEG),
    ("finance-team", "pricing-policy", RelationType.OWNS, 0.5, 30, _NEG),
    # Governance and data
    ("security-policy", "security-team", RelationType.GOVERNS, 0.7, 7, _NEG),
    ("security-policy", "onboarding-process", RelationType.CONSTRAINS, 0.5, 7, _NEG),
    ("security-team", "core-platform", RelationType.SUPPORTS, 0.5, 14, _NEG),
    ("data-retention-policy", "data-warehouse", RelationType.GOVERNS, 0.7, 14, _NEG),
    ("data-warehouse", "finance-team", RelationType.FEEDS, 0.5, 7, _NEG),
]


def build_sample_graph() -> tuple[list[GraphNode], list[GraphEdge]]:
    """Return the sample organization's nodes and edges."""
    nodes = [
        GraphNode(id=i, type=t, name=n, weight=w, sensitivity=s, inertia=r)
        for i, t, n, w, s, r in _NODES
    ]
    edges = [
        GraphEdge(source=s, target=t, relation=rel, strength=st, latency_days=lat, polarity=pol)
        for s, t, rel, st, lat, pol in _EDGES
    ]
    return nodes, edges
