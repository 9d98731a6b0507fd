"""
Foresight engine components.

- graph_store: Immutable organizational graph snapshots
- mode_registry: Cascade/simulation modes and industry benchmarks
- normalizer: Change request validation and canonicalization
- cascade: Consequence propagation, risk synthesis and mitigations
- calibration: Pure probability/confidence calibration
- multiverse: Competing-universe scenario simulation

Every component takes its collaborators and random generator explicitly, so
analyses are reproducible from their inputs and seed.
"""

__version__ = "0.1.0"
