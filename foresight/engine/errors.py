"""
Engine error taxonomy.

Every engine failure derives from ForesightError so the HTTP layer can map
the whole family in one place. Traversal aborts carry the consequences
computed before the abort so callers can return a partial, flagged result.
"""

from typing import Sequence


class ForesightError(Exception):
    """Base exception for all engine failures."""

    pass


class ValidationError(ForesightError):
    """
    Malformed input. Recoverable by correcting the request.

    Attributes:
        fields: Names of the missing or invalid fields
    """

    def __init__(self, message: str, fields: Sequence[str] = ()):
        super().__init__(message)
        self.fields = list(fields)


class GraphUnavailable(ForesightError):
    """No graph snapshot has been loaded."""

    def __init__(self, message: str = "No graph snapshot loaded"):
        super().__init__(message)


class UnknownMode(ForesightError):
    """A mode or industry id is not present in the registry."""

    def __init__(self, kind: str, mode_id: str):
        super().__init__(f"Unknown {kind}: {mode_id!r}")
        self.kind = kind
        self.mode_id = mode_id


class TraversalAborted(ForesightError):
    """Traversal stopped early; `partial` holds what was computed."""

    def __init__(self, message: str, partial: Sequence = ()):
        super().__init__(message)
        self.partial = list(partial)


class TraversalBudgetExceeded(TraversalAborted):
    """The node-visit budget ran out before traversal finished."""

    def __init__(self, visits: int, budget: int, partial: Sequence = ()):
        super().__init__(
            f"Node-visit budget of {budget} exceeded after {visits} visits", partial
        )
        self.visits = visits
        self.budget = budget


class Cancelled(TraversalAborted):
    """The caller cancelled the analysis between node expansions."""

    def __init__(self, partial: Sequence = ()):
        super().__init__("Analysis cancelled by caller", partial)
