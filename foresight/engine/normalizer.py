"""
Change Normalizer: Request Validation and Canonicalization.

Turns a free-form ChangeRequest into a canonical ChangeSpecification.
Required fields are never defaulted: every missing or invalid field is
collected and reported together in one ValidationError.

Checks run in two stages:
1. Structural: title, description, affected assets and change type
2. Graph: every affected asset exists in the supplied snapshot

Version: normalizer_v1
"""

from typing import Optional, Union

import pydantic
import structlog

from foresight.models.change import ChangeRequest, ChangeSpecification
from foresight.models.enums import ChangeCategory

from .errors import ValidationError
from .graph_store import Graph

logger = structlog.get_logger()


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _dedupe(values) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        cleaned = _clean(value)
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


def normalize_change(
    request: Union[ChangeRequest, dict],
    graph: Optional[Graph] = None,
) -> ChangeSpecification:
    """
    Validate and canonicalize a change request.

    Args:
        request: ChangeRequest or equivalent dict
        graph: Snapshot to resolve affected assets against; skipped when None

    Returns:
        Frozen ChangeSpecification

    Raises:
        ValidationError: Listing every missing or invalid field
    """
    if isinstance(request, dict):
        try:
            request = ChangeRequest(**request)
        except pydantic.ValidationError as e:
            fields = list(dict.fromkeys(".".join(map(str, err["loc"])) for err in e.errors()))
            logger.warning("change_validation_failed", fields=fields)
            raise ValidationError(
                f"Missing or invalid fields: {', '.join(fields)}", fields=fields
            ) from e

    title = _clean(request.title)
    description = _clean(request.description)
    assets = _dedupe(request.affected_assets)
    constraints = _dedupe(request.constraints)

    problems: list[str] = []
    if not title:
        problems.append("title")
    if not description:
        problems.append("description")
    if not assets:
        problems.append("affected_assets")

    category: Optional[ChangeCategory] = None
    raw_type = _clean(request.change_type).lower()
    try:
        category = ChangeCategory(raw_type)
    except ValueError:
        problems.append("change_type")

    if problems:
        logger.warning("change_validation_failed", fields=problems)
        raise ValidationError(
            f"Missing or invalid fields: {', '.join(problems)}", fields=problems
        )

    spec = ChangeSpecification(
        change_type=category,
        title=title,
        description=description,
        affected_assets=assets,
        expected_benefit=_clean(request.expected_benefit) or None,
        constraints=constraints,
    )

    if graph is not None:
        ensure_assets_in_graph(spec, graph)

    logger.debug(
        "change_normalized",
        change_type=spec.change_type.value,
        affected_assets=list(spec.affected_assets),
    )
    return spec


def ensure_assets_in_graph(spec: ChangeSpecification, graph: Graph) -> None:
    """
    Raises:
        ValidationError: If any affected asset is missing from the snapshot
    """
    unknown = [asset for asset in spec.affected_assets if asset not in graph]
    if unknown:
        logger.warning("change_unknown_assets", unknown=unknown, graph_version=graph.version)
        raise ValidationError(
            f"Affected assets not in graph: {', '.join(unknown)}",
            fields=["affected_assets"],
        )
