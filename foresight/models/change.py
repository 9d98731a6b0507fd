"""
Change request and canonical change specification models.

A ChangeRequest is whatever the caller submitted; every field is optional so
that the normalizer, not pydantic, decides what is missing and reports all
problems at once. A ChangeSpecification is the validated, canonical result.
"""

import json
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import ChangeCategory


class ChangeRequest(BaseModel):
    """Free-form change description as submitted by a caller."""

    change_type: Optional[str] = Field(default=None, description="Change category tag")
    title: Optional[str] = Field(default=None, description="Short change title")
    description: Optional[str] = Field(default=None, description="Free-text description")
    affected_assets: list[str] = Field(
        default_factory=list, description="Graph node ids directly touched by the change"
    )
    expected_benefit: Optional[str] = Field(default=None, description="What the change should achieve")
    constraints: list[str] = Field(default_factory=list, description="No-go lines")

    class Config:
        json_schema_extra = {
            "example": {
                "change_type": "staffing",
                "title": "Reduce headcount 15%",
                "description": "Cut engineering headcount by 15% to extend runway",
                "affected_assets": ["eng-team"],
                "expected_benefit": "Six extra months of runway",
                "constraints": ["No customer-facing outages"],
            }
        }


class ChangeSpecification(BaseModel):
    """
    Canonical, validated description of a proposed change.

    Never mutated after creation.

    Attributes:
        change_type: Enumerated change category
        title: Trimmed title
        description: Trimmed description
        affected_assets: De-duplicated node ids in submission order
        expected_benefit: Optional benefit statement
        constraints: No-go lines, de-duplicated
    """

    model_config = ConfigDict(frozen=True)

    change_type: ChangeCategory
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    affected_assets: tuple[str, ...] = Field(min_length=1)
    expected_benefit: Optional[str] = None
    constraints: tuple[str, ...] = ()

    def canonical_json(self) -> str:
        """Stable JSON rendering used for content-derived report ids."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True)
