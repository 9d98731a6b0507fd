"""
Consequence cascade router.

Wired to:
- CascadeAnalyzer for change analysis
- StorageBackend for report listing and retrieval
- ModeRegistry for cascade mode catalogue and suggestions
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field

from foresight.engine.cascade import CascadeAnalyzer, get_cascade_analyzer
from foresight.engine.mode_registry import ModeRegistry, get_mode_registry
from foresight.models.change import ChangeRequest
from foresight.storage import StorageBackend, get_storage
from foresight.utils.logging import get_logger, log_operation

logger = get_logger(__name__)
router = APIRouter()


class AnalyzeRequest(ChangeRequest):
    """Change description plus analysis options."""

    mode_id: Optional[str] = Field(default=None, description="Cascade mode id")
    industry_id: Optional[str] = Field(default=None, description="Optional industry context")
    seed: Optional[int] = Field(default=None, ge=0, description="Seed for reproducible output")


@router.post("/analyze")
async def analyze_change(
    request: AnalyzeRequest,
    analyzer: CascadeAnalyzer = Depends(get_cascade_analyzer),
):
    """
    Analyze a proposed change and return its consequence cascade report.
    """
    logger.info(
        "cascade_analyze_request",
        title=request.title,
        change_type=request.change_type,
        mode_id=request.mode_id,
    )

    change = ChangeRequest(**request.model_dump(include=set(ChangeRequest.model_fields)))
    with log_operation(logger, "cascade_analyze", mode_id=request.mode_id):
        report = analyzer.analyze_change(
            change,
            mode_id=request.mode_id,
            industry_id=request.industry_id,
            seed=request.seed,
        )
    return {"success": True, "data": report.model_dump(mode="json")}


@router.get("/reports")
async def list_reports(
    limit: int = Query(50, ge=1, le=500),
    storage: StorageBackend = Depends(get_storage),
):
    """List persisted cascade reports, newest first."""
    summaries = storage.list_cascade_reports(limit=limit)
    return {
        "success": True,
        "data": [s.model_dump(mode="json") for s in summaries],
        "count": len(summaries),
    }


@router.get("/reports/{report_id}")
async def get_report(
    report_id: str,
    storage: StorageBackend = Depends(get_storage),
):
    report = storage.read_cascade_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Cascade report {report_id} not found")
    return {"success": True, "data": report.model_dump(mode="json")}


@router.get("/modes")
async def list_modes(
    core_only: bool = False,
    registry: ModeRegistry = Depends(get_mode_registry),
):
    """Cascade mode catalogue."""
    modes = registry.cascade_modes(core_only=core_only)
    return {"success": True, "data": [m.model_dump(mode="json") for m in modes]}


@router.get("/modes/suggest")
async def suggest_mode(
    change_type: str,
    registry: ModeRegistry = Depends(get_mode_registry),
):
    """Cascade mode suited to a change category."""
    mode_id = registry.suggest_mode_for_change_type(change_type.lower())
    mode = registry.resolve_cascade_mode(mode_id)
    return {
        "success": True,
        "data": {"change_type": change_type, "mode": mode.model_dump(mode="json")},
    }
