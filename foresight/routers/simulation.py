"""
Multiverse simulation router.

Wired to:
- MultiverseSimulator for decision simulations
- StorageBackend for simulation history
- ModeRegistry for simulation modes, industries and calibration
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from foresight.config import get_settings
from foresight.engine.calibration import calibrate
from foresight.engine.mode_registry import ModeRegistry, get_mode_registry
from foresight.engine.multiverse import MultiverseSimulator, get_multiverse_simulator
from foresight.storage import StorageBackend, get_storage
from foresight.utils.logging import get_logger, log_operation

logger = get_logger(__name__)
router = APIRouter()


class SimulationRequest(BaseModel):
    """Decision question to simulate."""

    question: str = Field(description="Decision question, e.g. 'Should we enter Market X?'")
    time_horizon: str = Field(default="1y", description="Horizon such as 180d, 6m, 1y")
    branch_count: Optional[int] = Field(default=None, description="Universes to generate")
    mode_id: Optional[str] = None
    industry_id: Optional[str] = None
    seed: Optional[int] = Field(default=None, ge=0)
    context: Optional[str] = None
    constraints: List[str] = []

    class Config:
        json_schema_extra = {
            "example": {
                "question": "Should we enter Market X?",
                "time_horizon": "180d",
                "branch_count": 3,
                "mode_id": "balanced",
                "industry_id": "saas",
            }
        }


class CalibrationRequest(BaseModel):
    base_probability: float
    mode_id: Optional[str] = None
    industry_id: Optional[str] = None


@router.post("/run")
async def run_simulation(
    request: SimulationRequest,
    simulator: MultiverseSimulator = Depends(get_multiverse_simulator),
):
    """
    Run a multiverse simulation for a decision question.
    """
    logger.info(
        "simulation_run",
        mode_id=request.mode_id,
        industry_id=request.industry_id,
        branch_count=request.branch_count,
    )

    with log_operation(logger, "simulation_run", mode_id=request.mode_id):
        simulation = simulator.simulate(
            question=request.question,
            time_horizon=request.time_horizon,
            branch_count=request.branch_count,
            mode_id=request.mode_id,
            industry_id=request.industry_id,
            seed=request.seed,
            context=request.context,
            constraints=request.constraints,
        )
    return {"success": True, "data": simulation.model_dump(mode="json")}


@router.get("/history")
async def get_simulation_history(
    limit: int = Query(10, ge=1, le=500),
    storage: StorageBackend = Depends(get_storage),
):
    """Recent simulations, newest first."""
    summaries = storage.list_simulations(limit=limit)
    return {
        "success": True,
        "data": [s.model_dump(mode="json") for s in summaries],
        "count": len(summaries),
    }


@router.get("/modes")
async def list_simulation_modes(
    core_only: bool = False,
    registry: ModeRegistry = Depends(get_mode_registry),
):
    modes = registry.simulation_modes(core_only=core_only)
    return {"success": True, "data": [m.model_dump(mode="json") for m in modes]}


@router.get("/industries")
async def list_industries(registry: ModeRegistry = Depends(get_mode_registry)):
    industries = registry.industries()
    return {"success": True, "data": [i.model_dump(mode="json") for i in industries]}


@router.post("/calibrate")
async def calibrate_probability(
    request: CalibrationRequest,
    registry: ModeRegistry = Depends(get_mode_registry),
):
    """
    Calibrate a base probability for a mode and industry.
    Also returns the industry's churn, growth and risk notes under the mode.
    """
    settings = get_settings()
    mode = registry.resolve_simulation_mode(request.mode_id or settings.default_simulation_mode)
    industry = registry.resolve_industry(request.industry_id or settings.default_industry)

    result = calibrate(request.base_probability, mode, industry)
    return {
        "success": True,
        "data": {
            "mode_id": mode.id,
            "industry_id": industry.id,
            "calibration": result.model_dump(mode="json"),
            "insights": {
                metric: registry.industry_insight(metric, mode, industry)
                for metric in ("churn", "growth", "risk")
            },
        },
    }


@router.get("/{simulation_id}")
async def get_simulation(
    simulation_id: str,
    storage: StorageBackend = Depends(get_storage),
):
    simulation = storage.read_simulation(simulation_id)
    if simulation is None:
        raise HTTPException(status_code=404, detail=f"Simulation {simulation_id} not found")
    return {"success": True, "data": simulation.model_dump(mode="json")}
