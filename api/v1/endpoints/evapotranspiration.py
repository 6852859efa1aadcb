# server/api/v1/endpoints/evapotranspiration.py
from typing import Optional
from datetime import date

from fastapi import APIRouter, HTTPException, Query

from agents.base import agent_registry
from agents.evapotranspiration.models import ETcRequest
from core.exceptions import InsufficientWeatherDataError

router = APIRouter()

def _get_agent():
    agent = agent_registry.get("evapotranspiration")
    if not agent:
        raise HTTPException(status_code=500, detail="Evapotranspiration agent not available")
    return agent

@router.post("/etc")
async def calculate_etc(request: ETcRequest):
    """
    Calculate grapevine crop evapotranspiration from a weather snapshot

    Uses the FAO-56 Penman-Monteith method for reference ET (or the
    provider's ET0 when plausible) scaled by the growth-stage crop coefficient.
    """
    try:
        agent = _get_agent()
        return await agent.execute(request)

    except HTTPException:
        raise
    except InsufficientWeatherDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error processing ETc request: {str(e)}")

@router.get("/stages")
async def get_growth_stages(
    on_date: Optional[date] = Query(None, description="Date for the calendar stage guess (defaults to today)")
):
    """Get grapevine growth stages with their crop coefficients"""
    try:
        agent = _get_agent()
        stages = agent.get_growth_stages()
        return {
            "success": True,
            "stages": stages,
            "current_stage": agent.get_calendar_stage(on_date),
            "note": "Unknown stages fall back to a default Kc of 0.7; omitted stages are guessed from the calendar",
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting growth stages: {str(e)}")

@router.get("/seasonal")
async def get_seasonal_requirements(
    average_et0: float = Query(4.0, ge=0, le=15, description="Average daily reference ET for the season (mm)")
):
    """Estimate water requirement per growth stage over a full season"""
    try:
        agent = _get_agent()
        requirements = agent.get_seasonal_requirements(average_et0)
        return {
            "success": True,
            "average_et0": average_et0,
            "requirements": requirements,
            "total_etc": round(sum(r.totalETc for r in requirements), 1),
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting seasonal requirements: {str(e)}")

@router.get("/health")
async def evapotranspiration_health():
    """Check evapotranspiration agent health"""
    try:
        agent = agent_registry.get("evapotranspiration")
        if not agent:
            return {"status": "unhealthy", "error": "Evapotranspiration agent not available"}

        return await agent.health_check()

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
