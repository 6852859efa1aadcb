# server/api/v1/endpoints/irrigation.py
from fastapi import APIRouter, HTTPException

from agents.base import agent_registry
from agents.irrigation.models import IrrigationRequest
from core.exceptions import InsufficientWeatherDataError

router = APIRouter()

@router.post("/schedule")
async def get_irrigation_schedule(request: IrrigationRequest):
    """
    Get a 7-day irrigation schedule for a vineyard block

    Simulates soil moisture from crop ET and forecast rainfall and
    recommends irrigation whenever moisture drops below 40% of capacity.
    """
    try:
        # Get the irrigation agent
        irrigation_agent = agent_registry.get("irrigation")
        if not irrigation_agent:
            raise HTTPException(status_code=500, detail="Irrigation agent not available")

        return await irrigation_agent.execute(request)

    except HTTPException:
        raise
    except InsufficientWeatherDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error processing irrigation request: {str(e)}")

@router.get("/soils")
async def get_soil_types():
    """Get available soil texture types"""
    try:
        irrigation_agent = agent_registry.get("irrigation")
        if not irrigation_agent:
            raise HTTPException(status_code=500, detail="Irrigation agent not available")

        soils = await irrigation_agent.get_soil_types()
        return {
            "success": True,
            "soil_types": soils,
            "note": "Soil texture affects water retention and irrigation frequency"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting soil types: {str(e)}")

@router.get("/health")
async def irrigation_health():
    """Check irrigation agent health"""
    try:
        irrigation_agent = agent_registry.get("irrigation")
        if not irrigation_agent:
            return {"status": "unhealthy", "error": "Irrigation agent not available"}

        health = await irrigation_agent.health_check()
        return health

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
