# server/api/v1/endpoints/advisory.py
from fastapi import APIRouter, HTTPException

from agents.base import agent_registry
from agents.advisory.models import AdvisoryRequest
from core.exceptions import InsufficientWeatherDataError

router = APIRouter()

@router.post("/alerts")
async def get_weather_alerts(request: AdvisoryRequest):
    """Irrigation, pest/disease and harvest alerts for the current snapshot"""
    try:
        advisory_agent = agent_registry.get("advisory")
        if not advisory_agent:
            raise HTTPException(status_code=500, detail="Advisory agent not available")

        return await advisory_agent.execute(request)

    except HTTPException:
        raise
    except InsufficientWeatherDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error generating alerts: {str(e)}")

@router.get("/health")
async def advisory_health():
    """Check advisory agent health"""
    try:
        advisory_agent = agent_registry.get("advisory")
        if not advisory_agent:
            return {"status": "unhealthy", "error": "Advisory agent not available"}

        return await advisory_agent.health_check()

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
