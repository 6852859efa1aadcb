# server/api/v1/endpoints/health.py
from fastapi import APIRouter
from datetime import datetime

from agents.base import agent_registry

router = APIRouter()

@router.get("/")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "Vinewater ET & Irrigation Backend",
        "agents": agent_registry.list_agents(),
    }

@router.get("/agents")
async def agents_health():
    """Health of every registered agent"""
    results = await agent_registry.health_check_all()
    healthy = all(r.get("status") == "healthy" for r in results.values())
    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now().isoformat(),
        "agents": results,
    }

@router.get("/agents/info")
async def agents_info():
    """Name, version, config and description of every registered agent"""
    return {
        "timestamp": datetime.now().isoformat(),
        "agents": agent_registry.get_agents_info(),
    }
