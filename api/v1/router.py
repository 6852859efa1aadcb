# server/api/v1/router.py
from fastapi import APIRouter
from .endpoints import health, evapotranspiration, irrigation, advisory

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(evapotranspiration.router, prefix="/evapotranspiration", tags=["evapotranspiration"])
api_router.include_router(irrigation.router, prefix="/irrigation", tags=["irrigation"])
api_router.include_router(advisory.router, prefix="/advisory", tags=["advisory"])
