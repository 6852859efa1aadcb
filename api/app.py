# server/api/app.py
"""
FastAPI application factory
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from api.v1.router import api_router
from agents.base import agent_registry
from core.config import get_settings
from core.exceptions import InsufficientWeatherDataError

def create_app(lifespan=None) -> FastAPI:
    """Create FastAPI application"""
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Missing weather data -> 422
    @app.exception_handler(InsufficientWeatherDataError)
    async def insufficient_weather_handler(request: Request, exc: InsufficientWeatherDataError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    # Include routers
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "service": settings.api_title,
            "version": settings.api_version,
            "status": "healthy",
            "agents": agent_registry.list_agents(),
        }

    return app
