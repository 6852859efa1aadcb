# server/core/config.py
"""
Configuration management for the evapotranspiration & irrigation backend
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Dict, Any
import logging
from functools import lru_cache
from enum import Enum
from dotenv import load_dotenv
load_dotenv()

logger = logging.getLogger(__name__)

class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True

    # API Configuration
    api_title: str = "Vinewater ET & Irrigation Backend"
    api_version: str = "1.0.0"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:4173"
    ]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Cache Configuration
    cache_enabled: bool = True
    cache_default_ttl: int = 900  # 15 minutes

    # Agent Configurations
    evapotranspiration_config: Dict[str, Any] = {
        "default_elevation_m": 200.0,
        "prefer_external_et0": True,
        "use_measured_pressure": True,
    }

    irrigation_config: Dict[str, Any] = {
        "initial_moisture_fraction": 0.6,
        "delivery_rate_mm_per_hour": 4.0,
        "default_soil_type": "medium",
    }

    def get_agent_config(self, agent_name: str) -> Dict[str, Any]:
        """Get configuration for specific agent"""
        config_map = {
            "evapotranspiration": self.evapotranspiration_config,
            # the scheduler recomputes ETc, so it needs the ET0 knobs as well
            "irrigation": {**self.evapotranspiration_config, **self.irrigation_config},
            "advisory": self.evapotranspiration_config,
        }
        return config_map.get(agent_name, {})

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

# Validation functions
def validate_engine_config(settings: Settings) -> None:
    """Validate engine tunables that would otherwise produce absurd schedules"""
    problems = []

    irrigation = settings.irrigation_config

    if irrigation.get("delivery_rate_mm_per_hour", 0) <= 0:
        problems.append("irrigation_config.delivery_rate_mm_per_hour must be positive")

    fraction = irrigation.get("initial_moisture_fraction", 0)
    if not 0 < fraction <= 1:
        problems.append("irrigation_config.initial_moisture_fraction must be in (0, 1]")

    if problems and settings.is_production:
        raise ValueError(f"Invalid engine configuration: {'; '.join(problems)}")

    for problem in problems:
        logger.warning(f"Engine configuration problem (development mode): {problem}")

# Initialize and validate settings
settings = get_settings()
validate_engine_config(settings)
