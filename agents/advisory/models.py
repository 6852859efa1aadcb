# server/agents/advisory/models.py
"""
Pydantic models for the weather advisory agent
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from enum import Enum

from agents.evapotranspiration.models import WeatherSnapshot, ETcResult

class AlertLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class IrrigationAlert(BaseModel):
    shouldIrrigate: bool
    reason: str
    urgency: AlertLevel
    recommendations: List[str]

class PestAlert(BaseModel):
    riskLevel: AlertLevel
    conditions: List[str]
    precautions: List[str]

class HarvestAlert(BaseModel):
    isOptimal: bool
    conditions: str
    recommendations: List[str]

class WeatherAlerts(BaseModel):
    irrigation: IrrigationAlert
    pest: PestAlert
    harvest: HarvestAlert

class AdvisoryRequest(BaseModel):
    weather: WeatherSnapshot
    growth_stage: Optional[str] = Field(
        None, description="Vine growth stage used to derive crop ET; guessed from the forecast date when omitted"
    )

class AdvisoryData(BaseModel):
    alerts: WeatherAlerts
    etc: ETcResult

class AdvisoryResponse(BaseModel):
    success: bool
    data: Optional[AdvisoryData] = None
    message: str
    timestamp: str
    metadata: Optional[Dict[str, Any]] = None
