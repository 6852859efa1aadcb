# server/agents/irrigation/models.py
"""
Pydantic models for irrigation agent
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import date as dt_date
from enum import Enum

from agents.evapotranspiration.models import WeatherSnapshot, ETcResult, DailyETc

class SoilType(str, Enum):
    SANDY = "sandy"
    MEDIUM = "medium"
    CLAY = "clay"

class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class IrrigationRequest(BaseModel):
    weather: WeatherSnapshot
    growth_stage: Optional[str] = Field(
        None, description="Vine growth stage (e.g., Flowering, Veraison); guessed from the forecast date when omitted"
    )
    soil_type: str = Field(SoilType.MEDIUM.value, description="Soil texture class (sandy, medium, clay)")
    per_day_etc: bool = Field(False, description="Recompute ETc for each forecast day instead of reusing today's")
    stage_transitions: Dict[dt_date, str] = Field(
        default_factory=dict, description="Growth stage changes within the forecast horizon"
    )

class IrrigationScheduleEntry(BaseModel):
    date: str
    duration: float = Field(..., gt=0, description="Hours at the fixed delivery rate")
    amount: float = Field(..., gt=0, description="Irrigation depth (mm)")
    reason: str
    priority: Priority

class IrrigationSchedule(BaseModel):
    schedule: List[IrrigationScheduleEntry] = Field(default_factory=list)
    totalWaterNeed: float = 0.0

class SoilMoistureDay(BaseModel):
    date: str
    etc: float
    rainfall: float
    moistureBeforeIrrigation: float
    irrigation: float
    moistureEnd: float
    fractionOfCapacity: float

class IrrigationPlan(BaseModel):
    etc: ETcResult
    schedule: IrrigationSchedule
    soilMoisture: List[SoilMoistureDay]
    soilType: SoilType
    capacityMm: float
    dailyETc: List[DailyETc] = Field(default_factory=list)
    nextIrrigationDate: Optional[str] = None

class IrrigationResponse(BaseModel):
    success: bool
    data: Optional[IrrigationPlan] = None
    message: str
    timestamp: str
    metadata: Optional[Dict[str, Any]] = None
