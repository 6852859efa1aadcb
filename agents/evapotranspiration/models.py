# server/agents/evapotranspiration/models.py
"""
Pydantic models for the evapotranspiration agent and the shared weather snapshot
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import date as dt_date
from enum import Enum

# ---------- Weather snapshot (supplied by the weather provider) ----------

class WeatherObservation(BaseModel):
    temperature: float = Field(..., description="Air temperature (°C)")
    humidity: float = Field(..., description="Relative humidity (%)")
    windSpeed: float = Field(..., description="Wind speed at 10 m (km/h)")
    pressure: Optional[float] = Field(None, description="Station pressure (hPa)")
    precipitation: float = Field(0.0, description="Precipitation so far today (mm)")
    uvIndex: float = Field(0.0, description="UV index, used as a solar radiation proxy")
    cloudCover: float = Field(0.0, description="Cloud cover (%)")
    solarRadiation: Optional[float] = Field(None, description="Measured solar radiation (MJ/m²/day)")

class ForecastDay(BaseModel):
    date: dt_date
    maxTemp: float
    minTemp: float
    avgTemp: float
    precipitation: float = 0.0
    precipitationProbability: float = 0.0
    windSpeed: float = Field(0.0, description="Wind speed (km/h)")
    referenceET: Optional[float] = Field(None, description="Provider-supplied FAO-56 ET0 (mm/day)")
    avgHumidity: Optional[float] = None
    uvIndex: Optional[float] = None
    solarRadiation: Optional[float] = None

class Location(BaseModel):
    latitude: float
    longitude: float
    elevation: Optional[float] = Field(None, description="Elevation in meters (defaults to 200)")
    timezone: str = "auto"

class WeatherSnapshot(BaseModel):
    current: WeatherObservation
    forecast: List[ForecastDay] = Field(default_factory=list)
    location: Location

# ---------- Growth stages ----------

class GrowthStage(str, Enum):
    DORMANT = "Dormant"
    BUDBREAK = "Budbreak"
    LEAF_DEVELOPMENT = "Leaf development"
    FLOWERING = "Flowering"
    FRUIT_SET = "Fruit set"
    VERAISON = "Veraison"
    HARVEST = "Harvest"
    POST_HARVEST = "Post-harvest"

    @classmethod
    def parse(cls, label: Any) -> Optional["GrowthStage"]:
        """Resolve a free-form label ("fruit_set", "FRUIT SET", ...) to a stage"""
        if isinstance(label, cls):
            return label
        if not isinstance(label, str):
            return None
        key = label.strip().lower().replace("_", " ").replace("-", " ")
        for stage in cls:
            if stage.value.lower().replace("-", " ") == key:
                return stage
        return None

# ---------- Calculator input / output ----------

class ReferenceETInputs(BaseModel):
    """Weather for one evaluation day, normalised for the FAO-56 calculation"""
    on_date: dt_date
    temperature: float
    humidity: float
    wind_speed_kmh: float
    tmax: float
    tmin: float
    latitude: float
    elevation_m: float
    pressure_hpa: Optional[float] = None
    solar_radiation: Optional[float] = None
    uv_index: float = 0.0
    cloud_cover: float = 0.0
    external_et0: Optional[float] = None

# ---------- Results ----------

class ET0Trace(BaseModel):
    """Intermediate FAO-56 quantities for one ET0 evaluation"""
    radiationDate: dt_date
    dayOfYear: int
    temperature: float
    humidity: float
    es: float
    ea: float
    vpd: float
    delta: float
    pressureKpa: float
    pressureSource: str
    gamma: float
    u2: float
    ra: float
    rso: float
    rs: float
    solarRadiationSource: str
    rns: float
    rnl: float
    rn: float
    denominator: float
    et0Raw: float
    et0Source: str
    warnings: List[str] = Field(default_factory=list)

class ReferenceETResult(BaseModel):
    external: Optional[float] = None
    calculated: float
    effective: float
    trace: ET0Trace

class ETcResult(BaseModel):
    dailyETc: float
    dailyETcExternal: Optional[float] = None
    dailyETcCalculated: float
    weeklyETc: float
    monthlyETc: float
    cropCoefficient: float
    referenceET: float
    referenceETExternal: Optional[float] = None
    referenceETCalculated: float
    growthStage: str

class DailyETc(BaseModel):
    date: str
    growthStage: str
    cropCoefficient: float
    referenceET: float
    etc: float

class StageInfo(BaseModel):
    stage: str
    kc: float
    description: str

class SeasonalRequirement(BaseModel):
    stage: str
    days: int
    kc: float
    totalETc: float
    description: str

# ---------- Irrigation advice ----------

class IrrigationMethod(str, Enum):
    DRIP = "drip"
    SPRINKLER = "sprinkler"
    SURFACE = "surface"

class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class IrrigationRecommendation(BaseModel):
    shouldIrrigate: bool
    duration: float = Field(..., description="Suggested run time (hours)")
    frequency: str
    notes: List[str] = Field(default_factory=list)

class ETcAdvice(BaseModel):
    effectiveRainfall: float = Field(..., description="Rainfall counted towards crop demand (mm)")
    irrigationNeed: float = Field(..., description="Crop ET not covered by rain (mm/day)")
    recommendation: IrrigationRecommendation
    confidence: Confidence

# ---------- Agent envelope ----------

class ETcRequest(BaseModel):
    weather: WeatherSnapshot
    growth_stage: Optional[str] = Field(
        None, description="Vine growth stage (e.g., Flowering, Veraison); guessed from the forecast date when omitted"
    )
    irrigation_method: IrrigationMethod = Field(IrrigationMethod.DRIP, description="Irrigation system in the block")
    soil_type: str = Field("medium", description="Soil texture class (sandy, medium, clay)")
    per_day: bool = Field(False, description="Also recompute ETc for every forecast day")
    stage_transitions: Dict[dt_date, str] = Field(
        default_factory=dict, description="Growth stage changes within the forecast horizon"
    )
    include_trace: bool = Field(False, description="Return intermediate FAO-56 quantities")

class ETcData(BaseModel):
    etc: ETcResult
    advice: Optional[ETcAdvice] = None
    daily: List[DailyETc] = Field(default_factory=list)
    trace: Optional[ET0Trace] = None

class ETcResponse(BaseModel):
    success: bool
    data: Optional[ETcData] = None
    message: str
    timestamp: str
    metadata: Optional[Dict[str, Any]] = None
