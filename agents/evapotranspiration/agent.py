# server/agents/evapotranspiration/agent.py
"""
Evapotranspiration agent - FAO-56 reference ET and grapevine crop ET
"""

from typing import List, Optional
from datetime import date, datetime

from agents.base import BaseAgent
from agents.evapotranspiration.models import (
    ETcRequest, ETcResponse, ETcData, SeasonalRequirement, StageInfo,
)
from agents.evapotranspiration.crop_coefficients import determine_growth_stage
from agents.evapotranspiration.service import ETcAggregator
from core.exceptions import AgentConfigError

class EvapotranspirationAgent(BaseAgent[ETcRequest, ETcResponse]):
    """
    Crop evapotranspiration agent using FAO-56 methodology

    Features:
    - FAO-56 Penman-Monteith ET0 with barometric pressure correction
    - Provider ET0 preferred when plausible, local ET0 as fallback
    - Grapevine crop coefficient (Kc) by growth stage
    - Optional per-day ETc across the forecast horizon
    - Optional trace of intermediate physical quantities
    - Rain-adjusted irrigation need with method and soil advice
    """

    response_class = ETcResponse

    def __init__(self):
        super().__init__("evapotranspiration")
        self.service = ETcAggregator.from_config(self.config)
        self.logger.info("Evapotranspiration agent initialized")

    def _validate_config(self) -> None:
        """Validate evapotranspiration agent configuration"""
        required_config = ["default_elevation_m", "prefer_external_et0", "use_measured_pressure"]

        missing = [key for key in required_config if key not in self.config]
        if missing:
            self.logger.warning(f"Missing evapotranspiration config (using defaults): {missing}")

        elevation = self.config.get("default_elevation_m", 200.0)
        if not -500 <= elevation <= 9000:
            raise AgentConfigError(f"default_elevation_m out of range: {elevation}")

    async def process_request(self, request: ETcRequest) -> ETcResponse:
        """Process crop ET request"""

        location = request.weather.location
        self.logger.info(
            f"Processing ETc request for stage {request.growth_stage!r} at ({location.latitude}, {location.longitude})"
        )

        etc, trace = self.service.calculate(request.weather, request.growth_stage)
        advice = self.service.advise(request.weather, etc, request.irrigation_method, request.soil_type)

        daily = []
        if request.per_day:
            daily = self.service.per_day(request.weather, request.growth_stage, request.stage_transitions)

        return ETcResponse(
            success=True,
            data=ETcData(etc=etc, advice=advice, daily=daily, trace=trace if request.include_trace else None),
            message=f"Daily ETc {etc.dailyETc} mm (Kc {etc.cropCoefficient}, ET0 {etc.referenceET} mm)",
            timestamp=datetime.now().isoformat(),
            metadata={
                "planning_method": "fao56_pm",
                "reference_et_source": trace.et0Source,
                "radiation_date": trace.radiationDate.isoformat(),
                "growth_stage_source": "provided" if (request.growth_stage or "").strip() else "calendar",
                "irrigation_method": request.irrigation_method.value,
                "warnings": trace.warnings,
                "location": f"({location.latitude:.3f}, {location.longitude:.3f})",
            },
        )

    def get_fallback_response(self, request: ETcRequest, error: Exception) -> ETcResponse:
        """Get fallback response when agent fails"""
        return self._failure_response(f"ETc calculation failed: {error}", error)

    def get_growth_stages(self) -> List[StageInfo]:
        """Growth stages with their crop coefficients"""
        return self.service.resolver.stages()

    def get_seasonal_requirements(self, average_et0: float) -> List[SeasonalRequirement]:
        """Season water requirement table for an average ET0"""
        return self.service.resolver.seasonal_requirements(average_et0)

    def get_calendar_stage(self, on_date: Optional[date] = None) -> StageInfo:
        """Calendar guess of the growth stage for a date, with its Kc"""
        stage = determine_growth_stage(on_date)
        return next(info for info in self.get_growth_stages() if info.stage == stage.value)
