# server/agents/irrigation/agent.py
"""
Irrigation planning agent - soil water balance based irrigation scheduling
"""

from typing import Dict, Any, List
from datetime import datetime

from agents.base import BaseAgent
from agents.evapotranspiration.service import ETcAggregator, require_forecast
from agents.irrigation.models import IrrigationRequest, IrrigationResponse, IrrigationPlan, SoilType
from agents.irrigation.service import IrrigationScheduler, SOIL_CAPACITY_MM, SOIL_DESCRIPTIONS, resolve_soil_type
from core.exceptions import AgentConfigError

class IrrigationAgent(BaseAgent[IrrigationRequest, IrrigationResponse]):
    """
    Irrigation planning agent over a 7-day soil water balance

    Features:
    - Crop ET from the FAO-56 evapotranspiration service
    - Single-reservoir soil moisture simulation per soil type
    - Threshold-triggered irrigation with heat/critical-moisture priorities
    - Rain probability consideration
    - Optional per-day ETc with growth-stage transitions
    """

    response_class = IrrigationResponse

    def __init__(self):
        super().__init__("irrigation")
        self.etc_service = ETcAggregator.from_config(self.config)
        self.scheduler = IrrigationScheduler.from_config(self.config)
        self.logger.info("Irrigation agent initialized")

    def _validate_config(self) -> None:
        """Validate irrigation agent configuration"""
        required_config = ["initial_moisture_fraction", "delivery_rate_mm_per_hour"]

        missing = [key for key in required_config if key not in self.config]
        if missing:
            self.logger.warning(f"Missing irrigation config (using defaults): {missing}")

        if self.config.get("delivery_rate_mm_per_hour", 4.0) <= 0:
            raise AgentConfigError("delivery_rate_mm_per_hour must be positive")

    async def process_request(self, request: IrrigationRequest) -> IrrigationResponse:
        """Process irrigation planning request"""

        self.logger.info(
            f"Processing irrigation request for stage {request.growth_stage!r} on {request.soil_type!r} soil"
        )

        forecast = require_forecast(request.weather)
        soil_type = resolve_soil_type(request.soil_type)

        # Step 1: Today's crop ET
        etc, trace = self.etc_service.calculate(request.weather, request.growth_stage)

        # Step 2: ETc applied to each simulated day
        daily_etc = []
        if request.per_day_etc:
            daily_etc = self.etc_service.per_day(request.weather, request.growth_stage, request.stage_transitions)
            etc_input = [row.etc for row in daily_etc]
        else:
            etc_input = etc.dailyETc

        # Step 3: Simulate and schedule
        schedule, trajectory = self.scheduler.schedule(forecast, etc_input, soil_type)

        next_date = schedule.schedule[0].date if schedule.schedule else None
        plan = IrrigationPlan(
            etc=etc,
            schedule=schedule,
            soilMoisture=trajectory,
            soilType=soil_type,
            capacityMm=SOIL_CAPACITY_MM[soil_type],
            dailyETc=daily_etc,
            nextIrrigationDate=next_date,
        )

        num_irrigations = len(schedule.schedule)
        if num_irrigations == 0:
            message = f"No irrigation needed for next {len(forecast)} days"
        else:
            message = f"{num_irrigations} irrigation(s) recommended. Next: {next_date}"

        self.logger.info(f"Irrigation plan generated: {num_irrigations} events, {schedule.totalWaterNeed} mm")

        return IrrigationResponse(
            success=True,
            data=plan,
            message=message,
            timestamp=datetime.now().isoformat(),
            metadata={
                "weather_days": len(forecast),
                "planning_method": "soil_water_balance",
                "etc_mode": "per_day" if request.per_day_etc else "uniform",
                "radiation_date": trace.radiationDate.isoformat(),
                "warnings": trace.warnings,
            },
        )

    def get_fallback_response(self, request: IrrigationRequest, error: Exception) -> IrrigationResponse:
        """Get fallback response when agent fails"""
        return self._failure_response(f"Irrigation planning failed: {error}", error)

    async def get_soil_types(self) -> List[Dict[str, Any]]:
        """Get available soil texture types"""
        return [
            {
                "type": soil.value,
                "description": SOIL_DESCRIPTIONS[soil],
                "capacity_mm_per_30cm": SOIL_CAPACITY_MM[soil],
            }
            for soil in SoilType
        ]
