# server/agents/advisory/agent.py
"""
Weather advisory agent - irrigation, pest/disease and harvest alerts
"""

from datetime import datetime

from agents.base import BaseAgent
from agents.advisory.models import AdvisoryRequest, AdvisoryResponse, AdvisoryData
from agents.advisory.service import AdvisoryAlertGenerator
from agents.evapotranspiration.service import ETcAggregator

class AdvisoryAgent(BaseAgent[AdvisoryRequest, AdvisoryResponse]):
    """
    Weather advisory agent for vineyard operations

    Features:
    - Irrigation urgency from temperature, humidity and short-range rain
    - Fungal disease and weather damage risk
    - Harvest window suitability
    """

    response_class = AdvisoryResponse

    def __init__(self):
        super().__init__("advisory")
        self.etc_service = ETcAggregator.from_config(self.config)
        self.generator = AdvisoryAlertGenerator()
        self.logger.info("Advisory agent initialized")

    def _validate_config(self) -> None:
        """Advisory thresholds are fixed; only the shared ET settings are read"""
        if "default_elevation_m" not in self.config:
            self.logger.warning("Missing advisory config (using defaults): ['default_elevation_m']")

    async def process_request(self, request: AdvisoryRequest) -> AdvisoryResponse:
        """Process advisory request"""

        self.logger.info(f"Processing advisory request for stage {request.growth_stage!r}")

        etc, trace = self.etc_service.calculate(request.weather, request.growth_stage)
        alerts = self.generator.generate(request.weather, etc)

        return AdvisoryResponse(
            success=True,
            data=AdvisoryData(alerts=alerts, etc=etc),
            message=f"Irrigation urgency {alerts.irrigation.urgency.value}, pest risk {alerts.pest.riskLevel.value}",
            timestamp=datetime.now().isoformat(),
            metadata={
                "forecast_days": len(request.weather.forecast),
                "reference_et_source": trace.et0Source,
                "warnings": trace.warnings,
            },
        )

    def get_fallback_response(self, request: AdvisoryRequest, error: Exception) -> AdvisoryResponse:
        """Get fallback response when agent fails"""
        return self._failure_response(f"Advisory generation failed: {error}", error)
