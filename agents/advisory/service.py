# server/agents/advisory/service.py
"""
Advisory service - threshold based irrigation, pest and harvest alerts
"""
import logging
from typing import List

from agents.advisory.models import AlertLevel, HarvestAlert, IrrigationAlert, PestAlert, WeatherAlerts
from agents.evapotranspiration.models import ETcResult, ForecastDay, WeatherSnapshot
from agents.evapotranspiration.service import require_forecast

logger = logging.getLogger(__name__)

IRRIGATION_WINDOW_DAYS = 3
WET_SPELL_FORECAST_DAYS = 2
HARVEST_WINDOW_DAYS = 5

HEAT_STRESS_TEMP_C = 35.0
LOW_HUMIDITY_PCT = 30.0
IRRIGATION_WIND_KMH = 20.0

FUNGAL_HUMIDITY_PCT = 80.0
FUNGAL_TEMP_RANGE_C = (20.0, 30.0)
WET_RAINFALL_MM = 10.0
EXTREME_HEAT_C = 38.0
COLD_TEMP_C = 10.0
DAMAGING_WIND_KMH = 30.0


def _total_rain(days: List[ForecastDay]) -> float:
    return sum(day.precipitation for day in days)


def _max_rain_probability(days: List[ForecastDay]) -> float:
    return max(day.precipitationProbability for day in days)


class AdvisoryAlertGenerator:
    """Independent irrigation, pest/disease and harvest advisories"""

    def generate(self, snapshot: WeatherSnapshot, etc: ETcResult) -> WeatherAlerts:
        forecast = require_forecast(snapshot)
        alerts = WeatherAlerts(
            irrigation=self.irrigation_alert(snapshot, forecast, etc),
            pest=self.pest_alert(snapshot, forecast),
            harvest=self.harvest_alert(forecast),
        )
        logger.info(
            f"Alerts: irrigation={alerts.irrigation.urgency.value} "
            f"pest={alerts.pest.riskLevel.value} harvest_optimal={alerts.harvest.isOptimal}"
        )
        return alerts

    def irrigation_alert(self, snapshot: WeatherSnapshot, forecast: List[ForecastDay], etc: ETcResult) -> IrrigationAlert:
        current = snapshot.current
        window = forecast[:IRRIGATION_WINDOW_DAYS]

        upcoming_rain = _total_rain(window)
        rain_probability = _max_rain_probability(window)
        should_irrigate = upcoming_rain < etc.dailyETc * 2 and rain_probability < 60

        recommendations = []
        if current.temperature > HEAT_STRESS_TEMP_C:
            urgency = AlertLevel.HIGH
            reason = "High temperature stress detected"
            recommendations.append("Increase irrigation frequency")
            recommendations.append("Consider early morning irrigation")
        elif current.humidity < LOW_HUMIDITY_PCT:
            urgency = AlertLevel.HIGH
            reason = "Low humidity increasing water demand"
            recommendations.append("Monitor soil moisture closely")
        elif upcoming_rain < 5 and rain_probability < 30:
            urgency = AlertLevel.MEDIUM
            reason = f"Low rainfall expected in next {len(window)} days"
            recommendations.append("Plan irrigation for next 24-48 hours")
        else:
            urgency = AlertLevel.LOW
            reason = "Adequate moisture conditions expected"
            recommendations.append("Monitor soil moisture levels")

        if current.windSpeed > IRRIGATION_WIND_KMH:
            recommendations.append("High winds detected - avoid overhead irrigation")

        return IrrigationAlert(
            shouldIrrigate=should_irrigate,
            reason=reason,
            urgency=urgency,
            recommendations=recommendations,
        )

    def pest_alert(self, snapshot: WeatherSnapshot, forecast: List[ForecastDay]) -> PestAlert:
        current = snapshot.current
        risk = AlertLevel.LOW
        conditions: List[str] = []
        precautions: List[str] = []

        low, high = FUNGAL_TEMP_RANGE_C
        if current.humidity > FUNGAL_HUMIDITY_PCT and low < current.temperature < high:
            risk = AlertLevel.HIGH
            conditions.append("High humidity and optimal temperature for fungal diseases")
            precautions.append("Monitor for powdery mildew and downy mildew")
            precautions.append("Improve air circulation around vines")

        # today's rain so far plus the next two forecast days
        recent_rain = current.precipitation + _total_rain(forecast[:WET_SPELL_FORECAST_DAYS])
        if recent_rain > WET_RAINFALL_MM:
            if risk == AlertLevel.LOW:
                risk = AlertLevel.MEDIUM
            conditions.append("Wet conditions increase disease pressure")
            precautions.append("Inspect for leaf spot diseases")
            precautions.append("Ensure proper drainage")

        if current.temperature > EXTREME_HEAT_C:
            conditions.append("High temperature stress")
            precautions.append("Monitor for heat stress symptoms")
            precautions.append("Ensure adequate irrigation")
        elif current.temperature < COLD_TEMP_C:
            conditions.append("Low temperature may affect growth")
            precautions.append("Monitor for cold damage")

        if current.windSpeed > DAMAGING_WIND_KMH:
            conditions.append("Strong winds may cause mechanical damage")
            precautions.append("Check trellis systems and supports")
            precautions.append("Protect young shoots")

        if not conditions:
            conditions.append("Favorable weather conditions")
            precautions.append("Continue regular monitoring")

        return PestAlert(riskLevel=risk, conditions=conditions, precautions=precautions)

    def harvest_alert(self, forecast: List[ForecastDay]) -> HarvestAlert:
        window = forecast[:HARVEST_WINDOW_DAYS]

        upcoming_rain = _total_rain(window)
        avg_temp = sum(day.avgTemp for day in window) / len(window)
        max_rain_probability = _max_rain_probability(window)

        is_optimal = upcoming_rain < 2 and 15 < avg_temp < 30 and max_rain_probability < 30

        recommendations = []
        if is_optimal:
            conditions = "Excellent harvest conditions expected"
            recommendations.append("Ideal weather window for harvesting")
            recommendations.append("Plan harvest operations for the next few days")
        elif upcoming_rain > 10 or max_rain_probability > 70:
            conditions = "Wet weather expected - not ideal for harvest"
            recommendations.append("Delay harvest if possible")
            recommendations.append("Monitor fruit condition closely")
            recommendations.append("Ensure proper post-harvest handling")
        elif avg_temp > 35:
            conditions = "High temperatures may affect fruit quality"
            recommendations.append("Plan harvest for early morning hours")
            recommendations.append("Ensure rapid cooling of harvested grapes")
        else:
            conditions = "Moderate harvest conditions"
            recommendations.append("Monitor weather forecasts closely")
            recommendations.append("Be prepared to adjust harvest timing")

        return HarvestAlert(isOptimal=is_optimal, conditions=conditions, recommendations=recommendations)
