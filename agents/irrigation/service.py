# server/agents/irrigation/service.py
"""
Irrigation service - soil water balance simulation and irrigation scheduling
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from agents.evapotranspiration.models import ForecastDay
from agents.evapotranspiration.service import ET0_MAX_MM, FORECAST_HORIZON_DAYS
from agents.irrigation.models import (
    IrrigationSchedule, IrrigationScheduleEntry, Priority, SoilMoistureDay, SoilType,
)
from core.exceptions import InsufficientWeatherDataError

logger = logging.getLogger(__name__)

# Soil water holding capacity (mm per 30cm depth)
SOIL_CAPACITY_MM: Dict[SoilType, float] = {
    SoilType.SANDY: 80.0,
    SoilType.MEDIUM: 120.0,
    SoilType.CLAY: 160.0,
}

SOIL_DESCRIPTIONS: Dict[SoilType, str] = {
    SoilType.SANDY: "Drains quickly, needs frequent irrigation",
    SoilType.MEDIUM: "Balanced drainage and retention",
    SoilType.CLAY: "High water retention, slower drainage",
}

for _table in (SOIL_CAPACITY_MM, SOIL_DESCRIPTIONS):
    _missing = set(SoilType) - set(_table)
    if _missing:
        raise RuntimeError(f"Soil table incomplete: {sorted(s.value for s in _missing)}")

INITIAL_MOISTURE_FRACTION = 0.6
TRIGGER_FRACTION = 0.4           # irrigate below 40% of capacity
CRITICAL_FRACTION = 0.25
RAIN_SKIP_PROBABILITY_PCT = 70   # likely rain, let it do the work
LOW_RAIN_PROBABILITY_PCT = 30
HEAT_STRESS_TEMP_C = 35.0
DELIVERY_RATE_MM_PER_HOUR = 4.0

# (day, moisture before irrigation, day's ETc, capacity) -> irrigation applied (mm)
IrrigationPolicy = Callable[[ForecastDay, float, float, float], float]


def resolve_soil_type(soil_type: Union[SoilType, str, None]) -> SoilType:
    if soil_type is None:
        return SoilType.MEDIUM
    if isinstance(soil_type, SoilType):
        return soil_type
    try:
        return SoilType(str(soil_type).strip().lower())
    except ValueError:
        logger.warning(f"Unknown soil type {soil_type!r}, using medium")
        return SoilType.MEDIUM


def soil_capacity(soil_type: Union[SoilType, str, None]) -> float:
    return SOIL_CAPACITY_MM[resolve_soil_type(soil_type)]


class SoilWaterBalanceSimulator:
    """Single soil-moisture reservoir stepped day by day over the forecast horizon"""

    def __init__(
        self,
        soil_type: Union[SoilType, str, None] = SoilType.MEDIUM,
        initial_fraction: float = INITIAL_MOISTURE_FRACTION,
    ):
        self.soil_type = resolve_soil_type(soil_type)
        self.capacity = SOIL_CAPACITY_MM[self.soil_type]
        self.initial_moisture = self.capacity * initial_fraction

    def _etc_for_days(self, daily_etc: Union[float, Sequence[float]], days: int) -> List[float]:
        if isinstance(daily_etc, (int, float)):
            values = [float(daily_etc)] * days
        else:
            values = [float(v) for v in daily_etc]
            if len(values) < days:
                raise ValueError(f"Expected {days} daily ETc values, got {len(values)}")
            values = values[:days]

        clamped = []
        for value in values:
            if not 0.0 <= value <= ET0_MAX_MM:
                bounded = max(0.0, min(ET0_MAX_MM, value))
                logger.warning(f"Daily ETc {value} mm outside [0, {ET0_MAX_MM}], clamped to {bounded}")
                value = bounded
            clamped.append(value)
        return clamped

    def run(
        self,
        forecast: Sequence[ForecastDay],
        daily_etc: Union[float, Sequence[float]],
        policy: Optional[IrrigationPolicy] = None,
    ) -> List[SoilMoistureDay]:
        """
        Step the reservoir through the forecast.

        Each day: moisture ← moisture − ETc + rain, bounded to [0, capacity];
        the policy may then add irrigation, which infiltrates fully before
        the next day.
        """
        if not forecast:
            raise InsufficientWeatherDataError("No weather data: cannot simulate soil moisture without a forecast")

        days = list(forecast)[:FORECAST_HORIZON_DAYS]
        etc_values = self._etc_for_days(daily_etc, len(days))

        moisture = self.initial_moisture
        trajectory = []
        for day, etc in zip(days, etc_values):
            rainfall = max(0.0, day.precipitation)
            moisture = max(0.0, min(self.capacity, moisture - etc + rainfall))
            before = moisture

            applied = policy(day, moisture, etc, self.capacity) if policy else 0.0
            moisture = min(self.capacity, moisture + max(0.0, applied))

            trajectory.append(SoilMoistureDay(
                date=day.date.isoformat(),
                etc=round(etc, 2),
                rainfall=round(rainfall, 2),
                moistureBeforeIrrigation=round(before, 2),
                irrigation=round(applied, 2),
                moistureEnd=round(moisture, 2),
                fractionOfCapacity=round(moisture / self.capacity, 3),
            ))

        return trajectory


class IrrigationScheduler:
    """Threshold policy over the soil water balance producing dated irrigation events"""

    def __init__(
        self,
        delivery_rate_mm_per_hour: float = DELIVERY_RATE_MM_PER_HOUR,
        initial_fraction: float = INITIAL_MOISTURE_FRACTION,
    ):
        self.delivery_rate = delivery_rate_mm_per_hour
        self.initial_fraction = initial_fraction

    @classmethod
    def from_config(cls, config: Dict) -> "IrrigationScheduler":
        return cls(
            delivery_rate_mm_per_hour=float(config.get("delivery_rate_mm_per_hour", DELIVERY_RATE_MM_PER_HOUR)),
            initial_fraction=float(config.get("initial_moisture_fraction", INITIAL_MOISTURE_FRACTION)),
        )

    def _priority(self, day: ForecastDay, moisture: float, capacity: float) -> Tuple[Priority, str]:
        if day.maxTemp > HEAT_STRESS_TEMP_C:
            return Priority.HIGH, "High temperature stress - critical irrigation needed"
        if moisture < capacity * CRITICAL_FRACTION:
            return Priority.HIGH, "Critical soil moisture level"
        if day.precipitationProbability < LOW_RAIN_PROBABILITY_PCT:
            return Priority.MEDIUM, "Low rainfall probability - maintain soil moisture"
        return Priority.MEDIUM, "Scheduled irrigation based on soil moisture"

    def schedule(
        self,
        forecast: Sequence[ForecastDay],
        daily_etc: Union[float, Sequence[float]],
        soil_type: Union[SoilType, str, None] = SoilType.MEDIUM,
    ) -> Tuple[IrrigationSchedule, List[SoilMoistureDay]]:
        simulator = SoilWaterBalanceSimulator(soil_type, self.initial_fraction)
        entries: List[IrrigationScheduleEntry] = []
        applied_amounts: List[float] = []

        def threshold_policy(day: ForecastDay, moisture: float, etc: float, capacity: float) -> float:
            threshold = capacity * TRIGGER_FRACTION
            if moisture >= threshold or day.precipitationProbability >= RAIN_SKIP_PROBABILITY_PCT:
                return 0.0

            deficit = threshold - moisture
            amount = min(deficit + etc, capacity - moisture)
            duration = amount / self.delivery_rate
            if round(amount, 2) <= 0 or round(duration, 2) <= 0:
                logger.debug(f"Skipping negligible irrigation of {amount:.4f} mm on {day.date}")
                return 0.0

            priority, reason = self._priority(day, moisture, capacity)
            entries.append(IrrigationScheduleEntry(
                date=day.date.isoformat(),
                duration=round(duration, 2),
                amount=round(amount, 2),
                reason=reason,
                priority=priority,
            ))
            applied_amounts.append(amount)
            return amount

        trajectory = simulator.run(forecast, daily_etc, threshold_policy)

        total = round(sum(applied_amounts), 2)
        logger.info(
            f"Irrigation schedule for {simulator.soil_type.value} soil: {len(entries)} events, {total} mm total"
        )
        return IrrigationSchedule(schedule=entries, totalWaterNeed=total), trajectory
