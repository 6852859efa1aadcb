# server/agents/evapotranspiration/service.py
"""
Evapotranspiration service - FAO-56 Penman-Monteith ET0 and grapevine ETc
"""
import math
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from datetime import date as dt_date

from agents.evapotranspiration.crop_coefficients import CropCoefficientResolver, determine_growth_stage
from agents.evapotranspiration.models import (
    Confidence, DailyETc, ET0Trace, ETcAdvice, ETcResult, ForecastDay, GrowthStage,
    IrrigationMethod, IrrigationRecommendation, ReferenceETInputs, ReferenceETResult, WeatherSnapshot,
)
from core.exceptions import InsufficientWeatherDataError

logger = logging.getLogger(__name__)

ET0_MIN_MM = 0.0
ET0_MAX_MM = 15.0
FORECAST_HORIZON_DAYS = 7


def require_forecast(snapshot: WeatherSnapshot) -> List[ForecastDay]:
    """Forecast days inside the fixed horizon; an empty forecast is a hard failure"""
    if snapshot is None or not snapshot.forecast:
        raise InsufficientWeatherDataError("No weather data: the snapshot has no forecast days")
    return snapshot.forecast[:FORECAST_HORIZON_DAYS]


class ReferenceETCalculator:
    """FAO-56 Penman-Monteith reference evapotranspiration"""

    U10_TO_U2 = 0.748      # 10 m → 2 m wind speed conversion
    KMH_TO_MS = 1 / 3.6

    _GSC = 0.0820          # MJ m-2 min-1
    _SIGMA = 4.903e-9      # MJ K-4 m-2 day-1
    _ALBEDO = 0.23
    _CLEAR_DAY_RS = 25.0   # MJ m-2 day-1, ceiling of the UV/cloud proxy
    _MIN_DENOMINATOR = 1e-6

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.config = config
        self.prefer_external_et0 = bool(config.get("prefer_external_et0", True))
        self.use_measured_pressure = bool(config.get("use_measured_pressure", True))
        self.default_elevation_m = float(config.get("default_elevation_m", 200.0))

    # ---------- Snapshot normalisation ----------

    def _elevation(self, snapshot: WeatherSnapshot) -> float:
        elevation = snapshot.location.elevation
        return self.default_elevation_m if elevation is None else float(elevation)

    def inputs_for_today(self, snapshot: WeatherSnapshot) -> ReferenceETInputs:
        """Current conditions with today's forecast extremes"""
        today = require_forecast(snapshot)[0]
        current = snapshot.current
        return ReferenceETInputs(
            on_date=today.date,
            temperature=current.temperature,
            humidity=current.humidity,
            wind_speed_kmh=current.windSpeed,
            tmax=today.maxTemp,
            tmin=today.minTemp,
            latitude=snapshot.location.latitude,
            elevation_m=self._elevation(snapshot),
            pressure_hpa=current.pressure,
            solar_radiation=current.solarRadiation,
            uv_index=current.uvIndex,
            cloud_cover=current.cloudCover,
            external_et0=today.referenceET,
        )

    def inputs_for_day(self, snapshot: WeatherSnapshot, day: ForecastDay) -> ReferenceETInputs:
        """One forecast day's own weather; today's humidity and sky fill the gaps"""
        current = snapshot.current
        return ReferenceETInputs(
            on_date=day.date,
            temperature=day.avgTemp,
            humidity=day.avgHumidity if day.avgHumidity is not None else current.humidity,
            wind_speed_kmh=day.windSpeed,
            tmax=day.maxTemp,
            tmin=day.minTemp,
            latitude=snapshot.location.latitude,
            elevation_m=self._elevation(snapshot),
            solar_radiation=day.solarRadiation,
            uv_index=day.uvIndex if day.uvIndex is not None else current.uvIndex,
            cloud_cover=current.cloudCover,
            external_et0=day.referenceET,
        )

    # ---------- FAO-56 PM building blocks ----------

    def _sat_vp_kpa(self, Tc: float) -> float:
        """Saturation vapor pressure"""
        return 0.6108 * math.exp((17.27 * Tc) / (Tc + 237.3))

    def _slope_vp_curve_kpa_per_c(self, Tc: float) -> float:
        """Slope of vapor pressure curve"""
        es = self._sat_vp_kpa(Tc)
        return 4098.0 * es / ((Tc + 237.3) ** 2)

    def _atm_pressure_kpa(self, z_m: float) -> float:
        """Atmospheric pressure from elevation"""
        return 101.3 * (((293.0 - 0.0065 * z_m) / 293.0) ** 5.26)

    def _psychrometric_const_kpa_per_c(self, P_kpa: float) -> float:
        """Psychrometric constant"""
        return 0.000665 * P_kpa

    def _inv_rel_earth_sun_dist(self, J: int) -> float:
        """Inverse relative distance Earth-Sun"""
        return 1 + 0.033 * math.cos(2 * math.pi * J / 365.0)

    def _solar_declination(self, J: int) -> float:
        """Solar declination"""
        return 0.409 * math.sin(2 * math.pi * J / 365.0 - 1.39)

    def _sunset_hour_angle(self, phi_rad: float, delta: float) -> float:
        """Sunset hour angle"""
        x = -math.tan(phi_rad) * math.tan(delta)
        x = max(-1.0, min(1.0, x))
        return math.acos(x)

    def extraterrestrial_radiation(self, lat_deg: float, J: int) -> float:
        """Extraterrestrial radiation Ra (MJ m-2 day-1)"""
        phi = math.radians(lat_deg)
        dr = self._inv_rel_earth_sun_dist(J)
        delta = self._solar_declination(J)
        ws = self._sunset_hour_angle(phi, delta)
        Ra = (24 * 60 / math.pi) * self._GSC * dr * (
            ws * math.sin(phi) * math.sin(delta) +
            math.cos(phi) * math.cos(delta) * math.sin(ws)
        )
        return max(0.0, Ra)

    def _clear_sky_rad_Rso(self, Ra: float, z_m: float) -> float:
        """Clear sky radiation"""
        return (0.75 + 2e-5 * z_m) * Ra

    def _net_shortwave_Rns(self, Rs: float) -> float:
        """Net shortwave radiation"""
        return (1 - self._ALBEDO) * Rs

    def _net_longwave_Rnl(self, Tmax_c: float, Tmin_c: float, ea_kpa: float, Rs: float, Rso: float) -> float:
        """Net longwave radiation"""
        TmaxK = Tmax_c + 273.16
        TminK = Tmin_c + 273.16
        term_temp = (TmaxK**4 + TminK**4) / 2.0
        term_cloud = 1.35 * min(Rs / max(Rso, 1e-6), 1.0) - 0.35
        term_vp = 0.34 - 0.14 * math.sqrt(max(ea_kpa, 0.0))
        return self._SIGMA * term_temp * term_vp * term_cloud

    def _pressure(self, pressure_hpa: Optional[float], z_m: float, warn: Callable[[str], None]) -> Tuple[float, str]:
        if self.use_measured_pressure and pressure_hpa is not None:
            if 300.0 <= pressure_hpa <= 1100.0:
                return pressure_hpa / 10.0, "measured"
            warn(f"Implausible pressure {pressure_hpa} hPa, using barometric estimate for {z_m} m")
        return self._atm_pressure_kpa(z_m), "elevation"

    def _solar_radiation(self, inputs: ReferenceETInputs, warn: Callable[[str], None]) -> Tuple[float, str]:
        Rs = inputs.solar_radiation
        if Rs is not None and math.isfinite(Rs):
            if Rs < 0:
                warn(f"Negative solar radiation {Rs} MJ/m², clamped to 0")
                Rs = 0.0
            return Rs, "measured"

        uv = max(0.0, inputs.uv_index)
        cloud = max(0.0, min(100.0, inputs.cloud_cover))
        uv_factor = min(uv / 11.0, 1.0)
        cloud_factor = (100.0 - cloud) / 100.0
        return self._CLEAR_DAY_RS * uv_factor * cloud_factor, "uv_cloud_estimate"

    def _clamp_et0(self, value: float, label: str, warn: Callable[[str], None]) -> float:
        if not math.isfinite(value):
            warn(f"{label} ET0 is not finite, using {ET0_MIN_MM}")
            return ET0_MIN_MM
        if value < ET0_MIN_MM or value > ET0_MAX_MM:
            clamped = max(ET0_MIN_MM, min(ET0_MAX_MM, value))
            warn(f"{label} ET0 {value:.3f} mm/day outside [{ET0_MIN_MM}, {ET0_MAX_MM}], clamped to {clamped}")
            return clamped
        return value

    def _external_et0(self, value: Optional[float], warn: Callable[[str], None]) -> Optional[float]:
        if value is None:
            return None
        if not math.isfinite(value) or not ET0_MIN_MM <= value <= ET0_MAX_MM:
            warn(f"Ignoring implausible external ET0 {value} mm/day")
            return None
        return value

    # ---------- ET0 ----------

    def calculate(self, inputs: ReferenceETInputs) -> ReferenceETResult:
        """Compute ET0 for one day. Never raises for implausible sensor values."""
        warnings: List[str] = []

        def warn(message: str) -> None:
            logger.warning(message)
            warnings.append(message)

        T = inputs.temperature
        if not -50.0 <= T <= 60.0:
            T = max(-50.0, min(60.0, T))
            warn(f"Temperature {inputs.temperature}°C outside plausible range, clamped to {T}")

        rh = inputs.humidity
        if not 0.0 <= rh <= 100.0:
            rh = max(0.0, min(100.0, rh))
            warn(f"Relative humidity {inputs.humidity}% outside 0-100, clamped to {rh}")

        wind_kmh = inputs.wind_speed_kmh
        if wind_kmh < 0:
            warn(f"Negative wind speed {wind_kmh} km/h, clamped to 0")
            wind_kmh = 0.0
        elif wind_kmh > 200:
            warn(f"Wind speed {wind_kmh} km/h outside plausible range")

        tmax, tmin = inputs.tmax, inputs.tmin
        if tmax < tmin:
            warn(f"Max temperature {tmax}°C below min {tmin}°C, swapped")
            tmax, tmin = tmin, tmax

        z = inputs.elevation_m

        es = self._sat_vp_kpa(T)
        ea = (rh / 100.0) * es
        vpd = es - ea

        P, pressure_source = self._pressure(inputs.pressure_hpa, z, warn)
        gamma = self._psychrometric_const_kpa_per_c(P)
        Delta = self._slope_vp_curve_kpa_per_c(T)
        u2 = wind_kmh * self.KMH_TO_MS * self.U10_TO_U2

        J = inputs.on_date.timetuple().tm_yday
        Ra = self.extraterrestrial_radiation(inputs.latitude, J)
        Rso = self._clear_sky_rad_Rso(Ra, z)
        Rs, rs_source = self._solar_radiation(inputs, warn)
        Rns = self._net_shortwave_Rns(Rs)
        Rnl = self._net_longwave_Rnl(tmax, tmin, ea, Rs, Rso)
        Rn = Rns - Rnl
        G = 0.0

        num1 = 0.408 * Delta * (Rn - G)
        num2 = gamma * (900.0 / (T + 273.15)) * u2 * vpd
        den = Delta + gamma * (1.0 + 0.34 * u2)
        if abs(den) < self._MIN_DENOMINATOR:
            warn(f"Near-zero Penman-Monteith denominator {den:.3e}, floored at {self._MIN_DENOMINATOR}")
            den = self._MIN_DENOMINATOR
        et0_raw = (num1 + num2) / den

        calculated = self._clamp_et0(et0_raw, "Calculated", warn)
        external = self._external_et0(inputs.external_et0, warn)
        if external is not None and self.prefer_external_et0:
            effective, source = external, "external"
        else:
            effective, source = calculated, "calculated"

        trace = ET0Trace(
            radiationDate=inputs.on_date,
            dayOfYear=J,
            temperature=T,
            humidity=rh,
            es=round(es, 4),
            ea=round(ea, 4),
            vpd=round(vpd, 4),
            delta=round(Delta, 4),
            pressureKpa=round(P, 3),
            pressureSource=pressure_source,
            gamma=round(gamma, 5),
            u2=round(u2, 3),
            ra=round(Ra, 3),
            rso=round(Rso, 3),
            rs=round(Rs, 3),
            solarRadiationSource=rs_source,
            rns=round(Rns, 3),
            rnl=round(Rnl, 3),
            rn=round(Rn, 3),
            denominator=round(den, 5),
            et0Raw=round(et0_raw, 4) if math.isfinite(et0_raw) else 0.0,
            et0Source=source,
            warnings=warnings,
        )
        logger.debug(f"ET0 {inputs.on_date}: calculated={calculated:.3f} external={external} effective={effective:.3f}")

        return ReferenceETResult(external=external, calculated=calculated, effective=effective, trace=trace)

    def calculate_for_snapshot(self, snapshot: WeatherSnapshot) -> ReferenceETResult:
        return self.calculate(self.inputs_for_today(snapshot))


class ETcAggregator:
    """Scales ET0 by the growth-stage crop coefficient into daily/weekly/monthly ETc"""

    def __init__(self, calculator: ReferenceETCalculator, resolver: Optional[CropCoefficientResolver] = None):
        self.calculator = calculator
        self.resolver = resolver or CropCoefficientResolver()

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "ETcAggregator":
        return cls(ReferenceETCalculator(config), CropCoefficientResolver())

    @staticmethod
    def stage_or_calendar(growth_stage: Any, on_date: dt_date) -> Any:
        """The caller's stage, or the calendar guess for ``on_date`` when none was given"""
        if growth_stage is None or (isinstance(growth_stage, str) and not growth_stage.strip()):
            stage = determine_growth_stage(on_date)
            logger.info(f"No growth stage given, using {stage.value} from the calendar for {on_date}")
            return stage
        return growth_stage

    def aggregate(self, et0: ReferenceETResult, growth_stage: Any) -> ETcResult:
        kc = self.resolver.resolve(growth_stage)
        daily_etc = round(et0.effective * kc, 2)

        return ETcResult(
            dailyETc=daily_etc,
            dailyETcExternal=round(et0.external * kc, 2) if et0.external is not None else None,
            dailyETcCalculated=round(et0.calculated * kc, 2),
            weeklyETc=round(daily_etc * 7, 2),
            monthlyETc=round(daily_etc * 30, 2),
            cropCoefficient=kc,
            referenceET=round(et0.effective, 2),
            referenceETExternal=round(et0.external, 2) if et0.external is not None else None,
            referenceETCalculated=round(et0.calculated, 2),
            growthStage=self.resolver.stage_label(growth_stage),
        )

    def calculate(self, snapshot: WeatherSnapshot, growth_stage: Any = None) -> Tuple[ETcResult, ET0Trace]:
        """ETc for today's conditions"""
        today = require_forecast(snapshot)[0]
        stage = self.stage_or_calendar(growth_stage, today.date)
        et0 = self.calculator.calculate_for_snapshot(snapshot)
        return self.aggregate(et0, stage), et0.trace

    def per_day(
        self,
        snapshot: WeatherSnapshot,
        growth_stage: Any = None,
        stage_transitions: Optional[Mapping[dt_date, Any]] = None,
    ) -> List[DailyETc]:
        """ETc recomputed from each forecast day's own weather and date"""
        transitions = sorted((stage_transitions or {}).items())
        rows = []
        for index, day in enumerate(require_forecast(snapshot)):
            stage = None
            for changes_on, new_stage in transitions:
                if changes_on <= day.date:
                    stage = new_stage
            if stage is None:
                stage = self.stage_or_calendar(growth_stage, day.date)

            # the first forecast day is today
            if index == 0:
                inputs = self.calculator.inputs_for_today(snapshot)
            else:
                inputs = self.calculator.inputs_for_day(snapshot, day)
            et0 = self.calculator.calculate(inputs)
            kc = self.resolver.resolve(stage)
            rows.append(DailyETc(
                date=day.date.isoformat(),
                growthStage=self.resolver.stage_label(stage),
                cropCoefficient=kc,
                referenceET=round(et0.effective, 2),
                etc=round(et0.effective * kc, 2),
            ))
        return rows

    def advise(
        self,
        snapshot: WeatherSnapshot,
        etc: ETcResult,
        method: IrrigationMethod = IrrigationMethod.DRIP,
        soil_type: str = "medium",
    ) -> ETcAdvice:
        """Rain-adjusted irrigation need and a method/soil recommendation for today"""
        today = require_forecast(snapshot)[0]
        rainfall = today.precipitation
        effective_rain, need = irrigation_need(etc.dailyETc, rainfall)
        recommendation = recommend(
            need,
            etc.growthStage,
            method,
            soil_type,
            humidity=snapshot.current.humidity,
            wind_kmh=snapshot.current.windSpeed,
            rainfall=rainfall,
        )
        return ETcAdvice(
            effectiveRainfall=effective_rain,
            irrigationNeed=need,
            recommendation=recommendation,
            confidence=confidence(snapshot, rainfall),
        )


# ---------- Irrigation advice ----------

EFFECTIVE_RAIN_FRACTION = 0.8
RAIN_SKIP_MM = 10.0
HUMID_PERCENT = 80.0
WINDY_MS = 5.0

# hours of run time per mm of need
_METHOD_RUNTIME = {
    IrrigationMethod.DRIP: 0.5,
    IrrigationMethod.SPRINKLER: 0.7,
    IrrigationMethod.SURFACE: 1.2,
}


def irrigation_need(daily_etc: float, rainfall: float) -> Tuple[float, float]:
    """(effective rainfall, crop ET left for irrigation), both in mm"""
    effective = max(0.0, rainfall) * EFFECTIVE_RAIN_FRACTION
    return round(effective, 2), round(max(0.0, daily_etc - effective), 2)


def _frequency(method: IrrigationMethod, need: float) -> str:
    if method == IrrigationMethod.SPRINKLER:
        return "every 2-3 days"
    if method == IrrigationMethod.SURFACE:
        return "weekly"
    return "daily" if need > 4 else "every 2 days"


def recommend(
    need: float,
    growth_stage: Any,
    method: IrrigationMethod = IrrigationMethod.DRIP,
    soil_type: str = "medium",
    humidity: float = 0.0,
    wind_kmh: float = 0.0,
    rainfall: float = 0.0,
) -> IrrigationRecommendation:
    """Whether, how long and how often to irrigate for a day's irrigation need"""
    method = IrrigationMethod(method)
    stage = GrowthStage.parse(growth_stage)
    soil = (soil_type or "").strip().lower()
    notes: List[str] = []

    should_irrigate = need > 2
    if stage in (GrowthStage.FLOWERING, GrowthStage.FRUIT_SET):
        should_irrigate = need > 1.5
        notes.append("Critical growth stage - maintain consistent moisture")
    elif stage == GrowthStage.VERAISON:
        should_irrigate = need > 3
        notes.append("Veraison stage - controlled water stress improves fruit quality")
    elif stage == GrowthStage.DORMANT:
        should_irrigate = False
        notes.append("Dormant season - irrigation not recommended")

    rained_out = rainfall > RAIN_SKIP_MM
    duration = 0.0
    frequency = "as needed"
    if should_irrigate and not rained_out:
        duration = need * _METHOD_RUNTIME[method]
        frequency = _frequency(method, need)
        if soil == "sandy":
            duration *= 1.2
            frequency = "more frequent, shorter durations"
            notes.append("Sandy soil - increase frequency, reduce duration")
        elif soil == "clay":
            duration *= 0.8
            frequency = "less frequent, longer durations"
            notes.append("Clay soil - longer intervals, deeper watering")

    if humidity > HUMID_PERCENT:
        notes.append("High humidity - monitor for disease risk")
    if wind_kmh * ReferenceETCalculator.KMH_TO_MS > WINDY_MS:
        notes.append("Windy conditions - may increase water loss")
    if rained_out:
        should_irrigate = False
        notes.append("Recent rainfall - irrigation not needed")

    return IrrigationRecommendation(
        shouldIrrigate=should_irrigate,
        duration=round(duration, 2),
        frequency=frequency,
        notes=notes,
    )


def confidence(snapshot: WeatherSnapshot, rainfall: Optional[float] = None) -> Confidence:
    """How much of the ET0 rests on measured rather than estimated inputs"""
    current = snapshot.current
    location = snapshot.location
    score = 0
    if current.solarRadiation is not None:
        score += 2
    if rainfall is not None:
        score += 1
    if current.humidity > 0:
        score += 1
    if current.windSpeed >= 0:
        score += 1
    if location.elevation is not None and location.elevation > 0:
        score += 1
    if abs(location.latitude) > 0:
        score += 1

    if score >= 6:
        return Confidence.HIGH
    if score >= 4:
        return Confidence.MEDIUM
    return Confidence.LOW
