"""Tests for FAO-56 reference and crop evapotranspiration."""

from datetime import date

import pytest

from agents.evapotranspiration.models import ReferenceETInputs
from agents.evapotranspiration.service import (
    ET0_MAX_MM,
    ETcAggregator,
    ReferenceETCalculator,
    require_forecast,
)
from core.exceptions import InsufficientWeatherDataError


def _inputs(**overrides):
    values = {
        "on_date": date(2024, 4, 15),
        "temperature": 28.0,
        "humidity": 65.0,
        "wind_speed_kmh": 12.0,
        "tmax": 32.0,
        "tmin": 22.0,
        "latitude": 19.08,
        "elevation_m": 200.0,
        "pressure_hpa": 1013.0,
        "solar_radiation": 20.0,
    }
    values.update(overrides)
    return ReferenceETInputs(**values)


@pytest.fixture
def calculator():
    return ReferenceETCalculator()


@pytest.fixture
def aggregator():
    return ETcAggregator.from_config({})


class TestReferenceETCalculator:
    """Tests for the Penman-Monteith ET0 calculation."""

    def test_typical_conditions(self, calculator):
        """Warm humid day gives a mid-range ET0."""
        result = calculator.calculate(_inputs())

        assert 4.0 < result.calculated < 6.5
        assert result.external is None
        assert result.effective == result.calculated
        assert result.trace.et0Source == "calculated"
        assert result.trace.warnings == []

    def test_trace_quantities(self, calculator):
        """Trace exposes the intermediate physical quantities."""
        trace = calculator.calculate(_inputs()).trace

        assert trace.es == pytest.approx(3.78, abs=0.01)
        assert trace.ea == pytest.approx(0.65 * trace.es, abs=0.001)
        assert trace.vpd == pytest.approx(trace.es - trace.ea, abs=0.001)
        assert trace.pressureSource == "measured"
        assert trace.pressureKpa == pytest.approx(101.3)
        assert trace.gamma == pytest.approx(0.000665 * 101.3, abs=1e-5)
        assert trace.u2 == pytest.approx(12 / 3.6 * 0.748, abs=0.001)
        assert trace.solarRadiationSource == "measured"
        assert trace.rns == pytest.approx(0.77 * 20.0, abs=0.001)
        assert trace.rso > trace.rs
        assert trace.dayOfYear == 106

    def test_barometric_pressure_without_measurement(self, calculator):
        """Elevation formula is used when no pressure is reported."""
        trace = calculator.calculate(_inputs(pressure_hpa=None, elevation_m=1000.0)).trace

        assert trace.pressureSource == "elevation"
        assert trace.pressureKpa == pytest.approx(90.0, abs=0.1)

    def test_implausible_pressure_falls_back(self, calculator):
        """A 50 hPa station reading is ignored with a warning."""
        trace = calculator.calculate(_inputs(pressure_hpa=50.0)).trace

        assert trace.pressureSource == "elevation"
        assert any("pressure" in w for w in trace.warnings)

    def test_measured_pressure_disabled(self):
        calculator = ReferenceETCalculator({"use_measured_pressure": False})
        trace = calculator.calculate(_inputs()).trace
        assert trace.pressureSource == "elevation"

    def test_solar_radiation_estimated_from_uv(self, calculator):
        """Without measured Rs, UV index and cloud cover stand in."""
        trace = calculator.calculate(_inputs(solar_radiation=None, uv_index=11.0, cloud_cover=0.0)).trace

        assert trace.solarRadiationSource == "uv_cloud_estimate"
        assert trace.rs == pytest.approx(25.0)

    def test_overcast_night_estimate_is_zero(self, calculator):
        trace = calculator.calculate(_inputs(solar_radiation=None, uv_index=0.0, cloud_cover=100.0)).trace
        assert trace.rs == 0.0

    def test_radiation_follows_evaluation_date(self, calculator):
        """Extraterrestrial radiation is computed for the supplied date."""
        january = calculator.calculate(_inputs(on_date=date(2024, 1, 10))).trace
        june = calculator.calculate(_inputs(on_date=date(2024, 6, 10))).trace

        assert january.radiationDate == date(2024, 1, 10)
        assert june.ra > january.ra
        assert june.rso > january.rso

    def test_polar_night_radiation_is_zero(self, calculator):
        assert calculator.extraterrestrial_radiation(80.0, 355) == 0.0


class TestReferenceETBounds:
    """ET0 always stays inside [0, 15] mm/day."""

    @pytest.mark.parametrize("overrides", [
        {"temperature": 48.0, "humidity": 2.0, "wind_speed_kmh": 150.0, "tmax": 50.0, "tmin": 35.0,
         "solar_radiation": 35.0},
        {"temperature": -10.0, "humidity": 100.0, "wind_speed_kmh": 0.0, "tmax": -5.0, "tmin": -15.0,
         "solar_radiation": 0.0},
        {"temperature": 5.0, "humidity": 95.0, "wind_speed_kmh": 2.0, "tmax": 8.0, "tmin": 2.0,
         "solar_radiation": 1.0, "on_date": date(2024, 12, 21), "latitude": 60.0},
    ])
    def test_et0_within_bounds(self, calculator, overrides):
        result = calculator.calculate(_inputs(**overrides))

        assert 0.0 <= result.calculated <= ET0_MAX_MM
        assert 0.0 <= result.effective <= ET0_MAX_MM

    def test_extreme_heat_is_clamped_with_warning(self, calculator):
        result = calculator.calculate(_inputs(
            temperature=55.0, humidity=0.0, wind_speed_kmh=190.0, tmax=58.0, tmin=45.0, solar_radiation=40.0,
        ))

        assert result.calculated == ET0_MAX_MM
        assert result.trace.et0Raw > ET0_MAX_MM
        assert any("clamped" in w for w in result.trace.warnings)

    def test_humidity_above_100_is_clamped(self, calculator):
        trace = calculator.calculate(_inputs(humidity=120.0)).trace

        assert trace.humidity == 100.0
        assert trace.vpd == 0.0
        assert any("humidity" in w.lower() for w in trace.warnings)

    def test_negative_wind_is_clamped(self, calculator):
        trace = calculator.calculate(_inputs(wind_speed_kmh=-5.0)).trace

        assert trace.u2 == 0.0
        assert any("wind" in w.lower() for w in trace.warnings)

    def test_implausible_temperature_does_not_raise(self, calculator):
        result = calculator.calculate(_inputs(temperature=-300.0))

        assert result.trace.temperature == -50.0
        assert 0.0 <= result.calculated <= ET0_MAX_MM

    def test_inverted_extremes_are_swapped(self, calculator):
        swapped = calculator.calculate(_inputs(tmax=22.0, tmin=32.0))
        normal = calculator.calculate(_inputs())

        assert swapped.calculated == pytest.approx(normal.calculated)
        assert any("swapped" in w for w in swapped.trace.warnings)


class TestExternalReferenceET:
    """Provider ET0 is preferred when it is plausible."""

    def test_external_preferred(self, calculator):
        result = calculator.calculate(_inputs(external_et0=4.0))

        assert result.external == 4.0
        assert result.effective == 4.0
        assert result.trace.et0Source == "external"

    def test_external_ignored_when_disabled(self):
        calculator = ReferenceETCalculator({"prefer_external_et0": False})
        result = calculator.calculate(_inputs(external_et0=4.0))

        assert result.external == 4.0
        assert result.effective == result.calculated

    @pytest.mark.parametrize("value", [-1.0, 25.0, float("nan")])
    def test_implausible_external_is_dropped(self, calculator, value):
        result = calculator.calculate(_inputs(external_et0=value))

        assert result.external is None
        assert result.effective == result.calculated
        assert any("external" in w for w in result.trace.warnings)


class TestETcAggregator:
    """Tests for crop ET roll-ups."""

    def test_scenario_flowering(self, aggregator, snapshot):
        """Flowering vines under warm conditions need 2-5 mm/day."""
        etc, trace = aggregator.calculate(snapshot, "Flowering")

        assert etc.cropCoefficient == 0.7
        assert etc.growthStage == "Flowering"
        assert 2.0 <= etc.dailyETc <= 5.0
        assert etc.weeklyETc == round(etc.dailyETc * 7, 2)
        assert etc.monthlyETc == round(etc.dailyETc * 30, 2)
        assert trace.radiationDate == snapshot.forecast[0].date

    def test_external_and_calculated_reported(self, aggregator, make_snapshot):
        snapshot = make_snapshot(referenceET=4.0)
        etc, _ = aggregator.calculate(snapshot, "Fruit set")

        assert etc.referenceET == 4.0
        assert etc.referenceETExternal == 4.0
        assert etc.dailyETc == 3.2
        assert etc.dailyETcExternal == 3.2
        assert etc.dailyETcCalculated == pytest.approx(etc.referenceETCalculated * 0.8, abs=0.01)
        assert etc.weeklyETc == 22.4
        assert etc.monthlyETc == 96.0

    def test_no_external_gives_null(self, aggregator, snapshot):
        etc, _ = aggregator.calculate(snapshot, "Veraison")

        assert etc.referenceETExternal is None
        assert etc.dailyETcExternal is None
        assert etc.dailyETc == etc.dailyETcCalculated

    def test_unknown_stage_defaults(self, aggregator, snapshot):
        etc, _ = aggregator.calculate(snapshot, "Mystery stage")

        assert etc.cropCoefficient == 0.7
        assert etc.growthStage == "Mystery stage"

    def test_deterministic(self, aggregator, snapshot):
        first, _ = aggregator.calculate(snapshot, "Harvest")
        second, _ = aggregator.calculate(snapshot, "Harvest")

        assert first == second

    def test_empty_forecast_raises(self, aggregator, make_snapshot):
        with pytest.raises(InsufficientWeatherDataError):
            aggregator.calculate(make_snapshot(forecast=[]), "Flowering")


class TestPerDayETc:
    """Tests for per-day ETc with stage transitions."""

    def test_one_row_per_forecast_day(self, aggregator, snapshot):
        rows = aggregator.per_day(snapshot, "Flowering")

        assert [row.date for row in rows] == [day.date.isoformat() for day in snapshot.forecast]
        assert all(row.cropCoefficient == 0.7 for row in rows)
        assert all(0.0 <= row.etc <= ET0_MAX_MM for row in rows)

    def test_stage_transition_applies_from_its_date(self, aggregator, snapshot):
        transition_day = snapshot.forecast[3].date
        rows = aggregator.per_day(snapshot, "Flowering", {transition_day: "Fruit set"})

        assert [row.growthStage for row in rows[:3]] == ["Flowering"] * 3
        assert [row.growthStage for row in rows[3:]] == ["Fruit set"] * 4
        assert rows[3].cropCoefficient == 0.8

    def test_long_forecast_truncated(self, aggregator, make_snapshot):
        rows = aggregator.per_day(make_snapshot(days=10), "Dormant")
        assert len(rows) == 7

    def test_short_forecast_uses_available_days(self, make_snapshot):
        assert len(require_forecast(make_snapshot(days=3))) == 3

    def test_first_day_matches_today(self, aggregator, snapshot):
        """Day 0 is evaluated from today's measured pressure and radiation."""
        etc, _ = aggregator.calculate(snapshot, "Flowering")
        rows = aggregator.per_day(snapshot, "Flowering")

        assert rows[0].referenceET == etc.referenceET
        assert rows[0].etc == etc.dailyETc


class TestGrowthStageFallback:
    """Calendar stage used when the caller gives none."""

    @pytest.mark.parametrize("stage", [None, "", "   "])
    def test_today_uses_forecast_month(self, aggregator, snapshot, stage):
        etc, _ = aggregator.calculate(snapshot, stage)

        assert etc.growthStage == "Flowering"
        assert etc.cropCoefficient == 0.7

    def test_given_stage_wins(self, aggregator, snapshot):
        etc, _ = aggregator.calculate(snapshot, "Dormant")
        assert etc.growthStage == "Dormant"

    def test_per_day_follows_each_date(self, aggregator, make_snapshot, make_forecast):
        snapshot = make_snapshot(forecast=make_forecast(start=date(2024, 6, 28)))
        rows = aggregator.per_day(snapshot)

        assert [row.growthStage for row in rows] == ["Fruit set"] * 3 + ["Veraison"] * 4
        assert [row.cropCoefficient for row in rows] == [0.8] * 7

    def test_transition_overrides_calendar(self, aggregator, snapshot):
        change = snapshot.forecast[5].date
        rows = aggregator.per_day(snapshot, None, {change: "Veraison"})

        assert [row.growthStage for row in rows[:5]] == ["Flowering"] * 5
        assert [row.growthStage for row in rows[5:]] == ["Veraison"] * 2
