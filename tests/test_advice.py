"""Tests for rain-adjusted irrigation need, recommendations and confidence."""

from datetime import date

import pytest

from agents.evapotranspiration.models import Confidence, GrowthStage, IrrigationMethod
from agents.evapotranspiration.service import (
    ETcAggregator,
    confidence,
    irrigation_need,
    recommend,
)

CRITICAL_NOTE = "Critical growth stage - maintain consistent moisture"
VERAISON_NOTE = "Veraison stage - controlled water stress improves fruit quality"
DORMANT_NOTE = "Dormant season - irrigation not recommended"
SANDY_NOTE = "Sandy soil - increase frequency, reduce duration"
CLAY_NOTE = "Clay soil - longer intervals, deeper watering"
HUMID_NOTE = "High humidity - monitor for disease risk"
WINDY_NOTE = "Windy conditions - may increase water loss"
RAIN_NOTE = "Recent rainfall - irrigation not needed"


@pytest.fixture
def aggregator():
    return ETcAggregator.from_config({})


class TestIrrigationNeed:
    """Tests for crop ET left after effective rainfall."""

    def test_dry_day(self):
        assert irrigation_need(4.0, 0.0) == (0.0, 4.0)

    def test_only_80_percent_of_rain_counts(self):
        assert irrigation_need(4.0, 2.5) == (2.0, 2.0)

    def test_need_never_negative(self):
        assert irrigation_need(4.0, 10.0) == (8.0, 0.0)

    def test_negative_rain_ignored(self):
        assert irrigation_need(3.0, -1.0) == (0.0, 3.0)


class TestRecommendByStage:
    """Stage thresholds and notes."""

    @pytest.mark.parametrize("stage", ["Budbreak", "Leaf development", "Harvest", "Post-harvest", "Mystery"])
    def test_default_threshold(self, stage):
        assert recommend(2.5, stage).shouldIrrigate is True
        low = recommend(2.0, stage)
        assert low.shouldIrrigate is False
        assert low.notes == []

    @pytest.mark.parametrize("stage", ["Flowering", "fruit_set"])
    def test_critical_stages_irrigate_earlier(self, stage):
        result = recommend(1.6, stage)

        assert result.shouldIrrigate is True
        assert result.notes == [CRITICAL_NOTE]
        assert recommend(1.5, stage).shouldIrrigate is False

    def test_veraison_tolerates_stress(self):
        mild = recommend(2.5, GrowthStage.VERAISON)
        assert mild.shouldIrrigate is False
        assert mild.notes == [VERAISON_NOTE]
        assert recommend(3.5, GrowthStage.VERAISON).shouldIrrigate is True

    def test_dormant_never_irrigates(self):
        result = recommend(8.0, "Dormant", soil_type="sandy")

        assert result.shouldIrrigate is False
        assert result.duration == 0.0
        assert result.frequency == "as needed"
        assert result.notes == [DORMANT_NOTE]


class TestRecommendByMethodAndSoil:
    """Run time and frequency per irrigation system and soil texture."""

    @pytest.mark.parametrize("method,need,duration,frequency", [
        (IrrigationMethod.DRIP, 3.0, 1.5, "every 2 days"),
        (IrrigationMethod.DRIP, 5.0, 2.5, "daily"),
        (IrrigationMethod.SPRINKLER, 3.0, 2.1, "every 2-3 days"),
        (IrrigationMethod.SURFACE, 3.0, 3.6, "weekly"),
    ])
    def test_methods(self, method, need, duration, frequency):
        result = recommend(need, "Harvest", method)

        assert result.shouldIrrigate is True
        assert result.duration == duration
        assert result.frequency == frequency

    def test_method_accepts_plain_string(self):
        assert recommend(3.0, "Harvest", "surface").frequency == "weekly"

    def test_sandy_soil(self):
        result = recommend(3.0, "Harvest", IrrigationMethod.DRIP, "Sandy")

        assert result.duration == 1.8
        assert result.frequency == "more frequent, shorter durations"
        assert result.notes == [SANDY_NOTE]

    def test_clay_soil(self):
        result = recommend(3.0, "Harvest", IrrigationMethod.DRIP, "clay")

        assert result.duration == 1.2
        assert result.frequency == "less frequent, longer durations"
        assert result.notes == [CLAY_NOTE]

    def test_medium_soil_unchanged(self):
        result = recommend(3.0, "Harvest", IrrigationMethod.DRIP, "medium")

        assert result.duration == 1.5
        assert result.notes == []


class TestRecommendWeatherNotes:
    """Humidity, wind and rain notes."""

    def test_high_humidity(self):
        assert HUMID_NOTE in recommend(1.0, "Harvest", humidity=85.0).notes
        assert HUMID_NOTE not in recommend(1.0, "Harvest", humidity=80.0).notes

    def test_wind_threshold_in_metres_per_second(self):
        assert WINDY_NOTE in recommend(1.0, "Harvest", wind_kmh=20.0).notes
        assert WINDY_NOTE not in recommend(1.0, "Harvest", wind_kmh=15.0).notes

    def test_heavy_rain_cancels_irrigation(self):
        result = recommend(5.0, "Harvest", IrrigationMethod.DRIP, "sandy", rainfall=12.0)

        assert result.shouldIrrigate is False
        assert result.duration == 0.0
        assert result.notes == [RAIN_NOTE]

    def test_notes_order(self):
        result = recommend(1.6, "Flowering", humidity=90.0, wind_kmh=30.0, rainfall=15.0)
        assert result.notes == [CRITICAL_NOTE, HUMID_NOTE, WINDY_NOTE, RAIN_NOTE]


class TestConfidence:
    """Confidence from which inputs were measured."""

    def test_measured_radiation_is_high(self, snapshot):
        assert confidence(snapshot, 0.0) == Confidence.HIGH

    def test_estimated_radiation_is_medium(self, make_snapshot):
        snapshot = make_snapshot(current={"solarRadiation": None})
        assert confidence(snapshot, 0.0) == Confidence.MEDIUM

    def test_sparse_inputs_are_low(self, make_snapshot):
        snapshot = make_snapshot(current={"solarRadiation": None}, elevation=None, latitude=0.0)
        assert confidence(snapshot, 0.0) == Confidence.LOW

    def test_missing_rainfall_lowers_score(self, make_snapshot):
        snapshot = make_snapshot(current={"humidity": 0.0}, elevation=None, latitude=0.0)
        assert confidence(snapshot, 0.0) == Confidence.MEDIUM
        assert confidence(snapshot) == Confidence.LOW


class TestAdvise:
    """Advice assembled from today's ETc and forecast rain."""

    def test_dry_day(self, aggregator, snapshot):
        etc, _ = aggregator.calculate(snapshot, "Flowering")
        advice = aggregator.advise(snapshot, etc)

        assert advice.effectiveRainfall == 0.0
        assert advice.irrigationNeed == etc.dailyETc
        assert advice.recommendation.shouldIrrigate is (etc.dailyETc > 1.5)
        assert advice.confidence == Confidence.HIGH

    def test_rain_reduces_need(self, aggregator, make_snapshot):
        snapshot = make_snapshot(precipitation=2.5)
        etc, _ = aggregator.calculate(snapshot, "Flowering")
        advice = aggregator.advise(snapshot, etc, IrrigationMethod.SPRINKLER, "clay")

        assert advice.effectiveRainfall == 2.0
        assert advice.irrigationNeed == round(max(0.0, etc.dailyETc - 2.0), 2)

    def test_calendar_stage_drives_advice(self, aggregator, make_snapshot, make_forecast):
        snapshot = make_snapshot(forecast=make_forecast(start=date(2024, 1, 10)))
        etc, _ = aggregator.calculate(snapshot)
        advice = aggregator.advise(snapshot, etc)

        assert etc.growthStage == "Dormant"
        assert advice.recommendation.shouldIrrigate is False
        assert DORMANT_NOTE in advice.recommendation.notes
