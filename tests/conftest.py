"""Shared test fixtures."""

from datetime import date, timedelta

import pytest

from agents.evapotranspiration.models import ForecastDay, Location, WeatherObservation, WeatherSnapshot

START_DATE = date(2024, 4, 15)


def _forecast(days=7, start=START_DATE, **overrides):
    values = {
        "maxTemp": 32.0,
        "minTemp": 22.0,
        "avgTemp": 27.0,
        "precipitation": 0.0,
        "precipitationProbability": 0.0,
        "windSpeed": 12.0,
    }
    values.update(overrides)
    return [ForecastDay(date=start + timedelta(days=i), **values) for i in range(days)]


@pytest.fixture
def make_snapshot():
    """Factory for weather snapshots over a dry week near Mumbai."""

    def factory(current=None, forecast=None, days=7, elevation=200.0, latitude=19.08, **day_overrides):
        observation = {
            "temperature": 28.0,
            "humidity": 65.0,
            "windSpeed": 12.0,
            "pressure": 1013.0,
            "precipitation": 0.0,
            "uvIndex": 7.0,
            "cloudCover": 20.0,
            "solarRadiation": 20.0,
        }
        observation.update(current or {})
        return WeatherSnapshot(
            current=WeatherObservation(**observation),
            forecast=forecast if forecast is not None else _forecast(days, **day_overrides),
            location=Location(latitude=latitude, longitude=72.88, elevation=elevation),
        )

    return factory


@pytest.fixture
def make_forecast():
    """Factory for uniform forecast days starting on 2024-04-15."""
    return _forecast


@pytest.fixture
def snapshot(make_snapshot):
    """Scenario A conditions: warm, moderately humid, moderate radiation."""
    return make_snapshot()


@pytest.fixture
def snapshot_payload(snapshot):
    """The scenario A snapshot as a JSON request body."""
    return snapshot.model_dump(mode="json")
