from datetime import datetime, timedelta

import pytest

from custom_components.spearfishing_catch_predictor.forecast_index import (
    conditions_from_snapshot,
    forecast_days,
    snapshot_at,
    snapshot_for_slot,
)


def make_forecast(weather_hours=7 * 24, marine_hours=7 * 24):
    start = datetime(2024, 7, 14)
    wtimes = [(start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(weather_hours)]
    mtimes = wtimes[:marine_hours]
    return {
        "weather": {
            "hourly": {
                "time": wtimes,
                "temperature_2m": [20.0 + i / 100 for i in range(weather_hours)],
                "relative_humidity_2m": [70] * weather_hours,
                "precipitation": [0.0] * weather_hours,
                "weather_code": [1] * weather_hours,
                "wind_speed_10m": [float(i % 30) for i in range(weather_hours)],
                "wind_direction_10m": [(i * 15) % 360 for i in range(weather_hours)],
            }
        },
        "marine": {
            "hourly": {
                "time": mtimes,
                "wave_height": [0.5] * marine_hours,
                "wave_direction": [180] * marine_hours,
                "wave_period": [6.0] * marine_hours,
            }
        },
    }


def test_flat_index_is_day_times_24_plus_hour():
    snap = snapshot_at(make_forecast(), 2, 13)
    assert snap.index == 61
    assert snap.time == "2024-07-16T13:00"
    assert snap.weather["temperature_2m"] == pytest.approx(20.61)
    assert snap.marine["wave_height"] == 0.5


def test_first_and_last_hour():
    f = make_forecast()
    assert snapshot_at(f, 0, 0).index == 0
    assert snapshot_at(f, 6, 23).index == 167


def test_beyond_weather_series_returns_none():
    f = make_forecast()
    assert snapshot_at(f, 7, 0) is None
    assert snapshot_at(make_forecast(weather_hours=30), 1, 6) is None


@pytest.mark.parametrize("day,hour", [(-1, 5), (0, -1), (0, 24)])
def test_invalid_day_or_hour_returns_none(day, hour):
    assert snapshot_at(make_forecast(), day, hour) is None


def test_shorter_marine_series_gives_weather_only():
    f = make_forecast(marine_hours=5 * 24)
    snap = snapshot_at(f, 5, 3)
    assert snap is not None
    assert snap.weather["wind_speed_10m"] == float((5 * 24 + 3) % 30)
    assert snap.marine == {}
    assert not snap.has_marine
    assert snapshot_at(f, 4, 23).has_marine


def test_missing_or_malformed_forecast():
    assert snapshot_at(None, 0, 0) is None
    assert snapshot_at({}, 0, 0) is None
    assert snapshot_at({"weather": {"hourly": {"time": "2024"}}}, 0, 0) is None


def test_short_value_array_yields_none_field():
    f = make_forecast()
    f["weather"]["hourly"]["weather_code"] = [1, 2]
    snap = snapshot_at(f, 0, 5)
    assert snap.weather["weather_code"] is None
    assert snap.weather["temperature_2m"] == pytest.approx(20.05)


def test_snapshot_for_slot_uses_centre_hour():
    f = make_forecast()
    assert snapshot_for_slot(f, 1, "morning").index == 24 + 9
    assert snapshot_for_slot(f, 0, "night").index == 3
    assert snapshot_for_slot(f, 0, "brunch") is None


def test_forecast_days():
    assert forecast_days(make_forecast()) == 7
    assert forecast_days(make_forecast(weather_hours=50)) == 2
    assert forecast_days(None) == 0


def test_conditions_from_snapshot():
    snap = snapshot_at(make_forecast(), 0, 10)
    c = conditions_from_snapshot(snap, moon_phase=0.3, tide_coefficient=80, tide_type="rising")
    assert c.temperature == pytest.approx(20.1)
    assert c.wind_speed == 10.0
    assert c.wind_direction == 150.0
    assert c.wave_height == 0.5
    assert c.wave_period == 6.0
    assert c.moon_phase == 0.3
    assert c.tide_coefficient == 80.0
    assert c.tide_type == "rising"


def test_conditions_without_marine_leave_waves_unknown():
    snap = snapshot_at(make_forecast(marine_hours=0), 0, 10)
    c = conditions_from_snapshot(snap)
    assert c.wave_height is None
    assert c.wave_period is None
    assert "wave_height" not in c.known_fields()
