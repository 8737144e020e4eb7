"""
Forecast indexer: pick one hour out of a 7-day hourly Open-Meteo forecast.

Expected forecast shape (as produced by WeatherFetcher.fetch_forecast):

  {
    "weather": {"hourly": {"time": [...], "temperature_2m": [...], "relative_humidity_2m": [...],
                           "precipitation": [...], "weather_code": [...],
                           "wind_speed_10m": [...], "wind_direction_10m": [...]}},
    "marine":  {"hourly": {"time": [...], "wave_height": [...], "wave_direction": [...],
                           "wave_period": [...]}},
  }

Both series start at local midnight of day 0. They are not guaranteed to have
the same length. No interpolation is done.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from .const import TIME_SLOTS
from .models import Conditions, ForecastSnapshot

_LOGGER = logging.getLogger(__name__)

HOURS_PER_DAY = 24

WEATHER_KEYS = (
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation",
    "weather_code",
    "wind_speed_10m",
    "wind_direction_10m",
)
MARINE_KEYS = ("wave_height", "wave_direction", "wave_period")


def _hourly(forecast: Optional[Mapping[str, Any]], block: str) -> Mapping[str, Any]:
    if not isinstance(forecast, Mapping):
        return {}
    section = forecast.get(block)
    if not isinstance(section, Mapping):
        return {}
    hourly = section.get("hourly")
    return hourly if isinstance(hourly, Mapping) else {}


def _series_length(hourly: Mapping[str, Any]) -> int:
    times = hourly.get("time")
    return len(times) if isinstance(times, Sequence) and not isinstance(times, str) else 0


def _value_at(hourly: Mapping[str, Any], key: str, index: int) -> Any:
    arr = hourly.get(key)
    if not isinstance(arr, Sequence) or isinstance(arr, str) or index >= len(arr):
        return None
    return arr[index]


def snapshot_at(forecast: Optional[Mapping[str, Any]], day_offset: int, hour: int) -> Optional[ForecastSnapshot]:
    """Return the snapshot at (day_offset, hour), or None outside the weather series."""
    if day_offset < 0 or not 0 <= hour < HOURS_PER_DAY:
        return None

    weather_hourly = _hourly(forecast, "weather")
    weather_len = _series_length(weather_hourly)
    index = day_offset * HOURS_PER_DAY + hour
    if index >= weather_len:
        return None

    weather: Dict[str, Any] = {key: _value_at(weather_hourly, key, index) for key in WEATHER_KEYS}

    marine_hourly = _hourly(forecast, "marine")
    marine: Dict[str, Any] = {}
    if index < _series_length(marine_hourly):
        marine = {key: _value_at(marine_hourly, key, index) for key in MARINE_KEYS}
    else:
        _LOGGER.debug("Marine series ends before index %d; weather only", index)

    return ForecastSnapshot(index=index, time=weather_hourly["time"][index], weather=weather, marine=marine)


def snapshot_for_slot(forecast: Optional[Mapping[str, Any]], day_offset: int, slot_id: str) -> Optional[ForecastSnapshot]:
    """Snapshot at the centre hour of a named time slot (night, morning, ...)."""
    slot = TIME_SLOTS.get(slot_id)
    if slot is None:
        return None
    return snapshot_at(forecast, day_offset, slot["hour_center"])


def forecast_days(forecast: Optional[Mapping[str, Any]]) -> int:
    """Number of whole days covered by the weather series."""
    return _series_length(_hourly(forecast, "weather")) // HOURS_PER_DAY


def _float_or_none(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def conditions_from_snapshot(
    snapshot: ForecastSnapshot,
    moon_phase: Optional[float] = None,
    tide_coefficient: Optional[float] = None,
    tide_type: Optional[str] = None,
) -> Conditions:
    """Map Open-Meteo snapshot keys onto Conditions."""
    weather = snapshot.weather
    marine = snapshot.marine
    return Conditions(
        temperature=_float_or_none(weather.get("temperature_2m")),
        wind_speed=_float_or_none(weather.get("wind_speed_10m")),
        wind_direction=_float_or_none(weather.get("wind_direction_10m")),
        wave_height=_float_or_none(marine.get("wave_height")),
        wave_period=_float_or_none(marine.get("wave_period")),
        tide_coefficient=_float_or_none(tide_coefficient),
        moon_phase=_float_or_none(moon_phase),
        tide_type=tide_type,
    )
