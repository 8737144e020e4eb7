"""Unit and label helper utilities shared across the integration.

Numeric helpers coerce to float and return None on failure.
Canonical units used by the integration:
- wind speed: kilometers/hour (km/h), as logged by divers and served by Open-Meteo
- wind direction: degrees clockwise from north (0..360)
- wave height: meters (m), wave period: seconds (s)
- temperature: Celsius (°C)
"""
from typing import Any, Optional, Union
import logging

_LOGGER = logging.getLogger(__name__)


def _to_float(v: Any) -> Optional[float]:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


# ---- Speed converters ----

def m_s_to_kmh(v: Any) -> Optional[float]:
    """Convert m/s to km/h."""
    f = _to_float(v)
    if f is None:
        return None
    return f * 3.6


def knots_to_kmh(v: Any) -> Optional[float]:
    """Convert knots to km/h."""
    f = _to_float(v)
    if f is None:
        return None
    return f * 1.852


def wind_to_kmh(v: Any, unit: Optional[str]) -> Optional[float]:
    """Convert a wind value with a unit hint ("km/h", "m/s", "kn", "mph") to km/h."""
    f = _to_float(v)
    if f is None:
        return None
    u = str(unit or "km/h").strip().lower()
    if u in ("km/h", "kmh", "kph"):
        return f
    if u in ("m/s", "ms", "mps"):
        return m_s_to_kmh(f)
    if u in ("kn", "kt", "knots"):
        return knots_to_kmh(f)
    if u == "mph":
        return f * 1.609344
    raise ValueError(f"Unknown wind unit: {unit!r}")


# ---- Wind direction ----

_COMPASS_DEGREES = {
    "N": 0.0, "NNE": 22.5, "NE": 45.0, "ENE": 67.5,
    "E": 90.0, "ESE": 112.5, "SE": 135.0, "SSE": 157.5,
    "S": 180.0, "SSW": 202.5, "SW": 225.0, "WSW": 247.5,
    "W": 270.0, "WNW": 292.5, "NW": 315.0, "NNW": 337.5,
}

_LABELS_8 = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def wind_direction_to_degrees(direction: Union[str, float, int, None]) -> Optional[float]:
    """Degrees from a number or a 16-point compass label; None if unknown."""
    if direction is None:
        return None
    if isinstance(direction, str):
        label = direction.strip().upper()
        if label in _COMPASS_DEGREES:
            return _COMPASS_DEGREES[label]
        deg = _to_float(label)
    else:
        deg = _to_float(direction)
    if deg is None:
        return None
    return deg % 360.0


def wind_direction_label(deg: Optional[float]) -> Optional[str]:
    """8-point compass label for a direction in degrees."""
    if deg is None:
        return None
    return _LABELS_8[int(round((float(deg) % 360.0) / 45.0)) % 8]


# ---- Circular distances ----

def angular_difference(a: float, b: float) -> float:
    """Smallest angle between two directions, in [0, 180]."""
    diff = abs(float(a) - float(b)) % 360.0
    return 360.0 - diff if diff > 180.0 else diff


def phase_difference(a: float, b: float) -> float:
    """Smallest distance between two cycle fractions, in [0, 0.5]."""
    diff = abs(float(a) - float(b)) % 1.0
    return 1.0 - diff if diff > 0.5 else diff


# ---- Open-Meteo WMO weather codes ----

WEATHER_CODE_LABELS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Dense drizzle",
    61: "Light rain",
    63: "Rain",
    65: "Heavy rain",
    71: "Light snow",
    73: "Snow",
    75: "Heavy snow",
    80: "Rain showers",
    81: "Rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with heavy hail",
}


def weather_code_label(code: Any) -> Optional[str]:
    if code is None:
        return None
    try:
        c = int(code)
    except (TypeError, ValueError):
        return None
    return WEATHER_CODE_LABELS.get(c, f"Code {c}")
