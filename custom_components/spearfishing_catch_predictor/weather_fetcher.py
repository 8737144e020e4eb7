"""
Strict WeatherFetcher for Open-Meteo.

- Fetches 7 days of hourly weather and marine series in the location's local
  time (timezone=auto), so index 0 is local midnight of today.
- Wind is requested in km/h, the unit the dive log and scorer use.
- Raises RuntimeError on HTTP failures or payloads without an 'hourly' dict.
- Returns the shaped forecast {"weather": {"hourly": ...}, "marine": {"hourly": ...}}.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aiohttp

from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import FORECAST_DAYS, OM_BASE, OM_MARINE_BASE
from .forecast_index import MARINE_KEYS, WEATHER_KEYS

_LOGGER = logging.getLogger(__name__)

OM_PARAMS_HOURLY = ",".join(WEATHER_KEYS)
OM_MARINE_PARAMS_HOURLY = ",".join(MARINE_KEYS)


def shape_forecast(weather: Dict[str, Any], marine: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the hourly series (and their units) of the two payloads."""
    return {
        "weather": {
            "hourly": weather.get("hourly") or {},
            "hourly_units": weather.get("hourly_units") or {},
            "timezone": weather.get("timezone"),
        },
        "marine": {
            "hourly": marine.get("hourly") or {},
            "hourly_units": marine.get("hourly_units") or {},
        },
    }


class WeatherFetcher:
    """Strict fetcher for the Open-Meteo forecast and marine endpoints."""

    def __init__(
        self,
        hass,
        latitude: float,
        longitude: float,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        forecast_base: str = OM_BASE,
        marine_base: str = OM_MARINE_BASE,
    ) -> None:
        self.hass = hass
        self.latitude = round(float(latitude), 6)
        self.longitude = round(float(longitude), 6)
        self._session = session
        self._forecast_base = forecast_base
        self._marine_base = marine_base

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = async_get_clientsession(self.hass)
        return self._session

    async def _get_hourly(self, url: str, params: Dict[str, Any], what: str) -> Dict[str, Any]:
        session = self._get_session()
        try:
            async with session.get(url, params=params, timeout=aiohttp.ClientTimeout(total=60)) as resp:
                resp.raise_for_status()
                data = await resp.json()
            if not isinstance(data, dict):
                raise RuntimeError(f"Open-Meteo {what} returned unexpected payload shape (strict)")
            if not isinstance(data.get("hourly"), dict):
                raise RuntimeError(f"Open-Meteo {what} payload missing required 'hourly' dict (strict)")
            return data
        except Exception as exc:
            _LOGGER.exception("Open-Meteo %s REST fetch failed for %s,%s", what, self.latitude, self.longitude)
            raise RuntimeError(f"Open-Meteo {what} REST fetch failed") from exc

    async def fetch_weather_direct(self, days: int = FORECAST_DAYS) -> Dict[str, Any]:
        """Call the forecast endpoint for hourly weather arrays."""
        params = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timezone": "auto",
            "hourly": OM_PARAMS_HOURLY,
            "wind_speed_unit": "kmh",
            "forecast_days": int(days),
        }
        return await self._get_hourly(self._forecast_base, params, "forecast")

    async def fetch_marine_direct(self, days: int = FORECAST_DAYS) -> Dict[str, Any]:
        """Call the marine endpoint for hourly wave arrays."""
        params = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timezone": "auto",
            "hourly": OM_MARINE_PARAMS_HOURLY,
            "forecast_days": int(days),
        }
        return await self._get_hourly(self._marine_base, params, "marine")

    async def fetch_forecast(self, days: int = FORECAST_DAYS) -> Dict[str, Any]:
        """Fetch weather then marine series and shape them for the forecast indexer.

        Weather is required. Without marine data the snapshots carry weather only.
        """
        weather = await self.fetch_weather_direct(days)
        try:
            marine = await self.fetch_marine_direct(days)
        except RuntimeError:
            _LOGGER.warning("Marine forecast unavailable for %s,%s; continuing with weather only", self.latitude, self.longitude)
            marine = {}
        shaped = shape_forecast(weather, marine)
        _LOGGER.debug(
            "Fetched forecast for %s,%s: %d weather hours, %d marine hours",
            self.latitude,
            self.longitude,
            len(shaped["weather"]["hourly"].get("time") or []),
            len(shaped["marine"]["hourly"].get("time") or []),
        )
        return shaped
