# Coordinator: fetches the forecast, derives current and per-day conditions, and runs the match finder

from datetime import datetime, timedelta
import async_timeout
import logging
import time
from typing import Any, Dict, List, Optional

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .const import DEFAULT_MAX_RESULTS, DEFAULT_MIN_SCORE, DEFAULT_TIME_SLOT, DOMAIN, FETCH_CACHE_TTL, FORECAST_DAYS, TIME_SLOTS
from .forecast_index import conditions_from_snapshot, forecast_days, snapshot_at, snapshot_for_slot
from .match_finder import find_matches
from .models import Conditions, ForecastSnapshot
from .similarity import SimilarityConfig
from .solunar import PHASE_DISPLAY_NAMES, format_period_range, label_for_phase, moon_phase, solunar_periods
from .tide_proxy import TideProxy
from .unit_helpers import weather_code_label, wind_direction_label

_LOGGER = logging.getLogger(__name__)


def _moon_block(phase: float) -> Dict[str, Any]:
    label = label_for_phase(phase)
    return {"phase": round(phase, 3), "label": label.value, "name": PHASE_DISPLAY_NAMES[label]}


def _weather_block(snapshot: Optional[ForecastSnapshot]) -> Dict[str, Any]:
    if snapshot is None:
        return {}
    w = snapshot.weather
    return {
        "time": snapshot.time,
        "description": weather_code_label(w.get("weather_code")),
        "humidity": w.get("relative_humidity_2m"),
        "precipitation": w.get("precipitation"),
        "wind_direction_label": wind_direction_label(w.get("wind_direction_10m")),
        "wave_direction": snapshot.marine.get("wave_direction"),
    }


def _to_forecast_time(now: datetime, forecast: Optional[Dict[str, Any]]) -> datetime:
    """Express `now` in the forecast's timezone; hourly index 0 is midnight there."""
    tz_name = ((forecast or {}).get("weather") or {}).get("timezone")
    tz = dt_util.get_time_zone(tz_name) if tz_name else None
    if tz is None:
        return now
    return now.astimezone(tz)


class CatchPredictorCoordinator(DataUpdateCoordinator):
    def __init__(
        self,
        hass,
        entry_id: str,
        fetcher,
        dive_log,
        lat: float,
        lon: float,
        update_interval: int,
        location_id: Optional[str] = None,
        time_slot: str = DEFAULT_TIME_SLOT,
        min_score: float = DEFAULT_MIN_SCORE,
        max_results: int = DEFAULT_MAX_RESULTS,
        only_with_catches: bool = False,
        similarity_config: Optional[SimilarityConfig] = None,
    ):
        """
        - fetcher: WeatherFetcher (or anything with async fetch_forecast(days)).
        - dive_log: a loaded DiveLogLoader.
        - time_slot: slot whose centre hour is used for the daily outlook.
        """
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=update_interval),
        )
        if time_slot not in TIME_SLOTS:
            raise ValueError(f"Unknown time slot '{time_slot}'")
        self.entry_id = entry_id
        self.fetcher = fetcher
        self.dive_log = dive_log
        self.lat = lat
        self.lon = lon
        self.location_id = location_id or None
        self.time_slot = time_slot
        self.min_score = float(min_score)
        self.max_results = int(max_results)
        self.only_with_catches = bool(only_with_catches)
        self.similarity_config = similarity_config
        self._tide_proxy = TideProxy(self.lat, self.lon)

    async def _async_get_forecast(self) -> Dict[str, Any]:
        """Shaped forecast, memoised per location in hass.data for FETCH_CACHE_TTL seconds."""
        cache_dict = self.hass.data.setdefault(DOMAIN, {}).setdefault("fetch_cache", {})
        cache_key = (round(float(self.lat), 4), round(float(self.lon), 4), "hourly", FORECAST_DAYS)
        cached = cache_dict.get(cache_key)
        if cached and (time.time() - float(cached.get("fetched_at", 0))) < FETCH_CACHE_TTL:
            _LOGGER.debug("Using cached forecast for %s", cache_key)
            return cached["data"]
        forecast = await self.fetcher.fetch_forecast(days=FORECAST_DAYS)
        cache_dict[cache_key] = {"fetched_at": time.time(), "data": forecast}
        return forecast

    async def _async_update_data(self):
        """Fetch the forecast and build the report. Fetch errors propagate."""
        async with async_timeout.timeout(60):
            forecast = await self._async_get_forecast()
        return self.build_report(forecast, dt_util.now())

    def _conditions_at(self, snapshot: Optional[ForecastSnapshot], moment: datetime) -> Conditions:
        phase = moon_phase(moment)
        coef = self._tide_proxy.tide_coefficient(moment)
        tide_type = self._tide_proxy.tide_type_at(moment)
        if snapshot is None:
            # outside the forecast: astronomical factors only
            return Conditions(moon_phase=phase, tide_coefficient=coef, tide_type=tide_type)
        return conditions_from_snapshot(snapshot, moon_phase=phase, tide_coefficient=coef, tide_type=tide_type)

    def _matches(self, conditions: Conditions, history) -> List[Any]:
        return find_matches(
            conditions,
            history,
            self.min_score,
            self.max_results,
            location_id=self.location_id,
            only_with_catches=self.only_with_catches,
            config=self.similarity_config,
        )

    def build_report(self, forecast: Dict[str, Any], now: datetime) -> Dict[str, Any]:
        """Current conditions and matches, solunar periods, tides and the daily outlook.

        `now` is timezone-aware. It is moved into the forecast's timezone (the dive spot's),
        whose midnight starts day 0.
        """
        now = _to_forecast_time(now, forecast)
        history = self.dive_log.get_history()
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        snapshot = snapshot_at(forecast, 0, now.hour)
        if snapshot is None:
            _LOGGER.warning("Forecast does not cover hour %d of today; matching on moon and tide only", now.hour)
        conditions = self._conditions_at(snapshot, now)
        matches = self._matches(conditions, history)

        periods = solunar_periods(now, self.lat)
        tides = self._tide_proxy.day_summary(day_start, now)

        slot = TIME_SLOTS[self.time_slot]
        outlook: List[Dict[str, Any]] = []
        for day in range(forecast_days(forecast)):
            moment = day_start + timedelta(days=day, hours=slot["hour_center"])
            day_conditions = self._conditions_at(snapshot_for_slot(forecast, day, self.time_slot), moment)
            day_matches = self._matches(day_conditions, history)
            best = day_matches[0] if day_matches else None
            outlook.append(
                {
                    "date": moment.date().isoformat(),
                    "slot": slot["name"],
                    "moon": _moon_block(day_conditions.moon_phase),
                    "tide_coefficient": day_conditions.tide_coefficient,
                    "match_count": len(day_matches),
                    "best_score": int(round(best.score * 100)) if best else None,
                    "best_match": best.summary if best else None,
                    "species": list(best.species) if best else [],
                }
            )

        _LOGGER.debug(
            "Report for %s: %d dives analysed, %d matches, best=%s",
            self.entry_id,
            len(history),
            len(matches),
            matches[0].score if matches else None,
        )
        return {
            "updated": now.isoformat(),
            "conditions": conditions.as_dict(),
            "weather": _weather_block(snapshot),
            "dives_analysed": len(history),
            "matches": [m.as_dict() for m in matches],
            "best_score": int(round(matches[0].score * 100)) if matches else None,
            "moon": _moon_block(conditions.moon_phase),
            "solunar": [dict(p.as_dict(), range=format_period_range(p)) for p in periods],
            "tides": tides,
            "outlook": outlook,
        }
