"""Dive log loader for Spearfishing Catch Predictor.

The dive log is the fisher's exported history, a JSON file shaped as:

  {"version": 1, "dives": [
      {"id": "d-1", "date": "2024-07-14", "location_id": "spot-7", "location_name": "Cala Blanca",
       "duration_min": 180, "max_depth_m": 14.5,
       "conditions": {"wind_speed_kmh": 12, "wind_direction": "NE", "wave_height_m": 0.4,
                      "tide_coefficient": 72, "tide_type": "rising", "temperature_c": 24},
       "catches": [{"species": "Dentex", "weight_kg": 2.1}]}]}

A bare list of dives is accepted too. The file as a whole must be readable
and well shaped (else DiveLogError); single rows that cannot be parsed are
skipped and counted. A catch without a species is dropped on its own.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Tuple

from homeassistant.core import HomeAssistant

from .models import Catch, Conditions, HistoricalDive
from .solunar import moon_phase
from .unit_helpers import wind_direction_to_degrees, wind_to_kmh

_LOGGER = logging.getLogger(__name__)

# canonical Conditions field -> accepted keys in a logged record, in order of preference
_CONDITION_KEYS = {
    "temperature": ("temperature", "temperature_c", "air_temperature_c"),
    "wind_speed": ("wind_speed", "wind_speed_kmh"),
    "wind_direction": ("wind_direction", "wind_direction_deg"),
    "wave_height": ("wave_height", "wave_height_m"),
    "wave_period": ("wave_period", "wave_period_s"),
    "tide_coefficient": ("tide_coefficient",),
    "moon_phase": ("moon_phase",),
    "tide_type": ("tide_type",),
}


class DiveLogError(ValueError):
    """Raised when the dive log file cannot be used at all."""


def _pick(row: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for k in keys:
        if row.get(k) is not None:
            return row[k]
    return None


def _to_float(v: Any) -> Optional[float]:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


def _parse_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if "T" in s or " " in s:
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return datetime.fromisoformat(s).date()
    return date.fromisoformat(s)


def parse_conditions(raw: Mapping[str, Any], day: date) -> Conditions:
    """Build Conditions from a logged record; moon phase falls back to the outing date."""
    wind_raw = _pick(raw, _CONDITION_KEYS["wind_speed"])
    tide_type = _pick(raw, _CONDITION_KEYS["tide_type"])
    phase = _to_float(_pick(raw, _CONDITION_KEYS["moon_phase"]))
    if phase is None:
        phase = moon_phase(day)
    return Conditions(
        temperature=_to_float(_pick(raw, _CONDITION_KEYS["temperature"])),
        wind_speed=wind_to_kmh(wind_raw, raw.get("wind_unit")) if wind_raw is not None else None,
        wind_direction=wind_direction_to_degrees(_pick(raw, _CONDITION_KEYS["wind_direction"])),
        wave_height=_to_float(_pick(raw, _CONDITION_KEYS["wave_height"])),
        wave_period=_to_float(_pick(raw, _CONDITION_KEYS["wave_period"])),
        tide_coefficient=_to_float(_pick(raw, _CONDITION_KEYS["tide_coefficient"])),
        moon_phase=phase % 1.0,
        tide_type=str(tide_type).strip().lower() if tide_type else None,
    )


def parse_dive(row: Mapping[str, Any], index: int = 0) -> HistoricalDive:
    """Parse one logged dive. Raises ValueError/TypeError/KeyError on a bad row."""
    if not isinstance(row, Mapping):
        raise TypeError(f"dive #{index} is not an object")
    day = _parse_date(_pick(row, ("date", "dive_date")))

    raw_conditions = row.get("conditions")
    conditions: Optional[Conditions] = None
    if isinstance(raw_conditions, Mapping):
        conditions = parse_conditions(raw_conditions, day)

    catches: List[Catch] = []
    for c in row.get("catches") or []:
        if not isinstance(c, Mapping) or not c.get("species"):
            _LOGGER.warning("Ignoring catch without species in dive #%d", index)
            continue
        catches.append(
            Catch(
                species=str(c["species"]),
                weight_kg=_to_float(c.get("weight_kg")),
                length_cm=_to_float(c.get("length_cm")),
            )
        )

    location = _pick(row, ("location_id", "dive_spot_id"))
    return HistoricalDive(
        dive_id=str(row.get("id", f"dive-{index}")),
        date=day,
        location_id=str(location) if location is not None else None,
        conditions=conditions,
        catches=tuple(catches),
        location_name=row.get("location_name"),
        duration_min=_to_float(row.get("duration_min")),
        max_depth_m=_to_float(row.get("max_depth_m")),
    )


def parse_dive_log(payload: Any) -> Tuple[List[HistoricalDive], int]:
    """Parse a whole log payload. Returns (dives, skipped_row_count)."""
    if isinstance(payload, Mapping):
        rows = payload.get("dives")
        if not isinstance(rows, list):
            raise DiveLogError("Invalid dive log: 'dives' must be a list")
    elif isinstance(payload, list):
        rows = payload
    else:
        raise DiveLogError("Invalid dive log: root must be an object or a list")

    dives: List[HistoricalDive] = []
    skipped = 0
    for i, row in enumerate(rows):
        try:
            dives.append(parse_dive(row, i))
        except (TypeError, ValueError, KeyError) as exc:
            skipped += 1
            _LOGGER.warning("Skipping dive log row %d: %s", i, exc)
    # newest first, as the logbook lists them
    dives.sort(key=lambda d: d.date, reverse=True)
    return dives, skipped


class DiveLogLoader:
    """Load and serve the fisher's dive history from a JSON file."""

    def __init__(self, hass: HomeAssistant, path: str) -> None:
        self.hass = hass
        self.path = path
        self._dives: Optional[List[HistoricalDive]] = None
        self.skipped = 0

    def _resolve_path(self) -> str:
        if os.path.isabs(self.path):
            return self.path
        return self.hass.config.path(self.path)

    async def async_load(self) -> None:
        """Read and parse the dive log. Raises DiveLogError on file-level failures."""
        json_path = self._resolve_path()

        def _read_file() -> Any:
            with open(json_path, "r", encoding="utf-8") as fp:
                return json.load(fp)

        try:
            payload = await self.hass.async_add_executor_job(_read_file)
        except FileNotFoundError as exc:
            _LOGGER.exception("Dive log not found at %s", json_path)
            raise DiveLogError(f"Dive log missing: {json_path}") from exc
        except (OSError, ValueError) as exc:
            _LOGGER.exception("Failed to read dive log %s: %s", json_path, exc)
            raise DiveLogError(f"Failed to read dive log: {json_path}") from exc

        dives, skipped = parse_dive_log(payload)
        version = payload.get("version", "unknown") if isinstance(payload, dict) else "unknown"
        _LOGGER.info(
            "Loaded dive log %s version %s with %d dives (%d rows skipped)", json_path, version, len(dives), skipped
        )
        self._dives = dives
        self.skipped = skipped

    def _ensure_loaded(self) -> None:
        if self._dives is None:
            _LOGGER.error("DiveLogLoader used before the dive log was loaded")
            raise RuntimeError("Dive log not loaded")

    def get_history(self, location_id: Optional[str] = None) -> List[HistoricalDive]:
        """Return logged dives, newest first, optionally for one spot only."""
        self._ensure_loaded()
        if location_id:
            return [d for d in self._dives if d.location_id == location_id]
        return list(self._dives)
