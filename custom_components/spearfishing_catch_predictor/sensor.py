"""
Sensors for Spearfishing Catch Predictor.

coordinator.data is the report built by CatchPredictorCoordinator.build_report:
 - "conditions", "weather", "dives_analysed", "matches", "best_score"
 - "moon", "solunar", "tides", "outlook"

Two entities per config entry:
 - catch match: state = best match score (0..100), attributes = matches and the conditions used
 - solunar: state = moon phase label, attributes = periods, tides and the daily outlook
"""
from typing import Any, Dict, Optional
import logging

from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.const import ATTR_ATTRIBUTION
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN, CONF_NAME

_LOGGER = logging.getLogger(__name__)

ATTRIBUTION = "Weather and marine data provided by Open-Meteo"


def _require(data: Optional[Dict[str, Any]], key: str) -> Any:
    if not data or key not in data:
        raise RuntimeError(f"Coordinator data missing '{key}' (strict)")
    return data[key]


class _PredictorSensor(CoordinatorEntity):
    """Shared naming and availability for the integration's sensors."""

    _suffix = ""

    def __init__(self, coordinator, name: str):
        if not name:
            raise RuntimeError("Sensor name must be provided (strict)")
        super().__init__(coordinator)
        self._attr_name = f"{name} {self._suffix}".strip()
        safe_name = name.lower().replace(" ", "_")
        self._attr_unique_id = f"{DOMAIN}_{getattr(coordinator, 'entry_id', 'noentry')}_{safe_name}_{self._suffix.lower().replace(' ', '_')}"

    @property
    def available(self) -> bool:
        return bool(self.coordinator.last_update_success and self.coordinator.data)


class CatchMatchSensor(_PredictorSensor):
    _suffix = "Catch Match"
    _attr_icon = "mdi:fish"
    _attr_unit_of_measurement = "%"

    @property
    def state(self) -> Optional[int]:
        return _require(self.coordinator.data, "best_score")

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        data = self.coordinator.data
        matches = _require(data, "matches")
        best = matches[0] if matches else None
        attrs: Dict[str, Any] = {
            "summary": best["summary"] if best else "No similar past dives",
            "matches": matches,
            "match_count": len(matches),
            "conditions": _require(data, "conditions"),
            "weather": data.get("weather") or {},
            "dives_analysed": _require(data, "dives_analysed"),
            "location_id": getattr(self.coordinator, "location_id", None),
            "min_score": int(round(float(getattr(self.coordinator, "min_score", 0.0)) * 100)),
            "updated": data.get("updated"),
            ATTR_ATTRIBUTION: ATTRIBUTION,
        }
        return attrs


class SolunarSensor(_PredictorSensor):
    _suffix = "Solunar"
    _attr_icon = "mdi:moon-waning-crescent"

    @property
    def state(self) -> Optional[str]:
        return _require(self.coordinator.data, "moon")["label"]

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        data = self.coordinator.data
        moon = _require(data, "moon")
        periods = _require(data, "solunar")
        return {
            "moon_phase": moon["phase"],
            "moon_name": moon["name"],
            "major_periods": [p["range"] for p in periods if p["type"] == "major"],
            "minor_periods": [p["range"] for p in periods if p["type"] == "minor"],
            "periods": periods,
            "tides": _require(data, "tides"),
            "outlook": _require(data, "outlook"),
            ATTR_ATTRIBUTION: ATTRIBUTION,
        }


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities):
    coordinator = hass.data[DOMAIN].get(entry.entry_id) if hass.data.get(DOMAIN) else None
    if coordinator is None:
        raise RuntimeError("Coordinator not found in hass.data for this config entry (strict)")

    sensor_name = entry.data.get(CONF_NAME)
    if not sensor_name:
        raise RuntimeError("Missing required name in config entry data (strict)")

    async_add_entities(
        [CatchMatchSensor(coordinator, sensor_name), SolunarSensor(coordinator, sensor_name)],
        update_before_add=True,
    )
