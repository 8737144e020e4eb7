"""
Spearfishing Catch Predictor - integration entry points.

Location and dive log come from entry.data; match tuning from entry.options
(falling back to entry.data). A dive log that cannot be read fails setup.
"""
import logging
from typing import Any, Dict

from .const import (
    DOMAIN,
    DEFAULT_UPDATE_INTERVAL,
    DEFAULT_DIVE_LOG,
    DEFAULT_MIN_SCORE,
    DEFAULT_MAX_RESULTS,
    DEFAULT_TIME_SLOT,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_LOCATION_ID,
    CONF_DIVE_LOG_PATH,
    CONF_TIME_SLOT,
    CONF_MIN_SCORE,
    CONF_MAX_RESULTS,
    CONF_ONLY_WITH_CATCHES,
    CONF_WEIGHTS,
)

_LOGGER = logging.getLogger(__name__)

PLATFORMS = ["sensor"]


def entry_settings(data: Dict[str, Any], options: Dict[str, Any]) -> Dict[str, Any]:
    """Merge entry data and options into coordinator settings. Min score is stored as a percent."""
    merged = dict(data or {})
    merged.update(options or {})
    return {
        "location_id": merged.get(CONF_LOCATION_ID) or None,
        "dive_log_path": merged.get(CONF_DIVE_LOG_PATH, DEFAULT_DIVE_LOG),
        "time_slot": merged.get(CONF_TIME_SLOT, DEFAULT_TIME_SLOT),
        "min_score": float(merged.get(CONF_MIN_SCORE, DEFAULT_MIN_SCORE * 100)) / 100.0,
        "max_results": int(merged.get(CONF_MAX_RESULTS, DEFAULT_MAX_RESULTS)),
        "only_with_catches": bool(merged.get(CONF_ONLY_WITH_CATCHES, False)),
        "weights": dict(merged.get(CONF_WEIGHTS) or {}),
        "update_interval": int(merged.get("update_interval", DEFAULT_UPDATE_INTERVAL)),
    }


async def async_setup_entry(hass, entry):
    """Set up integration from a config entry."""
    _LOGGER.debug("Starting async_setup_entry for entry %s", entry.entry_id)
    hass.data.setdefault(DOMAIN, {}).setdefault("fetch_cache", {})

    lat = entry.data.get(CONF_LATITUDE)
    lon = entry.data.get(CONF_LONGITUDE)
    if lat is None or lon is None:
        _LOGGER.error("Config entry missing latitude/longitude; aborting setup for entry %s", entry.entry_id)
        return False

    from .coordinator import CatchPredictorCoordinator
    from .dive_log import DiveLogError, DiveLogLoader
    from .similarity import SimilarityConfig
    from .weather_fetcher import WeatherFetcher

    try:
        settings = entry_settings(entry.data, entry.options)
        similarity_config = SimilarityConfig.from_options(weights=settings["weights"])
    except (TypeError, ValueError) as exc:
        _LOGGER.exception("Invalid match settings for entry %s: %s", entry.entry_id, exc)
        return False

    dive_log = DiveLogLoader(hass, settings["dive_log_path"])
    try:
        await dive_log.async_load()
    except DiveLogError as exc:
        _LOGGER.exception("Dive log failed to load for entry %s: %s", entry.entry_id, exc)
        return False

    fetcher = WeatherFetcher(hass, lat, lon)
    try:
        coord = CatchPredictorCoordinator(
            hass,
            entry.entry_id,
            fetcher=fetcher,
            dive_log=dive_log,
            lat=lat,
            lon=lon,
            update_interval=settings["update_interval"],
            location_id=settings["location_id"],
            time_slot=settings["time_slot"],
            min_score=settings["min_score"],
            max_results=settings["max_results"],
            only_with_catches=settings["only_with_catches"],
            similarity_config=similarity_config,
        )
    except ValueError as exc:
        _LOGGER.exception("Failed to create coordinator for entry %s: %s", entry.entry_id, exc)
        return False
    _LOGGER.debug("CatchPredictorCoordinator created for entry %s", entry.entry_id)

    await coord.async_request_refresh()

    hass.data[DOMAIN][entry.entry_id] = coord
    entry.async_on_unload(entry.add_update_listener(_async_options_updated))

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception:
        _LOGGER.exception("Failed to forward entry setups for entry %s to sensor platform", entry.entry_id)
        return False

    _LOGGER.debug("async_setup_entry completed for entry %s", entry.entry_id)
    return True


async def _async_options_updated(hass, entry):
    """Options changed: reload so the coordinator picks up the new match settings."""
    _LOGGER.debug("Options updated for entry %s; reloading", entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass, entry):
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        removed = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        _LOGGER.debug("Removed coordinator from hass.data for entry %s: %s", entry.entry_id, removed is not None)
    return unload_ok
