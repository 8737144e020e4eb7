"""Config flow for Spearfishing Catch Predictor"""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector
import homeassistant.helpers.config_validation as cv

from .const import (
    DOMAIN,
    CONF_NAME,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_LOCATION_ID,
    CONF_DIVE_LOG_PATH,
    CONF_TIME_SLOT,
    CONF_MIN_SCORE,
    CONF_MAX_RESULTS,
    CONF_ONLY_WITH_CATCHES,
    CONF_WEIGHTS,
    DEFAULT_NAME,
    DEFAULT_DIVE_LOG,
    DEFAULT_MIN_SCORE,
    DEFAULT_MAX_RESULTS,
    DEFAULT_TIME_SLOT,
    TIME_SLOTS,
)
from .dive_log import DiveLogError, DiveLogLoader
from .similarity import FACTOR_WEIGHTS, SimilarityConfig

_LOGGER = logging.getLogger(__name__)

WEIGHT_FIELD_PREFIX = "weight_"


def _time_slot_selector() -> selector.SelectSelector:
    return selector.SelectSelector(
        selector.SelectSelectorConfig(
            options=[{"value": key, "label": f"{slot['name']} ({slot['start']:02d}-{slot['end']:02d}h)"} for key, slot in TIME_SLOTS.items()],
            mode="dropdown",
        )
    )


def _percent_selector() -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(min=0, max=100, step=5, unit_of_measurement="%", mode="slider")
    )


def weights_from_form(user_input: dict[str, Any]) -> dict[str, float]:
    """Collect the flat weight_<factor> fields of the options form into a weights dict."""
    return {
        key[len(WEIGHT_FIELD_PREFIX):]: float(value)
        for key, value in user_input.items()
        if key.startswith(WEIGHT_FIELD_PREFIX)
    }


class SpearfishingConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Spearfishing Catch Predictor."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Location, dive log and match settings in one step."""
        errors: dict[str, str] = {}
        if user_input is not None:
            try:
                lat = float(user_input[CONF_LATITUDE])
                lon = float(user_input[CONF_LONGITUDE])
                if not (-90 <= lat <= 90 and -180 <= lon <= 180):
                    errors["base"] = "invalid_coordinates"
            except (ValueError, KeyError):
                errors["base"] = "invalid_coordinates"

            if not errors:
                submitted_title = str(user_input.get(CONF_NAME, "")).strip()
                for e in self.hass.config_entries.async_entries(DOMAIN):
                    if e.title == submitted_title:
                        _LOGGER.debug("Attempt to create entry with duplicate title '%s' rejected", submitted_title)
                        errors["base"] = "title_exists"
                        break

            if not errors:
                loader = DiveLogLoader(self.hass, user_input[CONF_DIVE_LOG_PATH])
                try:
                    await loader.async_load()
                except DiveLogError:
                    errors[CONF_DIVE_LOG_PATH] = "invalid_dive_log"

            if not errors:
                data = dict(user_input)
                data[CONF_MAX_RESULTS] = int(data[CONF_MAX_RESULTS])
                return self.async_create_entry(title=submitted_title, data=data)

        defaults = user_input or {}
        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_NAME, default=defaults.get(CONF_NAME, DEFAULT_NAME)): str,
                    vol.Required(CONF_LATITUDE, default=defaults.get(CONF_LATITUDE, self.hass.config.latitude)): cv.latitude,
                    vol.Required(CONF_LONGITUDE, default=defaults.get(CONF_LONGITUDE, self.hass.config.longitude)): cv.longitude,
                    vol.Optional(CONF_LOCATION_ID, default=defaults.get(CONF_LOCATION_ID, "")): str,
                    vol.Required(CONF_DIVE_LOG_PATH, default=defaults.get(CONF_DIVE_LOG_PATH, DEFAULT_DIVE_LOG)): str,
                    vol.Required(CONF_TIME_SLOT, default=defaults.get(CONF_TIME_SLOT, DEFAULT_TIME_SLOT)): _time_slot_selector(),
                    vol.Required(CONF_MIN_SCORE, default=defaults.get(CONF_MIN_SCORE, int(DEFAULT_MIN_SCORE * 100))): _percent_selector(),
                    vol.Required(CONF_MAX_RESULTS, default=defaults.get(CONF_MAX_RESULTS, DEFAULT_MAX_RESULTS)): selector.NumberSelector(
                        selector.NumberSelectorConfig(min=1, max=20, step=1, mode="box")
                    ),
                }
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry) -> config_entries.OptionsFlow:
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Match tuning: threshold, result count, catches filter and factor weights."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    def _current(self, key: str, default: Any) -> Any:
        return self._entry.options.get(key, self._entry.data.get(key, default))

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        errors: dict[str, str] = {}
        if user_input is not None:
            weights = weights_from_form(user_input)
            try:
                SimilarityConfig.from_options(weights=weights)
            except ValueError:
                _LOGGER.debug("Rejected similarity weights %s", weights)
                errors["base"] = "invalid_weights"
            if not errors:
                options = {k: v for k, v in user_input.items() if not k.startswith(WEIGHT_FIELD_PREFIX)}
                options[CONF_MAX_RESULTS] = int(options[CONF_MAX_RESULTS])
                options[CONF_WEIGHTS] = weights
                return self.async_create_entry(title="", data=options)

        current_weights = dict(FACTOR_WEIGHTS)
        current_weights.update(self._entry.options.get(CONF_WEIGHTS) or {})

        schema: dict[Any, Any] = {
            vol.Required(CONF_MIN_SCORE, default=self._current(CONF_MIN_SCORE, int(DEFAULT_MIN_SCORE * 100))): _percent_selector(),
            vol.Required(CONF_MAX_RESULTS, default=self._current(CONF_MAX_RESULTS, DEFAULT_MAX_RESULTS)): selector.NumberSelector(
                selector.NumberSelectorConfig(min=1, max=20, step=1, mode="box")
            ),
            vol.Required(CONF_ONLY_WITH_CATCHES, default=self._current(CONF_ONLY_WITH_CATCHES, False)): selector.BooleanSelector(),
        }
        for factor in FACTOR_WEIGHTS:
            schema[
                vol.Required(
                    f"{WEIGHT_FIELD_PREFIX}{factor}",
                    default=current_weights[factor],
                )
            ] = selector.NumberSelector(selector.NumberSelectorConfig(min=0, max=1, step=0.05, mode="slider"))

        return self.async_show_form(step_id="init", data_schema=vol.Schema(schema), errors=errors)
