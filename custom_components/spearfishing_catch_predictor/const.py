"""Constants for Spearfishing Catch Predictor."""

# Integration identity
DOMAIN = "spearfishing_catch_predictor"
DEFAULT_NAME = "Spearfishing Catch Predictor"

# Update interval (seconds) default used by coordinator
DEFAULT_UPDATE_INTERVAL = 30 * 60  # seconds

# Open-Meteo endpoints
OM_BASE = "https://api.open-meteo.com/v1/forecast"
OM_MARINE_BASE = "https://marine-api.open-meteo.com/v1/marine"

FORECAST_DAYS = 7
FETCH_CACHE_TTL = 600  # seconds for shared in-memory Open-Meteo fetch cache

# Match search defaults
DEFAULT_MIN_SCORE = 0.75
DEFAULT_MAX_RESULTS = 5
DEFAULT_DIVE_LOG = "spearfishing_dive_log.json"

# ----- Config keys used by the flow and entry options -----
CONF_NAME = "name"
CONF_LATITUDE = "latitude"
CONF_LONGITUDE = "longitude"
CONF_LOCATION_ID = "location_id"
CONF_DIVE_LOG_PATH = "dive_log_path"
CONF_TIME_SLOT = "time_slot"
CONF_MIN_SCORE = "min_score"
CONF_MAX_RESULTS = "max_results"
CONF_ONLY_WITH_CATCHES = "only_with_catches"
CONF_WEIGHTS = "weights"

# Time slots of the day; the centre hour is the one read from the forecast
SLOT_NIGHT = "night"
SLOT_MORNING = "morning"
SLOT_AFTERNOON = "afternoon"
SLOT_EVENING = "evening"

TIME_SLOTS = {
    SLOT_NIGHT: {"name": "Night", "start": 0, "end": 6, "hour_center": 3},
    SLOT_MORNING: {"name": "Morning", "start": 6, "end": 12, "hour_center": 9},
    SLOT_AFTERNOON: {"name": "Afternoon", "start": 12, "end": 18, "hour_center": 15},
    SLOT_EVENING: {"name": "Evening", "start": 18, "end": 24, "hour_center": 21},
}
DEFAULT_TIME_SLOT = SLOT_MORNING
