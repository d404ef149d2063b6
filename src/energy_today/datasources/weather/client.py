"""Open-Meteo API constants.

API docs: https://open-meteo.com/en/docs/historical-weather-api
"""

OPEN_METEO_HISTORICAL = "https://archive-api.open-meteo.com/v1/archive"

# Daily variables we request from Open-Meteo
DAILY_VARS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "weather_code",
]

# Dates are bucketed in UTC to match the engine's calendar dates
TIMEZONE = "UTC"

# The archive rejects very long ranges in one request
MAX_DAYS_PER_REQUEST = 366
