"""Internal constants shared across the library."""

WEATHER_BASE_URL = "https://api.openweathermap.org"
WEATHER_CURRENT_ENDPOINT = "/data/2.5/weather"
TELEGRAM_BASE_URL = "https://api.telegram.org"
USER_AGENT = "weatherpush/1 (+aiohttp)"

DEFAULT_TICK_INTERVAL: float = 60 * 60
DEFAULT_FETCH_TIMEOUT: float = 10.0
DEFAULT_SHUTDOWN_GRACE: float = 10.0
DEFAULT_POLL_TIMEOUT: int = 30
