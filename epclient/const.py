"""Constants for the EduPage portal client."""

from datetime import timedelta
from enum import Enum

DEFAULT_ENDPOINT = "https://ep2.vypal.me"

# Endpoints
LOGIN_PATH = "/login"
VALIDATE_TOKEN_PATH = "/validate-token"
PERIODS_PATH = "/api/periods"
TIMETABLE_PATH = "/api/timetable"
TIMETABLE_RECENT_PATH = "/api/timetable/recent"
TIMELINE_PATH = "/api/timeline"
TIMELINE_RECENT_PATH = "/api/timeline/recent"

# Persisted cache keys
STORAGE_KEY_USER = "user"
STORAGE_KEY_TIMETABLE = "timetable"
STORAGE_KEY_TIMELINE = "timeline"
STORAGE_KEY_DEMO = "demo"

# Timetable request timestamps are midnight formatted as UTC
TIMETABLE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Backward pagination window for older timeline entries
TIMELINE_PAGE_WINDOW = timedelta(days=14)

DEFAULT_HEADERS = {
	"Accept": "application/json, text/javascript, */*; q=0.01",
	"User-Agent": "epclient/1.0",
}

# Configuration
CONF_USERNAME = "EP_USERNAME"
CONF_PASSWORD = "EP_PASSWORD"
CONF_SERVER = "EP_SERVER"
CONF_ENDPOINT = "EP_ENDPOINT"
CONF_USE_CACHE = "EP_USE_CACHE"
CONF_QUICKSTART = "EP_QUICKSTART"
CONF_CACHE_FILE = "EP_CACHE_FILE"

DEFAULT_CACHE_FILE = "~/.epclient/cache.json"


class InitStatus(str, Enum):
	"""Progress reported while the coordinator starts up."""

	LOADING_CREDENTIALS = "loading_credentials"
	LOGGING_IN = "logging_in"
	LOGGED_IN = "logged_in"
	DOWNLOADING_MESSAGES = "downloading_messages"
	DOWNLOADING_TIMETABLE = "downloading_timetable"


class SessionState(str, Enum):
	"""Authentication state of a session."""

	UNAUTHENTICATED = "unauthenticated"
	AUTHENTICATED = "authenticated"
	PENDING_LOGIN = "pending_login"
