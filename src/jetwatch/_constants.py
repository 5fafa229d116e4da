"""Internal constants shared across the library."""

BASE_URL = "http://localhost:8080"
WS_PATH = "/ws/websocket"
USER_AGENT = "jetwatch"

FLIGHTS_TOPIC = "/topic/flights"
FLIGHT_EVENTS_TOPIC = "/topic/flight-events"

# Fixed reconnect backoff for the push channel (seconds).
RECONNECT_DELAY_S = 5.0

# Reconciliation periods per mode (seconds).
SNAPSHOT_POLL_INTERVAL_S = 5.0
PER_KEY_POLL_INTERVAL_S = 30.0

# Delay before fetching details of a freshly started flight (seconds).
START_DETAIL_DELAY_S = 1.0

ACTIVITY_LOG_SIZE = 20

DEFAULT_CANCEL_REASON = "Cancelled by operator"
SYSTEM_KEY = "SYSTEM"
