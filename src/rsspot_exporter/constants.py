from __future__ import annotations

DEFAULT_API_BASE_URL = "https://spot.rackspace.com"
DEFAULT_AUTH_BASE_URL = "https://login.spot.rackspace.com"
DEFAULT_CLIENT_ID = "mwG3lUMV8KyeMqHe4fJ5Bb3nM1vBvRNa"

API_GROUP_PATH = "/apis/ngpc.rxt.io/v1"

TOKEN_RENEWAL_SKEW_SECONDS = 60
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9090
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_SCRAPE_INTERVAL_SECONDS = 60

UNKNOWN_LABEL = "unknown"
