"""Pure constants for the request layer. No side effects at import time."""

# === Environment ===
ENV_PREFIX = "RESILIENT_HTTP_"

# === Timeouts (seconds) ===
DEFAULT_TIMEOUT = 30.0

# === Retry ===
DEFAULT_MAX_RETRIES = 3  # Total attempts, including the first
DEFAULT_RETRY_DELAY = 1.0  # Base backoff delay; doubles per attempt
BACKOFF_MULTIPLIER = 2

# === Rate Limit ===
DEFAULT_RATE_LIMIT = None  # Requests per second; None = unlimited

# === Concurrency ===
DEFAULT_CONCURRENCY = 5  # Batch window size

# === Headers ===
DEFAULT_CONTENT_TYPE = "application/json"
