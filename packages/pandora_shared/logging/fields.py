"""Canonical logging field names for cross-component consistency.

These constants define a stable key set for structured logs and context
propagation so the proxy and the realtime hub emit comparable records.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"

# Upstream proxy fields.
UPSTREAM = "upstream"
METHOD = "method"
PATH = "path"
STATUS_CODE = "status_code"
ATTEMPT = "attempt"
MAX_ATTEMPTS = "max_attempts"
DELAY_MS = "delay_ms"
ERROR_KIND = "error_kind"
CACHE_HIT = "cache_hit"
DURATION_MS = "duration_ms"

# Realtime hub fields.
CONNECTION_ID = "connection_id"
PRINCIPAL = "principal"
CHANNEL = "channel"
RECIPIENTS = "recipients"
FAILURES = "failures"
CLOSE_CODE = "close_code"
REASON = "reason"
