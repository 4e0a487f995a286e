"""
Constants for the throttle wrapper.

Defines default values and error message templates used throughout
the package to eliminate magic numbers.
"""

# Refresh / expiry defaults (seconds)
DEFAULT_CACHE_REFRESH_PERIOD = 60.0  # 1 minute until a refresh is dispatched
DEFAULT_CACHE_MAX_AGE = 300.0  # 5 minutes until a result is treated as absent

# Retry defaults
DEFAULT_RETRY_COUNT = 0
DEFAULT_RETRY_DELAY = 0.2  # constant backoff between attempts
DEFAULT_RETRY_JITTER = 0.0

# Key defaults
DIGEST_ALGORITHM = "sha256"
MSGPACK_INT_MIN = -(2**63)
MSGPACK_INT_MAX = 2**64 - 1
BIG_INT_EXT_CODE = 1  # msgpack ExtType code for ints outside the 64-bit range

# Environment variable names
ENV_CACHE_REFRESH_PERIOD = "THROTTLE_CACHE_REFRESH_PERIOD"
ENV_CACHE_MAX_AGE = "THROTTLE_CACHE_MAX_AGE"
ENV_MAX_CACHED_ITEMS = "THROTTLE_MAX_CACHED_ITEMS"
ENV_RETRY_COUNT = "THROTTLE_RETRY_COUNT"
ENV_RETRY_DELAY = "THROTTLE_RETRY_DELAY"
ENV_RETRY_JITTER = "THROTTLE_RETRY_JITTER"
ENV_HIT_RATE_REPORT_PERIOD = "THROTTLE_HIT_RATE_REPORT_PERIOD"

# OpenTelemetry
DEFAULT_METER_NAME = "throttle_cache"

# Error message templates
ERROR_PERIOD_INVALID = "{name} must be > 0, got {value}"
ERROR_PERIOD_TYPE_INVALID = "{name} must be int or float, got {type_name}"
ERROR_NON_NEGATIVE_INVALID = "{name} must be >= 0, got {value}"
ERROR_MAX_ITEMS_INVALID = "max_cached_items must be >= 1 or None (unbounded), got {value}"
ERROR_RETRY_COUNT_TYPE_INVALID = "retry_count must be int, got {type_name}"
ERROR_PRODUCER_NOT_CALLABLE = "producer must be callable, got {type_name}"
ERROR_HANDLER_NOT_CALLABLE = "hit_rate_report_handler must be callable, got {type_name}"
ERROR_ENV_VALUE_INVALID = "Environment variable {name} has invalid value {value!r}"
ERROR_KEY_PREFIX_EMPTY = "key_prefix cannot be empty or whitespace-only"
