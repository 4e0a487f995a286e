"""
Configuration management for the throttle wrapper.

Handles environment variables, default values, and parameter validation
following the precedence rules:

1. Explicit keyword parameter (highest precedence)
2. Environment variable
3. Default value (lowest precedence)
"""

import dataclasses
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .constants import (
    DEFAULT_CACHE_MAX_AGE,
    DEFAULT_CACHE_REFRESH_PERIOD,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_DELAY,
    DEFAULT_RETRY_JITTER,
    ENV_CACHE_MAX_AGE,
    ENV_CACHE_REFRESH_PERIOD,
    ENV_HIT_RATE_REPORT_PERIOD,
    ENV_MAX_CACHED_ITEMS,
    ENV_RETRY_COUNT,
    ENV_RETRY_DELAY,
    ENV_RETRY_JITTER,
    ERROR_ENV_VALUE_INVALID,
)
from .exceptions import ValidationError
from .validators import (
    validate_handler,
    validate_key_prefix,
    validate_max_cached_items,
    validate_non_negative,
    validate_period,
    validate_retry_count,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThrottleConfig:
    """Immutable set of throttle options.

    All durations are in seconds.

    Attributes:
        cache_refresh_period: Time before a new refresh is dispatched for a key
        cache_max_age: Time before a stored result is treated as absent
        max_cached_items: Per-store capacity (None = unbounded)
        retry_count: Additional attempts after the first failure
        retry_delay: Constant pause between attempts (0 skips the pause)
        retry_jitter: Upper bound of a random extra pause added to retry_delay
        hit_rate_report_period: Telemetry interval (None = disabled)
        hit_rate_report_handler: Receives HitRateStats on each tick
        isolate_clear: Discard completions dispatched before clear_cache()
        key_prefix: Optional prefix for generated cache keys
    """

    cache_refresh_period: float = DEFAULT_CACHE_REFRESH_PERIOD
    cache_max_age: float = DEFAULT_CACHE_MAX_AGE
    max_cached_items: int | None = None
    retry_count: int = DEFAULT_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY
    retry_jitter: float = DEFAULT_RETRY_JITTER
    hit_rate_report_period: float | None = None
    hit_rate_report_handler: Callable[..., Any] | None = None
    isolate_clear: bool = False
    key_prefix: str | None = None

    def __post_init__(self) -> None:
        validate_period("cache_refresh_period", self.cache_refresh_period)
        validate_period("cache_max_age", self.cache_max_age)
        validate_max_cached_items(self.max_cached_items)
        validate_retry_count(self.retry_count)
        validate_non_negative("retry_delay", self.retry_delay)
        validate_non_negative("retry_jitter", self.retry_jitter)
        validate_period("hit_rate_report_period", self.hit_rate_report_period, allow_none=True)
        validate_handler(self.hit_rate_report_handler)
        validate_key_prefix(self.key_prefix)

        if self.cache_max_age < self.cache_refresh_period:
            # Allowed, but results expire before a refresh is ever triggered
            logger.warning(
                "cache_max_age (%ss) is shorter than cache_refresh_period (%ss); "
                "cached results will expire before being refreshed",
                self.cache_max_age,
                self.cache_refresh_period,
            )

        if self.hit_rate_report_handler is not None and self.hit_rate_report_period is None:
            logger.warning(
                "hit_rate_report_handler is set but hit_rate_report_period is None; "
                "the handler will never be called"
            )

    def with_overrides(self, **overrides: Any) -> "ThrottleConfig":
        """Return a copy with the given options replaced.

        Raises:
            TypeError: If an unknown option name is given
            ValidationError: If a replaced value is invalid
        """
        if not overrides:
            return self
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> "ThrottleConfig":
        """Build configuration from THROTTLE_* environment variables.

        Explicit keyword overrides take precedence over the environment.

        Args:
            **overrides: Explicit option values

        Returns:
            Resolved configuration

        Raises:
            ValidationError: If an environment variable is malformed
        """
        values: dict[str, Any] = {}

        env_readers: list[tuple[str, str, Callable[[str], Any]]] = [
            ("cache_refresh_period", ENV_CACHE_REFRESH_PERIOD, float),
            ("cache_max_age", ENV_CACHE_MAX_AGE, float),
            ("max_cached_items", ENV_MAX_CACHED_ITEMS, int),
            ("retry_count", ENV_RETRY_COUNT, int),
            ("retry_delay", ENV_RETRY_DELAY, float),
            ("retry_jitter", ENV_RETRY_JITTER, float),
            ("hit_rate_report_period", ENV_HIT_RATE_REPORT_PERIOD, float),
        ]
        for field_name, env_name, parse in env_readers:
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = _parse_env(env_name, raw, parse)

        values.update(overrides)
        return cls(**values)


def _parse_env(env_name: str, raw: str, parse: Callable[[str], Any]) -> Any:
    """Parse a single environment value."""
    try:
        return parse(raw.strip())
    except ValueError as e:
        raise ValidationError(ERROR_ENV_VALUE_INVALID.format(name=env_name, value=raw)) from e
