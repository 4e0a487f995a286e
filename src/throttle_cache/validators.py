"""
Parameter validation utilities.

Validation rules for throttle options. All validators raise
ValidationError so that misconfiguration is reported at construction
time, never from inside a call.
"""

from collections.abc import Callable
from typing import Any

from .constants import (
    ERROR_HANDLER_NOT_CALLABLE,
    ERROR_KEY_PREFIX_EMPTY,
    ERROR_MAX_ITEMS_INVALID,
    ERROR_NON_NEGATIVE_INVALID,
    ERROR_PERIOD_INVALID,
    ERROR_PERIOD_TYPE_INVALID,
    ERROR_PRODUCER_NOT_CALLABLE,
    ERROR_RETRY_COUNT_TYPE_INVALID,
)
from .exceptions import ValidationError


def validate_period(name: str, value: float | None, allow_none: bool = False) -> None:
    """Validate a strictly positive duration in seconds.

    Args:
        name: Option name (used in the error message)
        value: Duration to validate
        allow_none: Whether None means "disabled"

    Raises:
        ValidationError: If the duration is missing, not numeric or <= 0
    """
    if value is None and allow_none:
        return
    _validate_number_type(name, value)
    if value <= 0:
        raise ValidationError(ERROR_PERIOD_INVALID.format(name=name, value=value))


def validate_non_negative(name: str, value: float) -> None:
    """Validate a duration that may be zero (e.g. retry_delay=0 skips the pause)."""
    _validate_number_type(name, value)
    if value < 0:
        raise ValidationError(ERROR_NON_NEGATIVE_INVALID.format(name=name, value=value))


def validate_max_cached_items(max_cached_items: int | None) -> None:
    """Validate store capacity.

    None means unbounded. Otherwise it must be an int >= 1.

    Raises:
        ValidationError: If capacity is invalid
    """
    if max_cached_items is None:
        return
    if isinstance(max_cached_items, bool) or not isinstance(max_cached_items, int) or max_cached_items < 1:
        raise ValidationError(ERROR_MAX_ITEMS_INVALID.format(value=max_cached_items))


def validate_retry_count(retry_count: int) -> None:
    """Validate number of additional attempts after the first failure."""
    # Check for bool first since bool is subclass of int in Python
    if isinstance(retry_count, bool) or not isinstance(retry_count, int):
        raise ValidationError(ERROR_RETRY_COUNT_TYPE_INVALID.format(type_name=type(retry_count).__name__))
    if retry_count < 0:
        raise ValidationError(ERROR_NON_NEGATIVE_INVALID.format(name="retry_count", value=retry_count))


def validate_key_prefix(key_prefix: str | None) -> None:
    """Validate optional key prefix (None disables it)."""
    if key_prefix is None:
        return
    if not isinstance(key_prefix, str) or not key_prefix.strip():
        raise ValidationError(ERROR_KEY_PREFIX_EMPTY)


def validate_producer(producer: Callable[..., Any]) -> None:
    """Validate the wrapped producer."""
    if not callable(producer):
        raise ValidationError(ERROR_PRODUCER_NOT_CALLABLE.format(type_name=type(producer).__name__))


def validate_handler(handler: Callable[..., Any] | None) -> None:
    """Validate the hit-rate report handler (None means no-op)."""
    if handler is not None and not callable(handler):
        raise ValidationError(ERROR_HANDLER_NOT_CALLABLE.format(type_name=type(handler).__name__))


def _validate_number_type(name: str, value: Any) -> None:
    """Validate that a parameter is int or float (bool rejected)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(ERROR_PERIOD_TYPE_INVALID.format(name=name, type_name=type(value).__name__))
