"""Input validation shared by the stores.

Every check raises :class:`~assettracker.errors.ValidationError` so that
callers see a single error type for malformed input, and every check
runs before the first write.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, date, datetime

from assettracker.db.schema import ASSET_CATEGORIES, TRANSACTION_TYPES
from assettracker.errors import ValidationError

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d:[0-5]\d$")


def normalize_symbol(symbol: str) -> str:
    """Strip and upper-case a ticker symbol.

    Raises:
        ValidationError: If the symbol is empty.

    """
    if not symbol or not str(symbol).strip():
        msg = "symbol must be a non-empty string"
        raise ValidationError(msg)
    return str(symbol).strip().upper()


def validate_category(category: str) -> str:
    """Check a category against the closed enumeration."""
    if category not in ASSET_CATEGORIES:
        msg = f"category must be one of {sorted(ASSET_CATEGORIES)}, got '{category}'"
        raise ValidationError(msg)
    return category


def validate_tx_type(tx_type: str) -> str:
    """Check a transaction type against the closed enumeration."""
    if tx_type not in TRANSACTION_TYPES:
        msg = f"tx_type must be one of {sorted(TRANSACTION_TYPES)}, got '{tx_type}'"
        raise ValidationError(msg)
    return tx_type


def require_positive(name: str, value: float) -> float:
    """Return ``value`` as a float, rejecting zero, negatives, NaN and infinity."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        msg = f"{name} must be a number, got {value!r}"
        raise ValidationError(msg) from exc
    if not math.isfinite(number):
        msg = f"{name} must be finite, got {value!r}"
        raise ValidationError(msg)
    if not number > 0:
        msg = f"{name} must be positive, got {value!r}"
        raise ValidationError(msg)
    return number


def require_non_negative(name: str, value: float) -> float:
    """Return ``value`` as a float, rejecting negatives, NaN and infinity."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        msg = f"{name} must be a number, got {value!r}"
        raise ValidationError(msg) from exc
    if not math.isfinite(number):
        msg = f"{name} must be finite, got {value!r}"
        raise ValidationError(msg)
    if not number >= 0:
        msg = f"{name} must be >= 0, got {value!r}"
        raise ValidationError(msg)
    return number


def validate_time_of_day(value: str) -> str:
    """Check an HH:MM:SS time string."""
    if not _TIME_OF_DAY.match(value):
        msg = f"purchase_time must be HH:MM:SS, got '{value}'"
        raise ValidationError(msg)
    return value


def parse_timestamp(value: datetime | date | str) -> datetime:
    """Normalize a timestamp to a naive UTC datetime.

    Accepts datetimes (aware ones are converted to UTC), dates (midnight)
    and ISO-8601 strings, including a trailing ``Z``.

    Raises:
        ValidationError: If a string cannot be parsed.

    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)  # noqa: DTZ001
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError as exc:
            msg = f"Invalid timestamp. Expected ISO-8601: {value!r}"
            raise ValidationError(msg) from exc

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def parse_date(value: date | str) -> date:
    """Normalize a calendar date (datetimes are truncated to their date)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        msg = f"Invalid date format. Expected YYYY-MM-DD: {value!r}"
        raise ValidationError(msg) from exc
