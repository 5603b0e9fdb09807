"""Shared payload coercion utilities for market data providers.

Centralises the parsing every adapter needs: numbers that arrive as
strings, percentages with a ``%`` suffix, and date strings in a couple
of layouts.
"""

import math
from datetime import date, datetime


def to_float(value, default: float | None = None) -> float | None:
    """Coerce a provider number (float, int, or numeric string) to float.

    Returns ``default`` for ``None``, empty strings, non-numeric strings
    and NaN.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def to_int(value, default: int | None = None) -> int | None:
    """Coerce a provider integer (volume, market cap) to int.

    Accepts floats and numeric strings such as ``"1234"`` or ``"1234.0"``.
    """
    number = to_float(value)
    if number is None or math.isinf(number):
        return default
    return int(number)


def parse_percent(value) -> float | None:
    """Parse a percentage that may carry a trailing ``%`` (``"1.2345%"``)."""
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    return to_float(value)


def parse_date(value) -> date | None:
    """Parse a provider date to a calendar day.

    Handles:
    - ``date`` and ``datetime`` objects (including pandas ``Timestamp``)
    - Date-only strings ("2024-06-28")
    - Date-time strings ("2024-06-28 16:00:00", "2024-06-28T16:00:00Z")

    Returns:
        The calendar day, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    value_str = str(value).strip()
    if not value_str:
        return None

    try:
        return date.fromisoformat(value_str[:10])
    except ValueError:
        return None
