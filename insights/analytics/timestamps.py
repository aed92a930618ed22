"""Normalisation of the timestamp shapes found in ticket, invoice and timeline data.

Records arrive with whatever the backing store produced: aware or naive
``datetime`` objects, plain ``date`` values, ISO-8601 strings, epoch
milliseconds, or store-native timestamp objects exposing a ``to_datetime``/
``to_millis`` style conversion. Everything downstream works on the aware UTC
``datetime`` returned by :func:`normalize_timestamp`; ``None`` means the value
is missing or unusable and the record must be left out of time-bound
calculations.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any

from dateutil import parser as date_parser

_DATE_CONVERTERS = ("to_datetime", "to_date", "toDate")
_MILLIS_CONVERTERS = ("to_millis", "toMillis")


def normalize_timestamp(value: Any) -> datetime | None:
    """Return ``value`` as an aware UTC datetime, or ``None`` if it is unusable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        return _parse_string(value)
    if isinstance(value, (int, float)):
        return _from_millis(value)

    for name in _DATE_CONVERTERS:
        converter = getattr(value, name, None)
        if callable(converter):
            try:
                converted = converter()
            except (TypeError, ValueError, OverflowError):
                return None
            if isinstance(converted, (datetime, date)):
                return normalize_timestamp(converted)
            return None

    for name in _MILLIS_CONVERTERS:
        converter = getattr(value, name, None)
        if callable(converter):
            try:
                millis = converter()
            except (TypeError, ValueError, OverflowError):
                return None
            if isinstance(millis, (int, float)) and not isinstance(millis, bool):
                return _from_millis(millis)
            return None

    return None


def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from ``start`` to ``end``."""

    return (end - start).total_seconds() / 3600.0


def isoformat_utc(value: datetime) -> str:
    """Render an instant as ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""

    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_string(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, OverflowError):
        return None
    return _as_utc(parsed)


def _from_millis(value: float) -> datetime | None:
    if value != value:  # NaN
        return None
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
