"""Created/resolved ticket counts grouped into calendar periods.

``resolved`` counts the tickets *created* in a period that have since been
resolved (a cohort view), not the tickets resolved during that period.

Week keys use a simplified week number derived from the day of the year and the
weekday of 1 January, counted from Sunday. It is not ISO-8601 week numbering:
weeks never span years and the first partial week is week 1.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Iterable

from .models import TicketRecord, TrendBucket
from .timestamps import normalize_timestamp


class TrendGranularity(str, Enum):
    WEEK = "week"
    MONTH = "month"


def month_key(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"


def week_key(moment: datetime) -> str:
    """Approximate week key (``YYYY-Www``) for a local, tz-aware or naive ``moment``."""

    jan_first = moment.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    days_elapsed = (moment - jan_first).total_seconds() / 86400
    sunday_based_weekday = (jan_first.weekday() + 1) % 7
    week = math.ceil((days_elapsed + sunday_based_weekday + 1) / 7)
    return f"{moment.year:04d}-W{week:02d}"


def period_key(moment: datetime, granularity: TrendGranularity, tz: tzinfo = timezone.utc) -> str:
    local = moment.astimezone(tz)
    if granularity is TrendGranularity.MONTH:
        return month_key(local)
    return week_key(local)


def get_trends(
    tickets: Iterable[TicketRecord],
    granularity: TrendGranularity,
    count: int,
    *,
    tz: tzinfo = timezone.utc,
) -> list[TrendBucket]:
    """Return the most recent ``count`` periods in ascending period order."""

    if count <= 0:
        return []

    buckets: dict[str, TrendBucket] = {}
    for ticket in tickets:
        created = normalize_timestamp(ticket.created_at)
        if created is None:
            continue
        key = period_key(created, granularity, tz)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = TrendBucket(period=key)
        bucket.created += 1
        if ticket.is_resolved:
            bucket.resolved += 1

    ordered = [buckets[key] for key in sorted(buckets)]
    return ordered[-count:]
