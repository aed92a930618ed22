from __future__ import annotations

from typing import Sequence

from .models import CategoryBucket, TicketRecord
from .summary import percentage

UNCATEGORIZED = "uncategorized"

CATEGORY_DISPLAY_NAMES: dict[str, str] = {
    "telephony": "Telephony",
    "copiers": "Copiers",
    "cctv": "CCTV",
    "internet": "Internet",
    "office": "Office Automation",
    UNCATEGORIZED: "Uncategorized",
}


def category_key(ticket: TicketRecord) -> str:
    """Raw category key of ``ticket``; blank or missing categories are ``uncategorized``."""

    category = (ticket.category or "").strip()
    return category or UNCATEGORIZED


def format_category_name(category: str) -> str:
    known = CATEGORY_DISPLAY_NAMES.get(category)
    if known is not None:
        return known
    return category[:1].upper() + category[1:]


def get_category_distribution(tickets: Sequence[TicketRecord]) -> list[CategoryBucket]:
    """Category counts and shares, largest first; ties keep first-seen order.

    Percentages are rounded independently and may sum to 99.9 or 100.1.
    """

    total = len(tickets)
    if total == 0:
        return []

    counts: dict[str, int] = {}
    for ticket in tickets:
        key = category_key(ticket)
        counts[key] = counts.get(key, 0) + 1

    buckets = [
        CategoryBucket(category=format_category_name(key), count=count, percentage=percentage(count, total))
        for key, count in counts.items()
    ]
    return sorted(buckets, key=lambda bucket: -bucket.count)
