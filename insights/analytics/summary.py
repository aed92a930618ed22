"""Dashboard summary metrics computed from a ticket snapshot.

Per-record defects (missing or unparseable timestamps, blank company ids) only
drop that record from the affected average or ratio; every aggregate over zero
qualifying records is ``0.0``.
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

from .models import MetricsSnapshot, TicketRecord, TimelineEntry, TimelineEventType
from .timestamps import hours_between, normalize_timestamp

_RESPONSE_EVENTS = frozenset({TimelineEventType.STATUS_CHANGED.value, TimelineEventType.ASSIGNED.value})


def round_one(value: float) -> float:
    """Round half-up to one decimal place (``0.05`` -> ``0.1``, ``-0.05`` -> ``0.0``)."""

    return math.floor(value * 10 + 0.5) / 10


def percentage(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round_one(part / total * 100)


def resolution_hours(ticket: TicketRecord) -> float | None:
    """Hours from creation to resolution, or ``None`` when it cannot be derived."""

    if not ticket.is_resolved:
        return None
    created = normalize_timestamp(ticket.created_at)
    resolved = normalize_timestamp(ticket.updated_at)
    if created is None or resolved is None:
        return None
    return hours_between(created, resolved)


def average(values: Iterable[float]) -> float:
    total = 0.0
    count = 0
    for value in values:
        total += value
        count += 1
    return total / count if count else 0.0


def avg_resolution_time_hours(tickets: Iterable[TicketRecord]) -> float:
    """Mean resolution time over resolved tickets with usable timestamps."""

    durations = (resolution_hours(ticket) for ticket in tickets)
    return round_one(average(duration for duration in durations if duration is not None))


def first_response_time_hours(
    tickets: Iterable[TicketRecord],
    timelines_by_ticket: Mapping[str, Sequence[TimelineEntry]],
) -> float:
    """Mean hours between a ticket's ``created`` event and its first status change or assignment.

    Timelines are expected in ascending time order. Tickets with no timeline,
    either event missing, or a non-positive delta are left out.
    """

    deltas: list[float] = []
    for ticket in tickets:
        timeline = timelines_by_ticket.get(ticket.id)
        if not timeline:
            continue
        created_entry = next((entry for entry in timeline if entry.type == TimelineEventType.CREATED.value), None)
        response_entry = next((entry for entry in timeline if entry.type in _RESPONSE_EVENTS), None)
        if created_entry is None or response_entry is None:
            continue
        created = normalize_timestamp(created_entry.created_at)
        responded = normalize_timestamp(response_entry.created_at)
        if created is None or responded is None:
            continue
        delta = hours_between(created, responded)
        if delta > 0:
            deltas.append(delta)
    return round_one(average(deltas))


def sla_outcome(ticket: TicketRecord) -> bool | None:
    """``True``/``False`` for a met/breached SLA; ``None`` when the ticket does not qualify."""

    if not ticket.is_resolved:
        return None
    deadline = normalize_timestamp(ticket.sla_deadline)
    resolved = normalize_timestamp(ticket.updated_at)
    if deadline is None or resolved is None:
        return None
    return resolved <= deadline


def sla_compliance(tickets: Iterable[TicketRecord]) -> float:
    """Share of qualifying resolved tickets closed on or before their SLA deadline."""

    compliant = 0
    qualifying = 0
    for ticket in tickets:
        outcome = sla_outcome(ticket)
        if outcome is None:
            continue
        qualifying += 1
        if outcome:
            compliant += 1
    return percentage(compliant, qualifying)


def resolution_rate(tickets: Sequence[TicketRecord]) -> float:
    resolved = sum(1 for ticket in tickets if ticket.is_resolved)
    return percentage(resolved, len(tickets))


def active_customers(tickets: Iterable[TicketRecord]) -> int:
    return len({ticket.company_id for ticket in tickets if ticket.company_id})


def count_unparseable_created(tickets: Iterable[TicketRecord]) -> int:
    """Number of tickets whose creation time cannot be normalised."""

    return sum(1 for ticket in tickets if normalize_timestamp(ticket.created_at) is None)


def compute_summary(
    tickets: Sequence[TicketRecord],
    timelines_by_ticket: Mapping[str, Sequence[TimelineEntry]] | None = None,
) -> MetricsSnapshot:
    """Build the dashboard :class:`MetricsSnapshot` for ``tickets``."""

    resolved = sum(1 for ticket in tickets if ticket.is_resolved)
    return MetricsSnapshot(
        total_tickets=len(tickets),
        open_tickets=len(tickets) - resolved,
        resolved_tickets=resolved,
        resolution_rate=resolution_rate(tickets),
        avg_resolution_time_hours=avg_resolution_time_hours(tickets),
        active_customers=active_customers(tickets),
        first_response_time_hours=first_response_time_hours(tickets, timelines_by_ticket or {}),
        sla_compliance=sla_compliance(tickets),
    )
