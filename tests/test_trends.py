from datetime import datetime, timedelta, timezone

from insights.analytics.models import TicketRecord
from insights.analytics.trends import TrendGranularity, get_trends, month_key, week_key


def _ticket(ticket_id: str, created: datetime | None, status: str = "open", resolved: datetime | None = None):
    return TicketRecord(id=ticket_id, status=status, created_at=created, updated_at=resolved)


def test_monthly_buckets_keep_most_recent_periods_ascending():
    tickets = [
        _ticket("a", datetime(2024, 1, 10, tzinfo=timezone.utc)),
        _ticket("b", datetime(2024, 2, 3, tzinfo=timezone.utc)),
        _ticket("c", datetime(2024, 3, 15, tzinfo=timezone.utc), status="resolved"),
        _ticket("d", datetime(2024, 3, 20, tzinfo=timezone.utc)),
    ]

    buckets = get_trends(tickets, TrendGranularity.MONTH, 2)

    assert [bucket.period for bucket in buckets] == ["2024-02", "2024-03"]
    assert (buckets[1].created, buckets[1].resolved) == (2, 1)


def test_resolved_is_attributed_to_creation_period():
    ticket = _ticket(
        "a",
        datetime(2024, 1, 30, tzinfo=timezone.utc),
        status="resolved",
        resolved=datetime(2024, 3, 2, tzinfo=timezone.utc),
    )

    buckets = get_trends([ticket], TrendGranularity.MONTH, 12)

    assert len(buckets) == 1
    assert buckets[0].period == "2024-01"
    assert buckets[0].resolved == 1


def test_empty_periods_are_not_emitted():
    tickets = [
        _ticket("a", datetime(2023, 11, 1, tzinfo=timezone.utc)),
        _ticket("b", datetime(2024, 2, 1, tzinfo=timezone.utc)),
    ]
    assert [bucket.period for bucket in get_trends(tickets, TrendGranularity.MONTH, 6)] == ["2023-11", "2024-02"]


def test_bucket_invariants_hold():
    tickets = [
        _ticket(str(index), datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(days=index * 9), status=status)
        for index, status in enumerate(["open", "resolved", "resolved", "pending", "open", "resolved"])
    ]

    buckets = get_trends(tickets, TrendGranularity.WEEK, 3)

    assert len(buckets) <= 3
    assert [bucket.period for bucket in buckets] == sorted(bucket.period for bucket in buckets)
    assert all(bucket.resolved <= bucket.created for bucket in buckets)


def test_tickets_without_creation_time_are_skipped():
    tickets = [_ticket("a", None), _ticket("b", "garbage"), _ticket("c", "2024-04-02T10:00:00Z")]
    buckets = get_trends(tickets, TrendGranularity.MONTH, 6)
    assert [(bucket.period, bucket.created) for bucket in buckets] == [("2024-04", 1)]


def test_zero_or_negative_count_returns_nothing():
    tickets = [_ticket("a", datetime(2024, 1, 1, tzinfo=timezone.utc))]
    assert get_trends(tickets, TrendGranularity.MONTH, 0) == []
    assert get_trends(tickets, TrendGranularity.MONTH, -1) == []
    assert get_trends([], TrendGranularity.WEEK, 4) == []


def test_periods_follow_reporting_timezone():
    ticket = _ticket("a", datetime(2024, 1, 31, 23, 30, tzinfo=timezone.utc))
    johannesburg = timezone(timedelta(hours=2))

    assert get_trends([ticket], TrendGranularity.MONTH, 1)[0].period == "2024-01"
    assert get_trends([ticket], TrendGranularity.MONTH, 1, tz=johannesburg)[0].period == "2024-02"


def test_week_key_starts_weeks_on_sunday():
    # 1 January 2024 was a Monday
    assert week_key(datetime(2024, 1, 1)) == "2024-W01"
    assert week_key(datetime(2024, 1, 6)) == "2024-W01"
    assert week_key(datetime(2024, 1, 7)) == "2024-W02"
    assert week_key(datetime(2024, 12, 31)) == "2024-W53"


def test_month_key_is_zero_padded():
    assert month_key(datetime(2024, 3, 1)) == "2024-03"
