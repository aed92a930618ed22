from conftest import make_ticket
from insights.analytics.categories import format_category_name, get_category_distribution
from insights.analytics.models import CategoryBucket


def test_ties_keep_first_seen_order():
    tickets = [make_ticket("a", category="telephony"), make_ticket("b", category="cctv")]

    assert get_category_distribution(tickets) == [
        CategoryBucket("Telephony", 1, 50.0),
        CategoryBucket("CCTV", 1, 50.0),
    ]


def test_sorted_by_count_descending_with_uncategorized_bucket():
    tickets = [
        make_ticket("a", category="internet"),
        make_ticket("b", category=None),
        make_ticket("c", category="copiers"),
        make_ticket("d", category="copiers"),
        make_ticket("e", category="  "),
        make_ticket("f", category="copiers"),
    ]

    buckets = get_category_distribution(tickets)

    assert [(bucket.category, bucket.count) for bucket in buckets] == [
        ("Copiers", 3),
        ("Uncategorized", 2),
        ("Internet", 1),
    ]
    assert sum(bucket.count for bucket in buckets) == len(tickets)


def test_percentages_are_not_renormalised():
    tickets = [make_ticket(str(index), category=category) for index, category in enumerate(["office", "cctv", "internet"])]

    buckets = get_category_distribution(tickets)

    assert [bucket.percentage for bucket in buckets] == [33.3, 33.3, 33.3]
    assert abs(sum(bucket.percentage for bucket in buckets) - 100.0) <= 0.1 * len(buckets)


def test_empty_distribution():
    assert get_category_distribution([]) == []


def test_unknown_categories_are_capitalised():
    assert format_category_name("office") == "Office Automation"
    assert format_category_name("printers") == "Printers"
    assert format_category_name("") == ""
