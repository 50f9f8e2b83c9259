"""Tests for the daily aggregator."""

from datetime import date, timedelta

import pytest

from app.analyzer.daily_aggregator import aggregate_daily, filter_summaries, in_window
from app.core.keys import account_key
from app.core.parsing import parse_money
from app.models.query_models import DailyQuery
from tests.factories import perf


@pytest.fixture
def rows():
    return [
        perf(cid="111", month="3/1/2024", cost="$50", conversion_value="$100", clicks="10"),
        perf(cid="111", month="3/2/2024", cost="$150", conversion_value="$300", clicks="5"),
        perf(cid="2-2-2", account_name="Beta", pm="Arjun", month="3/5/2024", cost="$1,000"),
    ]


def _totals(summaries):
    totals = {}
    for s in summaries:
        key = account_key(s.cid, s.account_name)
        cost, clicks = totals.get(key, (0.0, 0.0))
        totals[key] = (
            cost + parse_money(s.cost),
            clicks + parse_money(s.clicks),
        )
    return totals


class TestAggregate:
    def test_sums_per_account(self, rows):
        summaries = {account_key(s.cid, s.account_name): s for s in aggregate_daily(rows)}
        assert summaries["111"].cost == "200.0"
        assert parse_money(summaries["111"].cost) == 200.0
        assert parse_money(summaries["111"].clicks) == 15.0
        assert parse_money(summaries["222"].cost) == 1000.0

    def test_non_numeric_fields_from_first_row(self, rows):
        first = aggregate_daily(rows)[0]
        assert first.month == "3/1/2024"
        assert first.pm == "Priya"

    def test_window_is_inclusive(self, rows):
        summaries = aggregate_daily(rows, start=date(2024, 3, 2), end=date(2024, 3, 2))
        assert len(summaries) == 1
        assert parse_money(summaries[0].cost) == 150.0

    def test_cost_is_conserved(self, rows):
        total = sum(parse_money(r.cost) for r in rows)
        assert sum(parse_money(s.cost) for s in aggregate_daily(rows)) == pytest.approx(total)

    def test_disjoint_windows_sum_to_the_whole(self, rows):
        start, mid, end = date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 5)
        whole = _totals(aggregate_daily(rows, start, end))
        parts = _totals(
            aggregate_daily(rows, start, mid) + aggregate_daily(rows, mid + timedelta(days=1), end)
        )
        assert parts.keys() == whole.keys()
        for key, (cost, clicks) in whole.items():
            assert parts[key] == pytest.approx((cost, clicks))

    def test_two_digit_year_lands_in_its_window(self):
        summaries = aggregate_daily([perf(month="3/5/24")], date(2024, 3, 1), date(2024, 3, 31))
        assert len(summaries) == 1

    def test_empty_input(self):
        assert aggregate_daily([]) == []


class TestWindow:
    def test_unparseable_date_stays_in_window(self):
        assert in_window(perf(month="garbage"), date(2024, 1, 1), date(2024, 1, 31))

    def test_no_bounds(self):
        assert in_window(perf(month="1/1/1999"))

    def test_outside(self):
        assert not in_window(perf(month="2/1/2024"), end=date(2024, 1, 31))


class TestFilterSummaries:
    def test_filters_and_classifies(self, rows):
        summaries = aggregate_daily(rows)
        out = filter_summaries(summaries, DailyQuery(pms=["Arjun"]))
        assert [c.record.account_name for c in out] == ["Beta"]

    def test_status_filter(self, rows):
        summaries = aggregate_daily(rows)
        # Acme: 400 / 200 = 2 vs target 4 → ratio 0.5 → Critical
        out = filter_summaries(summaries, DailyQuery(statuses=["Critical"]))
        assert {c.record.account_name for c in out} == {"Acme", "Beta"}

    def test_excluded_manager_dropped(self):
        summaries = aggregate_daily([perf(pm="Paused/Ended")])
        assert filter_summaries(summaries, DailyQuery()) == []
