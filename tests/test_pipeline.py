"""Tests for the dashboard pipeline and its memo."""

from datetime import date

import pytest

from app.analyzer import pipeline
from app.analyzer.pipeline import DerivedCache, build_dashboard
from app.models.query_models import DailyQuery, DashboardQuery, MonthlyQuery
from app.models.records import AccountRecord
from app.store import SnapshotBundle
from tests.factories import audience_row, budget, campaign_row, perf, status


@pytest.fixture(autouse=True)
def clear_memo():
    pipeline.cache.clear()
    yield
    pipeline.cache.clear()


@pytest.fixture
def bundle():
    return SnapshotBundle(
        version=7,
        management=[
            AccountRecord(cid="111-111-1111", account_name="Acme", pm="Priya"),
            AccountRecord(cid="222-222-2222", account_name="Gamma", pm="Arjun"),
        ],
        monthly=[
            perf(month="1/1/2024"),
            perf(month="1/2/2024", conversion_value="$50"),
            perf(cid="222-222-2222", account_name="Gamma", pm="Arjun", month="1/2/2024"),
        ],
        daily=[
            perf(month="3/1/2024", cost="$50", conversion_value="$200"),
            perf(month="3/2/2024", cost="$150", conversion_value="$600"),
        ],
        campaign=[campaign_row(daily_budget="5")],
        audience=[audience_row(audience="No Audience is Added")],
        budget=[budget()],
        manager_status=[status("Priya")],
    )


class TestDashboard:
    def test_all_views_populated(self, bundle):
        output = build_dashboard(bundle, DashboardQuery())
        assert output.dataset_version == 7
        assert len(output.daily_summaries) == 1
        assert output.daily_summaries[0].record.cost == "200.0"
        assert len(output.monthly_records) == 3
        assert output.monthly_comparison.previous_months == ["January 2024"]
        assert [p.month for p in output.monthly_trend] == ["Jan 24", "Feb 24"]
        assert output.campaign_audit.bucket("under_budget").count == 1
        assert output.audience_audit.bucket("no_audience_added").count == 1
        assert output.portfolio.months == ["February 2024"]
        assert {s.pm for s in output.portfolio.scores} == {"Priya", "Arjun"}
        assert output.budget_heatmap.managers == ["Priya"]
        assert output.budget_summary[0].exhaustions == 1

    def test_portfolio_issues_come_from_audits(self, bundle):
        output = build_dashboard(bundle)
        priya = next(s for s in output.portfolio.scores if s.pm == "Priya")
        # one campaign issue + one audience issue on the latest snapshot
        assert priya.total_issues == 2

    def test_monthly_selection(self, bundle):
        output = build_dashboard(bundle, DashboardQuery(monthly=MonthlyQuery(months=["January 2024"])))
        assert len(output.monthly_records) == 1

    def test_daily_window(self, bundle):
        query = DashboardQuery(daily=DailyQuery(start_date=date(2024, 3, 2)))
        output = build_dashboard(bundle, query)
        assert output.daily_summaries[0].record.cost == "150.0"

    def test_empty_bundle(self):
        output = build_dashboard(SnapshotBundle())
        assert output.daily_summaries == []
        assert output.portfolio.scores == []
        assert output.budget_heatmap.max_value == 1


class TestMemo:
    def test_same_version_and_query_is_memoized(self, bundle):
        assert build_dashboard(bundle) is build_dashboard(bundle)

    def test_new_version_recomputes(self, bundle):
        first = build_dashboard(bundle)
        second = build_dashboard(bundle.model_copy(update={"version": 8}))
        assert first is not second
        assert second.dataset_version == 8

    def test_different_query_recomputes(self, bundle):
        first = build_dashboard(bundle)
        second = build_dashboard(bundle, DashboardQuery(daily=DailyQuery(pms=["Nobody"])))
        assert first is not second
        assert second.daily_summaries == []

    def test_cache_is_bounded(self):
        cache = DerivedCache(max_items=2)
        cache.set(("a",), 1)
        cache.set(("b",), 2)
        cache.set(("c",), 3)
        assert len(cache) == 2
        assert cache.get(("a",)) is None
        assert cache.get(("c",)) == 3
