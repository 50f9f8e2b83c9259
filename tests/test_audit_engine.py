"""Tests for the audit rule batteries and the audit engine."""

import pytest

from app.analyzer.audit_engine import audit_audiences, audit_campaigns, snapshot_dates
from app.analyzer.audit_rules import (
    expected_language,
    is_manual_audience_campaign,
    is_remarketing_campaign,
    optimization_score,
)
from app.models.query_models import AuditQuery
from tests.factories import audience_row, campaign_row


def _flagged(result, rule):
    return result.bucket(rule).rows


class TestCampaignRules:
    def test_under_budget_enabled(self, manager_index):
        result = audit_campaigns([campaign_row(daily_budget="5")], manager_index)
        rows = _flagged(result, "under_budget")
        assert len(rows) == 1
        assert rows[0].reason == "$5 Budget"
        assert rows[0].pm == "Priya"

    def test_paused_campaign_excluded_entirely(self, manager_index):
        result = audit_campaigns(
            [campaign_row(daily_budget="5", campaign_status="Paused")], manager_index
        )
        assert all(b.count == 0 for b in result.buckets)
        assert result.manager_summaries == []
        assert result.account_issues == {}

    def test_clean_row_flags_nothing(self, manager_index):
        result = audit_campaigns([campaign_row()], manager_index)
        assert sum(b.count for b in result.buckets) == 0
        assert result.account_issues == {"1111111111": 0}

    def test_low_cpc_reason(self, manager_index):
        rows = _flagged(audit_campaigns([campaign_row(max_cpc="0.45")], manager_index), "low_cpc")
        assert rows[0].reason == "$0.45 CPC"

    @pytest.mark.parametrize("raw", ["65%", "0.65", "65"])
    def test_low_optimization_score(self, raw, manager_index):
        assert optimization_score(campaign_row(optimization_score=raw)) == pytest.approx(65.0)
        rows = _flagged(
            audit_campaigns([campaign_row(optimization_score=raw)], manager_index), "low_opti"
        )
        assert rows[0].reason == "65% Score"

    def test_optimization_score_half_rounds_up(self, manager_index):
        rows = _flagged(
            audit_campaigns([campaign_row(optimization_score="62.5%")], manager_index), "low_opti"
        )
        assert rows[0].reason == "63% Score"

    def test_extreme_device_adjustments(self, manager_index):
        result = audit_campaigns(
            [campaign_row(device_adjustment="Mobile: -100%, Tablet: -95%, Desktop: -90%")],
            manager_index,
        )
        assert result.bucket("device_negatives").count == 1

    def test_display_select_only_on_search(self, manager_index):
        result = audit_campaigns(
            [
                campaign_row(display_select="Yes"),
                campaign_row(display_select="Yes", campaign_type="Display", campaign_name="Acme Display"),
            ],
            manager_index,
        )
        assert result.bucket("display_select").count == 1

    def test_zero_ads_and_disapproved(self, manager_index):
        result = audit_campaigns(
            [campaign_row(active_ads="0", disapproved_ads="2 disapproved")], manager_index
        )
        assert result.bucket("zero_ads").count == 1
        assert _flagged(result, "disapproved")[0].reason == "2 disapproved"

    def test_language_mismatch(self, manager_index):
        assert expected_language("Acme L-FR Search") == "French"
        rows = _flagged(
            audit_campaigns(
                [campaign_row(campaign_name="Acme L-FR Search", language="English")],
                manager_index,
            ),
            "lang_mismatch",
        )
        assert rows[0].reason == "Camp: French, Target: English"

    def test_language_match_not_flagged(self, manager_index):
        result = audit_campaigns(
            [campaign_row(campaign_name="Acme L-FR Search", language="French, English")],
            manager_index,
        )
        assert result.bucket("lang_mismatch").count == 0


class TestAudienceRules:
    def test_no_audience_is_not_zero_search(self, manager_index):
        result = audit_audiences(
            [audience_row(search_size="0", audience="No Audience is Added")], manager_index
        )
        assert result.bucket("search_size_zero").count == 0
        assert result.bucket("no_audience_added").count == 1

    def test_zero_search_size(self, manager_index):
        result = audit_audiences([audience_row(search_size="0")], manager_index)
        assert result.bucket("search_size_zero").count == 1

    def test_targeting_without_remarketing(self, manager_index):
        result = audit_audiences([audience_row(campaign_name="Acme Search")], manager_index)
        assert result.bucket("targeting_without_remarketing").count == 1

    def test_observation_with_rlsa(self, manager_index):
        result = audit_audiences([audience_row(audience_setting="Observation")], manager_index)
        assert result.bucket("observation_with_rlsa").count == 1

    def test_closed_membership(self, manager_index):
        result = audit_audiences([audience_row(membership_status="CLOSED")], manager_index)
        assert result.bucket("closed_membership").count == 1

    def test_automated_campaigns_skipped(self, manager_index):
        assert not is_manual_audience_campaign(audience_row(campaign_name="Acme PMax Brand"))
        result = audit_audiences(
            [audience_row(campaign_name="Acme PMax Brand", search_size="0")], manager_index
        )
        assert result.manager_summaries == []

    def test_remarketing_pattern(self):
        assert is_remarketing_campaign("acme_rlsa_search")
        assert not is_remarketing_campaign("Acme Search")


class TestSnapshotBucketing:
    @pytest.fixture
    def rows(self):
        return [
            campaign_row(date="3/10/2024", daily_budget="5"),
            campaign_row(date="3/10/2024", cid="222-222-2222", daily_budget="5", max_cpc="0.5"),
            campaign_row(date="3/3/2024", daily_budget="5"),
            campaign_row(date="3/3/2024", daily_budget="5", cid="999"),
            campaign_row(date="3/3/2024", daily_budget="5", cid="998"),
            campaign_row(date="2/1/2024", daily_budget="5"),
            campaign_row(date="garbage", daily_budget="5"),
        ]

    def test_latest_and_previous(self, rows, manager_index):
        result = audit_campaigns(rows, manager_index)
        assert result.latest_date == "3/10/2024"
        assert result.previous_date == "3/3/2024"
        assert result.available_dates == ["3/10/2024", "3/3/2024", "2/1/2024"]

    def test_counts_and_delta(self, rows, manager_index):
        bucket = audit_campaigns(rows, manager_index).bucket("under_budget")
        assert bucket.count == 2
        assert bucket.previous_count == 3
        assert bucket.delta == -1

    def test_latest_rows_only_in_flagged(self, rows, manager_index):
        result = audit_campaigns(rows, manager_index)
        assert {r.date for b in result.buckets for r in b.rows} == {"3/10/2024"}

    def test_manager_summaries(self, rows, manager_index):
        result = audit_campaigns(rows, manager_index)
        summaries = {s.pm: s for s in result.manager_summaries}
        assert summaries["Arjun"].total_issues == 2
        assert summaries["Priya"].total_issues == 1
        assert result.manager_summaries[0].pm == "Arjun"
        assert result.account_issues == {"1111111111": 1, "2222222222": 2}

    def test_unknown_manager_sentinel(self):
        result = audit_campaigns([campaign_row(daily_budget="5")], {})
        assert result.bucket("under_budget").rows[0].pm == "Unknown"

    def test_pm_filter(self, rows, manager_index):
        result = audit_campaigns(rows, manager_index, AuditQuery(pms=["Priya"]))
        assert result.bucket("under_budget").count == 1

    def test_excluded_manager(self):
        result = audit_campaigns(
            [campaign_row(daily_budget="5")], {"1111111111": "Paused/Ended"}
        )
        assert result.bucket("under_budget").count == 0

    def test_single_date_has_no_previous(self, manager_index):
        result = audit_campaigns([campaign_row(daily_budget="5")], manager_index)
        assert result.previous_date is None
        assert result.bucket("under_budget").previous_count == 0

    def test_snapshot_dates_skip_unreadable(self, rows):
        assert "garbage" not in snapshot_dates(rows)

    def test_empty(self, manager_index):
        result = audit_campaigns([], manager_index)
        assert result.latest_date is None
        assert all(b.count == 0 for b in result.buckets)
