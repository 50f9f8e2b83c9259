"""Tests for sheet CSV ingestion."""

from app.core.column_registry import SnapshotDomain, resolve_columns
from app.connectors.sheets.transformer import read_csv, transform_csv
from app.models.records import AccountRecord, BudgetRecord, CampaignAuditRow

MANAGEMENT_CSV = """ CID ,account name,PM,Target ROAS,Objective
111-111-1111,Acme,Priya Strategic Lead,4x,ROAS
,NoId,Arjun,3x,ROAS
222, Beta ,  Arjun ,,ROAS
"""

CAMPAIGN_CSV = """Date,CID,Account Name,Campaign Name,Campaign Status,Enabled Search Ads,Active Ads,Languages
3/10/2024,111,Acme,Search,Enabled,,4,English
3/10/2024,111,Acme,Search 2,Enabled,2,5,French
"""

BUDGET_CSV = """Current Date,CID,Account Name,Budget Name,Amount Spent (USD),Budget Amount (USD),Currency,Start Date,PM
3/1/2024,111,Acme,Q1,"$1,000",$900,USD,1/5/2024,Priya Strategic Lead
"""


class TestColumnResolution:
    def test_case_and_whitespace_insensitive(self):
        columns = resolve_columns(SnapshotDomain.MANAGEMENT, [" CID ", "account name"])
        assert columns["cid"] == [" CID "]
        assert columns["account_name"] == ["account name"]
        assert columns["pm"] == []

    def test_alias_priority(self):
        columns = resolve_columns(SnapshotDomain.CAMPAIGN, ["Active Ads", "Enabled Search Ads"])
        assert columns["active_ads"] == ["Enabled Search Ads", "Active Ads"]

    def test_contains_match(self):
        columns = resolve_columns(SnapshotDomain.BUDGET, ["Budget Amount (USD)"])
        assert columns["budget_amount"] == ["Budget Amount (USD)"]


class TestTransform:
    def test_management_rows(self):
        records = transform_csv(SnapshotDomain.MANAGEMENT, MANAGEMENT_CSV)
        assert all(isinstance(r, AccountRecord) for r in records)
        assert [r.cid for r in records] == ["111-111-1111", "222"]
        assert [r.pm for r in records] == ["Priya", "Arjun"]
        assert records[1].account_name == "Beta"

    def test_alias_fall_through(self):
        records = transform_csv(SnapshotDomain.CAMPAIGN, CAMPAIGN_CSV)
        assert all(isinstance(r, CampaignAuditRow) for r in records)
        assert [r.active_ads for r in records] == ["4", "2"]
        assert records[1].language == "French"

    def test_budget_loose_headers(self):
        [record] = transform_csv(SnapshotDomain.BUDGET, BUDGET_CSV)
        assert isinstance(record, BudgetRecord)
        assert record.amount_spent == "$1,000"
        assert record.budget_amount == "$900"
        assert record.pm == "Priya"

    def test_missing_required_column(self):
        assert transform_csv(SnapshotDomain.CAMPAIGN, "Date,Campaign Name\n3/1/2024,x\n") == []

    def test_empty_text(self):
        assert transform_csv(SnapshotDomain.DAILY, "") == []
        assert read_csv("   ").empty
