"""Record factories shared by the test modules."""

from app.models.records import (
    AudienceAuditRow,
    BudgetRecord,
    CampaignAuditRow,
    ManagerStatusRecord,
    PerformanceRecord,
)


def perf(**fields) -> PerformanceRecord:
    defaults = {
        "cid": "111-111-1111",
        "account_name": "Acme",
        "pm": "Priya",
        "team": "Alpha",
        "objective": "ROAS",
        "target_roas": "4x",
        "cost": "$100",
        "conversion_value": "$400",
        "month": "1/1/2024",
    }
    defaults.update(fields)
    return PerformanceRecord(**defaults)


def campaign_row(**fields) -> CampaignAuditRow:
    defaults = {
        "date": "3/10/2024",
        "cid": "111-111-1111",
        "account_name": "Acme",
        "campaign_name": "Acme Search",
        "campaign_status": "Enabled",
        "daily_budget": "50",
        "max_cpc": "2",
        "optimization_score": "90%",
        "campaign_type": "Search",
        "display_select": "No",
        "active_ads": "3",
        "language": "English",
    }
    defaults.update(fields)
    return CampaignAuditRow(**defaults)


def audience_row(**fields) -> AudienceAuditRow:
    defaults = {
        "date": "3/10/2024",
        "cid": "111-111-1111",
        "account_name": "Acme",
        "campaign_name": "Acme Search RLSA",
        "audience": "Past Buyers",
        "audience_setting": "Targeting",
        "search_size": "1000",
        "membership_status": "OPEN",
    }
    defaults.update(fields)
    return AudienceAuditRow(**defaults)


def budget(**fields) -> BudgetRecord:
    defaults = {
        "cid": "111-111-1111",
        "account_name": "Acme",
        "pm": "Priya",
        "start_date": "1/5/2024",
        "amount_spent": "$100",
        "currency": "USD",
    }
    defaults.update(fields)
    return BudgetRecord(**defaults)


def status(pm: str, value: str = "Active") -> ManagerStatusRecord:
    return ManagerStatusRecord(pm=pm, status=value)


