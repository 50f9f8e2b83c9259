"""PULSE — Snapshot Record Models (Immutable).

Typed rows built from each published sheet. Numeric fields stay in their
display form ("$1,234", "4x") and are parsed on demand by the engines, so a
record always shows exactly what the source sheet said.
"""

from pydantic import BaseModel


class _Record(BaseModel):
    model_config = {"frozen": True, "extra": "ignore"}


class AccountRecord(_Record):
    """One row of the management sheet. Identity = ``cid``."""

    cid: str = ""
    pm: str = ""
    email: str = ""
    account_name: str = ""
    monthly_budget: str = ""
    weekly_budget: str = ""
    conversion_source: str = ""
    campaign_conversion_action: str = ""
    target_roas: str = ""
    objective: str = ""
    strategist: str = ""
    client_account: str = ""
    team: str = ""
    type: str = ""
    country: str = ""
    status: str = ""


class PerformanceRecord(AccountRecord):
    """Monthly or daily KPI row.

    ``month`` holds the period label: the first of the month for monthly
    rows, the day for daily rows.
    """

    month: str = ""
    impressions: str = ""
    clicks: str = ""
    cost: str = ""
    conversions: str = ""
    conversion_value: str = ""


class BudgetRecord(_Record):
    """A budget that ran out. One record ⇒ one exhaustion event."""

    current_date: str = ""
    cid: str = ""
    account_name: str = ""
    budget_name: str = ""
    amount_spent: str = ""
    budget_amount: str = ""
    currency: str = ""
    percent_spent: str = ""
    start_date: str = ""
    end_date: str = ""
    pm: str = ""
    email: str = ""


class ManagerStatusRecord(_Record):
    pm: str = ""
    status: str = ""


class AudienceAuditRow(_Record):
    """Audience configuration of one campaign on one snapshot date."""

    date: str = ""
    cid: str = ""
    account_name: str = ""
    campaign_name: str = ""
    audience: str = ""
    audience_setting: str = ""
    audience_source: str = ""
    search_size: str = ""
    display_size: str = ""
    membership_status: str = ""


class CampaignAuditRow(_Record):
    """Campaign settings of one campaign on one snapshot date."""

    date: str = ""
    cid: str = ""
    account_name: str = ""
    campaign_name: str = ""
    campaign_status: str = ""
    daily_budget: str = ""
    device_adjustment: str = ""
    ad_rotation: str = ""
    max_cpc: str = ""
    optimization_score: str = ""
    campaign_type: str = ""
    display_select: str = ""
    disapproved_ads: str = ""
    active_ads: str = ""
    language: str = ""
