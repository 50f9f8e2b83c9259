"""PULSE — Snapshot Column Registry.

Defines, per snapshot domain, which sheet headers feed which record field.
Headers are matched case-insensitively after trimming, and the lookup is
resolved once per snapshot header row into a fixed field → column map, so
row transformation never searches headers again.

When a sheet gains a renamed column, add the new header as an alias here.
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence


class SnapshotDomain(str, Enum):
    """One published sheet tab."""

    MANAGEMENT = "management"
    BUDGET = "budget"
    MANAGER_STATUS = "manager_status"
    MONTHLY = "monthly"
    DAILY = "daily"
    AUDIENCE = "audience"
    CAMPAIGN = "campaign"


class ColumnDefinition:
    """Describes a single record field and the headers it may come from."""

    def __init__(
        self,
        field: str,
        aliases: Sequence[str],
        strip: bool = True,
        contains: bool = False,
    ):
        self.field = field
        self.aliases = tuple(aliases)
        self.strip = strip
        # Loose match: header merely contains the alias (budget sheet headers
        # carry currency suffixes such as "Budget Amount (USD)").
        self.contains = contains

    def __repr__(self) -> str:
        return f"<Column {self.field} ← {'|'.join(self.aliases)}>"


def _cols(*defs: ColumnDefinition) -> Dict[str, ColumnDefinition]:
    return {d.field: d for d in defs}


_ACCOUNT_COLUMNS = (
    ColumnDefinition("cid", ["CID"]),
    ColumnDefinition("pm", ["PM"]),
    ColumnDefinition("email", ["EMail", "Email"]),
    ColumnDefinition("account_name", ["Account Name"]),
    ColumnDefinition("monthly_budget", ["Monthly Budget"], strip=False),
    ColumnDefinition("weekly_budget", ["Weekly Budget"], strip=False),
    ColumnDefinition("conversion_source", ["Conversion Source"], strip=False),
    ColumnDefinition(
        "campaign_conversion_action", ["Campaign Conversion Action"], strip=False
    ),
    ColumnDefinition("target_roas", ["Target ROAS"], strip=False),
    ColumnDefinition("objective", ["Objective"], strip=False),
    ColumnDefinition("strategist", ["Strategist"], strip=False),
    ColumnDefinition("client_account", ["Client Account"], strip=False),
    ColumnDefinition("team", ["Team"]),
    ColumnDefinition("type", ["Type"]),
    ColumnDefinition("country", ["Country"]),
)

_PERFORMANCE_COLUMNS = (
    ColumnDefinition("month", ["Month", "Date", "Day"], strip=False),
    ColumnDefinition("impressions", ["Impressions"], strip=False),
    ColumnDefinition("clicks", ["Clicks"], strip=False),
    ColumnDefinition("cost", ["Cost"], strip=False),
    ColumnDefinition("conversions", ["Conversions"], strip=False),
    ColumnDefinition("conversion_value", ["Conversion Value"], strip=False),
)


COLUMN_REGISTRY: Dict[SnapshotDomain, Dict[str, ColumnDefinition]] = {
    SnapshotDomain.MANAGEMENT: _cols(
        *_ACCOUNT_COLUMNS, ColumnDefinition("status", ["Status"])
    ),
    SnapshotDomain.MONTHLY: _cols(*_ACCOUNT_COLUMNS, *_PERFORMANCE_COLUMNS),
    SnapshotDomain.DAILY: _cols(*_ACCOUNT_COLUMNS, *_PERFORMANCE_COLUMNS),
    SnapshotDomain.BUDGET: _cols(
        ColumnDefinition("current_date", ["Current Date"], contains=True),
        ColumnDefinition("cid", ["CID"], contains=True),
        ColumnDefinition("account_name", ["Account Name"], contains=True),
        ColumnDefinition("budget_name", ["Budget Name"], contains=True),
        ColumnDefinition("amount_spent", ["Amount Spent"], contains=True),
        ColumnDefinition("budget_amount", ["Budget Amount"], contains=True),
        ColumnDefinition("currency", ["Currency"], contains=True),
        ColumnDefinition("percent_spent", ["% Spent"], contains=True),
        ColumnDefinition("start_date", ["Start Date"], contains=True),
        ColumnDefinition("end_date", ["End Date"], contains=True),
        ColumnDefinition("pm", ["PM"], contains=True),
        ColumnDefinition("email", ["Email"], contains=True),
    ),
    SnapshotDomain.MANAGER_STATUS: _cols(
        # Column A of the status tab is headed "Team" in some exports.
        ColumnDefinition("pm", ["PM", "Team", "Name"]),
        ColumnDefinition("status", ["Status"]),
    ),
    SnapshotDomain.AUDIENCE: _cols(
        ColumnDefinition("date", ["Date"], strip=False),
        ColumnDefinition("cid", ["CID"]),
        ColumnDefinition("account_name", ["Account Name"]),
        ColumnDefinition("campaign_name", ["Campaign Name"]),
        ColumnDefinition("audience", ["Audience"]),
        ColumnDefinition("audience_setting", ["Audience Setting"]),
        ColumnDefinition("audience_source", ["Audience Source"]),
        ColumnDefinition("search_size", ["Search Size"], strip=False),
        ColumnDefinition("display_size", ["Display Size"], strip=False),
        ColumnDefinition("membership_status", ["Membership Status"]),
    ),
    SnapshotDomain.CAMPAIGN: _cols(
        ColumnDefinition("date", ["Date"], strip=False),
        ColumnDefinition("cid", ["CID"]),
        ColumnDefinition("account_name", ["Account Name"]),
        ColumnDefinition("campaign_name", ["Campaign Name"]),
        ColumnDefinition("campaign_status", ["Campaign Status"]),
        ColumnDefinition("daily_budget", ["Daily Budget"], strip=False),
        ColumnDefinition(
            "device_adjustment", ["Device Bid Adjustment"], strip=False
        ),
        ColumnDefinition("ad_rotation", ["Ad Rotation Type"], strip=False),
        ColumnDefinition("max_cpc", ["Default Max CPC"], strip=False),
        ColumnDefinition("optimization_score", ["Optimization Score"], strip=False),
        ColumnDefinition("campaign_type", ["Campaign Type"], strip=False),
        ColumnDefinition("display_select", ["Display Select"], strip=False),
        ColumnDefinition(
            "disapproved_ads", ["Limited/Disapproved Ads"], strip=False
        ),
        ColumnDefinition(
            "active_ads", ["Enabled Search Ads", "Active Ads"], strip=False
        ),
        ColumnDefinition("language", ["Languages", "Language", "I"], strip=False),
    ),
}

# Rows missing any of these fields are dropped at ingestion.
REQUIRED_FIELDS: Dict[SnapshotDomain, tuple[str, ...]] = {
    SnapshotDomain.MANAGEMENT: ("cid", "account_name"),
    SnapshotDomain.BUDGET: ("cid", "account_name"),
    SnapshotDomain.MANAGER_STATUS: ("pm",),
    SnapshotDomain.MONTHLY: ("account_name",),
    SnapshotDomain.DAILY: ("account_name",),
    SnapshotDomain.AUDIENCE: ("cid", "account_name"),
    SnapshotDomain.CAMPAIGN: ("cid", "account_name"),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────


def _canon(header: str) -> str:
    return header.strip().lower()


def _match_header(alias: str, contains: bool, headers: Sequence[str]) -> Optional[str]:
    needle = _canon(alias)
    for header in headers:
        if _canon(header) == needle:
            return header
    if contains:
        for header in headers:
            if needle in _canon(header):
                return header
    return None


def resolve_columns(
    domain: SnapshotDomain, headers: Sequence[str]
) -> Dict[str, List[str]]:
    """Resolve every field of ``domain`` to the headers that may feed it.

    A field lists one header per alias present, in alias priority order, so
    the transformer can fall through "Enabled Search Ads" → "Active Ads" when
    the first column is blank on a given row.
    """
    resolved: Dict[str, List[str]] = {}
    for field, column in COLUMN_REGISTRY[domain].items():
        hits: List[str] = []
        for alias in column.aliases:
            hit = _match_header(alias, column.contains, headers)
            if hit is not None and hit not in hits:
                hits.append(hit)
        resolved[field] = hits
    return resolved


def get_column(domain: SnapshotDomain, field: str) -> ColumnDefinition | None:
    """Look up a column definition by domain and field name."""
    return COLUMN_REGISTRY[domain].get(field)
