"""PULSE — Query / Filter Models.

Every engine takes its filters as an explicit immutable query object. An
empty selection list means "no restriction" for that dimension.
"""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel


class _Query(BaseModel):
    model_config = {"frozen": True}


class DailyQuery(_Query):
    """Daily KPI view: date window plus row filters on the summaries."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    pms: List[str] = []
    accounts: List[str] = []
    clients: List[str] = []
    objectives: List[str] = []
    statuses: List[str] = []


class MonthlyQuery(_Query):
    """Monthly KPI view. ``months`` are display labels ("January 2024")."""

    months: List[str] = []
    pms: List[str] = []
    accounts: List[str] = []
    clients: List[str] = []
    objectives: List[str] = []
    statuses: List[str] = []


class AuditQuery(_Query):
    pms: List[str] = []
    snapshot_date: Optional[str] = None
    """Restrict evaluation to rows of exactly this snapshot date label."""


class PortfolioQuery(_Query):
    months: List[str] = []
    """Display labels; empty selects the latest available month."""
    teams: List[str] = []
    strategists: List[str] = []


class HeatmapQuery(_Query):
    start_month: Optional[str] = None
    """Short label ("Jan 24"); unset or unknown bounds disable range filtering."""
    end_month: Optional[str] = None


class KpiSummaryQuery(_Query):
    monthly: MonthlyQuery = MonthlyQuery()
    group_by: Literal["pm", "team"] = "pm"


class DashboardQuery(_Query):
    """Everything one dashboard render needs."""

    daily: DailyQuery = DailyQuery()
    monthly: MonthlyQuery = MonthlyQuery()
    campaign_audit: AuditQuery = AuditQuery()
    audience_audit: AuditQuery = AuditQuery()
    portfolio: PortfolioQuery = PortfolioQuery()
    heatmap: HeatmapQuery = HeatmapQuery()

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "daily": {"start_date": "2024-03-01", "end_date": "2024-03-31"},
                    "portfolio": {"months": ["February 2024", "March 2024"]},
                    "heatmap": {"start_month": "Apr 23", "end_month": "Mar 24"},
                }
            ]
        },
    }
