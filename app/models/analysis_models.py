"""PULSE — Engine Output Models (Versioned)."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from app.models.records import PerformanceRecord


class KpiStatus(str, Enum):
    """Performance health of one record against its target ROAS."""

    CRITICAL = "Critical"
    LOW = "Low"
    ON_TRACK = "On Track"


# ─────────────────────────────────────────────
# KPI
# ─────────────────────────────────────────────


class ClassifiedRecord(BaseModel):
    """A performance record with its derived ROAS and status."""

    record: PerformanceRecord
    actual_roas: float = 0.0
    status: KpiStatus = KpiStatus.ON_TRACK


class StatusTally(BaseModel):
    """Status counts for a group (manager, team, or a whole view)."""

    label: str = ""
    total: int = 0
    critical: int = 0
    low: int = 0
    on_track: int = 0
    critical_pct: float = 0.0
    low_pct: float = 0.0
    on_track_pct: float = 0.0


class MonthlyStatusPoint(BaseModel):
    month: str  # "Jan 24"
    total: int = 0
    critical: int = 0
    low: int = 0
    on_track: int = 0


class PeriodStats(BaseModel):
    projects: int = 0
    pms: int = 0
    critical: int = 0
    low: int = 0
    on_track: int = 0
    total: int = 0


class PeriodComparison(BaseModel):
    """Selected period vs the preceding period of equal length."""

    months: List[str] = []
    current: PeriodStats = PeriodStats()
    previous_months: List[str] = []
    previous: Optional[PeriodStats] = None


# ─────────────────────────────────────────────
# ANOMALIES
# ─────────────────────────────────────────────


class SuddenDrop(BaseModel):
    cid: str = ""
    account_name: str = ""
    pm: str = ""
    current_roas: float
    baseline_roas: float
    drop_pct: float


class HiddenGem(BaseModel):
    """Low-spend account whose ROAS far exceeds its target."""

    cid: str = ""
    account_name: str = ""
    pm: str = ""
    current_roas: float
    target_roas: float
    spend: float


class AnomalyReport(BaseModel):
    sudden_drops: List[SuddenDrop] = []
    hidden_gems: List[HiddenGem] = []


# ─────────────────────────────────────────────
# AUDITS
# ─────────────────────────────────────────────


class FlaggedRow(BaseModel):
    """An audit row that matched a rule on the latest snapshot date."""

    rule: str
    pm: str
    cid: str = ""
    account_name: str = ""
    campaign_name: str = ""
    date: str = ""
    reason: str = ""
    row: Dict[str, str] = {}


class AuditBucket(BaseModel):
    """All rows flagged by one rule, with the period-over-period delta."""

    rule: str
    label: str
    rows: List[FlaggedRow] = []
    count: int = 0
    previous_count: int = 0
    delta: int = 0


class ManagerAuditSummary(BaseModel):
    pm: str
    evaluated_rows: int = 0
    counts: Dict[str, int] = {}
    total_issues: int = 0


class AuditResult(BaseModel):
    """Result bundle for one audit domain ("campaign" or "audience")."""

    domain: str
    latest_date: Optional[str] = None
    previous_date: Optional[str] = None
    available_dates: List[str] = []
    buckets: List[AuditBucket] = []
    previous_counts: Dict[str, int] = {}
    manager_summaries: List[ManagerAuditSummary] = []
    account_issues: Dict[str, int] = {}

    def bucket(self, rule: str) -> Optional[AuditBucket]:
        for b in self.buckets:
            if b.rule == rule:
                return b
        return None


# ─────────────────────────────────────────────
# PORTFOLIO
# ─────────────────────────────────────────────


class PortfolioScore(BaseModel):
    """Period-averaged health and workload of one manager's ROAS accounts."""

    pm: str
    accounts: float = 0.0
    roas_accounts: float = 0.0
    critical: float = 0.0
    low: float = 0.0
    on_track: float = 0.0
    total_budget: float = 0.0
    total_cost: float = 0.0
    total_issues: int = 0
    on_track_pct: float = 0.0
    low_pct: float = 0.0
    critical_pct: float = 0.0
    avg_health: float = 0.0
    workload_intensity: float = 0.0
    high_intensity: bool = False
    avg_issues: float = 0.0
    audit_health: float = 0.0
    global_score: float = 0.0
    trend: List[float] = []


class PortfolioTrendPoint(BaseModel):
    month: str
    health: float = 0.0
    accounts: int = 0


class PortfolioIssue(BaseModel):
    rule: str
    label: str
    count: int = 0


class PortfolioReport(BaseModel):
    months: List[str] = []
    scores: List[PortfolioScore] = []
    health_trend: List[PortfolioTrendPoint] = []
    top_issues: List[PortfolioIssue] = []


# ─────────────────────────────────────────────
# BUDGET
# ─────────────────────────────────────────────


class BudgetManagerSummary(BaseModel):
    pm: str
    exhaustions: int = 0
    distinct_accounts: int = 0
    total_spent_usd: float = 0.0


class BudgetHeatmap(BaseModel):
    """Manager × month exhaustion counts over the visible month range."""

    months: List[str] = []
    managers: List[str] = []
    counts: Dict[str, Dict[str, int]] = {}
    totals: Dict[str, int] = {}
    max_value: int = 1


# ─────────────────────────────────────────────
# DASHBOARD BUNDLE
# ─────────────────────────────────────────────


class DashboardOutput(BaseModel):
    """PULSE Dashboard Output v1 — every derived view for one query."""

    schema_version: str = "1.0.0"
    generated_at: str = ""
    dataset_version: int = 0
    daily_summaries: List[ClassifiedRecord] = []
    monthly_records: List[ClassifiedRecord] = []
    monthly_comparison: PeriodComparison = PeriodComparison()
    monthly_trend: List[MonthlyStatusPoint] = []
    pm_kpi_summary: List[StatusTally] = []
    team_kpi_summary: List[StatusTally] = []
    anomalies: AnomalyReport = AnomalyReport()
    campaign_audit: AuditResult = AuditResult(domain="campaign")
    audience_audit: AuditResult = AuditResult(domain="audience")
    portfolio: PortfolioReport = PortfolioReport()
    budget_heatmap: BudgetHeatmap = BudgetHeatmap()
    budget_summary: List[BudgetManagerSummary] = []
