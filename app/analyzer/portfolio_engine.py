"""PULSE — Portfolio Engine.

Scores each manager's ROAS-objective book over the selected months:
  avg_health   = (on_track + 0.5 × low) / accounts        → 70% of global score
  audit hygiene = 100 − 8 × issues per account (floored)   → 30% of global score
Counts are averaged over the number of selected months.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Set

from app.core.keys import UNKNOWN_MANAGER, is_excluded_manager, normalize_id
from app.core.logging import get_logger
from app.core.parsing import month_display_for, parse_money, parse_month_display
from app.models.analysis_models import (
    AuditResult,
    KpiStatus,
    PortfolioIssue,
    PortfolioReport,
    PortfolioScore,
    PortfolioTrendPoint,
)
from app.models.query_models import PortfolioQuery
from app.models.records import PerformanceRecord
from app.analyzer.kpi_engine import available_months, classify_kpi_status

logger = get_logger("analyzer.portfolio")

ROAS_OBJECTIVE = "ROAS"
HEALTH_WEIGHT = 0.7
AUDIT_WEIGHT = 0.3
LOW_STATUS_CREDIT = 0.5
ISSUE_PENALTY = 8
WORKLOAD_ACCOUNT_WEIGHT = 0.6
WORKLOAD_COST_WEIGHT = 0.4
WORKLOAD_COST_UNIT = 5000
HIGH_INTENSITY_THRESHOLD = 40
TOP_ISSUES = 4

# (domain, rule key, display label) surfaced on the portfolio overview
PORTFOLIO_ISSUE_RULES = (
    ("campaign", "display_select", "Display Select ON"),
    ("campaign", "low_opti", "Low Opti Score"),
    ("campaign", "zero_ads", "Zero Ads Active"),
    ("campaign", "under_budget", "Under Budget"),
    ("audience", "no_audience_added", "No Audiences"),
    ("audience", "targeting_without_remarketing", "Targeting Bug"),
)


def selected_months(
    records: Sequence[PerformanceRecord], query: PortfolioQuery
) -> List[str]:
    """Selected month labels, oldest first; defaults to the latest month."""
    months = list(query.months) or available_months(records)[-1:]
    return sorted(months, key=lambda m: parse_month_display(m) or date.max)


def _in_scope(
    record: PerformanceRecord,
    query: PortfolioQuery,
    excluded: Optional[Iterable[str]],
) -> bool:
    if is_excluded_manager(record.pm, excluded):
        return False
    if query.teams and record.team not in query.teams:
        return False
    if query.strategists and record.strategist not in query.strategists:
        return False
    return True


def _health(on_track: float, low: float, total: float) -> float:
    return (on_track + low * LOW_STATUS_CREDIT) / total * 100 if total else 0.0


def _on_track_pct(rows: Sequence[PerformanceRecord]) -> float:
    if not rows:
        return 0.0
    on_track = sum(1 for r in rows if classify_kpi_status(r) == KpiStatus.ON_TRACK)
    return on_track / len(rows) * 100


def score_portfolios(
    records: Sequence[PerformanceRecord],
    query: PortfolioQuery,
    campaign_audit: Optional[AuditResult] = None,
    audience_audit: Optional[AuditResult] = None,
    excluded: Optional[Iterable[str]] = None,
) -> List[PortfolioScore]:
    """Per-manager portfolio scores, best global score first."""
    months = selected_months(records, query)
    if not months:
        return []
    period_count = len(months)
    campaign_issues = campaign_audit.account_issues if campaign_audit else {}
    audience_issues = audience_audit.account_issues if audience_audit else {}

    totals: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    by_month: Dict[str, Dict[str, List[PerformanceRecord]]] = defaultdict(
        lambda: defaultdict(list)
    )

    for r in records:
        label = month_display_for(r.month)
        if label not in months or r.objective != ROAS_OBJECTIVE:
            continue
        if is_excluded_manager(r.pm, excluded):
            continue
        pm = r.pm or UNKNOWN_MANAGER
        # the trend covers the manager's whole book, whatever the team filter
        by_month[pm][label].append(r)
        if not _in_scope(r, query, excluded):
            continue
        t = totals[pm]
        cid = normalize_id(r.cid)
        if cid:
            t["issues"] += campaign_issues.get(cid, 0) + audience_issues.get(cid, 0)
        t["accounts"] += 1
        status = classify_kpi_status(r)
        t[status.value] += 1
        t["budget"] += parse_money(r.monthly_budget)
        t["cost"] += parse_money(r.cost)

    scores: List[PortfolioScore] = []
    for pm, t in totals.items():
        accounts = t["accounts"]
        on_track = t[KpiStatus.ON_TRACK.value]
        low = t[KpiStatus.LOW.value]
        critical = t[KpiStatus.CRITICAL.value]
        issues = int(t["issues"])
        workload = (accounts / period_count) * WORKLOAD_ACCOUNT_WEIGHT + (
            t["cost"] / period_count
        ) / WORKLOAD_COST_UNIT * WORKLOAD_COST_WEIGHT

        if accounts > 0:
            avg_health = _health(on_track, low, accounts)
            issues_per_account = issues / accounts
            audit_health = max(
                0.0, 100 - issues / (accounts * period_count) * ISSUE_PENALTY
            )
            global_score = avg_health * HEALTH_WEIGHT + max(
                0.0, 100 - issues_per_account * ISSUE_PENALTY
            ) * AUDIT_WEIGHT
        else:
            avg_health = issues_per_account = audit_health = global_score = 0.0

        scores.append(
            PortfolioScore(
                pm=pm,
                accounts=accounts / period_count,
                roas_accounts=accounts / period_count,
                critical=critical / period_count,
                low=low / period_count,
                on_track=on_track / period_count,
                total_budget=t["budget"] / period_count,
                total_cost=t["cost"] / period_count,
                total_issues=issues,
                on_track_pct=on_track / accounts * 100 if accounts else 0.0,
                low_pct=low / accounts * 100 if accounts else 0.0,
                critical_pct=critical / accounts * 100 if accounts else 0.0,
                avg_health=avg_health,
                workload_intensity=workload,
                high_intensity=workload >= HIGH_INTENSITY_THRESHOLD,
                avg_issues=issues_per_account,
                audit_health=audit_health,
                global_score=global_score,
                trend=[_on_track_pct(by_month[pm].get(m, [])) for m in months],
            )
        )

    scores.sort(key=lambda s: (-s.global_score, s.pm))
    logger.info(
        f"Scored {len(scores)} managers over {period_count} month(s): {', '.join(months)}"
    )
    return scores


def portfolio_health_trend(
    records: Sequence[PerformanceRecord],
    query: PortfolioQuery,
    excluded: Optional[Iterable[str]] = None,
) -> List[PortfolioTrendPoint]:
    """Team-wide ROAS health for each selected month."""
    points: List[PortfolioTrendPoint] = []
    for month in selected_months(records, query):
        rows = [
            r
            for r in records
            if month_display_for(r.month) == month
            and r.objective == ROAS_OBJECTIVE
            and _in_scope(r, query, excluded)
        ]
        statuses = [classify_kpi_status(r) for r in rows]
        health = _health(
            statuses.count(KpiStatus.ON_TRACK), statuses.count(KpiStatus.LOW), len(rows)
        )
        points.append(
            PortfolioTrendPoint(month=month, health=round(health, 1), accounts=len(rows))
        )
    return points


def active_account_ids(
    records: Sequence[PerformanceRecord], query: PortfolioQuery
) -> Set[str]:
    """Normalized ids of every account in the portfolio's month/team scope."""
    months = set(selected_months(records, query))
    ids: Set[str] = set()
    for r in records:
        if month_display_for(r.month) not in months:
            continue
        if query.teams and r.team not in query.teams:
            continue
        if query.strategists and r.strategist not in query.strategists:
            continue
        cid = normalize_id(r.cid)
        if cid:
            ids.add(cid)
    return ids


def top_portfolio_issues(
    campaign_audit: AuditResult,
    audience_audit: AuditResult,
    active_ids: Set[str],
    limit: int = TOP_ISSUES,
) -> List[PortfolioIssue]:
    """Most frequent headline audit issues among the portfolio's accounts."""
    audits = {"campaign": campaign_audit, "audience": audience_audit}
    issues: List[PortfolioIssue] = []
    for domain, rule, label in PORTFOLIO_ISSUE_RULES:
        bucket = audits[domain].bucket(rule)
        count = (
            sum(1 for row in bucket.rows if normalize_id(row.cid) in active_ids)
            if bucket
            else 0
        )
        issues.append(PortfolioIssue(rule=rule, label=label, count=count))
    issues.sort(key=lambda i: i.count, reverse=True)
    return issues[:limit]


def build_portfolio_report(
    records: Sequence[PerformanceRecord],
    query: PortfolioQuery,
    campaign_audit: AuditResult,
    audience_audit: AuditResult,
    excluded: Optional[Iterable[str]] = None,
) -> PortfolioReport:
    return PortfolioReport(
        months=selected_months(records, query),
        scores=score_portfolios(
            records, query, campaign_audit, audience_audit, excluded
        ),
        health_trend=portfolio_health_trend(records, query, excluded),
        top_issues=top_portfolio_issues(
            campaign_audit, audience_audit, active_account_ids(records, query)
        ),
    )
