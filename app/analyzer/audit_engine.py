"""PULSE — Audit Engine.

Evaluates a rule battery over snapshot-dated configuration rows:
  latest snapshot   → flagged rows, per-manager and per-account counters
  previous snapshot → per-rule counts only (period-over-period delta)
Rows on any other date are ignored.
"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from app.core.keys import UNKNOWN_MANAGER, is_excluded_manager, normalize_id
from app.core.logging import get_logger
from app.core.parsing import parse_date
from app.models.analysis_models import (
    AuditBucket,
    AuditResult,
    FlaggedRow,
    ManagerAuditSummary,
)
from app.models.query_models import AuditQuery
from app.models.records import AudienceAuditRow, CampaignAuditRow
from app.analyzer.audit_rules import (
    AUDIENCE_RULES,
    CAMPAIGN_RULES,
    AuditRule,
    is_enabled_campaign,
    is_manual_audience_campaign,
)

logger = get_logger("analyzer.audit")


def snapshot_dates(rows: Iterable) -> List[str]:
    """Distinct readable snapshot date labels, most recent first."""
    parsed = {}
    for row in rows:
        if row.date and row.date not in parsed:
            day = parse_date(row.date)
            if day is not None:
                parsed[row.date] = day
    return sorted(parsed, key=lambda label: parsed[label], reverse=True)


def run_audit(
    domain: str,
    rows: Sequence,
    rules: Sequence[AuditRule],
    manager_index: Dict[str, str],
    query: AuditQuery = AuditQuery(),
    eligible: Optional[Callable[..., bool]] = None,
    excluded: Optional[Iterable[str]] = None,
) -> AuditResult:
    """Run ``rules`` over ``rows`` for the latest and previous snapshot dates.

    ``manager_index`` maps normalized account id → manager. ``eligible``
    gates rows before any counting (e.g. only enabled campaigns).
    """
    if query.snapshot_date:
        rows = [r for r in rows if r.date == query.snapshot_date]

    dates = snapshot_dates(rows)
    latest = dates[0] if dates else None
    previous = dates[1] if len(dates) > 1 else None

    flagged: Dict[str, List[FlaggedRow]] = {rule.key: [] for rule in rules}
    prev_counts: Dict[str, int] = {rule.key: 0 for rule in rules}
    summaries: Dict[str, ManagerAuditSummary] = {}
    account_issues: Dict[str, int] = {}

    for row in rows:
        if not row.date or row.date not in (latest, previous):
            continue
        cid_key = normalize_id(row.cid)
        pm = manager_index.get(cid_key) or UNKNOWN_MANAGER
        if is_excluded_manager(pm, excluded):
            continue
        if query.pms and pm not in query.pms:
            continue
        if eligible is not None and not eligible(row):
            continue

        if row.date == latest:
            summary = summaries.get(pm)
            if summary is None:
                summary = summaries[pm] = ManagerAuditSummary(
                    pm=pm, counts={rule.key: 0 for rule in rules}
                )
            summary.evaluated_rows += 1
            if cid_key:
                account_issues.setdefault(cid_key, 0)

            for rule in rules:
                if not rule.predicate(row):
                    continue
                flagged[rule.key].append(
                    FlaggedRow(
                        rule=rule.key,
                        pm=pm,
                        cid=row.cid,
                        account_name=row.account_name,
                        campaign_name=row.campaign_name,
                        date=row.date,
                        reason=rule.reason(row) if rule.reason else "",
                        row=row.model_dump(),
                    )
                )
                summary.counts[rule.key] += 1
                summary.total_issues += 1
                if cid_key:
                    account_issues[cid_key] += 1
        else:
            for rule in rules:
                if rule.predicate(row):
                    prev_counts[rule.key] += 1

    buckets = [
        AuditBucket(
            rule=rule.key,
            label=rule.label,
            rows=flagged[rule.key],
            count=len(flagged[rule.key]),
            previous_count=prev_counts[rule.key],
            delta=len(flagged[rule.key]) - prev_counts[rule.key],
        )
        for rule in rules
    ]
    manager_summaries = sorted(
        summaries.values(), key=lambda s: (-s.total_issues, s.pm)
    )

    logger.info(
        f"{domain} audit: latest={latest} previous={previous}, "
        f"{sum(b.count for b in buckets)} issues across {len(manager_summaries)} managers"
    )
    return AuditResult(
        domain=domain,
        latest_date=latest,
        previous_date=previous,
        available_dates=dates,
        buckets=buckets,
        previous_counts=prev_counts,
        manager_summaries=manager_summaries,
        account_issues=account_issues,
    )


def audit_campaigns(
    rows: Sequence[CampaignAuditRow],
    manager_index: Dict[str, str],
    query: AuditQuery = AuditQuery(),
    excluded: Optional[Iterable[str]] = None,
) -> AuditResult:
    """Campaign hygiene over enabled campaigns."""
    return run_audit(
        "campaign",
        rows,
        CAMPAIGN_RULES,
        manager_index,
        query,
        eligible=is_enabled_campaign,
        excluded=excluded,
    )


def audit_audiences(
    rows: Sequence[AudienceAuditRow],
    manager_index: Dict[str, str],
    query: AuditQuery = AuditQuery(),
    excluded: Optional[Iterable[str]] = None,
) -> AuditResult:
    """Audience hygiene over manually targeted campaigns."""
    return run_audit(
        "audience",
        rows,
        AUDIENCE_RULES,
        manager_index,
        query,
        eligible=is_manual_audience_campaign,
        excluded=excluded,
    )
