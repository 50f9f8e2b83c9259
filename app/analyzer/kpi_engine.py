"""PULSE — KPI Engine.

Classifies each performance record against its target ROAS:
  ratio < 0.7  → Critical
  ratio < 1.0  → Low
  otherwise    → On Track   (also when no target is set)

and builds the status roll-ups used by the monthly and daily KPI views.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Literal, Optional, Sequence

from app.config import settings
from app.core.keys import is_excluded_manager
from app.core.logging import get_logger
from app.core.parsing import (
    actual_roas,
    month_display,
    month_short,
    parse_month_display,
    parse_month_label,
    parse_target_roas,
)
from app.models.analysis_models import (
    ClassifiedRecord,
    KpiStatus,
    MonthlyStatusPoint,
    PeriodComparison,
    PeriodStats,
    StatusTally,
)
from app.models.query_models import MonthlyQuery
from app.models.records import PerformanceRecord

logger = get_logger("analyzer.kpi")

# Thresholds on actual ROAS / target ROAS
CRITICAL_RATIO = 0.7
LOW_RATIO = 1.0
TREND_MONTHS = 12


def classify_kpi_status(record: PerformanceRecord) -> KpiStatus:
    """Status from (cost, conversion value, target ROAS) only."""
    target = parse_target_roas(record.target_roas)
    if target == 0:
        return KpiStatus.ON_TRACK
    ratio = actual_roas(record.cost, record.conversion_value) / target
    if ratio < CRITICAL_RATIO:
        return KpiStatus.CRITICAL
    if ratio < LOW_RATIO:
        return KpiStatus.LOW
    return KpiStatus.ON_TRACK


def classify(record: PerformanceRecord) -> ClassifiedRecord:
    return ClassifiedRecord(
        record=record,
        actual_roas=actual_roas(record.cost, record.conversion_value),
        status=classify_kpi_status(record),
    )


def tally_statuses(records: Iterable[PerformanceRecord], label: str = "") -> StatusTally:
    """Count statuses and derive their shares of the group."""
    counts = {status: 0 for status in KpiStatus}
    for r in records:
        counts[classify_kpi_status(r)] += 1
    total = sum(counts.values())
    return StatusTally(
        label=label,
        total=total,
        critical=counts[KpiStatus.CRITICAL],
        low=counts[KpiStatus.LOW],
        on_track=counts[KpiStatus.ON_TRACK],
        critical_pct=counts[KpiStatus.CRITICAL] / total * 100 if total else 0.0,
        low_pct=counts[KpiStatus.LOW] / total * 100 if total else 0.0,
        on_track_pct=counts[KpiStatus.ON_TRACK] / total * 100 if total else 0.0,
    )


def summarize_by(
    records: Iterable[PerformanceRecord],
    group_by: Literal["pm", "team"] = "pm",
    reserved_team_substrings: Optional[Sequence[str]] = None,
) -> List[StatusTally]:
    """Per-manager or per-team status tallies, largest group first."""
    reserved = [
        s.lower()
        for s in (
            settings.reserved_team_substrings
            if reserved_team_substrings is None
            else reserved_team_substrings
        )
    ]
    groups: Dict[str, List[PerformanceRecord]] = defaultdict(list)
    for r in records:
        key = r.pm if group_by == "pm" else r.team
        if not key:
            continue
        if group_by == "team" and any(s in key.lower() for s in reserved):
            continue
        groups[key].append(r)

    tallies = [tally_statuses(rows, label=key) for key, rows in groups.items()]
    return sorted(tallies, key=lambda t: (-t.total, t.label))


# ─────────────────────────────────────────────
# MONTHLY VIEW
# ─────────────────────────────────────────────


def available_months(records: Iterable[PerformanceRecord]) -> List[str]:
    """Distinct month display labels, oldest first."""
    months = {parse_month_label(r.month) for r in records}
    return [month_display(m) for m in sorted(m for m in months if m)]


def _matches(values: Sequence[str], value: str) -> bool:
    return not values or value in values


def _matches_row_filters(record: PerformanceRecord, query: MonthlyQuery) -> bool:
    return (
        _matches(query.pms, record.pm)
        and _matches(query.accounts, record.account_name)
        and _matches(query.clients, record.client_account)
        and _matches(query.objectives, record.objective)
    )


def filter_monthly(
    records: Iterable[PerformanceRecord],
    query: MonthlyQuery,
    excluded: Optional[Iterable[str]] = None,
) -> List[ClassifiedRecord]:
    """Monthly rows matching every filter, classified, sorted by account."""
    out: List[ClassifiedRecord] = []
    for r in records:
        if is_excluded_manager(r.pm, excluded):
            continue
        if query.months:
            parsed = parse_month_label(r.month)
            if not parsed or month_display(parsed) not in query.months:
                continue
        if not _matches_row_filters(r, query):
            continue
        item = classify(r)
        if not _matches(query.statuses, item.status.value):
            continue
        out.append(item)
    out.sort(key=lambda c: c.record.account_name)
    logger.info(f"Monthly view: {len(out)} records match filters")
    return out


def monthly_status_trend(
    records: Iterable[PerformanceRecord],
    query: MonthlyQuery,
    months: int = TREND_MONTHS,
    excluded: Optional[Iterable[str]] = None,
) -> List[MonthlyStatusPoint]:
    """Status counts for each of the trailing ``months`` months.

    The month selection of ``query`` is ignored; the other row filters apply.
    """
    records = list(records)
    by_month: Dict[str, List[PerformanceRecord]] = defaultdict(list)
    for r in records:
        if is_excluded_manager(r.pm, excluded) or not _matches_row_filters(r, query):
            continue
        parsed = parse_month_label(r.month)
        if parsed:
            by_month[month_display(parsed)].append(r)

    points: List[MonthlyStatusPoint] = []
    for label in available_months(records)[-months:]:
        tally = tally_statuses(by_month.get(label, []))
        points.append(
            MonthlyStatusPoint(
                month=month_short(parse_month_display(label)),
                total=tally.total,
                critical=tally.critical,
                low=tally.low,
                on_track=tally.on_track,
            )
        )
    return points


def _period_stats(
    records: Sequence[PerformanceRecord],
    labels: Sequence[str],
    query: MonthlyQuery,
    excluded: Optional[Iterable[str]],
) -> PeriodStats:
    rows = [
        r
        for r in records
        if not is_excluded_manager(r.pm, excluded)
        and _matches_row_filters(r, query)
        and parse_month_label(r.month)
        and month_display(parse_month_label(r.month)) in labels
    ]
    tally = tally_statuses(rows)
    return PeriodStats(
        projects=len({r.account_name for r in rows}),
        pms=len({r.pm for r in rows}),
        critical=tally.critical,
        low=tally.low,
        on_track=tally.on_track,
        total=tally.total,
    )


def period_comparison(
    records: Iterable[PerformanceRecord],
    query: MonthlyQuery,
    excluded: Optional[Iterable[str]] = None,
) -> PeriodComparison:
    """Stats for the selected months and the equally long period before them."""
    records = list(records)
    all_months = available_months(records)
    selected = list(query.months) or all_months[-1:]
    if not selected:
        return PeriodComparison()

    indices = [all_months.index(m) for m in selected if m in all_months]
    previous: List[str] = []
    if indices and min(indices) > 0:
        first = min(indices)
        previous = all_months[max(0, first - len(selected)) : first]

    return PeriodComparison(
        months=selected,
        current=_period_stats(records, selected, query, excluded),
        previous_months=previous,
        previous=_period_stats(records, previous, query, excluded) if previous else None,
    )
