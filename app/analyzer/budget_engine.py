"""PULSE — Budget Exhaustion Engine.

Every budget record is one exhaustion event. This module counts them per
manager and per start month (the heatmap), and per manager overall.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set

from app.config import settings
from app.core.currency import convert_to_usd
from app.core.keys import is_excluded_manager
from app.core.logging import get_logger
from app.core.parsing import month_short, parse_date, parse_money
from app.models.analysis_models import BudgetHeatmap, BudgetManagerSummary
from app.models.query_models import HeatmapQuery
from app.models.records import BudgetRecord, ManagerStatusRecord

logger = get_logger("analyzer.budget")

ACTIVE_STATUS = "active"


def active_managers(
    status_rows: Iterable[ManagerStatusRecord],
    reserved: Optional[Sequence[str]] = None,
) -> Set[str]:
    """Managers marked active, minus placeholder rows (team headers etc.)."""
    reserved = [
        s.lower()
        for s in (settings.reserved_manager_substrings if reserved is None else reserved)
    ]
    active: Set[str] = set()
    for row in status_rows:
        name = row.pm or ""
        if (row.status or "").strip().lower() != ACTIVE_STATUS:
            continue
        if any(s in name.lower() for s in reserved):
            continue
        active.add(name)
    return active


def start_month(record: BudgetRecord) -> Optional[str]:
    """"Jan 24" label for the record's start date, if readable."""
    day = parse_date(record.start_date)
    return month_short(day) if day else None


def heatmap_months(
    records: Iterable[BudgetRecord],
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> List[str]:
    """Chronological month labels, cut to the inclusive ``[start, end]`` range.

    The range applies only when both bounds are known labels.
    """
    days = sorted({d for d in (parse_date(r.start_date) for r in records) if d})
    months: List[str] = []
    for day in days:
        label = month_short(day)
        if label not in months:
            months.append(label)

    if not start or not end or start not in months or end not in months:
        return months
    lo, hi = months.index(start), months.index(end)
    return months[lo : hi + 1]


def build_heatmap(
    records: Sequence[BudgetRecord],
    status_rows: Sequence[ManagerStatusRecord] = (),
    query: HeatmapQuery = HeatmapQuery(),
    excluded: Optional[Iterable[str]] = None,
) -> BudgetHeatmap:
    """Manager × month exhaustion counts over the visible month range.

    With status rows present only active managers are counted and every
    active manager gets a row, even an empty one. Without them, excluded
    managers are dropped the same way the manager summary drops them.
    """
    active = active_managers(status_rows) if status_rows else None
    months = heatmap_months(records, query.start_month, query.end_month)
    visible = set(months)

    counts: Dict[str, Dict[str, int]] = defaultdict(dict)
    for r in records:
        if not r.pm or not r.start_date:
            continue
        if active is not None and r.pm not in active:
            continue
        if active is None and is_excluded_manager(r.pm, excluded):
            continue
        label = start_month(r)
        if label is None or label not in visible:
            continue
        counts[r.pm][label] = counts[r.pm].get(label, 0) + 1

    managers = set(active) if active is not None else set(counts)
    totals = {pm: sum(counts.get(pm, {}).values()) for pm in managers}
    ordered = sorted(managers, key=lambda pm: (-totals[pm], pm))
    max_value = max(
        [1] + [n for row in counts.values() for n in row.values()]
    )

    logger.info(
        f"Heatmap: {sum(totals.values())} exhaustions, {len(ordered)} managers, "
        f"{len(months)} months"
    )
    return BudgetHeatmap(
        months=months,
        managers=ordered,
        counts=dict(counts),
        totals=totals,
        max_value=max_value,
    )


def budget_manager_summary(
    records: Iterable[BudgetRecord],
    excluded: Optional[Iterable[str]] = None,
) -> List[BudgetManagerSummary]:
    """Exhaustion count, distinct accounts and USD spend per manager."""
    events: Dict[str, int] = defaultdict(int)
    accounts: Dict[str, Set[str]] = defaultdict(set)
    spent: Dict[str, float] = defaultdict(float)
    for r in records:
        if not r.pm or is_excluded_manager(r.pm, excluded):
            continue
        events[r.pm] += 1
        accounts[r.pm].add(r.account_name)
        spent[r.pm] += convert_to_usd(parse_money(r.amount_spent), r.currency)

    summaries = [
        BudgetManagerSummary(
            pm=pm,
            exhaustions=n,
            distinct_accounts=len(accounts[pm]),
            total_spent_usd=round(spent[pm], 2),
        )
        for pm, n in events.items()
    ]
    summaries.sort(key=lambda s: (-s.exhaustions, s.pm))
    return summaries
