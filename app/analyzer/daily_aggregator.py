"""PULSE — Daily Aggregator.

Collapses per-day KPI rows into one summary row per account over an
optional inclusive date window. Rows whose date cannot be read stay in
the window: a malformed date in the export must not silently drop spend.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from app.core.keys import account_key, is_excluded_manager
from app.core.logging import get_logger
from app.core.parsing import format_number, parse_date, parse_money
from app.models.analysis_models import ClassifiedRecord
from app.models.query_models import DailyQuery
from app.models.records import PerformanceRecord
from app.analyzer.kpi_engine import classify

logger = get_logger("analyzer.daily")

SUMMED_FIELDS = ("impressions", "clicks", "cost", "conversions", "conversion_value")


def in_window(
    record: PerformanceRecord,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> bool:
    """Day-granular inclusive bound check. Unreadable dates pass."""
    if start is None and end is None:
        return True
    day = parse_date(record.month)
    if day is None:
        if record.month:
            logger.debug(f"Unparseable daily date kept in window: {record.month!r}")
        return True
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def aggregate_daily(
    records: Iterable[PerformanceRecord],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[PerformanceRecord]:
    """One summary record per account within ``[start, end]``.

    Non-numeric fields come from the first row seen for the account; the
    numeric fields are float sums rendered back to strings.
    """
    firsts: Dict[str, PerformanceRecord] = {}
    sums: Dict[str, Dict[str, float]] = {}
    seen = 0

    for row in records:
        if not in_window(row, start, end):
            continue
        seen += 1
        key = account_key(row.cid, row.account_name)
        if key not in firsts:
            firsts[key] = row
            sums[key] = {f: 0.0 for f in SUMMED_FIELDS}
        for field in SUMMED_FIELDS:
            sums[key][field] += parse_money(getattr(row, field))

    summaries = [
        first.model_copy(
            update={f: format_number(v) for f, v in sums[key].items()}
        )
        for key, first in firsts.items()
    ]
    logger.info(f"Aggregated {seen} daily rows into {len(summaries)} account summaries")
    return summaries


def filter_summaries(
    summaries: Iterable[PerformanceRecord],
    query: DailyQuery,
    excluded: Optional[Iterable[str]] = None,
) -> List[ClassifiedRecord]:
    """Apply the daily view's row filters to aggregated summaries."""
    out: List[ClassifiedRecord] = []
    for s in summaries:
        if is_excluded_manager(s.pm, excluded):
            continue
        if query.pms and s.pm not in query.pms:
            continue
        if query.accounts and s.account_name not in query.accounts:
            continue
        if query.clients and s.client_account not in query.clients:
            continue
        if query.objectives and s.objective not in query.objectives:
            continue
        item = classify(s)
        if query.statuses and item.status.value not in query.statuses:
            continue
        out.append(item)
    out.sort(key=lambda c: c.record.account_name)
    return out
