"""PULSE — Anomaly Engine.

Two advisory watchlists:
- Sudden Drop → latest day's ROAS fell below 70% of the prior-week average
- Hidden Gem  → small spend with ROAS far above target (scale candidate)
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from app.core.keys import account_key
from app.core.logging import get_logger
from app.core.parsing import actual_roas, parse_date, parse_money, parse_target_roas
from app.models.analysis_models import AnomalyReport, HiddenGem, SuddenDrop
from app.models.records import PerformanceRecord

logger = get_logger("analyzer.anomaly")

# Thresholds
BASELINE_WINDOW = 7  # prior rows averaged into the baseline
MIN_BASELINE_ROAS = 1.0
DROP_RATIO = 0.7
GEM_MAX_SPEND = 250.0
GEM_MIN_ROAS = 5.0
GEM_TARGET_MULTIPLE = 2.0
WATCHLIST_SIZE = 20


def _sort_date(record: PerformanceRecord) -> date:
    # Unreadable dates sort as oldest
    return parse_date(record.month) or date.min


def detect_sudden_drops(history: Iterable[PerformanceRecord]) -> List[SuddenDrop]:
    """Flag accounts whose latest ROAS fell sharply against their baseline.

    Baseline = mean ROAS of up to the 7 rows preceding the latest one,
    whatever days those happen to be.
    """
    by_account: Dict[str, List[PerformanceRecord]] = defaultdict(list)
    for row in history:
        by_account[account_key(row.cid, row.account_name)].append(row)

    drops: List[SuddenDrop] = []
    for rows in by_account.values():
        if len(rows) < 2:
            continue
        ordered = sorted(rows, key=_sort_date, reverse=True)
        latest = ordered[0]
        baseline_rows = ordered[1 : 1 + BASELINE_WINDOW]
        if not baseline_rows:
            continue

        latest_roas = actual_roas(latest.cost, latest.conversion_value)
        baseline = sum(
            actual_roas(r.cost, r.conversion_value) for r in baseline_rows
        ) / len(baseline_rows)

        if baseline > MIN_BASELINE_ROAS and latest_roas < baseline * DROP_RATIO:
            drops.append(
                SuddenDrop(
                    cid=latest.cid,
                    account_name=latest.account_name,
                    pm=latest.pm,
                    current_roas=latest_roas,
                    baseline_roas=baseline,
                    drop_pct=(baseline - latest_roas) / baseline * 100,
                )
            )
    return drops


def detect_hidden_gems(summaries: Iterable[PerformanceRecord]) -> List[HiddenGem]:
    """Flag low-spend summaries beating max(2 × target, 5) ROAS."""
    gems: List[HiddenGem] = []
    for item in summaries:
        cost = parse_money(item.cost)
        target = parse_target_roas(item.target_roas)
        roas = actual_roas(item.cost, item.conversion_value)
        if 0 < cost < GEM_MAX_SPEND and roas > max(
            target * GEM_TARGET_MULTIPLE, GEM_MIN_ROAS
        ):
            gems.append(
                HiddenGem(
                    cid=item.cid,
                    account_name=item.account_name,
                    pm=item.pm,
                    current_roas=roas,
                    target_roas=target,
                    spend=cost,
                )
            )
    return gems


def compute_anomalies(
    history: Iterable[PerformanceRecord],
    summaries: Iterable[PerformanceRecord],
    visible_pms: Optional[Set[str]] = None,
    limit: int = WATCHLIST_SIZE,
) -> AnomalyReport:
    """Run both detectors and keep the top ``limit`` of each.

    ``visible_pms`` is the manager set of the currently filtered daily view;
    entries for other managers are dropped. ``None`` keeps everyone.
    """
    drops = detect_sudden_drops(history)
    gems = detect_hidden_gems(summaries)

    if visible_pms is not None:
        drops = [d for d in drops if d.pm in visible_pms]
        gems = [g for g in gems if g.pm in visible_pms]

    drops.sort(key=lambda d: d.drop_pct, reverse=True)
    gems.sort(key=lambda g: g.current_roas, reverse=True)

    logger.info(
        f"Watchlist: {len(drops)} sudden drops, {len(gems)} hidden gems "
        f"(keeping top {limit})"
    )
    return AnomalyReport(sudden_drops=drops[:limit], hidden_gems=gems[:limit])
