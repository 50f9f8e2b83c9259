"""PULSE — Dashboard Pipeline Orchestrator.

Runs every engine over one snapshot bundle:
  manager index → daily aggregate → anomalies
                → monthly KPI views → audits → portfolio → budget heatmap
and assembles a DashboardOutput. Results are memoized per
(dataset version, view, query); a new snapshot or a different filter set
is a different key.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import BaseModel

from app.config import settings
from app.core.keys import build_manager_index, excluded_managers, is_excluded_manager
from app.core.logging import get_logger
from app.models.analysis_models import (
    AnomalyReport,
    AuditResult,
    BudgetHeatmap,
    DashboardOutput,
    PortfolioReport,
)
from app.models.query_models import (
    AuditQuery,
    DailyQuery,
    DashboardQuery,
    HeatmapQuery,
    KpiSummaryQuery,
    PortfolioQuery,
)
from app.store import SnapshotBundle
from app.analyzer.anomaly_engine import compute_anomalies
from app.analyzer.audit_engine import audit_audiences, audit_campaigns
from app.analyzer.budget_engine import build_heatmap, budget_manager_summary
from app.analyzer.daily_aggregator import aggregate_daily, filter_summaries
from app.analyzer.kpi_engine import (
    filter_monthly,
    monthly_status_trend,
    period_comparison,
    summarize_by,
)
from app.analyzer.portfolio_engine import build_portfolio_report

logger = get_logger("analyzer.pipeline")


class DerivedCache:
    """Bounded memo of derived views. The oldest entry is dropped when full."""

    def __init__(self, max_items: int = 64):
        self.max_items = max(1, int(max_items))
        self._store: Dict[Tuple, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Tuple) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            return entry[1] if entry else None

    def set(self, key: Tuple, value: Any) -> None:
        with self._lock:
            if key not in self._store and len(self._store) >= self.max_items:
                oldest_key = min(self._store.items(), key=lambda item: item[1][0])[0]
                self._store.pop(oldest_key, None)
            self._store[key] = (time.monotonic(), value)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


cache = DerivedCache(settings.memo_max_entries)


def _memoized(
    view: str,
    bundle: SnapshotBundle,
    query: Optional[BaseModel],
    compute: Callable[[], Any],
) -> Any:
    key = (bundle.version, view, query.model_dump_json() if query else "")
    hit = cache.get(key)
    if hit is not None:
        return hit
    value = compute()
    cache.set(key, value)
    return value


# ─────────────────────────────────────────────
# VIEWS
# ─────────────────────────────────────────────


def manager_index(bundle: SnapshotBundle) -> Dict[str, str]:
    return _memoized(
        "manager_index", bundle, None, lambda: build_manager_index(bundle.management)
    )


def daily_view(bundle: SnapshotBundle, query: DailyQuery = DailyQuery()):
    """Filtered, classified per-account summaries of the daily window."""

    def compute():
        summaries = aggregate_daily(bundle.daily, query.start_date, query.end_date)
        return filter_summaries(summaries, query)

    return _memoized("daily", bundle, query, compute)


def anomaly_view(
    bundle: SnapshotBundle, query: DailyQuery = DailyQuery()
) -> AnomalyReport:
    """Watchlists limited to managers visible in the filtered daily view."""

    def compute():
        visible = daily_view(bundle, query)
        excluded = excluded_managers()
        history = [r for r in bundle.daily if not is_excluded_manager(r.pm, excluded)]
        return compute_anomalies(
            history,
            [c.record for c in visible],
            visible_pms={c.record.pm for c in visible},
        )

    return _memoized("anomalies", bundle, query, compute)


def campaign_audit_view(
    bundle: SnapshotBundle, query: AuditQuery = AuditQuery()
) -> AuditResult:
    return _memoized(
        "campaign_audit",
        bundle,
        query,
        lambda: audit_campaigns(bundle.campaign, manager_index(bundle), query),
    )


def audience_audit_view(
    bundle: SnapshotBundle, query: AuditQuery = AuditQuery()
) -> AuditResult:
    return _memoized(
        "audience_audit",
        bundle,
        query,
        lambda: audit_audiences(bundle.audience, manager_index(bundle), query),
    )


def portfolio_view(
    bundle: SnapshotBundle, query: PortfolioQuery = PortfolioQuery()
) -> PortfolioReport:
    """Portfolio scores against the unfiltered latest-snapshot audits."""
    return _memoized(
        "portfolio",
        bundle,
        query,
        lambda: build_portfolio_report(
            bundle.monthly,
            query,
            campaign_audit_view(bundle),
            audience_audit_view(bundle),
        ),
    )


def kpi_summary_view(bundle: SnapshotBundle, query: KpiSummaryQuery = KpiSummaryQuery()):
    def compute():
        rows = [c.record for c in filter_monthly(bundle.monthly, query.monthly)]
        return summarize_by(rows, query.group_by)

    return _memoized("kpi_summary", bundle, query, compute)


def heatmap_view(
    bundle: SnapshotBundle, query: HeatmapQuery = HeatmapQuery()
) -> BudgetHeatmap:
    return _memoized(
        "heatmap",
        bundle,
        query,
        lambda: build_heatmap(bundle.budget, bundle.manager_status, query),
    )


# ─────────────────────────────────────────────
# DASHBOARD
# ─────────────────────────────────────────────


def build_dashboard(
    bundle: SnapshotBundle, query: DashboardQuery = DashboardQuery()
) -> DashboardOutput:
    """Compute every derived view of the dashboard for one query."""
    cached = cache.get((bundle.version, "dashboard", query.model_dump_json()))
    if cached is not None:
        logger.info(
            f"Dashboard served from memo (v{bundle.version})",
            extra={"dataset_version": bundle.version},
        )
        return cached

    started = time.perf_counter()
    monthly_rows = filter_monthly(bundle.monthly, query.monthly)
    monthly_records = [c.record for c in monthly_rows]

    output = DashboardOutput(
        schema_version=settings.schema_version,
        generated_at=datetime.now(timezone.utc).isoformat(),
        dataset_version=bundle.version,
        daily_summaries=daily_view(bundle, query.daily),
        monthly_records=monthly_rows,
        monthly_comparison=period_comparison(bundle.monthly, query.monthly),
        monthly_trend=monthly_status_trend(bundle.monthly, query.monthly),
        pm_kpi_summary=summarize_by(monthly_records, "pm"),
        team_kpi_summary=summarize_by(monthly_records, "team"),
        anomalies=anomaly_view(bundle, query.daily),
        campaign_audit=campaign_audit_view(bundle, query.campaign_audit),
        audience_audit=audience_audit_view(bundle, query.audience_audit),
        portfolio=portfolio_view(bundle, query.portfolio),
        budget_heatmap=heatmap_view(bundle, query.heatmap),
        budget_summary=budget_manager_summary(bundle.budget),
    )
    cache.set((bundle.version, "dashboard", query.model_dump_json()), output)

    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    logger.info(
        f"Dashboard built for snapshot v{bundle.version} in {duration_ms}ms",
        extra={"dataset_version": bundle.version, "duration_ms": duration_ms},
    )
    return output
