"""PULSE — Dashboard API Routes.

Every endpoint computes over the snapshot current at request time; results
are memoized per snapshot version and query.
"""

from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from app.models.analysis_models import (
    AnomalyReport,
    AuditResult,
    BudgetHeatmap,
    ClassifiedRecord,
    DashboardOutput,
    PortfolioReport,
    StatusTally,
)
from app.models.query_models import (
    AuditQuery,
    DailyQuery,
    DashboardQuery,
    HeatmapQuery,
    KpiSummaryQuery,
    PortfolioQuery,
)
from app.analyzer import pipeline
from app.store import store

router = APIRouter(tags=["Dashboard"])


class DailyResponse(BaseModel):
    dataset_version: int
    summaries: List[ClassifiedRecord]


class KpiSummaryResponse(BaseModel):
    dataset_version: int
    group_by: str
    groups: List[StatusTally]


@router.post("/dashboard", response_model=DashboardOutput)
async def dashboard(query: DashboardQuery = DashboardQuery()):
    """Every derived view in one payload."""
    return pipeline.build_dashboard(store.get(), query)


@router.post("/daily", response_model=DailyResponse)
async def daily(query: DailyQuery = DailyQuery()):
    """Per-account summaries over the daily window, classified."""
    bundle = store.get()
    return DailyResponse(
        dataset_version=bundle.version,
        summaries=pipeline.daily_view(bundle, query),
    )


@router.post("/anomalies", response_model=AnomalyReport)
async def anomalies(query: DailyQuery = DailyQuery()):
    """Sudden-drop and hidden-gem watchlists for the daily view."""
    return pipeline.anomaly_view(store.get(), query)


@router.post("/audits/campaign", response_model=AuditResult)
async def campaign_audit(query: AuditQuery = AuditQuery()):
    return pipeline.campaign_audit_view(store.get(), query)


@router.post("/audits/audience", response_model=AuditResult)
async def audience_audit(query: AuditQuery = AuditQuery()):
    return pipeline.audience_audit_view(store.get(), query)


@router.post("/portfolio", response_model=PortfolioReport)
async def portfolio(query: PortfolioQuery = PortfolioQuery()):
    """Manager scores, health trend and headline issues."""
    return pipeline.portfolio_view(store.get(), query)


@router.post("/kpi/summary", response_model=KpiSummaryResponse)
async def kpi_summary(query: KpiSummaryQuery = KpiSummaryQuery()):
    """Status tallies per manager or per team over the monthly view."""
    bundle = store.get()
    return KpiSummaryResponse(
        dataset_version=bundle.version,
        group_by=query.group_by,
        groups=pipeline.kpi_summary_view(bundle, query),
    )


@router.post("/heatmap", response_model=BudgetHeatmap)
async def heatmap(query: HeatmapQuery = HeatmapQuery()):
    """Budget exhaustions per manager and start month."""
    return pipeline.heatmap_view(store.get(), query)
