"""PULSE — Sheet CSV → Typed Record Transformer.

Parses a published CSV export with pandas and maps its columns onto the
record fields of one snapshot domain, using the column registry resolved
once against the header row.
"""

import io
from typing import Dict, List, Type

import pandas as pd
from pydantic import BaseModel

from app.core.column_registry import (
    COLUMN_REGISTRY,
    REQUIRED_FIELDS,
    SnapshotDomain,
    resolve_columns,
)
from app.core.keys import normalize_manager
from app.core.logging import get_logger
from app.models.records import (
    AccountRecord,
    AudienceAuditRow,
    BudgetRecord,
    CampaignAuditRow,
    ManagerStatusRecord,
    PerformanceRecord,
)

logger = get_logger("sheets.transformer")

RECORD_TYPES: Dict[SnapshotDomain, Type[BaseModel]] = {
    SnapshotDomain.MANAGEMENT: AccountRecord,
    SnapshotDomain.BUDGET: BudgetRecord,
    SnapshotDomain.MANAGER_STATUS: ManagerStatusRecord,
    SnapshotDomain.MONTHLY: PerformanceRecord,
    SnapshotDomain.DAILY: PerformanceRecord,
    SnapshotDomain.AUDIENCE: AudienceAuditRow,
    SnapshotDomain.CAMPAIGN: CampaignAuditRow,
}

# Domains whose manager column carries display titles to strip.
MANAGER_DOMAINS = {
    SnapshotDomain.MANAGEMENT,
    SnapshotDomain.BUDGET,
    SnapshotDomain.MANAGER_STATUS,
    SnapshotDomain.MONTHLY,
    SnapshotDomain.DAILY,
}


def read_csv(text: str) -> pd.DataFrame:
    """Every cell as a string; blanks stay blank rather than NaN."""
    if not text or not text.strip():
        return pd.DataFrame()
    try:
        return pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=False,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()


def _field_series(df: pd.DataFrame, headers: List[str]) -> pd.Series:
    """First non-blank value across ``headers``, in alias priority order."""
    if not headers:
        return pd.Series([""] * len(df), index=df.index, dtype=object)
    series = df[headers[0]].astype(str)
    for header in headers[1:]:
        fallback = df[header].astype(str)
        series = series.where(series.str.strip() != "", fallback)
    return series


def frame_to_records(domain: SnapshotDomain, df: pd.DataFrame) -> List[BaseModel]:
    """Map a raw sheet frame onto typed records of ``domain``."""
    if df.empty:
        return []

    columns = resolve_columns(domain, list(df.columns))
    missing = [f for f in REQUIRED_FIELDS[domain] if not columns.get(f)]
    if missing:
        logger.warning(
            f"{domain.value}: required columns not found: {', '.join(missing)}",
            extra={"domain": domain.value},
        )
        return []

    fields = pd.DataFrame(index=df.index)
    for field, definition in COLUMN_REGISTRY[domain].items():
        series = _field_series(df, columns[field])
        if definition.strip:
            series = series.str.strip()
        fields[field] = series

    if domain in MANAGER_DOMAINS and "pm" in fields:
        fields["pm"] = fields["pm"].map(normalize_manager)

    keep = pd.Series(True, index=fields.index)
    for field in REQUIRED_FIELDS[domain]:
        keep &= fields[field].str.strip() != ""
    dropped = int((~keep).sum())
    fields = fields[keep]

    record_type = RECORD_TYPES[domain]
    records = [record_type(**row) for row in fields.to_dict("records")]
    logger.info(
        f"{domain.value}: {len(records)} records ({dropped} rows dropped)",
        extra={"domain": domain.value, "row_count": len(records)},
    )
    return records


def transform_csv(domain: SnapshotDomain, text: str) -> List[BaseModel]:
    return frame_to_records(domain, read_csv(text))
