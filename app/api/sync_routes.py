"""PULSE — Snapshot Sync API Routes."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.connectors.sheets.sync import SyncReport, sync_all
from app.core.logging import get_logger
from app.store import store

logger = get_logger("api.sync")

router = APIRouter(tags=["Snapshots"])


class SyncRequest(BaseModel):
    """Request body for POST /sync."""

    force: bool = False
    """Re-fetch even when the current snapshot is still fresh."""

    model_config = {"json_schema_extra": {"examples": [{"force": True}]}}


class SnapshotInfo(BaseModel):
    dataset_version: int
    synced_at: str | None = None
    row_counts: dict[str, int]
    fetched_at: dict[str, str]


@router.post("/sync", response_model=SyncReport)
async def trigger_sync(request: SyncRequest = SyncRequest()):
    """Fetch every sheet tab and install a new snapshot."""
    report = await sync_all(store, force=request.force)
    if request.force and report.failed:
        logger.error("Forced sync failed for every domain")
        raise HTTPException(
            status_code=502, detail="Sync failed: no sheet could be fetched"
        )
    return report


@router.get("/snapshot", response_model=SnapshotInfo)
async def get_snapshot():
    """Version and row counts of the snapshot currently served."""
    bundle = store.get()
    return SnapshotInfo(
        dataset_version=bundle.version,
        synced_at=bundle.synced_at,
        row_counts=bundle.row_counts(),
        fetched_at=bundle.fetched_at,
    )
