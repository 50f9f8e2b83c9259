"""PULSE — Snapshot Sync.

Fetches every configured sheet tab concurrently, transforms each into
typed records, and installs the successful domains into the snapshot
store. A domain that fails keeps its previous rows.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from pydantic import BaseModel

from app.config import settings
from app.connectors.sheets.client import SheetsAPIError, SheetsClient
from app.connectors.sheets.transformer import transform_csv
from app.core.column_registry import SnapshotDomain
from app.core.logging import get_logger
from app.store import SnapshotStore

logger = get_logger("sheets.sync")


class DomainSyncStatus(BaseModel):
    ok: bool = True
    rows: int = 0
    error: Optional[str] = None


class SyncReport(BaseModel):
    skipped: bool = False
    dataset_version: int = 0
    domains: Dict[str, DomainSyncStatus] = {}

    @property
    def failed(self) -> bool:
        """True when nothing could be fetched at all."""
        return not self.skipped and not any(d.ok for d in self.domains.values())


def sheet_urls() -> Dict[SnapshotDomain, str]:
    return {
        domain: getattr(settings, f"{domain.value}_sheet_url")
        for domain in SnapshotDomain
    }


def _is_fresh(store: SnapshotStore) -> bool:
    synced_at = store.get().synced_at
    if not synced_at:
        return False
    age = datetime.now(timezone.utc) - datetime.fromisoformat(synced_at)
    return age < timedelta(minutes=settings.sync_interval_minutes)


async def _fetch_domain(client: SheetsClient, domain: SnapshotDomain, url: str):
    text = await client.fetch_csv(url)
    return transform_csv(domain, text)


async def sync_all(
    store: SnapshotStore,
    force: bool = False,
    client: Optional[SheetsClient] = None,
) -> SyncReport:
    """Refresh every domain. Without ``force`` a fresh snapshot is kept."""
    if not force and _is_fresh(store):
        logger.info("Snapshot is fresh, skipping sync")
        bundle = store.get()
        return SyncReport(
            skipped=True,
            dataset_version=bundle.version,
            domains={k: DomainSyncStatus(rows=v) for k, v in bundle.row_counts().items()},
        )

    owns_client = client is None
    client = client or SheetsClient()
    urls = sheet_urls()
    try:
        results = await asyncio.gather(
            *(_fetch_domain(client, domain, url) for domain, url in urls.items()),
            return_exceptions=True,
        )
    finally:
        if owns_client:
            await client.close()

    updates = {}
    statuses: Dict[str, DomainSyncStatus] = {}
    for domain, result in zip(urls, results):
        if isinstance(result, SheetsAPIError):
            logger.error(
                f"{domain.value}: fetch failed, keeping previous snapshot: {result}",
                extra={"domain": domain.value, "status_code": result.status_code},
            )
            statuses[domain.value] = DomainSyncStatus(ok=False, error=str(result))
        elif isinstance(result, Exception):
            logger.error(
                f"{domain.value}: transform failed, keeping previous snapshot: {result}",
                extra={"domain": domain.value},
            )
            statuses[domain.value] = DomainSyncStatus(ok=False, error=str(result))
        else:
            updates[domain.value] = result
            statuses[domain.value] = DomainSyncStatus(rows=len(result))

    bundle = store.replace(**updates) if updates else store.get()
    report = SyncReport(dataset_version=bundle.version, domains=statuses)
    logger.info(
        f"Sync finished: {len(updates)}/{len(urls)} domains updated",
        extra={"dataset_version": bundle.version},
    )
    return report
