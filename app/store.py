"""PULSE — In-Memory Snapshot Store.

Holds the latest typed rows of every sheet tab as one immutable bundle.
A sync never mutates the current bundle: it swaps in a new one with a
bumped version, so readers always see a consistent set of domains.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel

from app.core.column_registry import SnapshotDomain
from app.core.logging import get_logger
from app.models.records import (
    AccountRecord,
    AudienceAuditRow,
    BudgetRecord,
    CampaignAuditRow,
    ManagerStatusRecord,
    PerformanceRecord,
)

logger = get_logger("store")


class SnapshotBundle(BaseModel):
    """One consistent set of snapshot rows for every domain."""

    version: int = 0
    synced_at: Optional[str] = None
    management: List[AccountRecord] = []
    budget: List[BudgetRecord] = []
    manager_status: List[ManagerStatusRecord] = []
    monthly: List[PerformanceRecord] = []
    daily: List[PerformanceRecord] = []
    audience: List[AudienceAuditRow] = []
    campaign: List[CampaignAuditRow] = []
    fetched_at: Dict[str, str] = {}

    model_config = {"frozen": True}

    def row_counts(self) -> Dict[str, int]:
        return {d.value: len(getattr(self, d.value)) for d in SnapshotDomain}


class SnapshotStore:
    """Thread-safe holder of the current :class:`SnapshotBundle`."""

    def __init__(self, bundle: Optional[SnapshotBundle] = None):
        self._lock = threading.Lock()
        self._bundle = bundle or SnapshotBundle()

    def get(self) -> SnapshotBundle:
        with self._lock:
            return self._bundle

    @property
    def version(self) -> int:
        return self.get().version

    def replace(self, **domains: list) -> SnapshotBundle:
        """Swap in the given domains; omitted domains keep their rows."""
        unknown = set(domains) - {d.value for d in SnapshotDomain}
        if unknown:
            raise ValueError(f"Unknown snapshot domains: {sorted(unknown)}")

        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            current = self._bundle
            fetched_at = dict(current.fetched_at)
            fetched_at.update({name: now for name in domains})
            self._bundle = current.model_copy(
                update={
                    **domains,
                    "version": current.version + 1,
                    "synced_at": now,
                    "fetched_at": fetched_at,
                }
            )
            bundle = self._bundle

        logger.info(
            f"Snapshot v{bundle.version} installed ({', '.join(sorted(domains)) or 'no domains'})",
            extra={"dataset_version": bundle.version},
        )
        return bundle


store = SnapshotStore()
