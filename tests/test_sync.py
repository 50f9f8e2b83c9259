"""Tests for snapshot sync and the snapshot store."""

import asyncio

import httpx
import pytest

from app.connectors.sheets.client import SheetsAPIError, SheetsClient
from app.connectors.sheets.sync import sheet_urls, sync_all
from app.core.column_registry import SnapshotDomain
from app.store import SnapshotStore
from tests.factories import budget

MANAGEMENT_CSV = "CID,Account Name,PM\n111,Acme,Priya\n"
MONTHLY_CSV = "CID,Account Name,PM,Month,Cost\n111,Acme,Priya,1/1/2024,$100\n"


def _client(failing=()):
    urls = sheet_urls()
    bodies = {
        urls[SnapshotDomain.MANAGEMENT]: MANAGEMENT_CSV,
        urls[SnapshotDomain.MONTHLY]: MONTHLY_CSV,
    }
    failing_urls = {urls[d] for d in failing}

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in failing_urls:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=bodies.get(url, ""))

    return SheetsClient(max_retries=1, transport=httpx.MockTransport(handler))


class TestStore:
    def test_replace_bumps_version_and_keeps_other_domains(self):
        store = SnapshotStore()
        first = store.replace(budget=[budget()])
        second = store.replace(monthly=[])
        assert (first.version, second.version) == (1, 2)
        assert len(second.budget) == 1
        assert first is not second

    def test_unknown_domain(self):
        with pytest.raises(ValueError):
            SnapshotStore().replace(nope=[])


class TestSync:
    def test_all_domains_installed(self):
        store = SnapshotStore()
        report = asyncio.run(sync_all(store, force=True, client=_client()))
        bundle = store.get()
        assert report.dataset_version == bundle.version == 1
        assert len(bundle.management) == 1
        assert bundle.monthly[0].cost == "$100"
        assert all(status.ok for status in report.domains.values())
        assert not report.failed

    def test_failed_domain_keeps_previous_rows(self):
        store = SnapshotStore()
        store.replace(budget=[budget()])
        report = asyncio.run(
            sync_all(store, force=True, client=_client(failing=[SnapshotDomain.BUDGET]))
        )
        assert not report.domains["budget"].ok
        assert len(store.get().budget) == 1
        assert len(store.get().management) == 1

    def test_everything_failing(self):
        store = SnapshotStore()
        report = asyncio.run(
            sync_all(store, force=True, client=_client(failing=list(SnapshotDomain)))
        )
        assert report.failed
        assert store.version == 0

    def test_fresh_snapshot_skipped_without_force(self):
        store = SnapshotStore()
        asyncio.run(sync_all(store, force=True, client=_client()))
        report = asyncio.run(sync_all(store, client=_client()))
        assert report.skipped
        assert store.version == 1


class TestSheetsClient:
    def test_client_error_raises(self):
        async def fetch():
            client = _client(failing=[SnapshotDomain.BUDGET])
            try:
                return await client.fetch_csv(sheet_urls()[SnapshotDomain.BUDGET])
            finally:
                await client.close()

        with pytest.raises(SheetsAPIError) as exc:
            asyncio.run(fetch())
        assert exc.value.status_code == 404
