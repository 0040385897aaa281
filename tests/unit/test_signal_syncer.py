"""Tests for the client-side SignalSyncer and its transports."""

import asyncio
import json
from unittest.mock import MagicMock

import httpx
import pytest

from aurelia.models.lead_score import SignalSnapshot
from aurelia.repositories.lead_score import LeadScoreRepository
from aurelia.services.lead_sync_service import LeadSyncService
from aurelia.tracking.signal_store import SignalStore
from aurelia.tracking.syncer import HttpSyncTransport, LocalSyncTransport, SignalSyncer


class RecordingTransport:
    """Transport that records snapshots and can hold the first send open."""

    def __init__(self, hold_first: bool = False):
        self.snapshots: list[SignalSnapshot] = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.hold_first = hold_first

    async def send(self, session_id, snapshot, email=None):
        self.snapshots.append(snapshot)
        self.started.set()
        if self.hold_first and len(self.snapshots) == 1:
            await self.release.wait()
        return {
            "session_id": session_id,
            "score": len(snapshot.pages_visited),
            "tier": "cold",
            "is_vip": False,
            "should_engage_concierge": False,
        }


class SlowTransport:
    async def send(self, session_id, snapshot, email=None):
        await asyncio.sleep(5)
        return {}


class FailingTransport:
    async def send(self, session_id, snapshot, email=None):
        raise httpx.ConnectError("connection refused")


class TestSignalSyncer:
    """Tests for sync_now and run_periodic."""

    @pytest.mark.asyncio
    async def test_sync_reports_score(self):
        store = SignalStore(session_id="s1")
        store.record_page_visit("/pricing")
        syncer = SignalSyncer(store, RecordingTransport())

        outcome = await syncer.sync_now()

        assert outcome.ok is True
        assert outcome.session_id == "s1"
        assert outcome.score == 1
        assert syncer.last_outcome == outcome

    @pytest.mark.asyncio
    async def test_overlapping_triggers_collapse_into_one_follow_up(self):
        store = SignalStore(session_id="s1")
        store.record_page_visit("/")
        transport = RecordingTransport(hold_first=True)
        syncer = SignalSyncer(store, transport)

        first = asyncio.create_task(syncer.sync_now())
        await transport.started.wait()
        assert syncer.in_flight is True

        # Recorded while the first sync is pending
        store.record_page_visit("/pricing")
        second = asyncio.create_task(syncer.sync_now())
        third = asyncio.create_task(syncer.sync_now())
        await asyncio.sleep(0)

        transport.release.set()
        outcomes = await asyncio.gather(first, second, third)

        assert len(transport.snapshots) == 2
        assert transport.snapshots[0].pages_visited == ["/"]
        assert transport.snapshots[1].pages_visited == ["/", "/pricing"]
        assert all(o.score == 2 for o in outcomes)
        assert syncer.in_flight is False

    @pytest.mark.asyncio
    async def test_timeout_is_a_failed_outcome(self):
        store = SignalStore(session_id="s1")
        store.record_page_visit("/pricing")
        before = store.snapshot()
        syncer = SignalSyncer(store, SlowTransport(), timeout=0.01)

        outcome = await syncer.sync_now()

        assert outcome.ok is False
        assert outcome.error == "timeout"
        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_transport_error_is_a_failed_outcome(self):
        store = SignalStore(session_id="s1")
        store.record_scroll_depth(50)
        before = store.snapshot()
        syncer = SignalSyncer(store, FailingTransport())

        outcome = await syncer.sync_now()

        assert outcome.ok is False
        assert "connection refused" in outcome.error
        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_run_periodic_until_cancelled(self):
        store = SignalStore(session_id="s1")
        transport = RecordingTransport()
        syncer = SignalSyncer(store, transport)

        task = asyncio.create_task(syncer.run_periodic(interval=0))
        while len(transport.snapshots) < 3:
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestHttpSyncTransport:
    """Tests for the httpx transport."""

    @pytest.mark.asyncio
    async def test_posts_snapshot(self):
        seen = {}

        def handle(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"session_id": "s1", "score": 15, "tier": "cold", "is_vip": False})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handle)) as client:
            transport = HttpSyncTransport("https://api.example.com/", client=client)
            result = await transport.send("s1", SignalSnapshot(pages_visited=["/pricing"]), email="a@b.co")

        assert seen["url"] == "https://api.example.com/public/lead-scores/sync"
        assert seen["body"]["session_id"] == "s1"
        assert seen["body"]["email"] == "a@b.co"
        assert seen["body"]["signals"]["pages_visited"] == ["/pricing"]
        assert result["score"] == 15

    @pytest.mark.asyncio
    async def test_http_error_surfaces_as_failed_sync(self):
        def handle(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handle)) as client:
            syncer = SignalSyncer(
                SignalStore(session_id="s1"),
                HttpSyncTransport("https://api.example.com", client=client),
            )
            outcome = await syncer.sync_now()

        assert outcome.ok is False


class TestLocalSyncTransport:
    """Tests for the in-process transport."""

    @pytest.mark.asyncio
    async def test_syncs_through_service(self, dynamodb_table, ultra_snapshot):
        notifier = MagicMock()
        service = LeadSyncService(lead_repo=LeadScoreRepository(), notifier=notifier)
        store = SignalStore(session_id="local-1")
        store.load(ultra_snapshot)

        outcome = await SignalSyncer(store, LocalSyncTransport(service)).sync_now()

        assert outcome.ok is True
        assert outcome.score == 98
        assert outcome.tier == "qualified"
        assert outcome.is_vip is True
        assert outcome.should_engage_concierge is True
        notifier.dispatch.assert_called_once()
