"""Client-side sync driver.

SignalSyncer pushes SignalStore snapshots to the backend. Recording never
waits on the network: a sync reads a snapshot, sends it and reports back,
and a failed sync leaves the store exactly as it was.
"""

import asyncio
from typing import Any, Protocol

import httpx
import structlog
from pydantic import BaseModel as PydanticBaseModel

from aurelia.models.lead_score import SignalSnapshot
from aurelia.tracking.signal_store import SignalStore

logger = structlog.get_logger()

DEFAULT_SYNC_TIMEOUT_SECONDS = 10.0
DEFAULT_SYNC_INTERVAL_SECONDS = 30.0
SYNC_PATH = "/public/lead-scores/sync"


class SyncOutcome(PydanticBaseModel):
    """Result of one sync attempt."""

    ok: bool
    session_id: str
    score: int | None = None
    tier: str | None = None
    is_vip: bool = False
    should_engage_concierge: bool = False
    error: str | None = None


class SyncTransport(Protocol):
    """Sends a snapshot somewhere and returns the public score view."""

    async def send(
        self,
        session_id: str,
        snapshot: SignalSnapshot,
        email: str | None = None,
    ) -> dict[str, Any]: ...


class HttpSyncTransport:
    """POSTs snapshots to the public sync endpoint."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the transport.

        Args:
            base_url: API base URL, e.g. https://api.example.com.
            client: Shared httpx client. A short-lived one is used when omitted.
        """
        self.url = base_url.rstrip("/") + SYNC_PATH
        self._client = client

    async def send(
        self,
        session_id: str,
        snapshot: SignalSnapshot,
        email: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "session_id": session_id,
            "signals": snapshot.model_dump(mode="json"),
        }
        if email:
            body["email"] = email

        if self._client is not None:
            response = await self._client.post(self.url, json=body)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.url, json=body)

        response.raise_for_status()
        return response.json()


class LocalSyncTransport:
    """Calls LeadSyncService in-process (workers and tests)."""

    def __init__(self, service):
        self.service = service

    async def send(
        self,
        session_id: str,
        snapshot: SignalSnapshot,
        email: str | None = None,
    ) -> dict[str, Any]:
        record = await asyncio.to_thread(self.service.sync, session_id, snapshot, email)
        return record.to_public_dict()


class SignalSyncer:
    """Drives syncs for one SignalStore.

    At most one sync is in flight at a time. A trigger that arrives while a
    sync is running marks the syncer dirty and waits for a follow-up sync,
    which reads the snapshot again so nothing recorded meanwhile is missed.
    """

    def __init__(
        self,
        store: SignalStore,
        transport: SyncTransport,
        timeout: float = DEFAULT_SYNC_TIMEOUT_SECONDS,
        email: str | None = None,
    ):
        """Initialize the syncer.

        Args:
            store: The session's signal store.
            transport: Where snapshots are sent.
            timeout: Upper bound for a single sync, in seconds.
            email: Visitor email, sent along once known.
        """
        self.store = store
        self.transport = transport
        self.timeout = timeout
        self.email = email
        self.last_outcome: SyncOutcome | None = None
        self._in_flight: asyncio.Task | None = None
        self._dirty = False

    @property
    def in_flight(self) -> bool:
        """Whether a sync is currently running."""
        return self._in_flight is not None and not self._in_flight.done()

    async def sync_now(self) -> SyncOutcome:
        """Sync the current snapshot, collapsing overlapping triggers.

        Returns:
            Outcome of the last sync that covered this call's snapshot.
        """
        if self.in_flight:
            self._dirty = True
        else:
            self._in_flight = asyncio.ensure_future(self._drain())
        return await asyncio.shield(self._in_flight)

    async def _drain(self) -> SyncOutcome:
        while True:
            self._dirty = False
            outcome = await self._sync_once()
            if not self._dirty:
                return outcome

    async def _sync_once(self) -> SyncOutcome:
        session_id = self.store.session_id
        snapshot = self.store.snapshot()

        try:
            result = await asyncio.wait_for(
                self.transport.send(session_id, snapshot, self.email),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Signal sync timed out", session_id=session_id, timeout=self.timeout)
            outcome = SyncOutcome(ok=False, session_id=session_id, error="timeout")
        except Exception as e:
            logger.warning("Signal sync failed", session_id=session_id, error=str(e))
            outcome = SyncOutcome(ok=False, session_id=session_id, error=str(e) or type(e).__name__)
        else:
            outcome = SyncOutcome(
                ok=True,
                session_id=session_id,
                score=result.get("score"),
                tier=result.get("tier"),
                is_vip=bool(result.get("is_vip")),
                should_engage_concierge=bool(result.get("should_engage_concierge")),
            )

        self.last_outcome = outcome
        return outcome

    async def run_periodic(self, interval: float = DEFAULT_SYNC_INTERVAL_SECONDS) -> None:
        """Sync every ``interval`` seconds until cancelled."""
        while True:
            await self.sync_now()
            await asyncio.sleep(interval)
