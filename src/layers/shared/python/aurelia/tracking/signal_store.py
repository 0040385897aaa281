"""Client-side accumulator of behavioral signals for one anonymous session.

A SignalStore is an explicit per-session context object. All record_*
operations are local, synchronous and O(1); nothing here touches the
network. Persist it with to_json()/from_json() wherever the client keeps
durable state.
"""

import json
import threading
import time
from typing import Callable

import structlog

from aurelia.models.base import generate_ulid
from aurelia.models.lead_score import SignalSnapshot

logger = structlog.get_logger()

# Idle gap after which the next page visit counts as a return visit
RETURN_VISIT_IDLE_SECONDS = 30 * 60

MAX_UTM_LENGTH = 200


class SignalStore:
    """Mutable accumulator of raw facts for a single session."""

    def __init__(
        self,
        session_id: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the store.

        Args:
            session_id: Stable anonymous session ID. Generated once if omitted.
            clock: Returns the current time in epoch seconds.
        """
        self.session_id = session_id or generate_ulid()
        self._clock = clock
        self._lock = threading.Lock()

        self._pages: set[str] = set()
        self._time_on_site = 0.0
        self._scroll_depth = 0.0
        self._return_visits = 0
        self._services_viewed = 0
        self._form_interactions = 0
        self._utm_source: str | None = None
        self._utm_medium: str | None = None
        self._utm_recorded_at: float | None = None
        self._trial_started = False
        self._last_activity_at: float | None = None

    def _touch(self) -> float:
        now = self._clock()
        self._last_activity_at = now
        return now

    def record_page_visit(self, path: str) -> None:
        """Add a path to the visited set, counting a return visit after 30 idle minutes."""
        path = path.strip()
        if not path:
            return
        with self._lock:
            now = self._clock()
            if (
                self._last_activity_at is not None
                and now - self._last_activity_at > RETURN_VISIT_IDLE_SECONDS
            ):
                self._return_visits += 1
                logger.debug("Return visit detected", session_id=self.session_id)
            self._pages.add(path)
            self._last_activity_at = now

    def record_scroll_depth(self, percent: float) -> None:
        """Keep the deepest scroll seen, clamped to 0-100."""
        percent = min(max(float(percent), 0.0), 100.0)
        with self._lock:
            self._scroll_depth = max(self._scroll_depth, percent)
            self._touch()

    def record_time_on_site(self, delta_seconds: float) -> None:
        """Accumulate time on site. Non-positive deltas are ignored."""
        if delta_seconds <= 0:
            return
        with self._lock:
            self._time_on_site += float(delta_seconds)
            self._touch()

    def record_form_interaction(self) -> None:
        with self._lock:
            self._form_interactions += 1
            self._touch()

    def record_service_view(self) -> None:
        with self._lock:
            self._services_viewed += 1
            self._touch()

    def record_trial_started(self) -> None:
        with self._lock:
            self._trial_started = True
            self._touch()

    def record_utm(self, source: str | None, medium: str | None) -> None:
        """Record attribution. Empty values never clear what is already known."""
        source = (source or "").strip()[:MAX_UTM_LENGTH] or None
        medium = (medium or "").strip()[:MAX_UTM_LENGTH] or None
        if source is None and medium is None:
            return
        with self._lock:
            if source is not None:
                self._utm_source = source
            if medium is not None:
                self._utm_medium = medium
            self._utm_recorded_at = self._touch()

    def _build_snapshot(self) -> SignalSnapshot:
        return SignalSnapshot(
            pages_visited=list(self._pages),
            time_on_site_seconds=self._time_on_site,
            scroll_depth_percent=self._scroll_depth,
            return_visits=self._return_visits,
            services_viewed=self._services_viewed,
            form_interactions=self._form_interactions,
            utm_source=self._utm_source,
            utm_medium=self._utm_medium,
            utm_recorded_at=self._utm_recorded_at,
            trial_started=self._trial_started,
            last_activity_at=self._last_activity_at,
        )

    def snapshot(self) -> SignalSnapshot:
        """Return a point-in-time copy of everything recorded so far."""
        with self._lock:
            return self._build_snapshot()

    def load(self, snapshot: SignalSnapshot) -> None:
        """Fold a previously persisted snapshot into the store."""
        with self._lock:
            merged = self._build_snapshot().merge(snapshot)
            self._pages = set(merged.pages_visited)
            self._time_on_site = merged.time_on_site_seconds
            self._scroll_depth = merged.scroll_depth_percent
            self._return_visits = merged.return_visits
            self._services_viewed = merged.services_viewed
            self._form_interactions = merged.form_interactions
            self._utm_source = merged.utm_source
            self._utm_medium = merged.utm_medium
            self._utm_recorded_at = merged.utm_recorded_at
            self._trial_started = merged.trial_started
            self._last_activity_at = merged.last_activity_at

    def to_json(self) -> str:
        """Serialize the session ID and signals for durable local storage."""
        return json.dumps({
            "session_id": self.session_id,
            "signals": self.snapshot().model_dump(mode="json"),
        })

    @classmethod
    def from_json(
        cls,
        raw: str,
        clock: Callable[[], float] = time.time,
    ) -> "SignalStore":
        """Restore a store saved with to_json()."""
        data = json.loads(raw)
        store = cls(session_id=data.get("session_id"), clock=clock)
        store.load(SignalSnapshot.model_validate(data.get("signals") or {}))
        return store
