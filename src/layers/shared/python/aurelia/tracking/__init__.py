"""Client-side signal tracking for Aurelia."""

from aurelia.tracking.signal_store import SignalStore
from aurelia.tracking.syncer import (
    HttpSyncTransport,
    LocalSyncTransport,
    SignalSyncer,
    SyncOutcome,
)

__all__ = [
    "HttpSyncTransport",
    "LocalSyncTransport",
    "SignalStore",
    "SignalSyncer",
    "SyncOutcome",
]
