"""Snapshot persistence."""

from linewatch.storage.snapshot_store import (
    SnapshotMeta,
    SnapshotRead,
    SnapshotStatus,
    SnapshotStore,
    date_key,
)

__all__ = [
    "SnapshotMeta",
    "SnapshotRead",
    "SnapshotStatus",
    "SnapshotStore",
    "date_key",
]
