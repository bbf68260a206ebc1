"""
Snapshot Store.

Persists GameLine collections as one JSON file per (date, category, label):

    {data_dir}/{date}_{category}_{label}.json

Each file holds an envelope with an explicit ordering key:

    {"date", "category", "label", "sequence", "captured_at", "games": [...]}

Snapshots in a (date, category) partition are ordered by
(captured_at, sequence, label). `sequence` is assigned per partition at
write time and only grows. Files written before the envelope existed (a
bare JSON list of games) are still read; their captured_at comes from the
earliest game snapshot_time, or the file mtime when the list is empty.

Reads never raise on bad data. An unreadable entry is treated as absent
and reported through SnapshotRead.status / SnapshotRead.skipped.
"""

import asyncio
import os
import re
from dataclasses import dataclass, field
from datetime import date as date_type, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

import orjson
import structlog
from pydantic import ValidationError

from linewatch.models.schemas import GameLine

logger = structlog.get_logger()


DateLike = Union[str, date_type]

_KEY_PART = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.-]*$")
_LABEL_PART = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class SnapshotStatus(str, Enum):
    """Outcome of a snapshot read."""
    OK = "ok"
    MISSING = "missing"
    CORRUPT = "corrupt"


@dataclass(frozen=True)
class SnapshotMeta:
    """Where a snapshot sits in its partition."""
    date: str
    category: str
    label: str
    sequence: Optional[int]
    captured_at: datetime
    path: Path
    game_count: int

    @property
    def order_key(self) -> tuple:
        return (
            self.captured_at,
            self.sequence if self.sequence is not None else -1,
            self.label,
        )


@dataclass
class SnapshotRead:
    """Result of a store read: the lines plus how the read went."""
    status: SnapshotStatus
    lines: list[GameLine] = field(default_factory=list)
    meta: Optional[SnapshotMeta] = None
    skipped: list[str] = field(default_factory=list)  # Corrupt entries ignored

    @property
    def found(self) -> bool:
        return self.status == SnapshotStatus.OK

    @property
    def degraded(self) -> bool:
        """A corrupt entry was hit, either as the target or while ordering."""
        return self.status == SnapshotStatus.CORRUPT or bool(self.skipped)


@dataclass
class _Entry:
    meta: SnapshotMeta
    lines: list[GameLine]


class _CorruptEntry(Exception):
    pass


def date_key(value: DateLike) -> str:
    """Normalize a date to YYYY-MM-DD. Aware datetimes use their UTC date."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date_type):
        return value.isoformat()
    return date_type.fromisoformat(value).isoformat()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SnapshotStore:
    """
    Date/category partitioned snapshot files.

    Args:
        data_dir: Directory holding snapshot files (created on first write)
        clock: Returns the capture instant stamped on writes
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.data_dir = Path(data_dir)
        self._clock = clock
        self.logger = logger.bind(component="snapshot_store")

    # =========================================================================
    # Paths
    # =========================================================================

    def path_for(self, date: DateLike, category: str, label: str) -> Path:
        return self.data_dir / f"{date_key(date)}_{category}_{label}.json"

    @staticmethod
    def _check_key(category: str, label: str) -> None:
        if not _KEY_PART.match(category):
            raise ValueError(f"Invalid category: {category!r}")
        if not _LABEL_PART.match(label):
            raise ValueError(f"Invalid snapshot label: {label!r}")

    # =========================================================================
    # File level (runs in a worker thread)
    # =========================================================================

    def _load(self, path: Path, day: str, category: str, label: str) -> _Entry:
        try:
            payload: Any = orjson.loads(path.read_bytes())
        except (OSError, ValueError) as e:
            raise _CorruptEntry(str(e)) from e

        try:
            if isinstance(payload, list):
                lines = [GameLine.model_validate(g) for g in payload]
                if lines:
                    captured_at = min(line.snapshot_time for line in lines)
                else:
                    captured_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                sequence = None
            elif isinstance(payload, dict):
                if payload.get("category", category) != category:
                    raise _CorruptEntry("category mismatch")
                label = payload.get("label", label)
                lines = [GameLine.model_validate(g) for g in payload.get("games", [])]
                captured_at = _aware(datetime.fromisoformat(payload["captured_at"]))
                sequence = payload.get("sequence")
                if sequence is not None:
                    sequence = int(sequence)
            else:
                raise _CorruptEntry(f"unexpected payload type {type(payload).__name__}")
        except (ValidationError, ValueError, TypeError, KeyError, OSError) as e:
            raise _CorruptEntry(str(e)) from e

        meta = SnapshotMeta(
            date=day,
            category=category,
            label=label,
            sequence=sequence,
            captured_at=captured_at,
            path=path,
            game_count=len(lines),
        )
        return _Entry(meta=meta, lines=lines)

    def _scan_partition(self, day: str, category: str) -> tuple[list[_Entry], list[str]]:
        """All readable entries of a partition in order, plus corrupt names."""
        prefix = f"{day}_{category}_"
        entries: list[_Entry] = []
        corrupt: list[str] = []

        if not self.data_dir.is_dir():
            return entries, corrupt

        for path in sorted(self.data_dir.glob(f"{prefix}*.json")):
            label = path.stem[len(prefix):]
            if not label:
                continue
            try:
                entries.append(self._load(path, day, category, label))
            except _CorruptEntry as e:
                corrupt.append(path.name)
                self.logger.warning("Skipping corrupt snapshot", file=path.name, error=str(e))

        entries.sort(key=lambda entry: entry.meta.order_key)
        return entries, corrupt

    def _write_sync(
        self,
        day: str,
        category: str,
        label: str,
        lines: list[GameLine],
    ) -> SnapshotMeta:
        self.data_dir.mkdir(parents=True, exist_ok=True)

        entries, _ = self._scan_partition(day, category)
        sequences = [e.meta.sequence for e in entries if e.meta.sequence is not None]
        sequence = max(sequences, default=0) + 1
        captured_at = _aware(self._clock())

        envelope = {
            "date": day,
            "category": category,
            "label": label,
            "sequence": sequence,
            "captured_at": captured_at.isoformat(),
            "games": [line.to_record() for line in lines],
        }

        path = self.path_for(day, category, label)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_bytes(orjson.dumps(envelope, option=orjson.OPT_INDENT_2))
        os.replace(tmp_path, path)

        return SnapshotMeta(
            date=day,
            category=category,
            label=label,
            sequence=sequence,
            captured_at=captured_at,
            path=path,
            game_count=len(lines),
        )

    # =========================================================================
    # Public API
    # =========================================================================

    async def write(
        self,
        date: DateLike,
        category: str,
        label: str,
        lines: list[GameLine],
    ) -> SnapshotMeta:
        """Persist a snapshot, replacing any snapshot at the same key."""
        self._check_key(category, label)
        day = date_key(date)
        meta = await asyncio.to_thread(self._write_sync, day, category, label, list(lines))
        self.logger.info(
            "Saved snapshot",
            file=meta.path.name,
            games=meta.game_count,
            sequence=meta.sequence,
        )
        return meta

    async def read_exact(self, date: DateLike, category: str, label: str) -> SnapshotRead:
        """Snapshot at exactly (date, category, label)."""
        try:
            self._check_key(category, label)
            day = date_key(date)
        except ValueError as e:
            self.logger.warning("Invalid snapshot key", category=category, label=label, error=str(e))
            return SnapshotRead(status=SnapshotStatus.MISSING)

        path = self.path_for(day, category, label)

        def _read() -> SnapshotRead:
            if not path.is_file():
                return SnapshotRead(status=SnapshotStatus.MISSING)
            try:
                entry = self._load(path, day, category, label)
            except _CorruptEntry as e:
                self.logger.warning("Corrupt snapshot", file=path.name, error=str(e))
                return SnapshotRead(status=SnapshotStatus.CORRUPT, skipped=[path.name])
            return SnapshotRead(status=SnapshotStatus.OK, lines=entry.lines, meta=entry.meta)

        return await asyncio.to_thread(_read)

    async def _ordered(self, date: DateLike, category: str) -> tuple[list[_Entry], list[str]]:
        try:
            day = date_key(date)
        except ValueError as e:
            self.logger.warning("Invalid snapshot date", date=str(date), error=str(e))
            return [], []
        if not _KEY_PART.match(category):
            return [], []
        return await asyncio.to_thread(self._scan_partition, day, category)

    @staticmethod
    def _result(entry: Optional[_Entry], corrupt: list[str]) -> SnapshotRead:
        if entry is None:
            return SnapshotRead(status=SnapshotStatus.MISSING, skipped=corrupt)
        return SnapshotRead(
            status=SnapshotStatus.OK,
            lines=entry.lines,
            meta=entry.meta,
            skipped=corrupt,
        )

    async def read_earliest(self, date: DateLike, category: str) -> SnapshotRead:
        """First snapshot of the partition (the opening reference)."""
        entries, corrupt = await self._ordered(date, category)
        return self._result(entries[0] if entries else None, corrupt)

    async def read_latest_before(
        self,
        date: DateLike,
        category: str,
        excluding_label: str,
    ) -> SnapshotRead:
        """Most recent snapshot other than the one about to be written."""
        entries, corrupt = await self._ordered(date, category)
        candidates = [e for e in entries if e.meta.label != excluding_label]
        return self._result(candidates[-1] if candidates else None, corrupt)

    async def read_fallback(self, date: DateLike, category: str) -> SnapshotRead:
        """Most recent snapshot of the partition, whatever its label."""
        entries, corrupt = await self._ordered(date, category)
        return self._result(entries[-1] if entries else None, corrupt)

    async def list_snapshots(self, date: DateLike, category: str) -> list[SnapshotMeta]:
        """Ordered metadata for every readable snapshot in the partition."""
        entries, _ = await self._ordered(date, category)
        return [e.meta for e in entries]
