"""Data structures shared by the scanners, planners and executors."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True)
class RemoteObject:
    """One object in the remote store, as reported by a listing.

    Attributes:
        key: Full object key (forward slashes).
        fingerprint: The store's ETag, exactly as returned (quoted,
            possibly upper-case, possibly ``-<parts>`` suffixed).
        size: Byte length.
        last_modified: Timestamp reported by the store, if any.
    """
    key: str
    fingerprint: str
    size: int
    last_modified: datetime | None = None

    @classmethod
    def from_listing(cls, entry: Mapping[str, Any]) -> RemoteObject | None:
        """Build from a ``list_objects_v2`` ``Contents`` item.

        Returns ``None`` unless key, ETag and size are all present.
        """
        key = entry.get("Key")
        etag = entry.get("ETag")
        size = entry.get("Size")
        if not key or not etag or size is None:
            return None
        return cls(key=key, fingerprint=etag, size=int(size),
                   last_modified=entry.get("LastModified"))


@dataclass(frozen=True)
class LocalFile:
    """One file on local disk.

    Attributes:
        fingerprint: Lowercase hex MD5 of the file's bytes.
        size: Byte length.
        path: Absolute location on disk (``None`` for synthetic entries).
    """
    fingerprint: str
    size: int
    path: Path | None = None


class Direction(str, Enum):
    """Transfer direction: ``UPLOAD`` or ``DOWNLOAD``."""
    UPLOAD = "upload"
    DOWNLOAD = "download"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass
class TransferError:
    """A key that failed (or was skipped with a warning) during a run.

    Attributes:
        key: The remote key involved.
        error: Human-readable error message.
    """
    key: str
    error: str


@dataclass
class SyncReport:
    """Result of one sync run (or dry run).

    Attributes:
        direction: :class:`Direction` of the run.
        dry_run: ``True`` if nothing was transferred on purpose.
        planned: Keys the planner selected, in plan order.
        transferred: Keys transferred successfully.
        skipped: Keys already in sync.
        cancelled: Planned keys never started (cancel, deadline, fail-fast).
        errors: Per-key transfer failures.
        warnings: Non-fatal problems (e.g. malformed remote keys).
    """
    direction: Direction
    dry_run: bool = False
    planned: list[str] = field(default_factory=list)
    transferred: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    errors: list[TransferError] = field(default_factory=list)
    warnings: list[TransferError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """``True`` if no transfer failed and none was cancelled."""
        return not self.errors and not self.cancelled

    @property
    def failed(self) -> list[str]:
        """Keys whose transfer failed."""
        return [e.key for e in self.errors]

    @property
    def in_sync(self) -> bool:
        """``True`` if the planner found nothing to transfer."""
        return not self.planned

    @property
    def total(self) -> int:
        """Number of keys considered (planned + already in sync)."""
        return len(self.planned) + len(self.skipped)

    def summary(self) -> str:
        """One-line tally, e.g. ``Uploaded: 3, skipped: 10, failed: 1``."""
        verb = "Uploaded" if self.direction is Direction.UPLOAD else "Downloaded"
        if self.dry_run:
            verb = "Would upload" if self.direction is Direction.UPLOAD else "Would download"
            parts = [f"{verb}: {len(self.planned)}"]
        else:
            parts = [f"{verb}: {len(self.transferred)}"]
        parts.append(f"skipped: {len(self.skipped)}")
        parts.append(f"failed: {len(self.errors)}")
        if self.cancelled:
            parts.append(f"cancelled: {len(self.cancelled)}")
        return ", ".join(parts)
