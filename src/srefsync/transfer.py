"""Transfer executors: single-file upload/download and the batch runner."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from ._types import SyncReport, TransferError
from .scan import PARTIAL_SUFFIX

log = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".gif": "image/gif",
    ".ico": "image/vnd.microsoft.icon",
    ".svg": "image/svg+xml",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
CDN_CACHE_CONTROL = "public, max-age=31536000"

_CHUNK_SIZE = 1024 * 1024

# Errors a single transfer may raise without aborting the batch.  The
# managed upload re-raises client errors as S3UploadFailedError.
TRANSFER_ERRORS = (OSError, BotoCoreError, ClientError, S3UploadFailedError)


def content_type_for(path: str | os.PathLike) -> str:
    """Return the MIME type for *path* from its extension."""
    return CONTENT_TYPES.get(os.path.splitext(os.fspath(path))[1].lower(), DEFAULT_CONTENT_TYPE)


def format_bytes(size: int) -> str:
    """Format a byte count for humans, e.g. ``1.5 KB``."""
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


# ---------------------------------------------------------------------------
# Single-file transfers
# ---------------------------------------------------------------------------

def upload_file(
    client, bucket: str, key: str, path: str | os.PathLike, *,
    cache_control: str | None = None,
    sync_type: str | None = None,
) -> None:
    """Stream the file at *path* to *key*.

    Uses the client's managed transfer, which switches to a multi-part
    upload for large files.  Sets the content type from the extension
    and records the original path and upload time as object metadata.
    """
    metadata = {
        "original-path": os.fspath(path),
        "upload-time": datetime.now(timezone.utc).isoformat(),
    }
    if sync_type:
        metadata["sync-type"] = sync_type
    extra = {"ContentType": content_type_for(path), "Metadata": metadata}
    if cache_control:
        extra["CacheControl"] = cache_control
    client.upload_file(os.fspath(path), bucket, key, ExtraArgs=extra)


def download_object(client, bucket: str, key: str, dest: str | os.PathLike) -> int:
    """Fetch *key* into *dest*, creating parent directories.

    The body is streamed into a ``.part`` sibling that replaces *dest*
    only once complete, so a failed download leaves no partial file.
    Returns the number of bytes written.
    """
    out = Path(dest)
    response = client.get_object(Bucket=bucket, Key=key)
    body = response["Body"]
    written = 0
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        tmp = out.with_name(out.name + PARTIAL_SUFFIX)
        try:
            with open(tmp, "wb") as f:
                while True:
                    chunk = body.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
                    written += len(chunk)
            os.replace(tmp, out)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
    finally:
        body.close()
    return written


# ---------------------------------------------------------------------------
# Batch runner
# ---------------------------------------------------------------------------

_DONE = "done"
_FAILED = "failed"
_CANCELLED = "cancelled"


def run_transfers(
    keys: Iterable[str],
    transfer: Callable[[str], object],
    report: SyncReport,
    *,
    max_workers: int = 1,
    fail_fast: bool = False,
    cancel: threading.Event | None = None,
    deadline: float | None = None,
) -> SyncReport:
    """Run *transfer* for every key, tallying results into *report*.

    A failing key is logged and recorded in ``report.errors``; the rest
    of the batch still runs.  With *fail_fast*, no new transfer starts
    after the first failure.  *cancel* and *deadline* (a
    :func:`time.monotonic` value) are checked before each transfer
    starts, never during one; keys that never start land in
    ``report.cancelled``.

    With ``max_workers > 1`` transfers run on a bounded thread pool.
    Keys are de-duplicated so no two workers share a key.  Results are
    recorded in key order whatever the completion order.
    """
    ordered = list(dict.fromkeys(keys))
    halt = threading.Event()

    def _stopped() -> bool:
        if halt.is_set():
            return True
        if cancel is not None and cancel.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline

    def _run_one(key: str) -> tuple[str, str | None]:
        if _stopped():
            return _CANCELLED, None
        try:
            transfer(key)
        except TRANSFER_ERRORS as exc:
            log.error("Failed to %s %s: %s", report.direction, key, exc)
            if fail_fast:
                halt.set()
            return _FAILED, str(exc)
        return _DONE, None

    if max_workers <= 1:
        results = [_run_one(key) for key in ordered]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(_run_one, ordered))

    for key, (status, error) in zip(ordered, results):
        if status == _DONE:
            report.transferred.append(key)
        elif status == _FAILED:
            report.errors.append(TransferError(key=key, error=error))
        else:
            report.cancelled.append(key)
    if report.cancelled:
        log.warning("Stopped before %d of %d transfers", len(report.cancelled), len(ordered))
    return report
