"""Sync runs: scan, list, plan, transfer.

``sync_to_remote`` uploads entry sources and public assets,
``sync_from_remote`` downloads them, ``sync_to_cdn`` publishes the
built site under the CDN prefix.  Every run re-derives its plan from the
current disk and the current listing; there is no saved state, so
re-running after a partial failure picks up whatever is still missing.

Listing errors propagate and abort the run.  Per-file transfer errors
are tallied in the returned :class:`~srefsync.SyncReport`.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

from ._types import Direction, LocalFile, RemoteObject, SyncReport, TransferError
from .fingerprint import describe_file
from .plan import plan_download, plan_upload
from .remote import list_objects
from .scan import scan_asset_dir, scan_dist_tree, scan_entry_tree
from .transfer import (
    CDN_CACHE_CONTROL,
    download_object,
    format_bytes,
    run_transfers,
    upload_file,
)

if TYPE_CHECKING:
    from .config import SyncConfig

log = logging.getLogger(__name__)

SOURCE_SYNC_TYPE = "source-image"


def _list_all(client, bucket: str, prefixes: list[str]) -> list[RemoteObject]:
    result: list[RemoteObject] = []
    for prefix in prefixes:
        objs = list_objects(client, bucket, prefix)
        log.info("Found %d remote objects under %s", len(objs), prefix)
        result.extend(objs)
    return result


def _describe_unscanned(
    targets: Mapping[str, Path], local: dict[str, LocalFile], refresh: tuple[str, ...],
) -> None:
    """Fingerprint download targets that exist on disk but no scanner covers.

    Keys under *refresh* are fetched regardless, so they are not hashed.
    """
    for key, path in targets.items():
        if key in local or any(key.startswith(p + "/") for p in refresh):
            continue
        if not path.is_file():
            continue
        try:
            local[key] = describe_file(path)
        except OSError as exc:
            log.warning("Could not read %s: %s", path, exc)


def _upload(
    client, config: SyncConfig,
    local: Mapping[str, LocalFile], remote: list[RemoteObject], *,
    cache_control: str | None, sync_type: str | None,
    dry_run: bool, max_workers: int, fail_fast: bool,
    cancel: threading.Event | None, deadline: float | None,
) -> SyncReport:
    """Plan and run an upload of *local* against *remote*."""
    report = SyncReport(direction=Direction.UPLOAD, dry_run=dry_run)
    plan = plan_upload(local, remote)
    report.planned = list(plan)
    report.skipped = [k for k in local if k not in plan]
    log.info("Need to upload %d of %d local files", len(plan), len(local))
    if dry_run or not plan:
        return report

    def _one(key: str) -> None:
        lf = plan[key]
        upload_file(client, config.bucket, key, lf.path,
                    cache_control=cache_control, sync_type=sync_type)
        log.info("Uploaded %s (%s)", key, format_bytes(lf.size))

    return run_transfers(report.planned, _one, report, max_workers=max_workers,
                         fail_fast=fail_fast, cancel=cancel, deadline=deadline)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def sync_to_remote(
    client, config: SyncConfig, *,
    dry_run: bool = False,
    max_workers: int = 1,
    fail_fast: bool = False,
    cancel: threading.Event | None = None,
    deadline: float | None = None,
) -> SyncReport:
    """Upload new or changed entry sources and public assets."""
    srefs, public = config.srefs, config.public
    local = scan_entry_tree(srefs.root, srefs.prefix, include_metadata=True)
    local.update(scan_asset_dir(public.root, public.prefix))
    log.info("Found %d local source files", len(local))
    remote = _list_all(client, config.bucket, [srefs.list_prefix, public.list_prefix])
    return _upload(client, config, local, remote,
                   cache_control=None, sync_type=SOURCE_SYNC_TYPE,
                   dry_run=dry_run, max_workers=max_workers, fail_fast=fail_fast,
                   cancel=cancel, deadline=deadline)


def sync_to_cdn(
    client, config: SyncConfig, *,
    dry_run: bool = False,
    max_workers: int = 1,
    fail_fast: bool = False,
    cancel: threading.Event | None = None,
    deadline: float | None = None,
) -> SyncReport:
    """Publish the built site's images under the CDN prefix.

    Uploads carry a one-year ``Cache-Control`` header.
    """
    local = scan_dist_tree(config.dist_dir, config.cdn_prefix)
    log.info("Found %d built images", len(local))
    remote = _list_all(client, config.bucket, [config.cdn_prefix + "/"])
    return _upload(client, config, local, remote,
                   cache_control=CDN_CACHE_CONTROL, sync_type=None,
                   dry_run=dry_run, max_workers=max_workers, fail_fast=fail_fast,
                   cancel=cancel, deadline=deadline)


def sync_from_remote(
    client, config: SyncConfig, *,
    dry_run: bool = False,
    max_workers: int = 1,
    fail_fast: bool = False,
    cancel: threading.Event | None = None,
    deadline: float | None = None,
) -> SyncReport:
    """Download new or changed entry files and public assets.

    With ``config.public_policy == "always"`` every public asset is
    fetched on every run; with ``"compare"`` public assets are reconciled
    by fingerprint like entry files.  Keys that do not map to a safe
    local path (directory markers, ``..`` segments) are skipped and
    recorded as warnings.
    """
    srefs, public = config.srefs, config.public
    remote = _list_all(client, config.bucket, [srefs.list_prefix, public.list_prefix])

    local = scan_entry_tree(srefs.root, srefs.prefix, include_metadata=True)
    if config.public_policy == "compare":
        local.update(scan_asset_dir(public.root, public.prefix))
        refresh: tuple[str, ...] = ()
    else:
        refresh = (public.prefix,)
    log.info("Found %d local files", len(local))

    report = SyncReport(direction=Direction.DOWNLOAD, dry_run=dry_run)
    targets: dict[str, Path] = {}
    mappable: list[RemoteObject] = []
    for obj in remote:
        ns = srefs if srefs.owns(obj.key) else public
        try:
            targets[obj.key] = ns.local_path(obj.key)
        except ValueError as exc:
            log.warning("Skipping %s: %s", obj.key, exc)
            report.warnings.append(TransferError(key=obj.key, error=str(exc)))
            continue
        mappable.append(obj)
    _describe_unscanned(targets, local, refresh)

    plan = plan_download(mappable, local, refresh_prefixes=refresh)
    report.planned = [obj.key for obj in plan]
    planned = set(report.planned)
    report.skipped = [obj.key for obj in mappable if obj.key not in planned]
    log.info("Need to download %d of %d remote files", len(plan), len(mappable))
    if dry_run or not plan:
        return report

    def _one(key: str) -> None:
        written = download_object(client, config.bucket, key, targets[key])
        log.info("Downloaded %s (%s)", key, format_bytes(written))

    return run_transfers(report.planned, _one, report, max_workers=max_workers,
                         fail_fast=fail_fast, cancel=cancel, deadline=deadline)
