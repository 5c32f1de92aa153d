"""Sync planners: decide which files must move in each direction.

Pure functions over descriptor maps.  Nothing here touches the
filesystem or the network.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from ._types import LocalFile, RemoteObject
from .fingerprint import needs_sync
from .keys import PUBLIC_PREFIX


def index_remote(objects: Iterable[RemoteObject]) -> dict[str, RemoteObject]:
    """Build ``{key: RemoteObject}`` from a listing."""
    return {obj.key: obj for obj in objects}


def plan_upload(
    local: Mapping[str, LocalFile],
    remote: Mapping[str, RemoteObject] | Iterable[RemoteObject],
) -> dict[str, LocalFile]:
    """Return the subset of *local* that must be uploaded.

    A file is selected when no remote object has its key, or when
    :func:`~srefsync.fingerprint.needs_sync` reports a difference.
    Order follows *local*.
    """
    if not isinstance(remote, Mapping):
        remote = index_remote(remote)
    plan: dict[str, LocalFile] = {}
    for key, lf in local.items():
        obj = remote.get(key)
        if obj is None or needs_sync(lf, obj):
            plan[key] = lf
    return plan


def plan_download(
    remote: Iterable[RemoteObject],
    local: Mapping[str, LocalFile],
    *,
    refresh_prefixes: Iterable[str] = (PUBLIC_PREFIX,),
) -> list[RemoteObject]:
    """Return the subset of *remote* that must be downloaded.

    Objects under any of *refresh_prefixes* are always selected (public
    assets are small and always re-fetched).  Every other object is
    selected when *local* has no file for its key, or when
    :func:`~srefsync.fingerprint.needs_sync` reports a difference.
    Order follows *remote*.
    """
    refresh = tuple(p.rstrip("/") + "/" for p in refresh_prefixes)
    plan: list[RemoteObject] = []
    for obj in remote:
        if refresh and obj.key.startswith(refresh):
            plan.append(obj)
            continue
        lf = local.get(obj.key)
        if lf is None or needs_sync(lf, obj):
            plan.append(obj)
    return plan
