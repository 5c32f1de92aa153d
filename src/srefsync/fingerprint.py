"""Content fingerprints and the local-vs-remote comparison.

Local files are fingerprinted with MD5, which is what the store uses as
the ETag of a single-part upload.  Multi-part uploads get an opaque
``<md5-of-part-md5s>-<parts>`` ETag instead; for those only the size can
be compared.  Two equal-size files that differ in content and were
uploaded multi-part therefore compare as in sync.  That false negative
is a known limitation.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from ._types import LocalFile, RemoteObject

_HASH_CHUNK_SIZE = 65536


def normalize_fingerprint(tag: str) -> str:
    """Strip quote characters and lower-case *tag*."""
    return tag.replace('"', "").lower()


def is_multipart(tag: str) -> bool:
    """``True`` if *tag* is a multi-part ETag (contains a ``-``)."""
    return "-" in normalize_fingerprint(tag)


def needs_sync(local: LocalFile, remote: RemoteObject) -> bool:
    """Return ``True`` if *local* and *remote* hold different content."""
    remote_tag = normalize_fingerprint(remote.fingerprint)
    if "-" in remote_tag:
        return local.size != remote.size
    return local.fingerprint != remote_tag


def file_md5(path: str | os.PathLike) -> str:
    """Compute the lowercase hex MD5 of a file, streamed in chunks."""
    h = hashlib.md5()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_HASH_CHUNK_SIZE)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def describe_file(path: str | os.PathLike) -> LocalFile:
    """Fingerprint and stat *path* into a :class:`LocalFile`."""
    p = Path(path)
    size = p.stat().st_size
    return LocalFile(fingerprint=file_md5(p), size=size, path=p)
