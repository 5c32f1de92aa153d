"""Translation between remote object keys and local filesystem paths.

Remote key layout::

    srefs/<entry-dir>/images/<file>     original entry images
    srefs/<entry-dir>/meta.<ext>        entry metadata document
    public/<file>                       original public assets (flat)
    cdn/processed/<path>                site-generator derivatives
    cdn/public/<file>                   CDN copy of public assets
    cdn/srefs/...                       CDN copy of original entry images

Everything here is pure: no filesystem access.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

SREFS_PREFIX = "srefs"
PUBLIC_PREFIX = "public"
CDN_PREFIX = "cdn"
CDN_PROCESSED = f"{CDN_PREFIX}/processed"
CDN_PUBLIC = f"{CDN_PREFIX}/public"
CDN_SREFS = f"{CDN_PREFIX}/{SREFS_PREFIX}"

CDN_KINDS = ("processed", "public", "original")


def _key_segments(key: str) -> list[str]:
    """Split *key* on ``/``, rejecting keys that could escape a root."""
    if not key:
        raise ValueError("Empty key")
    if key.startswith("/") or "\\" in key:
        raise ValueError(f"Malformed key: {key!r}")
    segments = key.split("/")
    for seg in segments:
        if seg in ("", ".", ".."):
            raise ValueError(f"Malformed key: {key!r}")
    return segments


def remote_key_to_local_path(key: str, local_root: str | os.PathLike) -> Path:
    """Join *local_root* with the segments of *key* verbatim.

    Raises :class:`ValueError` for empty or absolute keys and keys with
    empty, ``.`` or ``..`` segments.
    """
    return Path(local_root).joinpath(*_key_segments(key))


def local_path_to_remote_key(path: str | os.PathLike, local_root: str | os.PathLike) -> str:
    """Return *path* relative to *local_root* in forward-slash key form.

    Raises :class:`ValueError` if *path* is not under *local_root*.
    """
    rel = Path(path).relative_to(Path(local_root))
    if ".." in rel.parts:
        raise ValueError(f"{path} is not under {local_root}")
    key = rel.as_posix()
    if key == ".":
        raise ValueError(f"{path} is the root itself, not a file under it")
    return key


@dataclass(frozen=True)
class Namespace:
    """A remote key prefix bound to the local directory that mirrors it.

    ``Namespace("srefs", Path("data/srefs"))`` maps
    ``srefs/sref-1/images/a.jpg`` to ``data/srefs/sref-1/images/a.jpg``.
    """
    prefix: str
    root: Path

    @property
    def list_prefix(self) -> str:
        """Prefix to pass to a listing (with trailing slash)."""
        return self.prefix + "/"

    def owns(self, key: str) -> bool:
        return key.startswith(self.list_prefix)

    def remote_key(self, path: str | os.PathLike) -> str:
        """Key for the local file at *path*."""
        return f"{self.prefix}/{local_path_to_remote_key(path, self.root)}"

    def local_path(self, key: str) -> Path:
        """Local path for *key*; raises :class:`ValueError` if not owned."""
        if not self.owns(key):
            raise ValueError(f"Key {key!r} is outside namespace {self.prefix!r}")
        return remote_key_to_local_path(key[len(self.list_prefix):], self.root)


# ---------------------------------------------------------------------------
# CDN keys and URLs
# ---------------------------------------------------------------------------

def cdn_key(path: str | os.PathLike, kind: str, dist_root: str | os.PathLike,
            cdn_prefix: str = CDN_PREFIX) -> str | None:
    """Return the CDN key for a file of the built site.

    *kind* is ``"processed"`` (key keeps the path relative to
    *dist_root*), ``"public"`` (key is the bare filename) or
    ``"original"`` (path relative to ``<dist_root>/data/srefs``).
    Returns ``None`` for an original that is not under that tree.
    """
    p = Path(path)
    if kind == "processed":
        return f"{cdn_prefix}/processed/{local_path_to_remote_key(p, dist_root)}"
    if kind == "public":
        return f"{cdn_prefix}/public/{p.name}"
    if kind == "original":
        try:
            rel = local_path_to_remote_key(p, Path(dist_root) / "data" / SREFS_PREFIX)
        except ValueError:
            return None
        return f"{cdn_prefix}/{SREFS_PREFIX}/{rel}"
    raise ValueError(f"Unknown CDN kind: {kind!r} (expected one of {CDN_KINDS})")


def to_cdn_url(local_url: str, domain: str | None) -> str:
    """Rewrite a built-site URL to where ``publish`` put the file.

    The CDN domain serves the ``cdn/`` prefix, so ``/_astro/...`` maps to
    ``https://<domain>/processed/_astro/...`` and ``/data/srefs/...`` to
    ``https://<domain>/srefs/...``.  Without *domain*, or for any other
    URL, *local_url* is returned unchanged.
    """
    if not domain:
        return local_url
    if local_url.startswith("/_astro/"):
        return f"https://{domain}/processed{local_url}"
    originals = f"/data/{SREFS_PREFIX}/"
    if local_url.startswith(originals):
        return f"https://{domain}/{SREFS_PREFIX}/{local_url[len(originals):]}"
    return local_url
