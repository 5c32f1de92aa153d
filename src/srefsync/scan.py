"""Local tree scanners.

Each scanner returns ``{remote_key: LocalFile}`` for the files it finds.
A root that cannot be read is logged and treated as empty, so a fresh
checkout without local data still syncs.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ._types import LocalFile
from .fingerprint import describe_file
from .keys import CDN_PREFIX, PUBLIC_PREFIX, SREFS_PREFIX, Namespace, cdn_key

log = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif", ".ico", ".svg",
})
METADATA_FILENAMES = ("meta.yaml", "meta.yml")
IMAGES_DIRNAME = "images"
PARTIAL_SUFFIX = ".part"


def is_image_file(filename: str) -> bool:
    """``True`` if *filename* has an image-like extension."""
    return os.path.splitext(filename)[1].lower() in IMAGE_EXTENSIONS


def _register(result: dict[str, LocalFile], key: str, path: Path) -> None:
    """Fingerprint *path* into *result* under *key*; log and skip on error."""
    if path.name.endswith(PARTIAL_SUFFIX):
        return
    try:
        result[key] = describe_file(path)
    except OSError as exc:
        log.warning("Could not read %s: %s", path, exc)


def _list_dir(path: Path) -> list[Path]:
    return sorted(path.iterdir())


# ---------------------------------------------------------------------------
# Entry tree: <root>/<entry>/images/<file>
# ---------------------------------------------------------------------------

def scan_entry_tree(
    root: str | os.PathLike, prefix: str = SREFS_PREFIX, *,
    include_metadata: bool = False,
) -> dict[str, LocalFile]:
    """Scan a nested entry tree.

    Every immediate subdirectory of *root* is one entry.  Files in its
    ``images/`` subdirectory are registered as
    ``<prefix>/<entry>/images/<file>``; an entry without ``images/``
    contributes nothing.  With *include_metadata*, the entry's
    ``meta.yaml`` (or, failing that, ``meta.yml``) is registered as
    ``<prefix>/<entry>/meta.<ext>`` too.
    """
    ns = Namespace(prefix, Path(root))
    result: dict[str, LocalFile] = {}
    try:
        entry_dirs = [p for p in _list_dir(ns.root) if p.is_dir()]
    except OSError as exc:
        log.warning("Could not scan entry tree %s: %s", root, exc)
        return result

    for entry_dir in entry_dirs:
        if include_metadata:
            for name in METADATA_FILENAMES:
                meta = entry_dir / name
                if meta.is_file():
                    _register(result, ns.remote_key(meta), meta)
                    break

        images_dir = entry_dir / IMAGES_DIRNAME
        if not images_dir.is_dir():
            continue
        try:
            files = _list_dir(images_dir)
        except OSError as exc:
            log.warning("Could not scan %s: %s", images_dir, exc)
            continue
        for f in files:
            if f.is_file():
                _register(result, ns.remote_key(f), f)
    return result


# ---------------------------------------------------------------------------
# Flat asset directory: <root>/<file>
# ---------------------------------------------------------------------------

def scan_asset_dir(root: str | os.PathLike, prefix: str = PUBLIC_PREFIX) -> dict[str, LocalFile]:
    """Scan image-like files directly inside *root* as ``<prefix>/<file>``."""
    ns = Namespace(prefix, Path(root))
    result: dict[str, LocalFile] = {}
    try:
        files = _list_dir(ns.root)
    except OSError as exc:
        log.warning("Could not scan asset directory %s: %s", root, exc)
        return result
    for f in files:
        if f.is_file() and is_image_file(f.name):
            _register(result, ns.remote_key(f), f)
    return result


# ---------------------------------------------------------------------------
# Built site: derivatives and copies published under cdn/
# ---------------------------------------------------------------------------

def _walk_images(base: Path):
    """Yield image files under *base*, recursively, in sorted order."""
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames.sort()
        dp = Path(dirpath)
        for fname in sorted(filenames):
            if is_image_file(fname):
                yield dp / fname


def scan_dist_tree(dist_root: str | os.PathLike, cdn_prefix: str = CDN_PREFIX) -> dict[str, LocalFile]:
    """Scan a built site for files to publish under *cdn_prefix*.

    * ``<dist>/_astro/**``: processed derivatives, ``cdn/processed/_astro/...``
    * image files directly in ``<dist>``: ``cdn/public/<file>``
    * ``<dist>/data/srefs/**``: original images, ``cdn/srefs/...``
    """
    dist = Path(dist_root)
    result: dict[str, LocalFile] = {}
    if not dist.is_dir():
        log.warning("Could not scan build output %s: not a directory", dist)
        return result

    astro = dist / "_astro"
    if astro.is_dir():
        for f in _walk_images(astro):
            _register(result, cdn_key(f, "processed", dist, cdn_prefix), f)
    else:
        log.info("No _astro directory in %s, skipping processed images", dist)

    try:
        top = _list_dir(dist)
    except OSError as exc:
        log.warning("Could not scan %s: %s", dist, exc)
        top = []
    for f in top:
        if f.is_file() and is_image_file(f.name):
            _register(result, cdn_key(f, "public", dist, cdn_prefix), f)

    originals = dist / "data" / SREFS_PREFIX
    if originals.is_dir():
        for f in _walk_images(originals):
            key = cdn_key(f, "original", dist, cdn_prefix)
            if key is not None:
                _register(result, key, f)
    else:
        log.info("No data/%s directory in %s, skipping original images", SREFS_PREFIX, dist)
    return result
