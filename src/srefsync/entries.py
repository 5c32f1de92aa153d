"""Catalog entries: loading and validating ``meta.yaml`` documents.

Each entry lives in its own directory under the entries root::

    sref-1234/
        meta.yaml
        images/
            a.png
            b.jpg

``meta.yaml`` format::

    id: "1234"
    title: Soft watercolor
    description: optional free text
    tags: [watercolor, pastel]
    cover_image: a.png
    created: 2024-05-01          # optional
    images:                      # optional; discovered from images/ if absent
      - filename: a.png
        prompt: a quiet harbor   # optional
"""

from __future__ import annotations

import datetime
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import MetadataError
from .keys import to_cdn_url
from .scan import IMAGES_DIRNAME, METADATA_FILENAMES

log = logging.getLogger(__name__)

# Image types the site renders (narrower than what the sync engine moves).
ENTRY_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp", ".gif"})


@dataclass
class EntryImage:
    filename: str
    prompt: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass
class Entry:
    """A validated catalog entry.

    Attributes:
        id: Entry identifier.
        title: Display title.
        tags: Tag list (possibly empty).
        cover_image: Filename of the cover image.
        description: Optional free text.
        created: Optional creation date, ISO format.
        images: Declared or discovered images.
        dir_name: Directory name under the entries root, when loaded from disk.
    """
    id: str
    title: str
    tags: list[str]
    cover_image: str
    description: str | None = None
    created: str | None = None
    images: list[EntryImage] = field(default_factory=list)
    dir_name: str | None = None

    @property
    def url_path(self) -> str:
        return f"/sref/{self.id}"

    @property
    def cover_image_url(self) -> str:
        """Site URL of the cover image, or ``""`` if the entry has no images."""
        names = [img.filename for img in self.images]
        cover = self.cover_image if self.cover_image in names else (names[0] if names else None)
        if cover is None or self.dir_name is None:
            return ""
        return f"/data/srefs/{self.dir_name}/{IMAGES_DIRNAME}/{cover}"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _as_text(value: Any) -> str | None:
    """Accept strings and numbers (YAML reads ``id: 1234`` as an int)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return str(value)
    return None


def _parse_images(raw: Any, problems: list[str]) -> list[EntryImage]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        problems.append("images: expected a list")
        return []
    images: list[EntryImage] = []
    for i, item in enumerate(raw):
        if isinstance(item, str):
            images.append(EntryImage(filename=item))
            continue
        if not isinstance(item, dict) or not isinstance(item.get("filename"), str):
            problems.append(f"images[{i}]: expected a mapping with a 'filename' string")
            continue
        prompt = item.get("prompt")
        if prompt is not None and not isinstance(prompt, str):
            problems.append(f"images[{i}].prompt: expected a string")
            prompt = None
        dims = {}
        for dim in ("width", "height"):
            v = item.get(dim)
            if v is not None and (isinstance(v, bool) or not isinstance(v, int) or v <= 0):
                problems.append(f"images[{i}].{dim}: expected a positive integer")
                v = None
            dims[dim] = v
        images.append(EntryImage(filename=item["filename"], prompt=prompt, **dims))
    return images


def parse_entry(data: Any, *, source: str | os.PathLike | None = None,
                dir_name: str | None = None) -> Entry:
    """Validate a parsed metadata document and build an :class:`Entry`.

    Every problem is collected before raising, so one
    :class:`~srefsync.exceptions.MetadataError` reports them all.
    """
    if not isinstance(data, dict):
        raise MetadataError(source, ["document is not a mapping"])
    problems: list[str] = []

    entry_id = _as_text(data.get("id"))
    if not entry_id:
        problems.append("id: required (string)")
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        problems.append("title: required (non-empty string)")
    tags = data.get("tags")
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        problems.append("tags: required (list of strings)")
    cover = data.get("cover_image")
    if not isinstance(cover, str) or not cover:
        problems.append("cover_image: required (string)")
    description = data.get("description")
    if description is not None and not isinstance(description, str):
        problems.append("description: expected a string")
    created = data.get("created")
    if isinstance(created, (datetime.date, datetime.datetime)):
        created = created.isoformat()
    elif created is not None and not isinstance(created, str):
        problems.append("created: expected a date or string")
    images = _parse_images(data.get("images"), problems)

    if problems:
        raise MetadataError(source, problems)
    return Entry(
        id=entry_id, title=title, tags=list(tags), cover_image=cover,
        description=description, created=created, images=images,
        dir_name=dir_name,
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _discover_images(images_dir: Path) -> list[EntryImage]:
    try:
        names = sorted(p.name for p in images_dir.iterdir() if p.is_file())
    except OSError:
        return []
    return [EntryImage(filename=n) for n in names
            if os.path.splitext(n)[1].lower() in ENTRY_IMAGE_EXTENSIONS]


def load_entry(entry_dir: str | os.PathLike) -> Entry:
    """Load and validate the entry in *entry_dir*.

    Raises :class:`FileNotFoundError` when the directory has no metadata
    document and :class:`~srefsync.exceptions.MetadataError` when the
    document is not valid YAML or fails validation.
    """
    d = Path(entry_dir)
    for name in METADATA_FILENAMES:
        meta = d / name
        if meta.is_file():
            break
    else:
        raise FileNotFoundError(f"No metadata document in {d}")

    try:
        data = yaml.safe_load(meta.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise MetadataError(meta, [f"invalid YAML: {exc}"]) from exc
    entry = parse_entry(data, source=meta, dir_name=d.name)
    if not entry.images:
        entry.images = _discover_images(d / IMAGES_DIRNAME)
    return entry


def load_entries(root: str | os.PathLike) -> tuple[list[Entry], list[MetadataError]]:
    """Load every entry under *root*.

    Returns ``(entries, errors)``.  Invalid entries appear only in
    *errors*.  A missing or unreadable root yields two empty lists.
    """
    base = Path(root)
    try:
        dirs = sorted(p for p in base.iterdir() if p.is_dir())
    except OSError as exc:
        log.warning("Could not read entries root %s: %s", base, exc)
        return [], []

    entries: list[Entry] = []
    errors: list[MetadataError] = []
    for d in dirs:
        try:
            entries.append(load_entry(d))
        except MetadataError as exc:
            errors.append(exc)
        except OSError as exc:
            errors.append(MetadataError(d, [str(exc)]))
    return entries, errors


# ---------------------------------------------------------------------------
# Search index
# ---------------------------------------------------------------------------

def search_index(entries: list[Entry], cdn_domain: str | None = None) -> list[dict]:
    """Flat records for the client-side search widget.

    With *cdn_domain*, cover image URLs point at the published CDN copy.
    """
    records = []
    for e in entries:
        description = e.description or ""
        search_text = " ".join([e.id, e.title, description, " ".join(e.tags)]).lower()
        records.append({
            "id": e.id,
            "title": e.title,
            "description": description,
            "tags": list(e.tags),
            "searchText": search_text,
            "coverImageUrl": to_cdn_url(e.cover_image_url, cdn_domain),
            "path": e.url_path,
        })
    return records
