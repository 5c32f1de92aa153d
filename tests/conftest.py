"""Shared fixtures for srefsync tests."""

import hashlib
import io
from datetime import datetime, timezone
from pathlib import Path

import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError
from click.testing import CliRunner

from srefsync import SyncConfig


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


# ---------------------------------------------------------------------------
# In-memory S3
# ---------------------------------------------------------------------------

class FakeS3:
    """In-memory stand-in for the S3 client calls srefsync makes.

    Objects are listed in key order, ``page_size`` per page, with
    numeric continuation tokens.  Keys in ``fail`` raise a real
    ``ClientError`` on download, and on upload the ``S3UploadFailedError``
    boto3's managed transfer wraps it in.
    """

    def __init__(self, page_size=1000):
        self.objects = {}
        self.page_size = page_size
        self.fail = set()
        self.list_calls = []
        self.uploads = []
        self.downloads = []

    def put(self, key, data, *, etag=None, extra=None):
        self.objects[key] = {
            "Body": data,
            "ETag": etag or f'"{md5_hex(data)}"',
            "LastModified": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "ExtraArgs": extra or {},
        }

    def data(self, key):
        return self.objects[key]["Body"]

    def _check(self, key, operation):
        if key in self.fail:
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": f"injected failure for {key}"}},
                operation,
            )

    def list_objects_v2(self, Bucket, Prefix="", ContinuationToken=None, **kwargs):
        self.list_calls.append({"Bucket": Bucket, "Prefix": Prefix,
                                "ContinuationToken": ContinuationToken})
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        start = int(ContinuationToken) if ContinuationToken else 0
        page = keys[start:start + self.page_size]
        response = {"KeyCount": len(page), "IsTruncated": False}
        if page:
            response["Contents"] = [
                {
                    "Key": k,
                    "ETag": self.objects[k]["ETag"],
                    "Size": len(self.objects[k]["Body"]),
                    "LastModified": self.objects[k]["LastModified"],
                }
                for k in page
            ]
        if start + self.page_size < len(keys):
            response["IsTruncated"] = True
            response["NextContinuationToken"] = str(start + self.page_size)
        return response

    def upload_file(self, Filename, Bucket, Key, ExtraArgs=None, Callback=None, Config=None):
        try:
            self._check(Key, "PutObject")
        except ClientError as exc:
            raise S3UploadFailedError(
                f"Failed to upload {Filename} to {Bucket}/{Key}: {exc}"
            ) from exc
        self.uploads.append(Key)
        self.put(Key, Path(Filename).read_bytes(), extra=dict(ExtraArgs or {}))

    def get_object(self, Bucket, Key, **kwargs):
        self._check(Key, "GetObject")
        if Key not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        self.downloads.append(Key)
        data = self.objects[Key]["Body"]
        return {"Body": io.BytesIO(data), "ContentLength": len(data),
                "ETag": self.objects[Key]["ETag"]}


@pytest.fixture
def s3():
    return FakeS3()


# ---------------------------------------------------------------------------
# Local trees
# ---------------------------------------------------------------------------

META_YAML = """\
id: "{id}"
title: {title}
tags: [watercolor, pastel]
cover_image: a.jpg
"""


def make_entry(root: Path, name: str, images: dict, *, meta: str | None = None) -> Path:
    """Create ``root/name`` with ``images/<file>`` for each item of *images*."""
    d = root / name
    img_dir = d / "images"
    img_dir.mkdir(parents=True)
    for fname, data in images.items():
        (img_dir / fname).write_bytes(data)
    if meta is not None:
        (d / "meta.yaml").write_text(meta)
    return d


@pytest.fixture
def project(tmp_path):
    """A project tree with two entries and a public directory.

    Layout:
        data/srefs/sref-1/meta.yaml, images/a.jpg, images/b.png
        data/srefs/sref-2/images/c.webp
        public/favicon.ico, public/logo.svg, public/robots.txt
    """
    srefs = tmp_path / "data" / "srefs"
    make_entry(srefs, "sref-1", {"a.jpg": b"alpha", "b.png": b"bravo"},
               meta=META_YAML.format(id="1", title="First"))
    make_entry(srefs, "sref-2", {"c.webp": b"charlie"})
    public = tmp_path / "public"
    public.mkdir()
    (public / "favicon.ico").write_bytes(b"icon")
    (public / "logo.svg").write_bytes(b"<svg/>")
    (public / "robots.txt").write_text("User-agent: *\n")
    return tmp_path


@pytest.fixture
def config(project):
    return SyncConfig(
        bucket="gallery",
        data_dir=project / "data" / "srefs",
        public_dir=project / "public",
        dist_dir=project / "dist",
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()
