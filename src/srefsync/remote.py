"""Remote object store access: client construction and paginated listing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import boto3
from botocore.config import Config

from ._types import RemoteObject

if TYPE_CHECKING:
    from .config import SyncConfig

log = logging.getLogger(__name__)


def make_client(config: SyncConfig):
    """Create a boto3 S3 client for *config*.

    Credentials come from the usual boto3 chain (environment, shared
    config, instance role).
    """
    kwargs: dict = {
        "config": Config(
            region_name=config.region,
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "standard"},
        ),
    }
    if config.endpoint_url:
        kwargs["endpoint_url"] = config.endpoint_url
    return boto3.client("s3", **kwargs)


def list_objects(client, bucket: str, prefix: str) -> list[RemoteObject]:
    """List every object under *prefix* in *bucket*.

    Follows continuation tokens until the store reports no further
    pages.  Entries without a key, ETag or size are dropped.  Order is
    the store's.  Errors propagate; nothing is retried here.
    """
    result: list[RemoteObject] = []
    dropped = 0
    kwargs = {"Bucket": bucket, "Prefix": prefix}
    pages = 0
    while True:
        page = client.list_objects_v2(**kwargs)
        pages += 1
        for entry in page.get("Contents", []):
            obj = RemoteObject.from_listing(entry)
            if obj is None:
                dropped += 1
                continue
            result.append(obj)
        token = page.get("NextContinuationToken")
        if not token:
            break
        kwargs["ContinuationToken"] = token
    if dropped:
        log.debug("Dropped %d incomplete listing entries under %s", dropped, prefix)
    log.debug("Listed %d objects under s3://%s/%s (%d pages)",
              len(result), bucket, prefix, pages)
    return result
