"""Sync configuration, built once at process start and passed explicitly."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .exceptions import ConfigError
from .keys import CDN_PREFIX, PUBLIC_PREFIX, SREFS_PREFIX, Namespace

PUBLIC_POLICIES = ("always", "compare")
DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True)
class SyncConfig:
    """Where to sync from and to.

    Attributes:
        bucket: Remote bucket name.
        region: Bucket region.
        endpoint_url: Custom endpoint for S3-compatible stores.
        data_dir: Entries root (one subdirectory per entry).
        public_dir: Public assets root (flat).
        dist_dir: Built site output, published under the CDN prefix.
        public_policy: ``"always"`` re-downloads every public asset;
            ``"compare"`` reconciles them by fingerprint like entries.
    """
    bucket: str
    region: str = DEFAULT_REGION
    endpoint_url: str | None = None
    data_dir: Path = field(default_factory=lambda: Path("data") / SREFS_PREFIX)
    public_dir: Path = field(default_factory=lambda: Path("public"))
    dist_dir: Path = field(default_factory=lambda: Path("dist"))
    srefs_prefix: str = SREFS_PREFIX
    public_prefix: str = PUBLIC_PREFIX
    cdn_prefix: str = CDN_PREFIX
    public_policy: str = "always"

    def __post_init__(self):
        if not self.bucket:
            raise ConfigError("bucket must not be empty")
        if self.public_policy not in PUBLIC_POLICIES:
            raise ConfigError(
                f"Invalid public policy: {self.public_policy!r} "
                f"(expected one of {', '.join(PUBLIC_POLICIES)})"
            )

    @property
    def srefs(self) -> Namespace:
        return Namespace(self.srefs_prefix, Path(self.data_dir))

    @property
    def public(self) -> Namespace:
        return Namespace(self.public_prefix, Path(self.public_dir))

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None,
        cwd: str | os.PathLike | None = None,
    ) -> SyncConfig | None:
        """Build a config from environment variables.

        Returns ``None`` when ``AWS_S3_BUCKET`` is unset or blank: remote
        sync is optional and callers should skip it.

        Variables: ``AWS_S3_BUCKET``, ``AWS_REGION``, ``AWS_ENDPOINT_URL``,
        ``SREFSYNC_DATA_DIR``, ``SREFSYNC_PUBLIC_DIR``,
        ``SREFSYNC_DIST_DIR``, ``SREFSYNC_PUBLIC_POLICY``.  Relative
        directories resolve against *cwd* (default: the process cwd).
        """
        env = os.environ if environ is None else environ
        bucket = (env.get("AWS_S3_BUCKET") or "").strip()
        if not bucket:
            return None
        base = Path(cwd) if cwd is not None else Path.cwd()

        def _dir(name: str, default: Path) -> Path:
            value = env.get(name)
            return base / (Path(value) if value else default)

        return cls(
            bucket=bucket,
            region=env.get("AWS_REGION") or DEFAULT_REGION,
            endpoint_url=env.get("AWS_ENDPOINT_URL") or None,
            data_dir=_dir("SREFSYNC_DATA_DIR", Path("data") / SREFS_PREFIX),
            public_dir=_dir("SREFSYNC_PUBLIC_DIR", Path("public")),
            dist_dir=_dir("SREFSYNC_DIST_DIR", Path("dist")),
            public_policy=env.get("SREFSYNC_PUBLIC_POLICY") or "always",
        )
