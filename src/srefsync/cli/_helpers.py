"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import click
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DEFAULT_REGION, PUBLIC_POLICIES, SyncConfig
from ..exceptions import ConfigError
from ..keys import SREFS_PREFIX
from ..remote import make_client


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _load_config(ctx) -> SyncConfig | None:
    """Build the sync config from the group options; ``None`` without a bucket."""
    obj = ctx.obj
    bucket = (obj.get("bucket") or "").strip()
    if not bucket:
        return None
    try:
        return SyncConfig(
            bucket=bucket,
            region=obj.get("region") or DEFAULT_REGION,
            endpoint_url=obj.get("endpoint_url") or None,
            data_dir=Path(obj["data_dir"]),
            public_dir=Path(obj["public_dir"]),
            dist_dir=Path(obj["dist_dir"]),
            public_policy=obj.get("public_policy") or "always",
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc))


def _client_for(config: SyncConfig):
    try:
        return make_client(config)
    except (BotoCoreError, ClientError) as exc:
        raise click.ClickException(f"Could not create storage client: {exc}")


def _deadline(timeout: float | None) -> float | None:
    """Convert a --timeout in seconds to a monotonic deadline."""
    if timeout is None:
        return None
    if timeout <= 0:
        raise click.ClickException("--timeout must be positive")
    return time.monotonic() + timeout


def _print_report(report) -> None:
    """Echo warnings, dry-run actions, errors and the summary line."""
    for w in report.warnings:
        click.echo(f"WARNING: {w.key}: {w.error}", err=True)
    if report.dry_run:
        for key in report.planned:
            click.echo(f"+ {key}")
    for e in report.errors:
        click.echo(f"ERROR: {e.key}: {e.error}", err=True)
    click.echo(report.summary(), err=True)


def _dry_run_option(f):
    return click.option(
        "-n", "--dry-run", "dry_run", is_flag=True, default=False,
        help="Show what would be transferred without transferring.",
    )(f)


def _transfer_options(f):
    """Shared --jobs / --fail-fast / --timeout options for transfer commands."""
    f = click.option("--timeout", type=float, default=None,
                     help="Stop starting new transfers after this many seconds.")(f)
    f = click.option("--fail-fast", is_flag=True, default=False,
                     help="Stop starting new transfers after the first failure.")(f)
    f = click.option("-j", "--jobs", type=click.IntRange(min=1), default=1,
                     show_default=True, help="Number of parallel transfers.")(f)
    return f


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--bucket", envvar="AWS_S3_BUCKET",
              help="Remote bucket (or set AWS_S3_BUCKET). Sync is skipped without one.")
@click.option("--region", envvar="AWS_REGION", default=DEFAULT_REGION, show_default=True,
              help="Bucket region (or set AWS_REGION).")
@click.option("--endpoint-url", envvar="AWS_ENDPOINT_URL",
              help="Custom endpoint for S3-compatible stores.")
@click.option("--data-dir", envvar="SREFSYNC_DATA_DIR", type=click.Path(file_okay=False),
              default=str(Path("data") / SREFS_PREFIX), show_default=True,
              help="Entries root, one subdirectory per entry.")
@click.option("--public-dir", envvar="SREFSYNC_PUBLIC_DIR", type=click.Path(file_okay=False),
              default="public", show_default=True, help="Public assets directory.")
@click.option("--dist-dir", envvar="SREFSYNC_DIST_DIR", type=click.Path(file_okay=False),
              default="dist", show_default=True, help="Built site directory.")
@click.option("--public-policy", envvar="SREFSYNC_PUBLIC_POLICY",
              type=click.Choice(PUBLIC_POLICIES), default="always", show_default=True,
              help="'always' re-downloads public assets; 'compare' reconciles them.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, bucket, region, endpoint_url, data_dir, public_dir, dist_dir, public_policy, verbose):
    """srefsync: keep a style-reference gallery in sync with object storage.

    \b
    Commands:
      push      Upload new or changed entry sources and public assets
      pull      Download entries and public assets
      publish   Upload the built site's images under cdn/
      check     Validate every entry's meta.yaml
      index     Write the search index as JSON

    \b
    Without a bucket (--bucket or AWS_S3_BUCKET) the transfer commands
    do nothing and exit successfully.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(
        bucket=bucket, region=region, endpoint_url=endpoint_url,
        data_dir=data_dir, public_dir=public_dir, dist_dir=dist_dir,
        public_policy=public_policy, verbose=verbose,
    )
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
