"""The push, pull and publish commands."""

from __future__ import annotations

import click
from botocore.exceptions import BotoCoreError, ClientError

from ..sync import sync_from_remote, sync_to_cdn, sync_to_remote
from ._helpers import (
    main,
    _client_for,
    _deadline,
    _dry_run_option,
    _load_config,
    _print_report,
    _status,
    _transfer_options,
)


def _run_sync(ctx, func, label, *, dry_run, jobs, fail_fast, timeout):
    """Run one sync function and report; exit 1 if any file failed."""
    deadline = _deadline(timeout)
    config = _load_config(ctx)
    if config is None:
        click.echo(f"AWS_S3_BUCKET not configured, skipping {label}", err=True)
        return
    client = _client_for(config)
    _status(ctx, f"Starting {label} with s3://{config.bucket}")
    try:
        report = func(client, config, dry_run=dry_run, max_workers=jobs,
                      fail_fast=fail_fast, deadline=deadline)
    except (BotoCoreError, ClientError) as exc:
        raise click.ClickException(f"{label} failed: {exc}")
    _print_report(report)
    if not report.ok:
        ctx.exit(1)
    _status(ctx, f"Finished {label}")


@main.command()
@_dry_run_option
@_transfer_options
@click.pass_context
def push(ctx, dry_run, jobs, fail_fast, timeout):
    """Upload new or changed entry sources and public assets.

    Compares local files with the bucket by content fingerprint and
    uploads only what differs.
    """
    _run_sync(ctx, sync_to_remote, "source sync", dry_run=dry_run, jobs=jobs,
              fail_fast=fail_fast, timeout=timeout)


@main.command()
@_dry_run_option
@_transfer_options
@click.pass_context
def pull(ctx, dry_run, jobs, fail_fast, timeout):
    """Download entries and public assets from the bucket."""
    _run_sync(ctx, sync_from_remote, "download sync", dry_run=dry_run, jobs=jobs,
              fail_fast=fail_fast, timeout=timeout)


@main.command()
@_dry_run_option
@_transfer_options
@click.pass_context
def publish(ctx, dry_run, jobs, fail_fast, timeout):
    """Upload the built site's images under the CDN prefix."""
    _run_sync(ctx, sync_to_cdn, "CDN upload", dry_run=dry_run, jobs=jobs,
              fail_fast=fail_fast, timeout=timeout)
