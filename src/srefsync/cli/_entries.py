"""The check and index commands."""

from __future__ import annotations

import json

import click

from ..entries import load_entries, search_index
from ._helpers import main, _status


@main.command()
@click.pass_context
def check(ctx):
    """Validate every entry's metadata document."""
    entries, errors = load_entries(ctx.obj["data_dir"])
    for err in errors:
        click.echo(f"ERROR: {err}", err=True)
    _status(ctx, f"{len(entries)} valid, {len(errors)} invalid")
    if errors:
        ctx.exit(1)


@main.command()
@click.option("-o", "--output", type=click.File("w"), default="-",
              help="Write to FILE instead of stdout.")
@click.option("--cdn-domain", envvar="PUBLIC_CLOUDFRONT_DOMAIN",
              help="Point cover image URLs at this CDN domain (or set PUBLIC_CLOUDFRONT_DOMAIN).")
@click.pass_context
def index(ctx, output, cdn_domain):
    """Write the search index (valid entries only) as JSON."""
    entries, errors = load_entries(ctx.obj["data_dir"])
    for err in errors:
        click.echo(f"WARNING: skipping {err}", err=True)
    json.dump(search_index(entries, cdn_domain=cdn_domain or None), output, indent=2)
    output.write("\n")
    _status(ctx, f"Indexed {len(entries)} entries")
