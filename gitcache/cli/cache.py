"""CLI commands for inspecting the cache"""

import sys

import click

from gitcache.cli.utils.logging import logger
from gitcache.config import get_cache_dir
from gitcache.exceptions import GitCacheError
from gitcache.git import list_cache_entries


@click.command(name="list")
@click.pass_context
def list_entries(ctx):
    """List the repositories in the cache."""
    try:
        cache_dir = get_cache_dir(ctx.obj.get("CACHE_DIR"))
    except GitCacheError as e:
        logger.error(f"fatal: {e}")
        sys.exit(1)

    entries = list_cache_entries(cache_dir)
    if not entries:
        logger.info(f"No repositories cached in {cache_dir}")
        return

    for entry in entries:
        click.echo(f"{entry['key']}\t{entry['url']}")
