"""CLI command to pre-fetch repositories into the cache"""

import sys

import click

from gitcache.cli.utils.logging import logger
from gitcache.config import get_cache_dir, get_default_jobs, get_lock_timeout
from gitcache.exceptions import GitCacheError
from gitcache.model import build_prefetch_request
from gitcache.prefetch import Prefetcher


@click.command(name="prefetch")
@click.argument("repositories", nargs=-1, required=True)
@click.option(
    "--update", "-U", is_flag=True, help="Force update of already cached repositories."
)
@click.option(
    "--recurse-submodules",
    "-r",
    is_flag=True,
    help="Recursively prefetch submodules.",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="The number of repositories fetched at the same time.",
)
@click.pass_context
def prefetch(ctx, repositories, update, recurse_submodules, jobs):
    """Pre-fetch REPOSITORIES into the cache, without checking them out.

    Example:

      git-cache prefetch -r -j 4 https://github.com/user/repo
    """
    try:
        request = build_prefetch_request(
            repository_urls=list(repositories),
            update=update,
            recurse_submodules=recurse_submodules,
            jobs=jobs or get_default_jobs(),
        )
        prefetcher = Prefetcher(
            get_cache_dir(ctx.obj.get("CACHE_DIR")),
            request,
            lock_timeout=get_lock_timeout(),
        )
        report = prefetcher.run()
    except GitCacheError as e:
        logger.error(f"fatal: {e}")
        sys.exit(1)

    if not report.ok:
        logger.warning(f"Failed to prefetch {len(report.failed)} repositories:")
        for repo_url, error in report.failed.items():
            logger.warning(f"  {repo_url}: {error}")
        sys.exit(1)
