"""git-cache CLI"""

from pathlib import Path

import click

from gitcache import __version__
from gitcache.cli.cache import list_entries
from gitcache.cli.clone import clone
from gitcache.cli.prefetch import prefetch
from gitcache.cli.utils.logging import add_debug_option
from gitcache.config import CACHE_DIR_ENV


@click.group()
@click.version_option(__version__, prog_name="git-cache")
@click.option(
    "--cache-dir",
    "-c",
    envvar=CACHE_DIR_ENV,
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Git cache base directory [env: {CACHE_DIR_ENV}, default: ~/.gitcache]",
)
@click.pass_context
def cli(ctx, cache_dir):
    """
    git-cache: clone git repositories through a local mirror cache.
    """
    ctx.ensure_object(dict)
    ctx.obj["CACHE_DIR"] = cache_dir


@click.command(name="init", hidden=True)
def init():
    """Does nothing. Kept for compatibility with older wrapper scripts."""


cli.add_command(add_debug_option(clone))
cli.add_command(add_debug_option(prefetch))
cli.add_command(add_debug_option(list_entries))
cli.add_command(init)

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
