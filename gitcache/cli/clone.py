"""CLI command to clone a repository through the cache"""

import sys
from pathlib import Path

import click

from gitcache.cli.utils.args import add_pass_through_options, pop_pass_through_args
from gitcache.cli.utils.logging import logger
from gitcache.clone import CloneOrchestrator
from gitcache.config import get_cache_dir, get_default_jobs, get_lock_timeout
from gitcache.exceptions import GitCacheError
from gitcache.model import RECURSE_ALL, build_clone_request

PASS_THROUGH_HELP = """\b
These regular "git clone" options are passed through:
  [--template=<template-directory>]
  [-l] [-s] [--no-hardlinks] [-q] [-n] [--bare] [--mirror]
  [-o <name>] [-b <name>] [-u <upload-pack>] [--reference <repository>]
  [--dissociate] [--separate-git-dir <git-dir>]
  [--depth <depth>] [--[no-]single-branch] [--no-tags]
  [--[no-]remote-submodules] [--sparse] [--[no-]reject-shallow]
  [--filter=<filter> [--also-filter-submodules]]
"""


@click.command(name="clone", epilog=PASS_THROUGH_HELP)
@click.argument("repository")
@click.argument("target_path", required=False, type=click.Path(path_type=Path))
@click.option(
    "--update", "-U", is_flag=True, help="Force update of the cached repository."
)
@click.option("--commit", metavar="HASH", help="Check out a specific commit.")
@click.option(
    "--sparse-add",
    "sparse_paths",
    multiple=True,
    metavar="PATH",
    help="Do a sparse checkout, keep PATH (repeatable).",
)
@click.option(
    "--recurse-submodules", is_flag=True, help="Recursively clone all submodules."
)
@click.option(
    "--submodule",
    "submodule_paths",
    multiple=True,
    metavar="PATHSPEC",
    help="Recursively clone only submodules matching PATHSPEC (repeatable).",
)
@click.option(
    "--shallow-submodules/--no-shallow-submodules",
    default=False,
    help="Accepted for compatibility and has no effect; submodules are always "
    "cloned in full.",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="The number of submodules fetched at the same time.",
)
@click.pass_context
def clone(
    ctx,
    repository,
    target_path,
    update,
    commit,
    sparse_paths,
    recurse_submodules,
    submodule_paths,
    shallow_submodules,
    jobs,
    **kwargs,
):
    """Clone REPOSITORY into TARGET_PATH, using the cache for remote repositories.

    Example:

      git-cache clone --commit 1faafa2 https://github.com/user/repo
    """
    extra_clone_args = pop_pass_through_args(kwargs)

    if "--branch" in extra_clone_args:
        if commit:
            raise click.UsageError("--commit cannot be used together with --branch")
        if sparse_paths:
            raise click.UsageError(
                "--sparse-add cannot be used together with --branch"
            )

    # the commit is checked out after cloning, sparse paths are set after that
    if commit and "--no-checkout" not in extra_clone_args:
        extra_clone_args.append("--no-checkout")
    if sparse_paths and "--sparse" not in extra_clone_args:
        extra_clone_args.append("--sparse")

    if recurse_submodules:
        recurse = RECURSE_ALL
    elif submodule_paths:
        recurse = list(submodule_paths)
    else:
        recurse = None

    try:
        request = build_clone_request(
            repository_url=repository,
            target_path=target_path,
            update=update,
            commit=commit,
            sparse_paths=list(sparse_paths) or None,
            recurse_submodules=recurse,
            shallow_submodules=shallow_submodules,
            jobs=jobs or get_default_jobs(),
            extra_clone_args=extra_clone_args,
        )
        orchestrator = CloneOrchestrator(
            get_cache_dir(ctx.obj.get("CACHE_DIR")), lock_timeout=get_lock_timeout()
        )
        orchestrator.clone(request)
    except GitCacheError as e:
        logger.error(f"fatal: {e}")
        sys.exit(1)


add_pass_through_options(clone)
