"""
Pass-through of regular ``git clone`` options.

These options do not affect the cache; they are accepted by ``git-cache
clone`` (hidden from its help) and handed unchanged to the ``git clone
--shared`` that creates the working copy.
"""

from typing import Any, Dict, List

import click

# (short, long) flags without a value
SHORT_FLAGS = [
    ("-l", "--local"),
    ("-n", "--no-checkout"),
    ("-q", "--quiet"),
    ("-s", "--shared"),
    ("-v", "--verbose"),
]

LONG_FLAGS = [
    "--also-filter-submodules",
    "--bare",
    "--dissociate",
    "--mirror",
    "--no-hardlinks",
    "--no-reject-shallow",
    "--no-remote-submodules",
    "--no-single-branch",
    "--no-tags",
    "--reject-shallow",
    "--remote-submodules",
    "--single-branch",
    "--sparse",
]

# (short, long) options taking a value
SHORT_OPTIONS = [
    ("-b", "--branch"),
    ("-c", "--config"),
    ("-o", "--origin"),
    ("-u", "--upload-pack"),
]

LONG_OPTIONS = [
    "--bundle-uri",
    "--depth",
    "--filter",
    "--reference",
    "--reference-if-able",
    "--separate-git-dir",
    "--shallow-exclude",
    "--shallow-since",
    "--template",
]


def _param_name(long_name: str) -> str:
    return long_name.lstrip("-").replace("-", "_")


def _flag_names() -> List[str]:
    return [long for _, long in SHORT_FLAGS] + LONG_FLAGS


def _option_names() -> List[str]:
    return [long for _, long in SHORT_OPTIONS] + LONG_OPTIONS


def pass_through_params() -> List[click.Option]:
    params = []
    for short, long in SHORT_FLAGS:
        params.append(click.Option([short, long], is_flag=True, hidden=True))
    for long in LONG_FLAGS:
        params.append(click.Option([long], is_flag=True, hidden=True))
    for short, long in SHORT_OPTIONS:
        params.append(click.Option([short, long], multiple=True, hidden=True))
    for long in LONG_OPTIONS:
        params.append(click.Option([long], multiple=True, hidden=True))
    return params


def add_pass_through_options(cmd: click.Command) -> click.Command:
    """Add the hidden git clone pass-through options to a command"""
    cmd.params.extend(pass_through_params())
    return cmd


def pop_pass_through_args(params: Dict[str, Any]) -> List[str]:
    """
    Remove the pass-through options from a command's parameters and turn
    them back into ``git clone`` arguments.

    Example:
        {"depth": ("1",), "no_tags": True, "quiet": False}
        -> ["--no-tags", "--depth", "1"]
    """
    args = []
    for name in _flag_names():
        if params.pop(_param_name(name), False):
            args.append(name)
    for name in _option_names():
        for value in params.pop(_param_name(name), ()) or ():
            args += [name, value]
    return args
