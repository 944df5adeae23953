import logging
import sys

import click


logger = logging.getLogger("gitcache")

# workers log concurrently, so debug output names the thread it came from
DEBUG_FORMAT = "[%(threadName)s] %(name)s: %(message)s"
DEFAULT_FORMAT = "%(message)s"


def configure_logging(debug: bool):
    """
    Configures the gitcache logger: INFO to stdout, or DEBUG with --debug.
    """
    if not logger.hasHandlers():
        logger.addHandler(logging.StreamHandler(sys.stdout))

    formatter = logging.Formatter(DEBUG_FORMAT if debug else DEFAULT_FORMAT)
    for handler in logger.handlers:
        handler.setFormatter(formatter)

    logger.setLevel(logging.DEBUG if debug else logging.INFO)


def _set_debug(ctx: click.Context, param, value: bool):
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)

    # --debug given on the group stays on for the subcommand
    debug = value or root_ctx.obj.get("DEBUG", False)
    root_ctx.obj["DEBUG"] = debug
    configure_logging(debug)
    return debug


def add_debug_option(cmd: click.Command) -> click.Command:
    """Add an eager --debug/--no-debug option to a command or group"""
    if not any(param.name == "debug" for param in cmd.params):
        cmd.params.insert(
            0,
            click.Option(
                ["--debug/--no-debug"],
                is_eager=True,
                expose_value=False,
                callback=_set_debug,
                help="Enable debug mode",
            ),
        )
    return cmd
