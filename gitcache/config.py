"""
User configuration for git-cache.

The config file lives at ``$XDG_CONFIG_HOME/git-cache/git-cache.cfg``
(``~/Library/Application Support/git-cache`` on macOS) and may contain:

    [dirs]
    cache = ~/.gitcache

    [clone]
    jobs = 4

    [locks]
    timeout = 600
"""

import configparser
import os
import platform
from pathlib import Path
from typing import Any, Optional, Union

from gitcache.exceptions import ConfigurationError

APP_NAME = "git-cache"

CACHE_DIR_ENV = "GIT_CACHE_DIR"

DEFAULT_CACHE_DIR = "~/.gitcache"
DEFAULT_JOBS = 1


def _config_dir() -> Path:
    if platform.system() == "Darwin":
        return Path("~/Library/Application Support").expanduser() / APP_NAME
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(
        os.path.expanduser("~"), ".config"
    )
    return Path(xdg_config_home) / APP_NAME


def get_config_file() -> Path:
    return _config_dir() / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    Read access to the config file, tolerant of missing sections and keys.

    Usage:
        config = ConfigAccessor()
        jobs = config.get("clone", "jobs", default="1")
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or get_config_file()
        self.parser = configparser.ConfigParser()
        if self.config_path.exists():
            self.parser.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        if not self.parser.has_option(section, key):
            return default
        return self.parser.get(section, key)


config = ConfigAccessor()


def get_cache_dir(override: Optional[Union[str, Path]] = None) -> Path:
    """
    Get the cache base directory, creating it if needed.

    Precedence: ``override`` (the --cache-dir option), the GIT_CACHE_DIR
    environment variable, ``[dirs] cache`` in the config file, ``~/.gitcache``.

    Raises:
        ConfigurationError: If the directory cannot be created
    """
    cache_dir_str = (
        override
        or os.environ.get(CACHE_DIR_ENV)
        or config.get("dirs", "cache", DEFAULT_CACHE_DIR)
    )
    cache_dir = Path(cache_dir_str).expanduser()

    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"creating git cache base directory {cache_dir} failed: {e}"
        )

    return cache_dir


def get_default_jobs() -> int:
    value = config.get("clone", "jobs", str(DEFAULT_JOBS))
    try:
        jobs = int(value)
    except ValueError:
        raise ConfigurationError(f"invalid [clone] jobs value in config: {value!r}")
    if jobs < 1:
        raise ConfigurationError(f"[clone] jobs must be at least 1, got {jobs}")
    return jobs


def get_lock_timeout() -> Optional[float]:
    """Lock wait timeout in seconds from ``[locks] timeout``; None waits forever."""
    value = config.get("locks", "timeout")
    if value is None or value.strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"invalid [locks] timeout value in config: {value!r}")
