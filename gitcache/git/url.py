"""
Repository URL handling: locality, cache keys and clone target names.

Two remote URL shapes are recognized:

    https://github.com/user/repo.git   (standard URL, scheme://host/path)
    git@github.com:user/repo.git       (scp-like shorthand, user@host:path)

Both map onto a Go-style, human readable cache key:

    github.com/user/repo.git

The key is computed from host and path, never stored, so the cache directory
layout is its own index.
"""

import os
import posixpath
import re
from pathlib import Path, PurePosixPath
from typing import NamedTuple, Optional
from urllib.parse import urlsplit, urlunsplit

from gitcache.exceptions import ConfigurationError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


class ScpUrl(NamedTuple):
    user: str
    host: str
    path: str


def split_scp_url(url: str) -> Optional[ScpUrl]:
    """
    Split an scp-like ``user@host:path`` reference.

    The reference is scp-like when it contains an ``@`` that comes before the
    first ``:``.

    Returns:
        The parts, or None if ``url`` is not scp-like
    """
    at_pos = url.find("@")
    colon_pos = url.find(":")
    if at_pos == -1 or colon_pos == -1 or at_pos > colon_pos:
        return None
    return ScpUrl(url[:at_pos], url[at_pos + 1 : colon_pos], url[colon_pos + 1 :])


def is_standard_url(url: str) -> bool:
    return bool(_SCHEME_RE.match(url))


def repo_is_local(url: str) -> bool:
    """
    Check if a repository URL refers to a local repository.

    This mimics git's notion of a local repository (bundles are not taken into
    account). A ``file://`` URL is local; any other ``scheme://`` URL is
    remote. Anything else is local if it starts with ``./`` or ``/``, is not an
    scp-like ``user@host:path`` reference, or exists on the local filesystem.

    Note that ``host:path`` without a user is therefore classified as local.

    Args:
        url: Repository URL or path

    Returns:
        True if the repository is local and must bypass the cache
    """
    if is_standard_url(url):
        return urlsplit(url).scheme.lower() == "file"
    return (
        url.startswith("./")
        or url.startswith("/")
        or split_scp_url(url) is None
        or os.path.exists(url)
    )


def _strip_repo_path(path: str) -> str:
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return path.rstrip("/")


def cache_key(url: str) -> PurePosixPath:
    """
    Map a remote repository URL onto its relative cache path.

    Examples:
        https://github.com/user/repo.git -> github.com/user/repo.git
        https://github.com/user/repo -> github.com/user/repo.git
        git@github.com:user/repo.git -> github.com/user/repo.git
        ssh://git@host:2222/group/project -> host_2222/group/project.git

    Args:
        url: Remote repository URL

    Returns:
        Relative path (host/path.git) of the cache entry

    Raises:
        ConfigurationError: If the URL is local or has no host/path to key on
    """
    if repo_is_local(url):
        raise ConfigurationError(f"cannot cache local repository '{url}'")

    if is_standard_url(url):
        parsed = urlsplit(url)
        host = parsed.hostname
        try:
            port = parsed.port
        except ValueError:
            raise ConfigurationError(f"invalid port in repository URL '{url}'")
        if port is not None and host:
            host = f"{host}_{port}"
        path = parsed.path
    else:
        scp = split_scp_url(url)
        if scp is None:
            raise ConfigurationError(f"cannot parse repository URL '{url}'")
        host = scp.host.lower()
        path = scp.path

    path = _strip_repo_path(path)
    if not host or not path:
        raise ConfigurationError(f"cannot derive a cache path from '{url}'")

    parts = PurePosixPath(path).parts
    if any(part in ("..", ".") for part in parts):
        raise ConfigurationError(f"refusing relative path components in '{url}'")

    return PurePosixPath(host, *parts).with_name(parts[-1] + ".git")


def target_path_from_url(url: str, target_path: Optional[str] = None) -> Path:
    """
    Resolve the clone destination, deriving it from the URL if not given.

    Like git, the default is the final path segment of the URL without a
    trailing ``.git``.
    """
    if target_path is not None:
        return Path(os.path.expanduser(str(target_path)))

    if is_standard_url(url):
        path = urlsplit(url).path
    else:
        scp = split_scp_url(url)
        path = scp.path if scp is not None else url

    name = posixpath.basename(_strip_repo_path(path))
    if not name:
        raise ConfigurationError(f"cannot derive a target directory from '{url}'")
    return Path(name)


def is_clone_target(path: Path) -> bool:
    """A path can be cloned into if it does not exist or is an empty directory."""
    if not path.exists():
        return True
    return path.is_dir() and next(path.iterdir(), None) is None


def resolve_submodule_url(parent_url: str, url: str) -> str:
    """
    Resolve a submodule URL relative to its superproject's upstream URL.

    Relative URLs (starting with ``./`` or ``../``) are resolved the way git
    does, e.g. ``../lib.git`` declared in ``https://host/org/app.git`` becomes
    ``https://host/org/lib.git``. Other URLs are returned unchanged.
    """
    if not (url.startswith("./") or url.startswith("../")):
        return url

    if is_standard_url(parent_url):
        parsed = urlsplit(parent_url)
        joined = posixpath.normpath(posixpath.join(parsed.path.rstrip("/"), url))
        return urlunsplit((parsed.scheme, parsed.netloc, joined, "", ""))

    scp = split_scp_url(parent_url)
    if scp is not None:
        joined = posixpath.normpath(posixpath.join(scp.path.rstrip("/"), url))
        return f"{scp.user}@{scp.host}:{joined}"

    return os.path.normpath(os.path.join(parent_url.rstrip("/"), url))
