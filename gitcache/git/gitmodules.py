"""Parsing of ``.gitmodules`` with dulwich's git config parser."""

from io import BytesIO
from typing import List, NamedTuple, Optional

from dulwich.config import ConfigFile

GITMODULES = ".gitmodules"


class SubmoduleDeclaration(NamedTuple):
    name: str
    path: Optional[str]
    url: Optional[str]
    branch: Optional[str]


def _value(config: ConfigFile, section, key: bytes) -> Optional[str]:
    """A stripped value, or None if it is missing or blank."""
    try:
        value = config.get(section, key).decode("utf-8").strip()
    except KeyError:
        return None
    return value or None


def parse_gitmodules(config: ConfigFile) -> List[SubmoduleDeclaration]:
    declarations = []
    for section in config.sections():
        if len(section) != 2 or section[0] != b"submodule":
            continue
        declarations.append(
            SubmoduleDeclaration(
                name=section[1].decode("utf-8"),
                path=_value(config, section, b"path"),
                url=_value(config, section, b"url"),
                branch=_value(config, section, b"branch"),
            )
        )
    return declarations


def read_gitmodules(data: bytes) -> List[SubmoduleDeclaration]:
    """Parse the contents of a ``.gitmodules`` file."""
    return parse_gitmodules(ConfigFile.from_file(BytesIO(data)))
