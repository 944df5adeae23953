import logging
from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from gitcache.exceptions import ConfigurationError
from gitcache.git.url import cache_key, repo_is_local

logger = logging.getLogger(__name__)

RECURSE_ALL = "all"


def validate_non_empty_string(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must be a non-empty string")
    return v


class CloneRequest(BaseModel):
    """A single clone, from the cache or directly from its source."""

    repository_url: str = Field(..., description="Repository URL or local path")
    target_path: Optional[Path] = Field(
        None, description="Clone destination, derived from the URL if not given"
    )
    cached: Optional[bool] = Field(
        None, description="Clone through the cache; defaults to True for remote URLs"
    )
    update: bool = Field(False, description="Force an update of the cache entry")
    commit: Optional[str] = Field(None, description="Commit to check out")
    sparse_paths: Optional[List[str]] = Field(
        None, description="Paths to keep in a sparse checkout"
    )
    recurse_submodules: Union[Literal["all"], List[str], None] = Field(
        None, description="'all', a list of submodule pathspecs, or None"
    )
    shallow_submodules: bool = Field(
        False, description="Carried to child requests; does not change cloning"
    )
    jobs: int = Field(1, ge=1, description="Number of submodules cloned at once")
    extra_clone_args: List[str] = Field(
        default_factory=list, description="Arguments passed through to git clone"
    )

    @field_validator("repository_url")
    @classmethod
    def validate_repository_url(cls, v: str) -> str:
        return validate_non_empty_string(v)

    @field_validator("commit")
    @classmethod
    def validate_commit(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else validate_non_empty_string(v)

    @field_validator("sparse_paths")
    @classmethod
    def validate_sparse_paths(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return v or None

    @field_validator("recurse_submodules")
    @classmethod
    def validate_recurse_submodules(cls, v):
        if isinstance(v, list) and not v:
            return None
        return v

    @model_validator(mode="after")
    def resolve_cached(self) -> "CloneRequest":
        """Derive whether to use the cache; local repositories never are."""
        local = repo_is_local(self.repository_url)
        if self.cached is None:
            self.cached = not local
        elif self.cached and local:
            logger.debug(f"Not caching local repository {self.repository_url}")
            self.cached = False
        return self

    @property
    def wants_submodules(self) -> bool:
        return self.recurse_submodules is not None

    @property
    def submodule_filter(self) -> Optional[List[str]]:
        if self.recurse_submodules == RECURSE_ALL:
            return None
        return self.recurse_submodules


class PrefetchRequest(BaseModel):
    """A bulk mirror/update of remote repositories, without working copies."""

    repository_urls: List[str] = Field(..., description="Seed repository URLs")
    update: bool = Field(False, description="Update entries that are already cached")
    recurse_submodules: bool = Field(
        False, description="Also prefetch submodules, transitively"
    )
    jobs: int = Field(1, ge=1, description="Number of repositories fetched at once")

    @field_validator("repository_urls")
    @classmethod
    def validate_repository_urls(cls, v: List[str]) -> List[str]:
        urls = [validate_non_empty_string(url) for url in v]
        for url in urls:
            if repo_is_local(url):
                raise ValueError(
                    f"can only cache remote repositories, '{url}' is local"
                )
            try:
                cache_key(url)
            except ConfigurationError as e:
                raise ValueError(str(e))
        return urls


def _build(model, fields):
    try:
        return model(**fields)
    except ValidationError as e:
        messages = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"invalid {model.__name__}: {messages}")


def build_clone_request(**fields) -> CloneRequest:
    """
    Validate and build a clone request, computing derived defaults once.

    Raises:
        ConfigurationError: If the request is invalid
    """
    return _build(CloneRequest, fields)


def build_prefetch_request(**fields) -> PrefetchRequest:
    """
    Validate and build a prefetch request.

    Raises:
        ConfigurationError: If the request is invalid, e.g. names a local repository
    """
    return _build(PrefetchRequest, fields)
