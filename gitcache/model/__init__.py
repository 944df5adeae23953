from .request import (
    RECURSE_ALL,
    CloneRequest,
    PrefetchRequest,
    build_clone_request,
    build_prefetch_request,
)
from .submodule import SubmoduleSpec

__all__ = [
    "RECURSE_ALL",
    "CloneRequest",
    "PrefetchRequest",
    "SubmoduleSpec",
    "build_clone_request",
    "build_prefetch_request",
]
