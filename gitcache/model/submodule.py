from typing import Optional

from pydantic import BaseModel, Field


class SubmoduleSpec(BaseModel):
    """A declared submodule joined with the commit its superproject pins."""

    path: str = Field(..., description="Path relative to the superproject")
    url: str = Field(..., description="Submodule URL as declared in .gitmodules")
    commit: str = Field(..., description="Commit pinned by the superproject")
    branch: Optional[str] = Field(
        None, description="Declared branch (informational only)"
    )
