"""ProjectDto for representing a persisted project."""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class ProjectDto(BaseModel):
    """Data Transfer Object for a project."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    git_remote_url: Optional[str] = None
