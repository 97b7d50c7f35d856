"""ApiKeyDto for registered workflow credentials."""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class ApiKeyDto(BaseModel):
    """A registered API key. Only the SHA-256 hash of the key is stored."""

    model_config = ConfigDict(frozen=True)

    key_hash: str
    key_prefix: str
    project_id: str
    name: str = "default"
    scopes: List[str] = Field(default_factory=list)
    revoked: bool = False
