"""ChangeSet DTOs."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChangeStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ChangedFileDto(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    status: ChangeStatus


class ChangeSetDto(BaseModel):
    """
    One analyzed diff between two revisions.

    Immutable after creation except for the analysis fields, which are written once.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    base_sha: str
    head_sha: str
    files: List[ChangedFileDto] = Field(default_factory=list)
    risk_level: Optional[RiskLevel] = None
    risk_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    affected_flow_ids: List[str] = Field(default_factory=list)
    created_at: datetime
    analyzed_at: Optional[datetime] = None

    @property
    def is_analyzed(self) -> bool:
        return self.analyzed_at is not None
