"""Flow DTOs."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class FlowPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FlowGraphData(BaseModel):
    """Structural references of a flow, used when matching changed files."""

    model_config = ConfigDict(frozen=True)

    pages: List[str] = Field(default_factory=list)
    components: List[str] = Field(default_factory=list)
    connected_flow_ids: List[str] = Field(default_factory=list)
    trigger_conditions: List[str] = Field(default_factory=list)

    def references(self) -> List[str]:
        """Component and page references, components first."""
        return [*self.components, *self.pages]


class FlowCreateDto(BaseModel):
    """Fields needed to create a flow."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    persona_id: Optional[str] = None
    priority: FlowPriority = FlowPriority.MEDIUM
    entry_point: Optional[str] = None
    graph_data: FlowGraphData = Field(default_factory=FlowGraphData)


class FlowDto(FlowCreateDto):
    """A persisted flow, unique by (project_id, name)."""

    id: str
    project_id: str
    affected_by_changes: List[str] = Field(default_factory=list)
    risk_score: float = Field(default=0.0, ge=0.0, le=1.0)
    is_active: bool = True
