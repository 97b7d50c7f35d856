"""Step DTOs."""

from typing import List
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_STEP_TIMEOUT_MS = 30_000
DEFAULT_STEP_RETRY_COUNT = 3


class StepCreateDto(BaseModel):
    """A step to insert; sequence order is assigned by position on insert."""

    model_config = ConfigDict(frozen=True)

    action: str
    expected_state: str = ""
    selectors: List[str] = Field(default_factory=list)
    timeout_ms: int = DEFAULT_STEP_TIMEOUT_MS
    retry_count: int = DEFAULT_STEP_RETRY_COUNT


class StepDto(StepCreateDto):
    id: str
    flow_id: str
    sequence_order: int = Field(ge=1)
