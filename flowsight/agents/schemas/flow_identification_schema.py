"""
Pydantic schemas for flow identification results.

Defines the structured output of the flow identification stage: candidate user
flows over the discovered routes, not yet tied to any persona.
"""

from typing import List
from pydantic import BaseModel, Field


class IdentifiedFlow(BaseModel):
    """A candidate user flow over one or more routes."""

    name: str = Field(description="Short Title Case name of the flow, unique within the application")

    description: str = Field(default="", description="One or two sentences describing the journey")

    pages: List[str] = Field(
        default_factory=list,
        description="Route paths visited by the flow, in visiting order",
    )

    connected_flow_ids: List[str] = Field(
        default_factory=list,
        description="Names of other flows a user typically continues into",
    )


class FlowIdentificationResponse(BaseModel):
    flows: List[IdentifiedFlow] = Field(default_factory=list, description="All identified flows")
