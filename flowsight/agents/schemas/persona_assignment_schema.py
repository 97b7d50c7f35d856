"""
Pydantic schemas for persona assignment results.
"""

from typing import List
from pydantic import BaseModel, Field


class PersonaAssignment(BaseModel):
    """A persona and the names of the flows it performs."""

    name: str = Field(description="Short persona name")
    description: str = Field(default="", description="One-sentence description of the persona")
    behaviors: List[str] = Field(default_factory=list, description="Concrete behaviors of the persona")
    flow_names: List[str] = Field(default_factory=list, description="Names of flows this persona performs")


class PersonaAssignmentResponse(BaseModel):
    personas: List[PersonaAssignment] = Field(default_factory=list)
