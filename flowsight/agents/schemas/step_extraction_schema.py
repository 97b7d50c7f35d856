"""
Pydantic schemas for step extraction results.

Steps are returned in execution order; the model's numbering is normalized to a
contiguous 1..N sequence by the synthesizer.
"""

from typing import List
from pydantic import BaseModel, Field


class ExtractedStep(BaseModel):
    step_number: int = Field(default=0, description="1-based position of the step in the flow")
    action: str = Field(description="Single user interaction or navigation")
    expected_state: str = Field(default="", description="What is visible after the action succeeds")
    selectors: List[str] = Field(default_factory=list, description="Selectors found in the code, most specific first")


class StepExtractionResponse(BaseModel):
    steps: List[ExtractedStep] = Field(default_factory=list)
