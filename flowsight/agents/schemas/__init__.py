"""
Pydantic schemas for structured LLM outputs in the agents module.

This package provides structured output schemas for the synthesis stages
to ensure consistent, validated responses from language model calls.
"""

from .flow_identification_schema import FlowIdentificationResponse, IdentifiedFlow
from .persona_assignment_schema import PersonaAssignment, PersonaAssignmentResponse
from .step_extraction_schema import ExtractedStep, StepExtractionResponse

__all__ = [
    "FlowIdentificationResponse",
    "IdentifiedFlow",
    "PersonaAssignment",
    "PersonaAssignmentResponse",
    "ExtractedStep",
    "StepExtractionResponse",
]
