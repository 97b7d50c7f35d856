"""
Prompt templates used by the synthesis stages.
"""

from .base import PromptTemplate
from .flow_identification import FLOW_IDENTIFICATION_TEMPLATE
from .persona_assignment import PERSONA_ASSIGNMENT_TEMPLATE
from .step_extraction import STEP_EXTRACTION_TEMPLATE

__all__ = [
    "PromptTemplate",
    "FLOW_IDENTIFICATION_TEMPLATE",
    "PERSONA_ASSIGNMENT_TEMPLATE",
    "STEP_EXTRACTION_TEMPLATE",
]
