"""
LLM-assisted synthesis of flows, personas and steps.

Three stages share one structured-response client: flow identification from the
route graph, persona assignment over the identified flows, and per-flow step
extraction from bounded code context.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from flowsight.agents.llm_provider import LLMProvider
from flowsight.agents.prompt_templates import (
    FLOW_IDENTIFICATION_TEMPLATE,
    PERSONA_ASSIGNMENT_TEMPLATE,
    STEP_EXTRACTION_TEMPLATE,
)
from flowsight.agents.schemas import (
    FlowIdentificationResponse,
    IdentifiedFlow,
    PersonaAssignment,
    PersonaAssignmentResponse,
    StepExtractionResponse,
)
from flowsight.repositories.persistence.dtos import StepCreateDto
from flowsight.routes.route_types import Framework, RouteGraph

from .code_context import CodeContextBuilder

logger = logging.getLogger(__name__)


def format_routes(route_graph: RouteGraph) -> str:
    return "\n".join(f"- {route.path}: {route.file_path}" for route in route_graph.routes)


def format_navigation_edges(route_graph: RouteGraph) -> str:
    if not route_graph.navigation_graph:
        return "(no navigation edges found)"
    return "\n".join(str(edge) for edge in route_graph.navigation_graph)


def format_flows(flows: Sequence[IdentifiedFlow]) -> str:
    lines = []
    for flow in flows:
        pages = ", ".join(flow.pages) if flow.pages else "(no pages)"
        lines.append(f"- {flow.name}: {flow.description} [pages: {pages}]")
    return "\n".join(lines)


class FlowSynthesizer:
    def __init__(self, llm_provider: LLMProvider, code_context_builder: Optional[CodeContextBuilder] = None):
        self.llm_provider = llm_provider
        self.code_context_builder = code_context_builder or CodeContextBuilder()

    def identify_flows(self, route_graph: RouteGraph, framework: Framework) -> List[IdentifiedFlow]:
        """Identify candidate flows; an empty list means the model produced nothing usable."""
        logger.info(f"Identifying flows from {len(route_graph.routes)} routes")
        response = self.llm_provider.call_structured(
            FLOW_IDENTIFICATION_TEMPLATE,
            FlowIdentificationResponse,
            framework=framework.value,
            routes=format_routes(route_graph),
            navigation_edges=format_navigation_edges(route_graph),
        )
        if response is None:
            return []

        flows: Dict[str, IdentifiedFlow] = {}
        for flow in response.flows:
            name = flow.name.strip()
            if not name or name in flows:
                continue
            flows[name] = flow.model_copy(update={"name": name})
        logger.info(f"Identified {len(flows)} flows")
        return list(flows.values())

    def assign_personas(self, flows: Sequence[IdentifiedFlow], framework: Framework) -> List[PersonaAssignment]:
        """Synthesize personas with the names of the flows each performs."""
        if not flows:
            return []
        response = self.llm_provider.call_structured(
            PERSONA_ASSIGNMENT_TEMPLATE,
            PersonaAssignmentResponse,
            framework=framework.value,
            flows=format_flows(flows),
        )
        if response is None:
            return []
        personas = [persona for persona in response.personas if persona.name.strip()]
        logger.info(f"Assigned {len(personas)} personas to {len(flows)} flows")
        return personas

    def build_code_context(
        self, project_root: Union[str, Path], framework: Framework, relative_paths: Optional[Sequence[str]] = None
    ) -> str:
        return self.code_context_builder.build(project_root, framework, relative_paths)

    def extract_steps(
        self, flow_name: str, flow_description: str, code_context: str, framework: Framework
    ) -> List[StepCreateDto]:
        """Ordered steps for one flow; empty when there is no code context or no usable reply."""
        if not code_context.strip():
            logger.info(f"No code context for flow {flow_name}, skipping step extraction")
            return []

        response = self.llm_provider.call_structured(
            STEP_EXTRACTION_TEMPLATE,
            StepExtractionResponse,
            framework=framework.value,
            flow_name=flow_name,
            flow_description=flow_description or "(no description)",
            code_context=code_context,
        )
        if response is None:
            return []

        ordered = sorted(
            (step for step in response.steps if step.action.strip()),
            key=lambda step: step.step_number,
        )
        steps = [
            StepCreateDto(action=step.action.strip(), expected_state=step.expected_state, selectors=step.selectors)
            for step in ordered
        ]
        logger.info(f"Extracted {len(steps)} steps for flow {flow_name}")
        return steps
