"""Tests for FlowSynthesizer with a mocked structured-response client."""

from unittest.mock import Mock

import pytest

from flowsight.agents.llm_provider import LLMProvider
from flowsight.agents.prompt_templates import (
    FLOW_IDENTIFICATION_TEMPLATE,
    PERSONA_ASSIGNMENT_TEMPLATE,
    STEP_EXTRACTION_TEMPLATE,
)
from flowsight.agents.schemas import (
    ExtractedStep,
    FlowIdentificationResponse,
    IdentifiedFlow,
    PersonaAssignment,
    PersonaAssignmentResponse,
    StepExtractionResponse,
)
from flowsight.repositories.persistence.dtos import DEFAULT_STEP_RETRY_COUNT, DEFAULT_STEP_TIMEOUT_MS
from flowsight.routes.route_types import Framework, NavigationEdge, Route, RouteGraph
from flowsight.synthesis import FlowSynthesizer
from flowsight.synthesis.flow_synthesizer import format_navigation_edges, format_routes


@pytest.fixture
def llm_provider() -> Mock:
    return Mock(spec=LLMProvider)


@pytest.fixture
def route_graph() -> RouteGraph:
    return RouteGraph(
        routes=[Route("/cart", "app/cart/page.tsx"), Route("/checkout", "app/checkout/page.tsx")],
        navigation_graph=[NavigationEdge("/cart", "/checkout")],
    )


class TestFormatting:
    def test_format_routes(self, route_graph: RouteGraph) -> None:
        assert format_routes(route_graph) == "- /cart: app/cart/page.tsx\n- /checkout: app/checkout/page.tsx"

    def test_format_navigation_edges(self, route_graph: RouteGraph) -> None:
        assert format_navigation_edges(route_graph) == "/cart -> /checkout"
        assert format_navigation_edges(RouteGraph()) == "(no navigation edges found)"


class TestIdentifyFlows:
    def test_returns_flows_deduplicated_by_name(self, llm_provider: Mock, route_graph: RouteGraph) -> None:
        llm_provider.call_structured.return_value = FlowIdentificationResponse(
            flows=[
                IdentifiedFlow(name=" Checkout ", pages=["/cart", "/checkout"]),
                IdentifiedFlow(name="Checkout", pages=["/checkout"]),
                IdentifiedFlow(name="  "),
            ]
        )

        flows = FlowSynthesizer(llm_provider).identify_flows(route_graph, Framework.NEXTJS)

        assert [flow.name for flow in flows] == ["Checkout"]
        assert flows[0].pages == ["/cart", "/checkout"]
        args, kwargs = llm_provider.call_structured.call_args
        assert args == (FLOW_IDENTIFICATION_TEMPLATE, FlowIdentificationResponse)
        assert kwargs["framework"] == "nextjs"
        assert kwargs["navigation_edges"] == "/cart -> /checkout"

    def test_no_usable_reply_yields_empty_list(self, llm_provider: Mock, route_graph: RouteGraph) -> None:
        llm_provider.call_structured.return_value = None

        assert FlowSynthesizer(llm_provider).identify_flows(route_graph, Framework.NEXTJS) == []


class TestAssignPersonas:
    def test_returns_named_personas(self, llm_provider: Mock) -> None:
        llm_provider.call_structured.return_value = PersonaAssignmentResponse(
            personas=[PersonaAssignment(name="Shopper", flow_names=["Checkout"]), PersonaAssignment(name="")]
        )

        personas = FlowSynthesizer(llm_provider).assign_personas([IdentifiedFlow(name="Checkout")], Framework.REMIX)

        assert [persona.name for persona in personas] == ["Shopper"]
        assert llm_provider.call_structured.call_args.args[0] is PERSONA_ASSIGNMENT_TEMPLATE

    def test_no_flows_skips_model_call(self, llm_provider: Mock) -> None:
        assert FlowSynthesizer(llm_provider).assign_personas([], Framework.REMIX) == []
        llm_provider.call_structured.assert_not_called()


class TestExtractSteps:
    def test_orders_steps_and_applies_defaults(self, llm_provider: Mock) -> None:
        llm_provider.call_structured.return_value = StepExtractionResponse(
            steps=[
                ExtractedStep(step_number=2, action="Click pay", selectors=["[data-testid=pay]"]),
                ExtractedStep(step_number=1, action="Open /checkout", expected_state="Form visible"),
                ExtractedStep(step_number=3, action="   "),
            ]
        )

        steps = FlowSynthesizer(llm_provider).extract_steps("Checkout", "Buy", "// File: a.tsx\n...", Framework.NEXTJS)

        assert [step.action for step in steps] == ["Open /checkout", "Click pay"]
        assert steps[0].expected_state == "Form visible"
        assert steps[1].selectors == ["[data-testid=pay]"]
        assert all(step.timeout_ms == DEFAULT_STEP_TIMEOUT_MS for step in steps)
        assert all(step.retry_count == DEFAULT_STEP_RETRY_COUNT for step in steps)
        assert llm_provider.call_structured.call_args.args[0] is STEP_EXTRACTION_TEMPLATE

    def test_blank_code_context_skips_model_call(self, llm_provider: Mock) -> None:
        steps = FlowSynthesizer(llm_provider).extract_steps("Checkout", "", "  \n", Framework.NEXTJS)

        assert steps == []
        llm_provider.call_structured.assert_not_called()

    def test_missing_description_is_labelled(self, llm_provider: Mock) -> None:
        llm_provider.call_structured.return_value = None

        assert FlowSynthesizer(llm_provider).extract_steps("Checkout", "", "code", Framework.NEXTJS) == []
        assert llm_provider.call_structured.call_args.kwargs["flow_description"] == "(no description)"
