"""Tests for the synthesis prompt templates."""

import pytest

from flowsight.agents.prompt_templates import (
    FLOW_IDENTIFICATION_TEMPLATE,
    PERSONA_ASSIGNMENT_TEMPLATE,
    STEP_EXTRACTION_TEMPLATE,
)
from flowsight.agents.prompt_templates.base import PromptTemplate

ALL_TEMPLATES = [FLOW_IDENTIFICATION_TEMPLATE, PERSONA_ASSIGNMENT_TEMPLATE, STEP_EXTRACTION_TEMPLATE]


class TestPromptTemplates:
    @pytest.mark.parametrize("template", ALL_TEMPLATES, ids=lambda t: t.name)
    def test_formats_with_declared_variables(self, template: PromptTemplate) -> None:
        variables = {name: f"<{name}>" for name in template.variables}

        system_prompt, input_prompt = template.get_prompts(**variables)

        assert system_prompt == template.system_prompt
        for value in variables.values():
            assert value in input_prompt
        assert template.missing_variables(**variables) == []

    @pytest.mark.parametrize("template", ALL_TEMPLATES, ids=lambda t: t.name)
    def test_templates_are_versioned(self, template: PromptTemplate) -> None:
        assert template.identifier == f"{template.name}@v{template.version}"

    def test_code_context_braces_are_not_formatted(self) -> None:
        _, input_prompt = STEP_EXTRACTION_TEMPLATE.get_prompts(
            framework="nextjs",
            flow_name="Checkout",
            flow_description="Buy items",
            code_context="export const x = { a: 1 };",
        )

        assert "export const x = { a: 1 };" in input_prompt

    def test_missing_variables_raise(self) -> None:
        assert PERSONA_ASSIGNMENT_TEMPLATE.missing_variables(framework="nextjs") == ["flows"]

        with pytest.raises(ValueError, match="persona_assignment@v"):
            PERSONA_ASSIGNMENT_TEMPLATE.get_prompts(framework="nextjs")

    def test_default_variables(self) -> None:
        template = PromptTemplate(name="t", description="d", system_prompt="s", input_prompt="i")

        assert template.variables == []
        assert template.get_prompts() == ("s", "i")
