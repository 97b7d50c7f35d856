import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ValidationError

from flowsight.config import LLMConfig

from .chat_fallback import ChatFallback
from .prompt_templates.base import PromptTemplate

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_JSON_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class LLMBackend(ABC):
    """A language-model backend that turns a prompt into raw text."""

    name: str = ""

    @abstractmethod
    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Return the raw response text. May be empty or malformed."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        pass


class ChatModelBackend(LLMBackend):
    """Backend built on a LangChain chat model of one provider."""

    provider: str = ""
    default_model: str = ""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        fallback_models: Optional[List[str]] = None,
        timeout: Optional[int] = 80,
    ):
        self.model = model or self.default_model
        self.api_key = api_key
        self.fallback_models = fallback_models or []
        self.timeout = timeout
        self._chat_model = None

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_chat_model(self):
        if self._chat_model is None:
            self._chat_model = ChatFallback(
                provider=self.provider,
                model=self.model,
                fallback_list=self.fallback_models,
                api_key=self.api_key,
                timeout=self.timeout,
            ).get_fallback_chat_model()
        return self._chat_model

    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))
        response = self._get_chat_model().invoke(messages)
        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: Any) -> str:
        content = getattr(response, "content", response)
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts = []
            for block in content:
                if isinstance(block, str):
                    parts.append(block)
                elif isinstance(block, dict) and block.get("type") == "text":
                    parts.append(block.get("text", ""))
            return "".join(parts)
        return ""


class AnthropicBackend(ChatModelBackend):
    name = "anthropic"
    provider = "anthropic"
    default_model = "claude-sonnet-4-20250514"


class OpenAIBackend(ChatModelBackend):
    name = "openai"
    provider = "openai"
    default_model = "gpt-4.1"


class OpenRouterBackend(ChatModelBackend):
    name = "openrouter"
    provider = "openrouter"
    default_model = "anthropic/claude-sonnet-4"


class GoogleBackend(ChatModelBackend):
    name = "google"
    provider = "google"
    default_model = "gemini-2.5-flash"


LLM_BACKENDS: Dict[str, Type[ChatModelBackend]] = {
    AnthropicBackend.name: AnthropicBackend,
    OpenAIBackend.name: OpenAIBackend,
    OpenRouterBackend.name: OpenRouterBackend,
    GoogleBackend.name: GoogleBackend,
}


def create_llm_backend(config: LLMConfig) -> LLMBackend:
    backend_class = LLM_BACKENDS.get(config.backend)
    if backend_class is None:
        raise ValueError(f"Backend {config.backend} not found in LLM_BACKENDS")
    return backend_class(
        model=config.model,
        api_key=config.api_key,
        fallback_models=config.fallback_models,
        timeout=config.timeout_seconds,
    )


def build_schema_instructions(output_schema: Type[BaseModel]) -> str:
    schema = json.dumps(output_schema.model_json_schema(), indent=2)
    return (
        "\n\nRespond with a single JSON object that conforms to this JSON schema. "
        "Do not include any prose or explanation outside the JSON.\n"
        f"```json\n{schema}\n```"
    )


class LLMProvider:
    """
    Structured-response client shared by all synthesis stages.

    Renders a prompt template, appends JSON-schema instructions, calls the backend and
    validates the reply against the schema. Empty or unparseable replies yield None;
    transport errors from the backend propagate to the caller.
    """

    def __init__(self, backend: LLMBackend):
        self.backend = backend

    def is_configured(self) -> bool:
        return self.backend.is_configured()

    def call_structured(
        self, template: PromptTemplate, output_schema: Type[SchemaT], **variables: Any
    ) -> Optional[SchemaT]:
        system_prompt, input_prompt = template.get_prompts(**variables)
        prompt = input_prompt + build_schema_instructions(output_schema)
        logger.debug(f"Calling {self.backend.name} with template {template.identifier}")
        content = self.backend.complete(prompt, system_prompt)
        result = self.parse_structured_output(content, output_schema)
        if result is None:
            logger.warning(f"No usable response from {self.backend.name} for template {template.identifier}")
        return result

    @staticmethod
    def _strip_markdown_fences(content: str) -> str:
        stripped = content.strip()
        match = _JSON_FENCE.match(stripped)
        return match.group(1) if match else stripped

    def parse_structured_output(self, content: Optional[str], output_schema: Type[SchemaT]) -> Optional[SchemaT]:
        """Parse strict JSON (markdown fences allowed) into the schema, or None."""
        if not content or not content.strip():
            return None
        try:
            parsed = json.loads(self._strip_markdown_fences(content))
            return output_schema.model_validate(parsed)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to parse structured output as {output_schema.__name__}: {e}")
            return None
