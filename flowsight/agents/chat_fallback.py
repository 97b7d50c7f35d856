"""
This module contains the ChatFallback class, which is used to construct the runnable with fallbacks from a base model and a list of fallback models.
"""

import logging
from typing import Any, Dict, List, Optional, Type, Union

from langchain_anthropic import ChatAnthropic
from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

PROVIDER_CHAT_MODELS: Dict[str, Type[Union[ChatAnthropic, ChatOpenAI, ChatGoogleGenerativeAI]]] = {
    "anthropic": ChatAnthropic,
    "openai": ChatOpenAI,
    "openrouter": ChatOpenAI,
    "google": ChatGoogleGenerativeAI,
}

MAX_OUTPUT_TOKENS = 8192


class ChatFallback:
    def __init__(
        self,
        *,
        provider: str,
        model: str,
        fallback_list: Optional[List[str]] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        if provider not in PROVIDER_CHAT_MODELS:
            logger.error(f"Provider {provider} not found in PROVIDER_CHAT_MODELS")
            raise ValueError(f"Provider {provider} not found in PROVIDER_CHAT_MODELS")
        self.provider = provider
        self.model = model
        self.fallback_list = fallback_list or []
        self.api_key = api_key
        self.timeout = timeout

    def get_chat_model(self, model: str, timeout: Optional[int] = None) -> Runnable[Any, Any]:
        """
        Get the chat model instance of this provider for the given model name.
        Credentials fall back to the provider's environment variable when no api_key was given.
        """
        model_timeout = timeout or self.timeout
        kwargs: Dict[str, Any] = {"timeout": model_timeout} if model_timeout else {}

        if self.provider == "anthropic":
            if self.api_key:
                kwargs["api_key"] = self.api_key
            return ChatAnthropic(model_name=model, max_tokens=MAX_OUTPUT_TOKENS, stop=None, **kwargs)

        if self.provider == "google":
            if self.api_key:
                kwargs["google_api_key"] = self.api_key
            return ChatGoogleGenerativeAI(model=model, max_output_tokens=MAX_OUTPUT_TOKENS, **kwargs)

        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.provider == "openrouter":
            kwargs["base_url"] = OPENROUTER_BASE_URL
        return ChatOpenAI(model=model, max_tokens=MAX_OUTPUT_TOKENS, **kwargs)

    def get_fallback_chat_model(self) -> Runnable[Any, Any]:
        """
        Get the primary chat model with the fallback models attached.
        Returns the primary model alone when there are no fallbacks.
        """
        primary_model = self.get_chat_model(self.model, self.timeout)
        fallback_models = [
            self.get_chat_model(fallback_model, self.timeout)
            for fallback_model in self.fallback_list
            if fallback_model != self.model
        ]
        if not fallback_models:
            return primary_model
        return primary_model.with_fallbacks(fallback_models)
