from .llm_provider import LLMBackend, LLMProvider, create_llm_backend

__all__ = ["LLMBackend", "LLMProvider", "create_llm_backend"]
