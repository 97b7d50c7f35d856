"""Tests for configuration loading."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from flowsight.config import FlowsightConfig, LLMConfig
from flowsight.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch("flowsight.config.load_dotenv"):
        yield


class TestLLMConfig:
    def test_defaults_to_anthropic(self) -> None:
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "sk-ant"}, clear=True):
            config = LLMConfig.from_env()

        assert config.backend == "anthropic"
        assert config.api_key == "sk-ant"
        assert config.model is None
        assert config.fallback_models == []

    def test_backend_selects_its_key(self) -> None:
        env = {
            "FLOWSIGHT_LLM_BACKEND": "OpenAI",
            "FLOWSIGHT_LLM_MODEL": "gpt-4.1",
            "FLOWSIGHT_LLM_FALLBACK_MODELS": "gpt-4.1-mini, ,gpt-4o",
            "OPENAI_API_KEY": "sk-openai",
            "ANTHROPIC_API_KEY": "sk-ant",
        }
        with patch.dict("os.environ", env, clear=True):
            config = LLMConfig.from_env()

        assert config.backend == "openai"
        assert config.api_key == "sk-openai"
        assert config.model == "gpt-4.1"
        assert config.fallback_models == ["gpt-4.1-mini", "gpt-4o"]

    def test_unknown_backend(self) -> None:
        with patch.dict("os.environ", {"FLOWSIGHT_LLM_BACKEND": "cohere"}, clear=True):
            with pytest.raises(ValidationError, match="Unsupported LLM backend"):
                LLMConfig.from_env()


class TestFlowsightConfig:
    def test_from_env(self) -> None:
        env = {
            "FLOWSIGHT_STORE": "Neo4j",
            "NEO4J_URI": "neo4j+s://db.example.com:7687",
            "NEO4J_USERNAME": "admin",
            "NEO4J_PASSWORD": "secret",
            "FLOWSIGHT_CLONE_TIMEOUT": "120",
            "FLOWSIGHT_WATCH_DEBOUNCE": "0.5",
        }
        with patch.dict("os.environ", env, clear=True):
            config = FlowsightConfig.from_env()

        assert config.store == "neo4j"
        assert config.neo4j_uri == "neo4j+s://db.example.com:7687"
        assert config.neo4j_username == "admin"
        assert config.clone_timeout_seconds == 120
        assert config.watch_debounce_seconds == 0.5
        assert config.github_token is None

    def test_invalid_neo4j_uri(self) -> None:
        with pytest.raises(ValidationError, match="Invalid Neo4j URI format"):
            FlowsightConfig(neo4j_uri="http://localhost:7474")

    def test_invalid_store(self) -> None:
        with pytest.raises(ValidationError):
            FlowsightConfig(store="sqlite")

    def test_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            FlowsightConfig(clone_timeout_seconds=0)

    def test_validate_for_bootstrap_requires_llm_key(self) -> None:
        config = FlowsightConfig(llm=LLMConfig(backend="google"))

        with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY"):
            config.validate_for_bootstrap()

    def test_validate_for_bootstrap_with_key(self) -> None:
        FlowsightConfig(llm=LLMConfig(api_key="sk-ant")).validate_for_bootstrap()
