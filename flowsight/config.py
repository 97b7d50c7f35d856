"""Configuration for flowsight, loaded from the environment or a .env file."""

import os
from typing import Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from flowsight.exceptions import ConfigurationError

LLM_API_KEY_ENV_VARS: Dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "google": "GOOGLE_API_KEY",
}

NEO4J_URI_SCHEMES = ("bolt://", "neo4j://", "bolt+s://", "neo4j+s://", "bolt+ssc://", "neo4j+ssc://")


class LLMConfig(BaseModel):
    """Language-model backend selection."""

    backend: str = Field(default="anthropic", description="Backend name")
    model: Optional[str] = Field(default=None, description="Model name, backend default when unset")
    fallback_models: List[str] = Field(default_factory=list, description="Fallback models on the same backend")
    api_key: Optional[str] = Field(default=None, description="API key for the selected backend")
    timeout_seconds: int = Field(default=80, gt=0, description="Per-call timeout")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in LLM_API_KEY_ENV_VARS:
            raise ValueError(f"Unsupported LLM backend '{v}', expected one of {sorted(LLM_API_KEY_ENV_VARS)}")
        return v

    @classmethod
    def from_env(cls) -> "LLMConfig":
        backend = os.getenv("FLOWSIGHT_LLM_BACKEND", "anthropic").strip().lower()
        fallback_models = os.getenv("FLOWSIGHT_LLM_FALLBACK_MODELS", "")
        return cls(
            backend=backend,
            model=os.getenv("FLOWSIGHT_LLM_MODEL") or None,
            fallback_models=[m.strip() for m in fallback_models.split(",") if m.strip()],
            api_key=os.getenv(LLM_API_KEY_ENV_VARS.get(backend, "")) or None,
            timeout_seconds=int(os.getenv("FLOWSIGHT_LLM_TIMEOUT", "80")),
        )


class FlowsightConfig(BaseModel):
    """Top-level configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    store: Literal["memory", "neo4j"] = "memory"
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_username: str = "neo4j"
    neo4j_password: str = "password"
    github_token: Optional[str] = None
    clone_timeout_seconds: int = Field(default=600, gt=0)
    git_timeout_seconds: int = Field(default=180, gt=0)
    max_code_context_chars: int = Field(default=40_000, gt=0)
    max_context_files: int = Field(default=50, gt=0)
    watch_debounce_seconds: float = Field(default=1.0, ge=0)

    @field_validator("neo4j_uri")
    @classmethod
    def validate_neo4j_uri(cls, v: str) -> str:
        if not v.startswith(NEO4J_URI_SCHEMES):
            raise ValueError(f"Invalid Neo4j URI format: {v}")
        return v

    @classmethod
    def from_env(cls) -> "FlowsightConfig":
        """Build configuration from environment variables, reading .env first."""
        load_dotenv()
        return cls(
            llm=LLMConfig.from_env(),
            store=os.getenv("FLOWSIGHT_STORE", "memory").strip().lower(),
            neo4j_uri=os.getenv("NEO4J_URI", "bolt://localhost:7687"),
            neo4j_username=os.getenv("NEO4J_USERNAME", "neo4j"),
            neo4j_password=os.getenv("NEO4J_PASSWORD", "password"),
            github_token=os.getenv("GITHUB_TOKEN") or None,
            clone_timeout_seconds=int(os.getenv("FLOWSIGHT_CLONE_TIMEOUT", "600")),
            git_timeout_seconds=int(os.getenv("FLOWSIGHT_GIT_TIMEOUT", "180")),
            max_code_context_chars=int(os.getenv("FLOWSIGHT_MAX_CODE_CONTEXT_CHARS", "40000")),
            max_context_files=int(os.getenv("FLOWSIGHT_MAX_CONTEXT_FILES", "50")),
            watch_debounce_seconds=float(os.getenv("FLOWSIGHT_WATCH_DEBOUNCE", "1.0")),
        )

    def validate_for_bootstrap(self) -> None:
        """Raise ConfigurationError when the selected LLM backend has no credential."""
        if not self.llm.api_key:
            env_var = LLM_API_KEY_ENV_VARS[self.llm.backend]
            raise ConfigurationError(f"{env_var} is not configured for LLM backend '{self.llm.backend}'")
