import logging
import os
from typing import Optional, Tuple

import dotenv

from flowsight.agents.llm_provider import LLMProvider, create_llm_backend
from flowsight.auth.authorization_validator import ApiKeyAuthorizationValidator
from flowsight.bootstrap import BootstrapProjectInput, BootstrapProjectResult, BootstrapWorkflow
from flowsight.config import FlowsightConfig
from flowsight.exceptions import ConfigurationError
from flowsight.impact import ChangeImpactAnalyzer, ImpactReport
from flowsight.repositories.persistence import (
    AbstractPersistenceGateway,
    InMemoryPersistenceGateway,
    Neo4jPersistenceGateway,
)
from flowsight.repositories.persistence.dtos import ProjectDto
from flowsight.repositories.version_control import GitRepository, GitWorkingCopyProvider
from flowsight.synthesis import CodeContextBuilder, FlowSynthesizer

logger = logging.getLogger(__name__)


def create_persistence_gateway(config: FlowsightConfig) -> AbstractPersistenceGateway:
    if config.store == "neo4j":
        gateway = Neo4jPersistenceGateway(
            uri=config.neo4j_uri,
            user=config.neo4j_username,
            password=config.neo4j_password,
        )
        gateway.ensure_schema()
        return gateway
    return InMemoryPersistenceGateway()


def _resolve_gateway(
    config: FlowsightConfig, gateway: Optional[AbstractPersistenceGateway]
) -> AbstractPersistenceGateway:
    if gateway is not None:
        return gateway
    if config.store == "memory":
        raise ConfigurationError(
            "The memory store starts empty on every call; pass a gateway or set FLOWSIGHT_STORE=neo4j"
        )
    return create_persistence_gateway(config)


def register_project(
    name: str, git_remote_url: Optional[str], gateway: AbstractPersistenceGateway
) -> Tuple[ProjectDto, str]:
    """Create (or fetch) a project and issue an API key allowed to start workflows for it."""
    project = gateway.get_or_create_project(name, git_remote_url)
    api_key, _ = ApiKeyAuthorizationValidator(gateway).register_key(project.id, name="bootstrap")
    return project, api_key


def bootstrap_project(
    bootstrap_input: BootstrapProjectInput,
    config: Optional[FlowsightConfig] = None,
    gateway: Optional[AbstractPersistenceGateway] = None,
) -> BootstrapProjectResult:
    config = config or FlowsightConfig.from_env()
    config.validate_for_bootstrap()
    gateway = _resolve_gateway(config, gateway)

    synthesizer = FlowSynthesizer(
        LLMProvider(create_llm_backend(config.llm)),
        CodeContextBuilder(max_chars=config.max_code_context_chars, max_files=config.max_context_files),
    )
    workflow = BootstrapWorkflow(
        gateway=gateway,
        authorization_validator=ApiKeyAuthorizationValidator(gateway),
        synthesizer=synthesizer,
        repository_access=GitWorkingCopyProvider(clone_timeout=config.clone_timeout_seconds),
    )
    return workflow.run(bootstrap_input)


def analyze_changes(
    project_id: str,
    base_sha: str,
    head_sha: str,
    project_root: str = ".",
    config: Optional[FlowsightConfig] = None,
    gateway: Optional[AbstractPersistenceGateway] = None,
) -> ImpactReport:
    config = config or FlowsightConfig.from_env()
    gateway = _resolve_gateway(config, gateway)
    version_controller = GitRepository(project_root, timeout=config.git_timeout_seconds)
    return ChangeImpactAnalyzer(gateway, version_controller).analyze_changes(project_id, base_sha, head_sha)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    dotenv.load_dotenv()
    project_root = os.getenv("FLOWSIGHT_PROJECT_ROOT", ".")
    project_id = os.getenv("FLOWSIGHT_PROJECT_ID", "local")

    report = analyze_changes(project_id, "HEAD~1", "HEAD", project_root=project_root)
    logger.info(f"Risk level: {report.risk_level.value} ({report.risk_score:.2f})")
    for affected in report.flows:
        logger.info(f"  {affected.name}: risk {affected.risk_score:.2f}, files {', '.join(affected.matched_files)}")
