from .api_key_dto import ApiKeyDto
from .change_set_dto import ChangedFileDto, ChangeSetDto, ChangeStatus, RiskLevel
from .flow_dto import FlowCreateDto, FlowDto, FlowGraphData, FlowPriority
from .persona_dto import PersonaCreateDto, PersonaDto, PersonaSource
from .project_dto import ProjectDto
from .step_dto import DEFAULT_STEP_RETRY_COUNT, DEFAULT_STEP_TIMEOUT_MS, StepCreateDto, StepDto

__all__ = [
    "ApiKeyDto",
    "ChangedFileDto",
    "ChangeSetDto",
    "ChangeStatus",
    "RiskLevel",
    "FlowCreateDto",
    "FlowDto",
    "FlowGraphData",
    "FlowPriority",
    "PersonaCreateDto",
    "PersonaDto",
    "PersonaSource",
    "ProjectDto",
    "DEFAULT_STEP_RETRY_COUNT",
    "DEFAULT_STEP_TIMEOUT_MS",
    "StepCreateDto",
    "StepDto",
]
