from typing import List, Optional

from .dtos import (
    ApiKeyDto,
    ChangedFileDto,
    ChangeSetDto,
    FlowCreateDto,
    FlowDto,
    PersonaCreateDto,
    PersonaDto,
    PersonaSource,
    ProjectDto,
    RiskLevel,
    StepCreateDto,
    StepDto,
)


class AbstractPersistenceGateway:
    """
    Storage for projects, personas, flows, steps and change sets.

    Creation of projects, personas and flows is create-or-get: a repeated call with the
    same key returns the existing entity instead of creating a duplicate.
    """

    def close(self) -> None:
        """Release any underlying connection."""

    def get_or_create_project(self, name: str, git_remote_url: Optional[str] = None) -> ProjectDto:
        """Return the project with the given name, creating it if needed."""
        raise NotImplementedError

    def get_project(self, project_id: str) -> Optional[ProjectDto]:
        raise NotImplementedError

    def get_or_create_persona(self, project_id: str, persona: PersonaCreateDto) -> PersonaDto:
        """Return the project's persona matching the name case-insensitively, creating it if needed."""
        raise NotImplementedError

    def get_personas(self, project_id: str, source: Optional[PersonaSource] = None) -> List[PersonaDto]:
        raise NotImplementedError

    def get_or_create_flow(self, project_id: str, flow: FlowCreateDto) -> FlowDto:
        """Return the project's flow with the same name, creating it if needed."""
        raise NotImplementedError

    def get_flow(self, flow_id: str) -> Optional[FlowDto]:
        raise NotImplementedError

    def get_flows(self, project_id: str, active_only: bool = True) -> List[FlowDto]:
        raise NotImplementedError

    def get_affected_flows(self, project_id: str) -> List[FlowDto]:
        """Flows with at least one recorded change, highest risk first."""
        raise NotImplementedError

    def create_steps(self, flow_id: str, steps: List[StepCreateDto]) -> List[StepDto]:
        """
        Insert the ordered steps of a flow.

        Existing steps of the flow are replaced and sequence order is assigned 1..N by position.
        """
        raise NotImplementedError

    def get_steps(self, flow_id: str) -> List[StepDto]:
        raise NotImplementedError

    def create_change_set(
        self,
        project_id: str,
        base_sha: str,
        head_sha: str,
        files: List[ChangedFileDto],
        change_set_id: Optional[str] = None,
    ) -> ChangeSetDto:
        """
        Record a change set. A repeated call with the same change_set_id returns the
        existing record instead of creating a second one.
        """
        raise NotImplementedError

    def get_change_set(self, change_set_id: str) -> Optional[ChangeSetDto]:
        raise NotImplementedError

    def update_change_set_analysis(
        self, change_set_id: str, risk_level: RiskLevel, risk_score: float, affected_flow_ids: List[str]
    ) -> ChangeSetDto:
        """
        Write the analysis fields of a change set.

        Raises:
            ChangeSetAlreadyAnalyzedError: If the analysis was already written
            PersistenceError: If the change set does not exist
        """
        raise NotImplementedError

    def mark_flow_affected(self, flow_id: str, change_set_id: str, risk_increment: float) -> FlowDto:
        """Atomically add risk_increment to the flow's risk (capped at 1.0) and record the change set."""
        raise NotImplementedError

    def clear_affected_flows(self, flow_ids: List[str]) -> int:
        """Reset risk to 0 and empty the affected-changes list. Returns the number of flows reset."""
        raise NotImplementedError

    def register_api_key(self, api_key: ApiKeyDto) -> ApiKeyDto:
        raise NotImplementedError

    def find_api_key(self, key_hash: str) -> Optional[ApiKeyDto]:
        raise NotImplementedError
