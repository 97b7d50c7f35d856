import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from flowsight.exceptions import ChangeSetAlreadyAnalyzedError, PersistenceError

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
from .gateway import AbstractPersistenceGateway

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryPersistenceGateway(AbstractPersistenceGateway):
    """Process-local gateway. All operations hold a single re-entrant lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._projects: Dict[str, ProjectDto] = {}
        self._personas: Dict[str, PersonaDto] = {}
        self._flows: Dict[str, FlowDto] = {}
        self._steps: Dict[str, List[StepDto]] = {}
        self._change_sets: Dict[str, ChangeSetDto] = {}
        self._api_keys: Dict[str, ApiKeyDto] = {}

    def get_or_create_project(self, name: str, git_remote_url: Optional[str] = None) -> ProjectDto:
        with self._lock:
            for project in self._projects.values():
                if project.name == name:
                    return project
            project = ProjectDto(id=_new_id(), name=name, git_remote_url=git_remote_url)
            self._projects[project.id] = project
            logger.info(f"Created project {name} ({project.id})")
            return project

    def get_project(self, project_id: str) -> Optional[ProjectDto]:
        with self._lock:
            return self._projects.get(project_id)

    def get_or_create_persona(self, project_id: str, persona: PersonaCreateDto) -> PersonaDto:
        name_key = persona.name.strip().lower()
        with self._lock:
            for existing in self._personas.values():
                if existing.project_id == project_id and existing.name.strip().lower() == name_key:
                    return existing
            created = PersonaDto(id=_new_id(), project_id=project_id, **persona.model_dump())
            self._personas[created.id] = created
            return created

    def get_personas(self, project_id: str, source: Optional[PersonaSource] = None) -> List[PersonaDto]:
        with self._lock:
            return [
                persona
                for persona in self._personas.values()
                if persona.project_id == project_id and (source is None or persona.source == source)
            ]

    def get_or_create_flow(self, project_id: str, flow: FlowCreateDto) -> FlowDto:
        with self._lock:
            for existing in self._flows.values():
                if existing.project_id == project_id and existing.name == flow.name:
                    return existing
            if flow.persona_id is not None:
                persona = self._personas.get(flow.persona_id)
                if persona is None or persona.project_id != project_id:
                    raise PersistenceError(f"Persona {flow.persona_id} does not exist in project {project_id}")
            created = FlowDto(id=_new_id(), project_id=project_id, **flow.model_dump())
            self._flows[created.id] = created
            return created

    def get_flow(self, flow_id: str) -> Optional[FlowDto]:
        with self._lock:
            return self._flows.get(flow_id)

    def get_flows(self, project_id: str, active_only: bool = True) -> List[FlowDto]:
        with self._lock:
            return [
                flow
                for flow in self._flows.values()
                if flow.project_id == project_id and (flow.is_active or not active_only)
            ]

    def get_affected_flows(self, project_id: str) -> List[FlowDto]:
        with self._lock:
            affected = [f for f in self._flows.values() if f.project_id == project_id and f.affected_by_changes]
        return sorted(affected, key=lambda f: f.risk_score, reverse=True)

    def create_steps(self, flow_id: str, steps: List[StepCreateDto]) -> List[StepDto]:
        with self._lock:
            if flow_id not in self._flows:
                raise PersistenceError(f"Flow {flow_id} does not exist")
            created = [
                StepDto(id=_new_id(), flow_id=flow_id, sequence_order=index, **step.model_dump())
                for index, step in enumerate(steps, start=1)
            ]
            self._steps[flow_id] = created
            return list(created)

    def get_steps(self, flow_id: str) -> List[StepDto]:
        with self._lock:
            return list(self._steps.get(flow_id, []))

    def create_change_set(
        self,
        project_id: str,
        base_sha: str,
        head_sha: str,
        files: List[ChangedFileDto],
        change_set_id: Optional[str] = None,
    ) -> ChangeSetDto:
        with self._lock:
            if change_set_id is not None and change_set_id in self._change_sets:
                return self._change_sets[change_set_id]
            change_set = ChangeSetDto(
                id=change_set_id or _new_id(),
                project_id=project_id,
                base_sha=base_sha,
                head_sha=head_sha,
                files=files,
                created_at=datetime.now(timezone.utc),
            )
            self._change_sets[change_set.id] = change_set
            return change_set

    def get_change_set(self, change_set_id: str) -> Optional[ChangeSetDto]:
        with self._lock:
            return self._change_sets.get(change_set_id)

    def update_change_set_analysis(
        self, change_set_id: str, risk_level: RiskLevel, risk_score: float, affected_flow_ids: List[str]
    ) -> ChangeSetDto:
        with self._lock:
            change_set = self._change_sets.get(change_set_id)
            if change_set is None:
                raise PersistenceError(f"Change set {change_set_id} does not exist")
            if change_set.is_analyzed:
                raise ChangeSetAlreadyAnalyzedError(change_set_id)
            updated = change_set.model_copy(
                update={
                    "risk_level": risk_level,
                    "risk_score": risk_score,
                    "affected_flow_ids": list(affected_flow_ids),
                    "analyzed_at": datetime.now(timezone.utc),
                }
            )
            self._change_sets[change_set_id] = updated
            return updated

    def mark_flow_affected(self, flow_id: str, change_set_id: str, risk_increment: float) -> FlowDto:
        with self._lock:
            flow = self._flows.get(flow_id)
            if flow is None:
                raise PersistenceError(f"Flow {flow_id} does not exist")
            updated = flow.model_copy(
                update={
                    "risk_score": min(1.0, flow.risk_score + max(0.0, risk_increment)),
                    "affected_by_changes": [*flow.affected_by_changes, change_set_id],
                }
            )
            self._flows[flow_id] = updated
            return updated

    def clear_affected_flows(self, flow_ids: List[str]) -> int:
        cleared = 0
        with self._lock:
            for flow_id in flow_ids:
                flow = self._flows.get(flow_id)
                if flow is None:
                    continue
                self._flows[flow_id] = flow.model_copy(update={"risk_score": 0.0, "affected_by_changes": []})
                cleared += 1
        return cleared

    def register_api_key(self, api_key: ApiKeyDto) -> ApiKeyDto:
        with self._lock:
            self._api_keys[api_key.key_hash] = api_key
            return api_key

    def find_api_key(self, key_hash: str) -> Optional[ApiKeyDto]:
        with self._lock:
            return self._api_keys.get(key_hash)
