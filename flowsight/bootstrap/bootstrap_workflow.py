"""
Bootstrap workflow for populating a project's personas, flows and steps.

This module provides a LangGraph workflow that clones the project repository,
discovers its route graph, synthesizes flows and personas with the LLM, persists
them and extracts per-flow test steps. The working copy is released exactly once,
whether the run completes, fails or is cancelled.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, TypedDict

from langgraph.graph import START, StateGraph

from flowsight.agents.schemas import IdentifiedFlow, PersonaAssignment
from flowsight.auth.authorization_validator import AbstractAuthorizationValidator
from flowsight.exceptions import BootstrapCancelledError, ConfigurationError, NoFlowsIdentifiedError
from flowsight.repositories.persistence.dtos import (
    FlowCreateDto,
    FlowGraphData,
    FlowPriority,
    PersonaCreateDto,
    PersonaSource,
)
from flowsight.repositories.persistence.gateway import AbstractPersistenceGateway
from flowsight.repositories.version_control.git_repository import GitWorkingCopyProvider
from flowsight.routes.route_discovery import RouteGraphDiscoverer
from flowsight.routes.route_types import Framework, RouteGraph
from flowsight.synthesis.flow_synthesizer import FlowSynthesizer
from flowsight.utils.retry import BOOTSTRAP_RETRY_POLICY, RetryPolicy, execute_with_retry

from .bootstrap_models import BootstrapProjectInput, BootstrapProjectResult
from .progress import BootstrapProgress, BootstrapStage, ProgressTracker, extract_steps_percentage

logger = logging.getLogger(__name__)


class BootstrapState(TypedDict, total=False):
    """State passed between bootstrap workflow nodes."""

    # Input data
    bootstrap_input: BootstrapProjectInput
    framework: Framework

    # Stage outputs
    working_copy: str
    route_graph: RouteGraph
    identified_flows: List[IdentifiedFlow]
    persona_assignments: List[PersonaAssignment]
    # persona id -> flow names it performs, in persistence order
    persona_flow_names: Dict[str, List[str]]
    persisted_flows: List[Dict[str, Any]]
    steps_extracted: int


class BootstrapWorkflow:
    """
    Orchestrates one project bootstrap at a time.

    Progress is owned by the instance and can be polled with get_progress() from another
    thread while run() executes. cancel() is honored between stages and between flows
    during step extraction, after the working copy has been released. A cancel request
    applies to the running bootstrap, or to the next one when none is running, and is
    cleared once that run ends.
    """

    def __init__(
        self,
        gateway: AbstractPersistenceGateway,
        authorization_validator: AbstractAuthorizationValidator,
        synthesizer: FlowSynthesizer,
        repository_access: Optional[GitWorkingCopyProvider] = None,
        route_discoverer: Optional[RouteGraphDiscoverer] = None,
        retry_policy: RetryPolicy = BOOTSTRAP_RETRY_POLICY,
    ) -> None:
        self.gateway = gateway
        self.authorization_validator = authorization_validator
        self.synthesizer = synthesizer
        self.repository_access = repository_access or GitWorkingCopyProvider()
        self.route_discoverer = route_discoverer or RouteGraphDiscoverer()
        self.retry_policy = retry_policy
        self._progress = ProgressTracker()
        self._cancel_requested = threading.Event()
        self._working_copy: Optional[str] = None
        self._project_id: Optional[str] = None
        self._compiled_graph = None

    def compile_graph(self):
        """Compile the bootstrap workflow graph."""
        workflow = StateGraph(BootstrapState)

        stages = [
            (BootstrapStage.VALIDATING, self._validate),
            (BootstrapStage.CLONE, self._clone),
            (BootstrapStage.DISCOVER_ROUTES, self._discover_routes),
            (BootstrapStage.IDENTIFY_FLOWS, self._identify_flows),
            (BootstrapStage.ASSIGN_PERSONAS, self._assign_personas),
            (BootstrapStage.PERSIST_PERSONAS, self._persist_personas),
            (BootstrapStage.PERSIST_FLOWS, self._persist_flows),
            (BootstrapStage.EXTRACT_STEPS, self._extract_steps),
            (BootstrapStage.COMPLETE, self._complete),
        ]
        for stage, node in stages:
            workflow.add_node(stage.value, self._stage_node(stage, node))

        # Strictly linear: each stage runs once, in order
        previous = START
        for stage, _ in stages:
            workflow.add_edge(previous, stage.value)
            previous = stage.value

        self._compiled_graph = workflow.compile()

    def get_progress(self) -> BootstrapProgress:
        return self._progress.snapshot()

    def cancel(self) -> None:
        logger.info(f"Cancellation requested for bootstrap of project {self._project_id}")
        self._cancel_requested.set()

    def run(self, bootstrap_input: BootstrapProjectInput) -> BootstrapProjectResult:
        """
        Run the bootstrap to completion.

        Raises:
            The original exception of the failing stage, after the working copy is released
        """
        if self._compiled_graph is None:
            self.compile_graph()

        self._progress.reset()
        self._working_copy = None
        self._project_id = bootstrap_input.project_id
        logger.info(f"Starting bootstrap for project {bootstrap_input.project_id}")

        initial_state: BootstrapState = {
            "bootstrap_input": bootstrap_input,
            "framework": bootstrap_input.framework,
        }

        try:
            final_state = self._compiled_graph.invoke(initial_state, config={"run_name": "bootstrap_project"})
        except Exception as e:
            failed_stage = self._progress.snapshot().stage.value
            self._progress.fail(str(e))
            logger.exception(f"Bootstrap of project {bootstrap_input.project_id} failed during {failed_stage}: {e}")
            raise
        finally:
            self._release_working_copy()
            self._cancel_requested.clear()

        result = BootstrapProjectResult(
            project_id=bootstrap_input.project_id,
            personas_extracted=len(final_state.get("persona_flow_names", {})),
            flows_extracted=len(final_state.get("persisted_flows", [])),
            steps_extracted=final_state.get("steps_extracted", 0),
        )
        logger.info(
            f"Bootstrap of project {result.project_id} complete: {result.personas_extracted} personas, "
            f"{result.flows_extracted} flows, {result.steps_extracted} steps"
        )
        return result

    def _stage_node(
        self, stage: BootstrapStage, node: Callable[[BootstrapState], Dict[str, Any]]
    ) -> Callable[[BootstrapState], Dict[str, Any]]:
        def run_stage(state: BootstrapState) -> Dict[str, Any]:
            self._check_cancelled()
            logger.info(f"[{self._project_id}] Entering stage {stage.value}")
            return node(state)

        return run_stage

    def _check_cancelled(self) -> None:
        if self._cancel_requested.is_set():
            raise BootstrapCancelledError(self._project_id or "", self._progress.snapshot().stage.value)

    def _retry(self, func: Callable[[], Any], description: str) -> Any:
        return execute_with_retry(func, self.retry_policy, f"[{self._project_id}] {description}")

    def _release_working_copy(self) -> None:
        working_copy, self._working_copy = self._working_copy, None
        if working_copy is None:
            return
        try:
            self.repository_access.release(working_copy)
        except Exception as e:
            logger.error(f"Failed to release working copy {working_copy}: {e}")

    def _validate(self, state: BootstrapState) -> Dict[str, Any]:
        bootstrap_input = state["bootstrap_input"]
        self._progress.enter_stage(BootstrapStage.VALIDATING, "Validating workflow authorization")
        self._retry(
            lambda: self.authorization_validator.validate(bootstrap_input.credential, bootstrap_input.project_id),
            "validate credential",
        )
        if not self.synthesizer.llm_provider.is_configured():
            raise ConfigurationError("No API key is configured for the LLM backend")
        return {}

    def _clone(self, state: BootstrapState) -> Dict[str, Any]:
        bootstrap_input = state["bootstrap_input"]
        self._progress.enter_stage(BootstrapStage.CLONE, f"Cloning repository ({bootstrap_input.branch})")
        working_copy = self._retry(
            lambda: self.repository_access.clone(bootstrap_input.git_remote_url, bootstrap_input.branch),
            "clone repository",
        )
        self._working_copy = working_copy
        return {"working_copy": working_copy}

    def _discover_routes(self, state: BootstrapState) -> Dict[str, Any]:
        self._progress.enter_stage(BootstrapStage.DISCOVER_ROUTES, "Discovering routes and navigation graph")
        route_graph = self._retry(
            lambda: self.route_discoverer.discover(state["working_copy"], state["framework"]),
            "discover routes",
        )
        self._progress.update(message=f"Discovered {len(route_graph.routes)} routes")
        return {"route_graph": route_graph}

    def _identify_flows(self, state: BootstrapState) -> Dict[str, Any]:
        self._progress.enter_stage(BootstrapStage.IDENTIFY_FLOWS, "Identifying flows from route graph")
        flows = self._retry(
            lambda: self.synthesizer.identify_flows(state["route_graph"], state["framework"]),
            "identify flows",
        )
        if not flows:
            raise NoFlowsIdentifiedError("No flows could be identified from the route graph")
        self._progress.update(message=f"Identified {len(flows)} flows")
        return {"identified_flows": flows}

    def _assign_personas(self, state: BootstrapState) -> Dict[str, Any]:
        self._progress.enter_stage(BootstrapStage.ASSIGN_PERSONAS, "Assigning personas to flows")
        assignments = self._retry(
            lambda: self.synthesizer.assign_personas(state["identified_flows"], state["framework"]),
            "assign personas",
        )
        return {"persona_assignments": assignments}

    def _persist_personas(self, state: BootstrapState) -> Dict[str, Any]:
        bootstrap_input = state["bootstrap_input"]
        project_id = bootstrap_input.project_id
        assignments = state.get("persona_assignments", [])
        self._progress.enter_stage(BootstrapStage.PERSIST_PERSONAS, "Persisting personas")

        persona_flow_names: Dict[str, List[str]] = {}
        if bootstrap_input.use_custom_personas:
            declared = self._retry(
                lambda: self.gateway.get_personas(project_id, PersonaSource.USER_DECLARED),
                "load user-declared personas",
            )
            if not declared:
                logger.warning(f"[{project_id}] Custom personas requested but none are declared")
            flow_names_by_persona = {}
            for assignment in assignments:
                key = assignment.name.strip().lower()
                flow_names_by_persona.setdefault(key, []).extend(assignment.flow_names)
            for persona in declared:
                persona_flow_names[persona.id] = flow_names_by_persona.get(persona.name.strip().lower(), [])
        else:
            for assignment in assignments:
                persona_create = PersonaCreateDto(
                    name=assignment.name.strip(),
                    description=assignment.description,
                    behaviors=assignment.behaviors,
                    source=PersonaSource.AUTO_GENERATED,
                )
                try:
                    persona = self._retry(
                        lambda: self.gateway.get_or_create_persona(project_id, persona_create),
                        f"persist persona {persona_create.name}",
                    )
                except Exception as e:
                    logger.error(f"[{project_id}] Skipping persona {persona_create.name}: {e}")
                    continue
                persona_flow_names.setdefault(persona.id, []).extend(assignment.flow_names)

        self._progress.update(
            personas_extracted=len(persona_flow_names), message=f"Persisted {len(persona_flow_names)} personas"
        )
        return {"persona_flow_names": persona_flow_names}

    @staticmethod
    def _persona_for_flow(flow_name: str, persona_flow_names: Dict[str, List[str]]) -> Optional[str]:
        key = flow_name.strip().lower()
        for persona_id, flow_names in persona_flow_names.items():
            if key in (name.strip().lower() for name in flow_names):
                return persona_id
        return None

    def _persist_flows(self, state: BootstrapState) -> Dict[str, Any]:
        project_id = state["bootstrap_input"].project_id
        persona_flow_names = state.get("persona_flow_names", {})
        self._progress.enter_stage(BootstrapStage.PERSIST_FLOWS, "Persisting flows")

        persisted_flows: List[Dict[str, Any]] = []
        for flow in state["identified_flows"]:
            flow_create = FlowCreateDto(
                name=flow.name,
                description=flow.description,
                persona_id=self._persona_for_flow(flow.name, persona_flow_names),
                priority=FlowPriority.MEDIUM,
                entry_point=flow.pages[0] if flow.pages else None,
                graph_data=FlowGraphData(
                    pages=flow.pages,
                    connected_flow_ids=flow.connected_flow_ids,
                    trigger_conditions=[],
                ),
            )
            try:
                persisted = self._retry(
                    lambda: self.gateway.get_or_create_flow(project_id, flow_create),
                    f"persist flow {flow.name}",
                )
            except Exception as e:
                logger.error(f"[{project_id}] Skipping flow {flow.name}: {e}")
                continue
            persisted_flows.append(
                {"flow_id": persisted.id, "name": flow.name, "description": flow.description, "pages": flow.pages}
            )
            self._progress.update(flows_extracted=len(persisted_flows))

        self._progress.update(message=f"Persisted {len(persisted_flows)} flows")
        return {"persisted_flows": persisted_flows}

    def _extract_steps(self, state: BootstrapState) -> Dict[str, Any]:
        framework = state["framework"]
        working_copy = state["working_copy"]
        route_files = state["route_graph"].route_file_map()
        persisted_flows = state.get("persisted_flows", [])
        total = len(persisted_flows)
        self._progress.enter_stage(BootstrapStage.EXTRACT_STEPS, "Extracting steps")
        self._progress.update(current_chunk=0, total_chunks=total)

        steps_extracted = 0
        for index, flow in enumerate(persisted_flows):
            self._check_cancelled()
            self._progress.update(
                current_chunk=index,
                percentage=extract_steps_percentage(index, total),
                message=f"Extracting steps for {flow['name']} ({index + 1}/{total})",
            )
            flow_files = [route_files[page] for page in flow["pages"] if page in route_files]
            code_context = self.synthesizer.build_code_context(working_copy, framework, flow_files)
            steps = self._retry(
                lambda: self.synthesizer.extract_steps(flow["name"], flow["description"], code_context, framework),
                f"extract steps for {flow['name']}",
            )
            if steps:
                created = self._retry(
                    lambda: self.gateway.create_steps(flow["flow_id"], steps),
                    f"persist steps for {flow['name']}",
                )
                steps_extracted += len(created)
            self._progress.update(current_chunk=index + 1, steps_extracted=steps_extracted)

        return {"steps_extracted": steps_extracted}

    def _complete(self, state: BootstrapState) -> Dict[str, Any]:
        self._release_working_copy()
        self._progress.enter_stage(BootstrapStage.COMPLETE, "Bootstrap complete")
        return {}
