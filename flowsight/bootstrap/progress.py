"""Live progress of a bootstrap run, readable from other threads while the run executes."""

import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class BootstrapStage(str, Enum):
    INIT = "init"
    VALIDATING = "validating"
    CLONE = "clone"
    DISCOVER_ROUTES = "discover-routes"
    IDENTIFY_FLOWS = "identify-flows"
    ASSIGN_PERSONAS = "assign-personas"
    PERSIST_PERSONAS = "persist-personas"
    PERSIST_FLOWS = "persist-flows"
    EXTRACT_STEPS = "extract-steps"
    COMPLETE = "complete"
    ERROR = "error"


STAGE_PERCENTAGES = {
    BootstrapStage.INIT: 0,
    BootstrapStage.VALIDATING: 5,
    BootstrapStage.CLONE: 8,
    BootstrapStage.DISCOVER_ROUTES: 12,
    BootstrapStage.IDENTIFY_FLOWS: 20,
    BootstrapStage.ASSIGN_PERSONAS: 35,
    BootstrapStage.PERSIST_PERSONAS: 45,
    BootstrapStage.PERSIST_FLOWS: 55,
    BootstrapStage.EXTRACT_STEPS: 60,
    BootstrapStage.COMPLETE: 100,
}

EXTRACT_STEPS_PERCENTAGE_SPAN = 35


@dataclass
class BootstrapProgress:
    stage: BootstrapStage = BootstrapStage.INIT
    current_chunk: int = 0
    total_chunks: int = 0
    personas_extracted: int = 0
    flows_extracted: int = 0
    steps_extracted: int = 0
    message: str = "Initializing bootstrap workflow"
    percentage: int = 0
    error: Optional[str] = None
    failed_stage: Optional[BootstrapStage] = None


def extract_steps_percentage(flow_index: int, total_flows: int) -> int:
    if total_flows <= 0:
        return STAGE_PERCENTAGES[BootstrapStage.EXTRACT_STEPS]
    return STAGE_PERCENTAGES[BootstrapStage.EXTRACT_STEPS] + int(
        flow_index / total_flows * EXTRACT_STEPS_PERCENTAGE_SPAN
    )


class ProgressTracker:
    """Owns the BootstrapProgress of one orchestrator; readers get copies."""

    def __init__(self):
        self._lock = threading.Lock()
        self._progress = BootstrapProgress()

    def snapshot(self) -> BootstrapProgress:
        with self._lock:
            return replace(self._progress)

    def reset(self) -> None:
        with self._lock:
            self._progress = BootstrapProgress()

    def enter_stage(self, stage: BootstrapStage, message: str) -> None:
        with self._lock:
            self._progress.stage = stage
            self._progress.message = message
            self._progress.percentage = STAGE_PERCENTAGES.get(stage, self._progress.percentage)

    def update(self, **fields: Any) -> None:
        with self._lock:
            for name, value in fields.items():
                if not hasattr(self._progress, name):
                    raise AttributeError(f"BootstrapProgress has no field {name}")
                setattr(self._progress, name, value)

    def fail(self, error: str) -> None:
        with self._lock:
            self._progress.failed_stage = self._progress.stage
            self._progress.stage = BootstrapStage.ERROR
            self._progress.error = error
            self._progress.message = f"Bootstrap failed: {error}"
