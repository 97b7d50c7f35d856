"""
Exception hierarchy for flowsight.

Fatal-setup errors abort a bootstrap before anything is allocated or right after
discovery; the remaining errors surface from individual activities.
"""

from typing import Optional


class FlowsightError(Exception):
    """Base class for all flowsight errors."""


class ConfigurationError(FlowsightError):
    """Raised when required configuration (for example an LLM API key) is missing."""


class AuthorizationError(FlowsightError):
    """Raised when a workflow credential is unknown, revoked, or lacks access."""


class NoRoutesFoundError(FlowsightError):
    """Raised when no route files match the framework conventions."""

    def __init__(self, project_root: str, framework: str):
        self.project_root = project_root
        self.framework = framework
        super().__init__(f"No routes found in {project_root} for framework '{framework}'")


class NoFlowsIdentifiedError(FlowsightError):
    """Raised when flow identification returns zero flows."""


class WorkingCopyError(FlowsightError):
    """Raised when a working copy of the repository cannot be acquired."""


class PersistenceError(FlowsightError):
    """Raised when the persistence gateway cannot complete an operation."""


class ChangeSetAlreadyAnalyzedError(PersistenceError):
    """Raised when analysis fields of a change set are written a second time."""

    def __init__(self, change_set_id: str):
        self.change_set_id = change_set_id
        super().__init__(f"Change set {change_set_id} has already been analyzed")


class BootstrapCancelledError(FlowsightError):
    """Raised once a cancelled bootstrap has released its working copy."""

    def __init__(self, project_id: str, stage: Optional[str] = None):
        self.project_id = project_id
        self.stage = stage
        message = f"Bootstrap of project {project_id} was cancelled"
        if stage:
            message += f" during stage '{stage}'"
        super().__init__(message)


class DiffComputationError(FlowsightError):
    """Raised when the file-level diff between two revisions cannot be computed."""


FATAL_SETUP_ERRORS = (ConfigurationError, AuthorizationError, NoRoutesFoundError, NoFlowsIdentifiedError)
