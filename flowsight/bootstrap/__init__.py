from .bootstrap_models import BootstrapProjectInput, BootstrapProjectResult
from .bootstrap_workflow import BootstrapState, BootstrapWorkflow
from .progress import BootstrapProgress, BootstrapStage, ProgressTracker

__all__ = [
    "BootstrapProjectInput",
    "BootstrapProjectResult",
    "BootstrapState",
    "BootstrapWorkflow",
    "BootstrapProgress",
    "BootstrapStage",
    "ProgressTracker",
]
