from .abstract_version_controller import AbstractVersionController
from .git_repository import GitRepository, GitWorkingCopyProvider
from .github import GitHub

__all__ = ["AbstractVersionController", "GitRepository", "GitWorkingCopyProvider", "GitHub"]
