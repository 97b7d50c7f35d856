"""Abstract interface for computing file-level diffs between revisions."""

from abc import ABC, abstractmethod
from typing import List

from flowsight.repositories.persistence.dtos import ChangedFileDto


class AbstractVersionController(ABC):
    """Version-control backend able to list the files changed between two revisions."""

    @abstractmethod
    def get_changed_files(self, base_sha: str, head_sha: str) -> List[ChangedFileDto]:
        """
        List files changed between two revisions.

        Raises:
            DiffComputationError: If the diff cannot be computed
        """
        pass

    @abstractmethod
    def get_head_sha(self) -> str:
        """Revision currently checked out (or the default branch head for remote providers)."""
        pass
