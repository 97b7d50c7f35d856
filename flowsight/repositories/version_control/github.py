"""Change lists from the GitHub REST API."""

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from flowsight.exceptions import DiffComputationError
from flowsight.repositories.persistence.dtos import ChangedFileDto, ChangeStatus

from .abstract_version_controller import AbstractVersionController

logger = logging.getLogger(__name__)

# The compare API lists at most this many files per comparison
COMPARE_FILE_LIMIT = 300

GITHUB_FILE_STATUSES = {
    "added": ChangeStatus.ADDED,
    "copied": ChangeStatus.ADDED,
    "removed": ChangeStatus.DELETED,
    "renamed": ChangeStatus.RENAMED,
    "modified": ChangeStatus.MODIFIED,
    "changed": ChangeStatus.MODIFIED,
}


class GitHub(AbstractVersionController):
    """Diffs from the GitHub compare API, for callers without a local checkout."""

    def __init__(
        self,
        token: Optional[str] = None,
        repo_owner: Optional[str] = None,
        repo_name: Optional[str] = None,
        base_url: str = "https://api.github.com",
        ref: str = "HEAD",
        timeout: int = 30,
    ):
        """
        Args:
            token: Access token, GITHUB_TOKEN when omitted
            base_url: API root, override for GitHub Enterprise
            ref: Revision whose sha get_head_sha reports
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        self.repo_owner = repo_owner
        self.repo_name = repo_name
        self.base_url = base_url.rstrip("/")
        self.ref = ref
        self.timeout = timeout

        self.session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update(
            {"Accept": "application/vnd.github.v3+json", "User-Agent": "Flowsight-GitHub-Integration"}
        )

        if self.token:
            self.session.headers["Authorization"] = f"token {self.token}"

    @classmethod
    def from_remote_url(cls, remote_url: str, token: Optional[str] = None) -> "GitHub":
        """Build a client from an https or ssh GitHub remote URL."""
        path = remote_url.strip()
        if path.startswith("git@"):
            path = path.split(":", 1)[1]
        else:
            path = path.split("github.com/", 1)[-1]
        path = path[:-4] if path.endswith(".git") else path
        parts = [p for p in path.split("/") if p]
        if len(parts) < 2:
            raise ValueError(f"Cannot determine owner and repository from {remote_url}")
        return cls(token=token, repo_owner=parts[-2], repo_name=parts[-1])

    def _repo_url(self) -> str:
        return f"{self.base_url}/repos/{self.repo_owner}/{self.repo_name}"

    def _get(self, endpoint: str, description: str) -> Dict[str, Any]:
        """
        GET a repository endpoint and decode its JSON body.

        Raises:
            DiffComputationError: On transport failures, rate limiting or non-2xx replies
        """
        url = f"{self._repo_url()}/{endpoint}"
        try:
            response = self.session.request(method="GET", url=url, timeout=self.timeout)
            if response.status_code == 429:
                reset_time = response.headers.get("X-RateLimit-Reset", "unknown")
                raise requests.exceptions.HTTPError(f"GitHub rate limit exceeded, resets at {reset_time}")
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"GitHub {description} for {self.repo_owner}/{self.repo_name} failed: {e}")
            raise DiffComputationError(f"GitHub {description} failed: {e}") from e
        return response.json() if response.text else {}

    def get_changed_files(self, base_sha: str, head_sha: str) -> List[ChangedFileDto]:
        if base_sha == head_sha:
            return []
        comparison = self._get(f"compare/{base_sha}...{head_sha}", f"compare {base_sha}...{head_sha}")

        changes = []
        for file in comparison.get("files", []):
            status = GITHUB_FILE_STATUSES.get(file.get("status", ""), ChangeStatus.MODIFIED)
            changes.append(ChangedFileDto(path=file["filename"], status=status))

        if len(changes) >= COMPARE_FILE_LIMIT:
            logger.warning(f"Compare {base_sha}...{head_sha} hit the {COMPARE_FILE_LIMIT} file limit; diff is partial")
        logger.info(f"Fetched {len(changes)} changed files for {base_sha}...{head_sha}")
        return changes

    def get_head_sha(self) -> str:
        return self._get(f"commits/{self.ref}", f"lookup of {self.ref}")["sha"]
