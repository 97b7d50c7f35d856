"""Local git access: isolated working copies and file-level diffs."""

import logging
import re
import shutil
import subprocess
import tempfile
from typing import List, Optional

from flowsight.exceptions import DiffComputationError, WorkingCopyError
from flowsight.repositories.persistence.dtos import ChangedFileDto, ChangeStatus

from .abstract_version_controller import AbstractVersionController

logger = logging.getLogger(__name__)

NAME_STATUS_CODES = {
    "A": ChangeStatus.ADDED,
    "C": ChangeStatus.ADDED,
    "D": ChangeStatus.DELETED,
    "M": ChangeStatus.MODIFIED,
    "T": ChangeStatus.MODIFIED,
    "R": ChangeStatus.RENAMED,
}

_CREDENTIALS_IN_URL = re.compile(r"//[^/@]+@")


def redact_remote_url(remote_url: str) -> str:
    return _CREDENTIALS_IN_URL.sub("//***@", remote_url)


def parse_name_status(output: str) -> List[ChangedFileDto]:
    """Parse ``git diff --name-status`` output; renames and copies report the new path."""
    changes: List[ChangedFileDto] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        code = parts[0][:1]
        if code in ("R", "C") and len(parts) >= 3:
            path = parts[2]
        elif len(parts) >= 2:
            path = parts[1]
        else:
            logger.debug(f"Ignoring unparseable diff line: {line}")
            continue
        changes.append(ChangedFileDto(path=path, status=NAME_STATUS_CODES.get(code, ChangeStatus.MODIFIED)))
    return changes


class GitWorkingCopyProvider:
    """Clones repositories into temporary directories owned by a single caller."""

    def __init__(self, clone_timeout: int = 600):
        self.clone_timeout = clone_timeout

    def clone(self, remote_url: str, branch: str = "main") -> str:
        """
        Shallow-clone a branch into a fresh temporary directory.

        Returns:
            Path of the working copy

        Raises:
            WorkingCopyError: If git fails; the directory is removed first
        """
        working_copy = tempfile.mkdtemp(prefix="flowsight-")
        logger.info(f"Cloning {redact_remote_url(remote_url)} ({branch}) into {working_copy}")
        try:
            subprocess.run(
                ["git", "clone", "--depth", "1", "--branch", branch, remote_url, working_copy],
                capture_output=True,
                text=True,
                timeout=self.clone_timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            self.release(working_copy)
            stderr = redact_remote_url(e.stderr or "")
            raise WorkingCopyError(f"git clone failed for branch '{branch}': {stderr.strip()}") from e
        except (subprocess.TimeoutExpired, OSError) as e:
            self.release(working_copy)
            raise WorkingCopyError(f"git clone failed for branch '{branch}': {e}") from e
        return working_copy

    def release(self, working_copy: str) -> None:
        """Remove a working copy. Failures are logged, never raised."""
        try:
            shutil.rmtree(working_copy)
            logger.info(f"Released working copy {working_copy}")
        except FileNotFoundError:
            logger.debug(f"Working copy {working_copy} already removed")
        except Exception as e:
            logger.warning(f"Failed to release working copy {working_copy}: {e}")


class GitRepository(AbstractVersionController):
    """Diffs computed by the git binary against a local checkout."""

    def __init__(self, project_root: str = ".", timeout: int = 180):
        self.project_root = project_root
        self.timeout = timeout

    def _run_git(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.project_root,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"git {' '.join(args)} failed: {(e.stderr or '').strip()}")
            raise DiffComputationError(f"git {args[0]} failed: {(e.stderr or '').strip()}") from e
        except FileNotFoundError as e:
            raise DiffComputationError(f"git is not available or {self.project_root} does not exist") from e
        return result.stdout

    def get_changed_files(self, base_sha: str, head_sha: str) -> List[ChangedFileDto]:
        if base_sha == head_sha:
            return []
        output = self._run_git("diff", "--name-status", "-M", f"{base_sha}...{head_sha}")
        changes = parse_name_status(output)
        logger.info(f"Computed {len(changes)} changed files between {base_sha} and {head_sha}")
        return changes

    def get_head_sha(self) -> str:
        return self._run_git("rev-parse", "HEAD").strip()

    def resolve_revision(self, revision: str) -> Optional[str]:
        """Full sha for a revision expression such as ``HEAD~1``, or None if it does not resolve."""
        try:
            return self._run_git("rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}").strip() or None
        except DiffComputationError:
            return None
