"""
Continuous change analysis for a working tree.

A caller feeds file-change events with record_change(); the session batches them,
waits until the tree has been quiet for the debounce window, and analyzes the batch
against the currently checked-out revision.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from flowsight.repositories.persistence.dtos import ChangedFileDto, ChangeStatus
from flowsight.repositories.version_control.abstract_version_controller import AbstractVersionController

from .change_impact_analyzer import ChangeImpactAnalyzer, ImpactReport

logger = logging.getLogger(__name__)

WORKTREE_HEAD = "WORKTREE"
POLL_INTERVAL_SECONDS = 1.0

CHANGE_TYPE_STATUSES = {
    "add": ChangeStatus.ADDED,
    "change": ChangeStatus.MODIFIED,
    "unlink": ChangeStatus.DELETED,
}


@dataclass
class WatchStatus:
    is_running: bool
    pending_changes: int
    processed_count: int


class WatchModeSession:
    def __init__(
        self,
        analyzer: ChangeImpactAnalyzer,
        version_controller: AbstractVersionController,
        project_id: str,
        debounce_seconds: float = 1.0,
        on_analysis_complete: Optional[Callable[[ImpactReport], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.analyzer = analyzer
        self.version_controller = version_controller
        self.project_id = project_id
        self.debounce_seconds = debounce_seconds
        self.on_analysis_complete = on_analysis_complete
        self.on_error = on_error

        self._condition = threading.Condition()
        self._pending: Dict[str, ChangeStatus] = {}
        self._last_change_at = 0.0
        self._is_running = True
        self._processed_count = 0

    def record_change(self, path: str, change_type: str) -> None:
        """Queue a file change; the latest change per path wins."""
        status = CHANGE_TYPE_STATUSES.get(change_type)
        if status is None:
            raise ValueError(f"Unsupported change type: {change_type}")
        with self._condition:
            if not self._is_running:
                logger.debug(f"Ignoring change to {path}, watch session is stopped")
                return
            self._pending[path] = status
            self._last_change_at = time.monotonic()
            self._condition.notify_all()

    def stop(self) -> None:
        with self._condition:
            self._is_running = False
            self._condition.notify_all()
        logger.info(f"[{self.project_id}] Watch session stopped")

    def status(self) -> WatchStatus:
        with self._condition:
            return WatchStatus(
                is_running=self._is_running,
                pending_changes=len(self._pending),
                processed_count=self._processed_count,
            )

    def process_pending(self) -> Optional[ImpactReport]:
        """Analyze the queued changes as one batch. Returns None when nothing is queued."""
        with self._condition:
            batch, self._pending = self._pending, {}
        if not batch:
            return None

        changes = [ChangedFileDto(path=path, status=status) for path, status in batch.items()]
        base_sha = self.version_controller.get_head_sha()
        report = self.analyzer.analyze_files(self.project_id, base_sha, WORKTREE_HEAD, changes)

        with self._condition:
            self._processed_count += len(changes)
        logger.info(
            f"[{self.project_id}] Watch batch of {len(changes)} files: "
            f"{len(report.flows)} affected flows, risk {report.risk_level.value}"
        )
        if self.on_analysis_complete is not None:
            self.on_analysis_complete(report)
        return report

    def run(self) -> int:
        """
        Process batches until stop() is called.

        Returns:
            Number of changed files processed during the session
        """
        logger.info(f"[{self.project_id}] Watch session started (debounce {self.debounce_seconds}s)")
        while self._wait_for_quiet_batch():
            try:
                self.process_pending()
            except Exception as e:
                logger.exception(f"[{self.project_id}] Watch batch failed: {e}")
                if self.on_error is not None:
                    self.on_error(e)
        return self.status().processed_count

    def _wait_for_quiet_batch(self) -> bool:
        """Block until changes are pending and the debounce window has passed. False once stopped."""
        with self._condition:
            while self._is_running:
                if not self._pending:
                    self._condition.wait(POLL_INTERVAL_SECONDS)
                    continue
                remaining = self._last_change_at + self.debounce_seconds - time.monotonic()
                if remaining <= 0:
                    return True
                self._condition.wait(remaining)
            return False
