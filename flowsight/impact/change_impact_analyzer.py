"""
Change impact analysis.

Given two revisions of a project, determines which persisted flows the changed files
touch, scores each affected flow and the change set as a whole, and records the result.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from flowsight.repositories.persistence.dtos import ChangedFileDto, FlowDto, FlowPriority, RiskLevel
from flowsight.repositories.persistence.gateway import AbstractPersistenceGateway
from flowsight.repositories.version_control.abstract_version_controller import AbstractVersionController
from flowsight.utils.retry import ANALYSIS_RETRY_POLICY, RetryPolicy, execute_with_retry

from .risk import (
    AFFECTED_CONFIDENCE_THRESHOLD,
    FLOW_RISK_INCREMENT_FACTOR,
    calculate_aggregate_risk,
    calculate_flow_risk,
    calculate_match_confidence,
    get_risk_level,
)

logger = logging.getLogger(__name__)


class AffectedFlow(BaseModel):
    """A flow touched by a change set, with the evidence for the match."""

    flow_id: str
    name: str
    priority: FlowPriority
    confidence: float = Field(ge=0.0, le=1.0)
    matched_files: List[str] = Field(default_factory=list)
    risk_score: float = Field(ge=0.0, le=1.0)


class ImpactReport(BaseModel):
    change_set_id: Optional[str] = None
    project_id: str
    base_sha: str
    head_sha: str
    flows: List[AffectedFlow] = Field(default_factory=list)
    changes: List[ChangedFileDto] = Field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.LOW
    risk_score: float = Field(default=0.0, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def match_flow(flow: FlowDto, changes: List[ChangedFileDto]) -> Optional[AffectedFlow]:
    """Affected-flow entry for one flow, or None when no file clears the threshold."""
    matched_files: List[str] = []
    best_confidence = 0.0
    for change in changes:
        confidence = calculate_match_confidence(flow, change.path)
        if confidence > AFFECTED_CONFIDENCE_THRESHOLD:
            matched_files.append(change.path)
            best_confidence = max(best_confidence, confidence)

    if not matched_files:
        return None

    return AffectedFlow(
        flow_id=flow.id,
        name=flow.name,
        priority=flow.priority,
        confidence=best_confidence,
        matched_files=matched_files,
        risk_score=calculate_flow_risk(flow.priority, len(matched_files), len(changes)),
    )


def compute_affected_flows(flows: List[FlowDto], changes: List[ChangedFileDto]) -> List[AffectedFlow]:
    """Affected flows sorted by descending risk; ties keep the input order."""
    affected = [entry for entry in (match_flow(flow, changes) for flow in flows) if entry is not None]
    return sorted(affected, key=lambda entry: entry.risk_score, reverse=True)


class ChangeImpactAnalyzer:
    def __init__(
        self,
        gateway: AbstractPersistenceGateway,
        version_controller: AbstractVersionController,
        retry_policy: RetryPolicy = ANALYSIS_RETRY_POLICY,
    ):
        self.gateway = gateway
        self.version_controller = version_controller
        self.retry_policy = retry_policy

    def _retry(self, func, description: str):
        return execute_with_retry(func, self.retry_policy, description)

    def analyze_changes(self, project_id: str, base_sha: str, head_sha: str) -> ImpactReport:
        """
        Compute the diff between two revisions and analyze its impact.

        Raises:
            DiffComputationError: If the diff cannot be computed; nothing is recorded
        """
        logger.info(f"[{project_id}] Analyzing changes {base_sha}...{head_sha}")
        changes = self._retry(
            lambda: self.version_controller.get_changed_files(base_sha, head_sha),
            f"[{project_id}] compute diff {base_sha}...{head_sha}",
        )
        return self.analyze_files(project_id, base_sha, head_sha, changes)

    def analyze_files(
        self, project_id: str, base_sha: str, head_sha: str, changes: List[ChangedFileDto]
    ) -> ImpactReport:
        """Analyze an already-computed change list and record the change set."""
        if not changes:
            logger.info(f"[{project_id}] No changes between {base_sha} and {head_sha}")
            return ImpactReport(project_id=project_id, base_sha=base_sha, head_sha=head_sha)

        flows = self._retry(lambda: self.gateway.get_flows(project_id), f"[{project_id}] load flows")
        affected = compute_affected_flows(flows, changes)
        risk_score = calculate_aggregate_risk([(entry.priority, entry.risk_score) for entry in affected])
        risk_level = get_risk_level(risk_score)
        affected_flow_ids = [entry.flow_id for entry in affected]

        # One id per analysis; create_change_set is idempotent on it
        change_set_id = str(uuid.uuid4())
        change_set = self._retry(
            lambda: self.gateway.create_change_set(project_id, base_sha, head_sha, changes, change_set_id),
            f"[{project_id}] create change set",
        )
        self._retry(
            lambda: self.gateway.update_change_set_analysis(change_set.id, risk_level, risk_score, affected_flow_ids),
            f"[{project_id}] record analysis of change set {change_set.id}",
        )

        risk_increment = risk_score * FLOW_RISK_INCREMENT_FACTOR
        for flow_id in affected_flow_ids:
            self._retry(
                lambda: self.gateway.mark_flow_affected(flow_id, change_set.id, risk_increment),
                f"[{project_id}] mark flow {flow_id} affected",
            )

        logger.info(
            f"[{project_id}] {base_sha}...{head_sha}: {len(changes)} changed files, "
            f"{len(affected)} affected flows, risk {risk_level.value} ({risk_score:.2f})"
        )
        return ImpactReport(
            change_set_id=change_set.id,
            project_id=project_id,
            base_sha=base_sha,
            head_sha=head_sha,
            flows=affected,
            changes=changes,
            risk_level=risk_level,
            risk_score=risk_score,
            created_at=change_set.created_at,
        )

    def clear_affected_flows(self, project_id: str) -> int:
        """Reset risk and affected change sets of every affected flow in the project."""
        affected = self.gateway.get_affected_flows(project_id)
        cleared = self.gateway.clear_affected_flows([flow.id for flow in affected])
        logger.info(f"[{project_id}] Cleared {cleared} affected flows")
        return cleared

