"""
Confidence and risk scoring for change impact analysis.

The constants are calibration values and are kept exactly as tuned.
"""

import re
from typing import Dict, List, Sequence, Tuple

from flowsight.repositories.persistence.dtos import FlowDto, FlowPriority, RiskLevel

ENTRY_POINT_CONFIDENCE = 0.9
GRAPH_REFERENCE_CONFIDENCE = 0.8
KEYWORD_CONFIDENCE = 0.7
AFFECTED_CONFIDENCE_THRESHOLD = 0.3
MIN_KEYWORD_LENGTH = 3

FILE_RATIO_WEIGHT = 0.3
FLOW_RISK_INCREMENT_FACTOR = 0.2

PRIORITY_RISK_WEIGHTS: Dict[FlowPriority, float] = {
    FlowPriority.CRITICAL: 1.0,
    FlowPriority.HIGH: 0.75,
    FlowPriority.MEDIUM: 0.5,
    FlowPriority.LOW: 0.25,
}

AGGREGATE_PRIORITY_WEIGHTS: Dict[FlowPriority, float] = {
    FlowPriority.CRITICAL: 2.0,
    FlowPriority.HIGH: 1.5,
    FlowPriority.MEDIUM: 1.0,
    FlowPriority.LOW: 1.0,
}

# Lower bounds, checked from the highest level down
RISK_LEVEL_THRESHOLDS = [
    (0.8, RiskLevel.CRITICAL),
    (0.6, RiskLevel.HIGH),
    (0.3, RiskLevel.MEDIUM),
]

KEYWORD_SEPARATOR_PATTERN = re.compile(r"[\s\-_]+")


def flow_keywords(flow_name: str) -> List[str]:
    return [
        word.lower() for word in KEYWORD_SEPARATOR_PATTERN.split(flow_name) if len(word) >= MIN_KEYWORD_LENGTH
    ]


def _normalized_entry_point(entry_point: str) -> str:
    return entry_point.strip().lower().replace("/", "")


def _normalized_reference(reference: str) -> str:
    """Lower-cased reference, or "" for references made only of slashes."""
    reference = reference.strip()
    if not reference.strip("/"):
        return ""
    return reference.lower()


def calculate_match_confidence(flow: FlowDto, file_path: str) -> float:
    """
    Confidence in [0, 1] that a changed file belongs to a flow.

    Rules are tried in order and the first match wins: entry point, then
    graph references (components and pages), then flow-name keywords.
    """
    normalized_path = file_path.lower()

    entry_point = _normalized_entry_point(flow.entry_point or "")
    if entry_point and entry_point in normalized_path:
        return ENTRY_POINT_CONFIDENCE

    for reference in flow.graph_data.references():
        normalized = _normalized_reference(reference)
        if normalized and normalized in normalized_path:
            return GRAPH_REFERENCE_CONFIDENCE

    if any(keyword in normalized_path for keyword in flow_keywords(flow.name)):
        return KEYWORD_CONFIDENCE

    return 0.0


def calculate_flow_risk(priority: FlowPriority, matched_file_count: int, total_changed_file_count: int) -> float:
    if total_changed_file_count <= 0:
        return 0.0
    file_ratio = matched_file_count / total_changed_file_count
    return min(1.0, PRIORITY_RISK_WEIGHTS[priority] + file_ratio * FILE_RATIO_WEIGHT)


def calculate_aggregate_risk(flow_risks: Sequence[Tuple[FlowPriority, float]]) -> float:
    """
    Priority-weighted mean of (priority, risk) pairs, clamped to [0, 1].

    Returns 0.0 when no flow is affected.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for priority, risk in flow_risks:
        weight = AGGREGATE_PRIORITY_WEIGHTS[priority]
        weighted_sum += risk * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return max(0.0, min(1.0, weighted_sum / total_weight))


def get_risk_level(risk_score: float) -> RiskLevel:
    for threshold, level in RISK_LEVEL_THRESHOLDS:
        if risk_score >= threshold:
            return level
    return RiskLevel.LOW
