from .change_impact_analyzer import AffectedFlow, ChangeImpactAnalyzer, ImpactReport
from .risk import calculate_match_confidence, get_risk_level
from .watch_mode import WatchModeSession, WatchStatus

__all__ = [
    "AffectedFlow",
    "ChangeImpactAnalyzer",
    "ImpactReport",
    "calculate_match_confidence",
    "get_risk_level",
    "WatchModeSession",
    "WatchStatus",
]
