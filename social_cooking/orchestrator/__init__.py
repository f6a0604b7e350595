"""
オーケストレーター - イベントの状態機械・結果型・セッション管理
"""

from .results import ErrorKind, OperationResult
from .projection import EventProjection
from .event_orchestrator import (
    EventOrchestrator,
    VOTES_LOCKED_MESSAGE,
    DINNER_SERVED_MESSAGE,
)
from .registry import OrchestratorRegistry

__all__ = [
    "ErrorKind",
    "OperationResult",
    "EventProjection",
    "EventOrchestrator",
    "VOTES_LOCKED_MESSAGE",
    "DINNER_SERVED_MESSAGE",
    "OrchestratorRegistry",
]
