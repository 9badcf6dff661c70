"""Monitoring loop and suspicious object deduplication"""

from .dedup import DEFAULT_SUSPICIOUS_OBJECTS, ObjectDedupWindow, is_suspicious_object
from .loop import MonitoringLoop, MonitoringState

__all__ = [
    "DEFAULT_SUSPICIOUS_OBJECTS",
    "ObjectDedupWindow",
    "is_suspicious_object",
    "MonitoringLoop",
    "MonitoringState"
]
