"""
Proctoring Logger - Logs proctoring events and results
"""

import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def log_proctor_event(
    session_id: str,
    event_type: str,
    details: Optional[Dict[str, Any]] = None,
    level: str = "info"
):
    """
    Log a proctoring event.

    Args:
        session_id: Proctoring session ID
        event_type: Type of event (session_start, monitoring_stop, violation, etc.)
        details: Optional event details
        level: Log level (debug, info, warning, error)
    """
    message = f"[PROCTOR] session={session_id} event={event_type}"

    if details:
        detail_str = " ".join(f"{k}={v}" for k, v in details.items())
        message += f" {detail_str}"

    if level == "debug":
        logger.debug(message)
    elif level == "warning":
        logger.warning(message)
    elif level == "error":
        logger.error(message)
    else:
        logger.info(message)


def log_session_start(session_id: str, candidate_name: str):
    """Log session start event"""
    log_proctor_event(
        session_id=session_id,
        event_type="session_start",
        details={"candidate": candidate_name}
    )


def log_session_end(session_id: str, integrity_score: int, event_count: int, duration_seconds: float):
    """Log session end event"""
    log_proctor_event(
        session_id=session_id,
        event_type="session_end",
        details={
            "integrity_score": integrity_score,
            "events": event_count,
            "duration_seconds": round(duration_seconds, 1)
        }
    )


def log_violation(session_id: str, event):
    """Log an emitted proctoring event; high severity ones as warnings"""
    log_proctor_event(
        session_id=session_id,
        event_type=event.type.value,
        details={
            "severity": event.severity.value,
            "description": f'"{event.description}"'
        },
        level="warning" if event.severity.value == "high" else "info"
    )
