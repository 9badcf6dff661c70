"""
Proctoring Report - Plain-text report for a finished interview session
"""

from datetime import datetime, timedelta, tzinfo
from typing import List, Optional

from .models import DetectionStats, SessionData, utc_now
from .scoring.integrity_scorer import IntegrityScorer

HEAVY_RULE = "═" * 47
LIGHT_RULE = "─" * 45

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
TIME_FORMAT = "%H:%M:%S"


def format_duration(duration: timedelta) -> str:
    """
    Format a duration as "1h 2m 3s", "2m 3s" or "3s".

    Negative durations are shown as 0s.
    """
    seconds = max(0, int(duration.total_seconds()))
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    elif minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def format_timestamp(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    """Wall-clock time of an event in the given (default local) timezone"""
    return moment.astimezone(tz).strftime(TIME_FORMAT)


def generate_report_text(
    session: SessionData,
    stats: DetectionStats,
    integrity_score: int,
    duration: timedelta,
    generated_at: Optional[datetime] = None,
    tz: Optional[tzinfo] = None
) -> str:
    """
    Render the proctoring report.

    The output depends only on the arguments, so passing generated_at
    and tz makes it fully deterministic.

    Args:
        session: Session being reported
        stats: Violation counts for the session
        integrity_score: Final score
        duration: Session duration
        generated_at: Footer timestamp (defaults to now)
        tz: Timezone for all rendered times (defaults to local time)

    Returns:
        Report text, lines joined with "\\n"
    """
    breakdown = IntegrityScorer().compute_breakdown(stats)
    penalties = breakdown["penalties"]
    generated_at = generated_at or utc_now()

    lines: List[str] = [
        HEAVY_RULE,
        "          VIDEO PROCTORING REPORT",
        HEAVY_RULE,
        "",
        "CANDIDATE INFORMATION",
        LIGHT_RULE,
        f"Name: {session.candidate_name}",
        f"Session Start: {session.start_time.astimezone(tz).strftime(DATETIME_FORMAT)}",
        f"Duration: {format_duration(duration)}",
        "",
        "INTEGRITY SCORE",
        LIGHT_RULE,
        f"Final Score: {integrity_score}/100",
        "",
        "VIOLATION SUMMARY",
        LIGHT_RULE,
        f"Focus Lost Events: {stats.focus_lost_count}",
        f"No Face Detected: {stats.no_face_count}",
        f"Multiple Faces Detected: {stats.multiple_faces_count}",
        f"Suspicious Objects: {stats.suspicious_object_count}",
        "",
        "SCORE BREAKDOWN",
        LIGHT_RULE,
        f"Base Score: {breakdown['base_score']}",
        f"Focus Lost Penalty (-2 each): -{penalties['focus_lost_count']['penalty']}",
        f"No Face Penalty (-5 each): -{penalties['no_face_count']['penalty']}",
        f"Multiple Faces Penalty (-10 each): -{penalties['multiple_faces_count']['penalty']}",
        f"Suspicious Objects Penalty (-15 each): -{penalties['suspicious_object_count']['penalty']}",
        f"Final Score: {integrity_score}",
        "",
        "DETAILED EVENT LOG",
        LIGHT_RULE,
    ]

    if not session.events:
        lines.append("No violations detected during the session.")
    else:
        for index, event in enumerate(session.events, start=1):
            lines.append(f"{index}. [{format_timestamp(event.timestamp, tz)}] {event.description}")

    lines.extend([
        "",
        HEAVY_RULE,
        f"Generated: {generated_at.astimezone(tz).strftime(DATETIME_FORMAT)}",
        HEAVY_RULE,
    ])

    return "\n".join(lines)
