"""
Integrity Scorer - Computes violation statistics and the integrity score
"""

import logging
from datetime import timedelta
from typing import Dict, Any, Iterable

from ..models import DetectionStats, EventType, ProctoringEvent

logger = logging.getLogger(__name__)


def calculate_stats(
    events: Iterable[ProctoringEvent],
    total_duration: timedelta = timedelta(0)
) -> DetectionStats:
    """
    Count penalized events by type.

    focus_regained and face_detected are recovery markers and are not counted.

    Args:
        events: Event collection (any order)
        total_duration: Session duration to carry on the stats

    Returns:
        DetectionStats with one count per violation type
    """
    counts = {event_type: 0 for event_type in EventType}
    for event in events:
        counts[event.type] += 1

    return DetectionStats(
        focus_lost_count=counts[EventType.FOCUS_LOST],
        no_face_count=counts[EventType.NO_FACE],
        multiple_faces_count=counts[EventType.MULTIPLE_FACES],
        suspicious_object_count=counts[EventType.SUSPICIOUS_OBJECT],
        total_duration=total_duration
    )


class IntegrityScorer:
    """
    Computes the integrity score from violation counts.

    Formula:
        integrity_score = 100
            - 2  * focus_lost_count
            - 5  * no_face_count
            - 10 * multiple_faces_count
            - 15 * suspicious_object_count

    clamped to [0, 100].
    """

    BASE_SCORE = 100

    # Points deducted per event
    PENALTIES: Dict[str, int] = {
        "focus_lost_count": 2,
        "no_face_count": 5,
        "multiple_faces_count": 10,
        "suspicious_object_count": 15
    }

    def compute(self, stats: DetectionStats) -> int:
        """
        Compute integrity score from stats.

        Args:
            stats: Violation counts

        Returns:
            Integrity score (0-100, higher is better)
        """
        score = self.BASE_SCORE

        for count_name, penalty in self.PENALTIES.items():
            score -= penalty * getattr(stats, count_name)

        final_score = max(0, min(self.BASE_SCORE, score))

        logger.debug(f"Computed integrity score: {final_score} (raw {score})")
        return final_score

    def compute_breakdown(self, stats: DetectionStats) -> Dict[str, Any]:
        """
        Compute integrity score with the per-category penalties.

        Args:
            stats: Violation counts

        Returns:
            Dict with base score, penalties, raw score and final score
        """
        penalties = {}
        raw_score = self.BASE_SCORE

        for count_name, penalty in self.PENALTIES.items():
            count = getattr(stats, count_name)
            penalties[count_name] = {
                "count": count,
                "penalty_each": penalty,
                "penalty": count * penalty
            }
            raw_score -= count * penalty

        return {
            "base_score": self.BASE_SCORE,
            "penalties": penalties,
            "total_penalty": self.BASE_SCORE - raw_score,
            "raw_score": raw_score,
            "integrity_score": max(0, min(self.BASE_SCORE, raw_score))
        }

    def get_label(self, score: int) -> str:
        """
        Convert score to a verdict label.

        Returns:
            'Excellent', 'Good', 'Fair', 'Poor' or 'Very Poor'
        """
        if score >= 90:
            return "Excellent"
        elif score >= 80:
            return "Good"
        elif score >= 70:
            return "Fair"
        elif score >= 60:
            return "Poor"
        else:
            return "Very Poor"

    def get_color(self, score: int) -> str:
        """Traffic-light color for displaying the score"""
        if score >= 90:
            return "green"
        elif score >= 70:
            return "yellow"
        return "red"


_default_scorer = IntegrityScorer()


def calculate_integrity_score(stats: DetectionStats) -> int:
    """Integrity score in [0, 100] for the given stats"""
    return _default_scorer.compute(stats)


def score_breakdown(stats: DetectionStats) -> Dict[str, Any]:
    """Itemized score: base 100 minus each weighted penalty"""
    return _default_scorer.compute_breakdown(stats)


def score_label(score: int) -> str:
    return _default_scorer.get_label(score)


def score_color(score: int) -> str:
    return _default_scorer.get_color(score)
