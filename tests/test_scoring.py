"""
Tests for violation statistics and the integrity score
"""

from datetime import timedelta

import pytest

from interview_proctor.proctor.events import create_event
from interview_proctor.proctor.models import DetectionStats, EventType
from interview_proctor.proctor.scoring import (
    IntegrityScorer,
    calculate_integrity_score,
    calculate_stats,
    score_breakdown,
    score_color,
    score_label
)

from .conftest import START_TIME


class TestCalculateStats:

    def test_no_events(self):
        """Zero events give all-zero counts and a perfect score"""
        stats = calculate_stats([])

        assert stats == DetectionStats()
        assert calculate_integrity_score(stats) == 100

    def test_counts_by_type(self):
        events = [
            create_event(EventType.FOCUS_LOST, "away", START_TIME),
            create_event(EventType.FOCUS_REGAINED, "back", START_TIME),
            create_event(EventType.FOCUS_LOST, "away", START_TIME),
            create_event(EventType.NO_FACE, "gone", START_TIME),
            create_event(EventType.FACE_DETECTED, "back", START_TIME),
            create_event(EventType.MULTIPLE_FACES, "two", START_TIME),
            create_event(EventType.SUSPICIOUS_OBJECT, "phone", START_TIME),
        ]

        stats = calculate_stats(events, total_duration=timedelta(minutes=3))

        assert stats.focus_lost_count == 2
        assert stats.no_face_count == 1
        assert stats.multiple_faces_count == 1
        assert stats.suspicious_object_count == 1
        assert stats.total_duration == timedelta(minutes=3)


class TestIntegrityScorer:
    """Tests for IntegrityScorer"""

    def test_weights(self):
        stats = DetectionStats(
            focus_lost_count=1,
            no_face_count=1,
            multiple_faces_count=1,
            suspicious_object_count=1
        )

        assert calculate_integrity_score(stats) == 100 - 2 - 5 - 10 - 15

    def test_clamped_at_zero(self):
        """Ten suspicious objects give 0, not a negative score"""
        stats = DetectionStats(suspicious_object_count=10)

        assert calculate_integrity_score(stats) == 0

    @pytest.mark.parametrize("field", [
        "focus_lost_count",
        "no_face_count",
        "multiple_faces_count",
        "suspicious_object_count"
    ])
    def test_monotone_in_each_count(self, field):
        scores = [
            calculate_integrity_score(DetectionStats(**{field: count}))
            for count in range(0, 15)
        ]

        assert scores == sorted(scores, reverse=True)
        assert all(0 <= score <= 100 for score in scores)

    def test_breakdown(self):
        breakdown = score_breakdown(DetectionStats(no_face_count=2, suspicious_object_count=7))

        assert breakdown["base_score"] == 100
        assert breakdown["penalties"]["no_face_count"] == {"count": 2, "penalty_each": 5, "penalty": 10}
        assert breakdown["penalties"]["suspicious_object_count"]["penalty"] == 105
        assert breakdown["total_penalty"] == 115
        assert breakdown["raw_score"] == -15
        assert breakdown["integrity_score"] == 0

    @pytest.mark.parametrize("score,label,color", [
        (100, "Excellent", "green"),
        (90, "Excellent", "green"),
        (85, "Good", "yellow"),
        (70, "Fair", "yellow"),
        (60, "Poor", "red"),
        (10, "Very Poor", "red"),
    ])
    def test_label_and_color(self, score, label, color):
        scorer = IntegrityScorer()

        assert scorer.get_label(score) == label
        assert scorer.get_color(score) == color
        assert score_label(score) == label
        assert score_color(score) == color
