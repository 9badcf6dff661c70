"""Scoring modules"""

from .integrity_scorer import (
    IntegrityScorer,
    calculate_integrity_score,
    calculate_stats,
    score_breakdown,
    score_color,
    score_label
)

__all__ = [
    "IntegrityScorer",
    "calculate_integrity_score",
    "calculate_stats",
    "score_breakdown",
    "score_color",
    "score_label"
]
