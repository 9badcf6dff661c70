"""
Interview Proctoring Module

Monitors a candidate during a live interview by detecting:
- Face absence
- Multiple people in frame
- Prohibited objects (phones, books, extra screens)
- Leaving the interview window

Produces an Integrity Score (0-100) for each session.
"""

from .api import router

__all__ = ["router"]
