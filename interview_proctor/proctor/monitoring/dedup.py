"""
Object Dedup Window - Suppresses repeated suspicious-object events
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set

from ..detectors.base import ObjectDetection
from ..events import create_event
from ..models import EventType, ProctoringEvent, to_millis

logger = logging.getLogger(__name__)


DEFAULT_SUSPICIOUS_OBJECTS: Sequence[str] = (
    "cell phone",
    "book",
    "laptop",
    "keyboard",
    "mouse",
    "remote",
    "tv",
    "monitor",
)


def is_suspicious_object(
    label: str,
    vocabulary: Iterable[str] = DEFAULT_SUSPICIOUS_OBJECTS
) -> bool:
    """
    Check whether a detected label names a suspicious object.

    Case-insensitive substring match, so "Laptop computer" matches "laptop".
    """
    label_lower = label.lower()
    return any(term.lower() in label_lower for term in vocabulary)


class ObjectDedupWindow:
    """
    Emits at most one suspicious_object event per label per time bucket.

    Time is split into fixed, non-overlapping buckets
    (bucket = floor(now_ms / bucket_ms)) and "<label>-<bucket>" keys are
    remembered. Keys from buckets more than retention_buckets behind the
    newest bucket seen are dropped: the clock only moves forward, so they
    can never match again.
    """

    def __init__(
        self,
        bucket_seconds: float = 5.0,
        vocabulary: Iterable[str] = DEFAULT_SUSPICIOUS_OBJECTS,
        retention_buckets: int = 2
    ):
        self.bucket_ms = int(bucket_seconds * 1000)
        self.vocabulary = tuple(vocabulary)
        self.retention_buckets = retention_buckets
        self._keys_by_bucket: Dict[int, Set[str]] = {}
        self._newest_bucket = None

    def bucket_key(self, now: datetime) -> int:
        return to_millis(now) // self.bucket_ms

    @property
    def seen_keys(self) -> Set[str]:
        """All composite keys currently remembered"""
        keys: Set[str] = set()
        for bucket_keys in self._keys_by_bucket.values():
            keys.update(bucket_keys)
        return keys

    def process(
        self,
        detections: Iterable[ObjectDetection],
        now: datetime,
        emitted_at: Optional[datetime] = None
    ) -> List[ProctoringEvent]:
        """
        Turn one object-detection result into new events.

        Args:
            detections: Objects found in the frame
            now: Time the detection was requested (selects the bucket)
            emitted_at: Event timestamp, defaults to now

        Returns:
            Events for suspicious labels not yet seen in this bucket
        """
        bucket = self.bucket_key(now)
        self._evict(bucket)
        bucket_keys = self._keys_by_bucket.setdefault(bucket, set())

        events: List[ProctoringEvent] = []
        for detection in detections:
            if not is_suspicious_object(detection.label, self.vocabulary):
                continue

            key = f"{detection.label}-{bucket}"
            if key in bucket_keys:
                continue

            bucket_keys.add(key)
            events.append(create_event(
                EventType.SUSPICIOUS_OBJECT,
                f"Suspicious item detected: {detection.label}",
                timestamp=emitted_at or now
            ))
            logger.debug(f"New suspicious object key: {key}")

        return events

    def _evict(self, bucket: int) -> None:
        if self._newest_bucket is None or bucket > self._newest_bucket:
            self._newest_bucket = bucket

        oldest_kept = self._newest_bucket - self.retention_buckets
        for stale in [b for b in self._keys_by_bucket if b < oldest_kept]:
            del self._keys_by_bucket[stale]

    def reset(self) -> None:
        self._keys_by_bucket.clear()
        self._newest_bucket = None
