"""
Scripted Perception - Replays fixed detection sequences

Used to drive the monitoring loop without a camera or models,
e.g. in tests and when replaying a recorded session.
"""

from collections import deque
from typing import Deque, Iterable, List, Optional, Sequence

from .base import FaceBox, ObjectDetection, PerceptionPort


class ScriptedPerception(PerceptionPort):
    """
    Perception port fed by scripted face counts and object labels.

    Each detect_faces() call consumes the next face count; each
    detect_objects() call consumes the next list of labels. When a
    script runs out, the last face count repeats and objects are empty.
    A face count of None simulates a detector failure.
    """

    def __init__(
        self,
        face_counts: Iterable[Optional[int]] = (),
        object_labels: Iterable[Sequence[str]] = ()
    ):
        self._face_counts: Deque[Optional[int]] = deque(face_counts)
        self._object_labels: Deque[Sequence[str]] = deque(object_labels)
        self._last_face_count: Optional[int] = 1
        self.face_calls = 0
        self.object_calls = 0

    def push_objects(self, labels: Sequence[str]) -> None:
        self._object_labels.append(labels)

    def detect_faces(self) -> List[FaceBox]:
        self.face_calls += 1
        if self._face_counts:
            self._last_face_count = self._face_counts.popleft()

        if self._last_face_count is None:
            # Detector failure fails open
            return []

        return [
            FaceBox(x=i * 100.0, y=0.0, width=80.0, height=80.0)
            for i in range(self._last_face_count)
        ]

    async def detect_objects(self) -> List[ObjectDetection]:
        self.object_calls += 1
        if not self._object_labels:
            return []

        labels = self._object_labels.popleft()
        return [ObjectDetection(label=label, confidence=0.9) for label in labels]
