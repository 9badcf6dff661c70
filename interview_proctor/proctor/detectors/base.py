"""
Perception Port - Interface between the monitoring loop and the detectors
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class FaceBox:
    """Face bounding box in pixel coordinates"""
    x: float
    y: float
    width: float
    height: float
    confidence: float = 1.0


@dataclass(frozen=True)
class ObjectDetection:
    """A labelled object found in the frame"""
    label: str
    confidence: float


class PerceptionPort(ABC):
    """
    The two perception capabilities the monitoring loop consumes.

    Implementations must fail open: on any internal failure they
    return an empty list instead of raising.
    """

    @abstractmethod
    def detect_faces(self) -> List[FaceBox]:
        """Detect faces in the current frame (cheap, synchronous)"""

    @abstractmethod
    async def detect_objects(self) -> List[ObjectDetection]:
        """Detect objects in the current frame (expensive, asynchronous)"""

    def close(self) -> None:
        """Release model resources"""
