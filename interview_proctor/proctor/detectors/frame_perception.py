"""
Frame Perception - PerceptionPort backed by the latest webcam frame
"""

import asyncio
import base64
import logging
import threading
from typing import List, Optional

import cv2
import numpy as np

from .base import FaceBox, ObjectDetection, PerceptionPort
from .face_detector import MediaPipeFaceDetector
from .object_detector import YoloObjectDetector

logger = logging.getLogger(__name__)


def decode_frame(frame_base64: str) -> Optional[np.ndarray]:
    """
    Decode a base64 JPEG/PNG (optionally a data URL) into a BGR frame.

    Returns:
        Frame, or None when the payload is not a decodable image
    """
    if "," in frame_base64:
        # Strip "data:image/jpeg;base64," prefix
        frame_base64 = frame_base64.split(",", 1)[1]

    try:
        frame_bytes = base64.b64decode(frame_base64)
    except ValueError:
        return None

    frame_array = np.frombuffer(frame_bytes, dtype=np.uint8)
    if frame_array.size == 0:
        return None
    return cv2.imdecode(frame_array, cv2.IMREAD_COLOR)


class FrameBuffer:
    """Holds the most recent frame pushed by the client"""

    def __init__(self):
        self._frame: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        self.frames_received = 0

    def push(self, frame: np.ndarray) -> None:
        with self._lock:
            self._frame = frame
            self.frames_received += 1

    def latest(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._frame

    def clear(self) -> None:
        with self._lock:
            self._frame = None


class FramePerception(PerceptionPort):
    """
    Runs the face and object detectors on the latest buffered frame.

    Face detection runs inline; object detection is dispatched to a
    worker thread so the event loop keeps ticking while YOLO runs.
    """

    def __init__(
        self,
        frame_buffer: FrameBuffer,
        face_detector: Optional[MediaPipeFaceDetector] = None,
        object_detector: Optional[YoloObjectDetector] = None
    ):
        self.frame_buffer = frame_buffer
        self.face_detector = face_detector or MediaPipeFaceDetector()
        self.object_detector = object_detector or YoloObjectDetector()

    def detect_faces(self) -> List[FaceBox]:
        try:
            return self.face_detector.detect(self.frame_buffer.latest())
        except Exception as e:
            logger.warning(f"Face detection failed: {e}")
            return []

    async def detect_objects(self) -> List[ObjectDetection]:
        frame = self.frame_buffer.latest()
        if frame is None:
            return []

        try:
            return await asyncio.to_thread(self.object_detector.detect, frame)
        except Exception as e:
            logger.warning(f"Object detection failed: {e}")
            return []

    def close(self) -> None:
        """Release both models and drop the buffered frame"""
        for detector in (self.face_detector, self.object_detector):
            try:
                detector.close()
            except Exception as e:
                logger.warning(f"Error closing {type(detector).__name__}: {e}")

        self.frame_buffer.clear()
