"""
Face Detector - Detects faces using MediaPipe's BlazeFace short-range model
"""

import cv2
import numpy as np
import logging
from typing import List, Optional

from .base import FaceBox

logger = logging.getLogger(__name__)


class MediaPipeFaceDetector:
    """
    Detects faces in video frames with MediaPipe Face Detection.

    Only the face count matters to the monitoring loop, but boxes
    are returned so callers can draw them.
    """

    def __init__(self, min_confidence: float = 0.5, model_selection: int = 0):
        """
        Initialize face detector.

        Args:
            min_confidence: Minimum detection confidence
            model_selection: 0 = short-range (within ~2m of the camera), 1 = full-range
        """
        self.min_confidence = min_confidence
        self.model_selection = model_selection
        self.detector = None
        self._initialized = False

    def _ensure_initialized(self):
        """Lazy initialize MediaPipe face detection"""
        if self._initialized:
            return

        try:
            import mediapipe as mp
            self.detector = mp.solutions.face_detection.FaceDetection(
                model_selection=self.model_selection,
                min_detection_confidence=self.min_confidence
            )
            logger.info("MediaPipe face detection initialized successfully")
        except ImportError:
            logger.error("MediaPipe not installed. Run: pip install mediapipe")
        except Exception as e:
            logger.error(f"Failed to initialize MediaPipe face detection: {e}")
        finally:
            self._initialized = True  # Don't retry

    def detect(self, frame: Optional[np.ndarray]) -> List[FaceBox]:
        """
        Detect faces in a frame.

        Args:
            frame: BGR image from OpenCV

        Returns:
            List of face boxes (empty when no frame, no model, or on error)
        """
        if frame is None or frame.size == 0:
            return []

        self._ensure_initialized()

        if self.detector is None:
            return []

        try:
            height, width = frame.shape[:2]
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            results = self.detector.process(rgb)

            faces: List[FaceBox] = []
            for detection in results.detections or []:
                bbox = detection.location_data.relative_bounding_box
                faces.append(FaceBox(
                    x=bbox.xmin * width,
                    y=bbox.ymin * height,
                    width=bbox.width * width,
                    height=bbox.height * height,
                    confidence=float(detection.score[0]) if detection.score else 0.0
                ))
            return faces

        except Exception as e:
            logger.warning(f"Face detection error: {e}")
            return []

    def close(self):
        """Release MediaPipe resources"""
        if self.detector is not None:
            self.detector.close()
            self.detector = None
