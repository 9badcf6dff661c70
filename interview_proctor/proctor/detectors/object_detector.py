"""
Object Detector - Detects objects in frame using YOLO (COCO classes)
"""

import logging
import numpy as np
from typing import List, Optional

from .base import ObjectDetection

logger = logging.getLogger(__name__)


class YoloObjectDetector:
    """
    Detects objects in frames using an Ultralytics YOLO model.

    Every detection above the confidence threshold is returned with its
    class name; deciding which labels are suspicious is left to the
    monitoring loop.
    """

    def __init__(self, model_path: str = "yolov8n.pt", confidence: float = 0.5):
        """
        Initialize object detector.

        Args:
            model_path: Path or name of the YOLO weights
            confidence: Minimum confidence threshold for detections
        """
        self.confidence = confidence
        self.model = None
        self._model_path = model_path
        self._model_loaded = False

    def _ensure_model(self):
        """Lazy load YOLO model"""
        if self._model_loaded:
            return

        try:
            from ultralytics import YOLO
            self.model = YOLO(self._model_path)
            logger.info(f"YOLO model loaded from {self._model_path}")
        except Exception as e:
            logger.error(f"Failed to load YOLO model: {e}")
        finally:
            self._model_loaded = True  # Don't retry

    def detect(self, frame: Optional[np.ndarray]) -> List[ObjectDetection]:
        """
        Detect objects in a frame.

        Args:
            frame: BGR image from OpenCV

        Returns:
            List of detections (empty when no frame, no model, or on error)
        """
        if frame is None or frame.size == 0:
            return []

        self._ensure_model()

        if self.model is None:
            return []

        try:
            results = self.model.predict(
                frame,
                conf=self.confidence,
                verbose=False
            )

            detections: List[ObjectDetection] = []
            for result in results:
                if result.boxes is None:
                    continue

                for box in result.boxes:
                    cls_id = int(box.cls[0])
                    name = self.model.names.get(cls_id, f"class_{cls_id}")
                    detections.append(ObjectDetection(
                        label=name,
                        confidence=float(box.conf[0])
                    ))

            return detections

        except Exception as e:
            logger.error(f"Object detection error: {e}")
            return []

    def close(self):
        """Release the YOLO model"""
        self.model = None
