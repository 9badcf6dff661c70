"""Perception adapters for proctoring"""

from .base import FaceBox, ObjectDetection, PerceptionPort
from .face_detector import MediaPipeFaceDetector
from .object_detector import YoloObjectDetector
from .frame_perception import FrameBuffer, FramePerception, decode_frame
from .scripted import ScriptedPerception

__all__ = [
    "FaceBox",
    "ObjectDetection",
    "PerceptionPort",
    "MediaPipeFaceDetector",
    "YoloObjectDetector",
    "FrameBuffer",
    "FramePerception",
    "decode_frame",
    "ScriptedPerception"
]
