"""
Tests for the perception adapters

No models are loaded; MediaPipe and YOLO are replaced by mocks.
"""

import base64
from unittest.mock import Mock

import cv2
import numpy as np
import pytest

from interview_proctor.proctor.detectors import (
    FaceBox,
    FrameBuffer,
    FramePerception,
    MediaPipeFaceDetector,
    ScriptedPerception,
    YoloObjectDetector,
    decode_frame
)


def make_frame(width=64, height=48):
    return np.zeros((height, width, 3), dtype=np.uint8)


class TestDecodeFrame:

    def test_plain_base64(self):
        ok, encoded = cv2.imencode(".png", make_frame())
        payload = base64.b64encode(encoded.tobytes()).decode("ascii")

        frame = decode_frame(payload)

        assert frame.shape == (48, 64, 3)

    def test_data_url(self):
        ok, encoded = cv2.imencode(".jpg", make_frame())
        payload = "data:image/jpeg;base64," + base64.b64encode(encoded.tobytes()).decode("ascii")

        assert decode_frame(payload) is not None

    @pytest.mark.parametrize("payload", ["", "abc", base64.b64encode(b"plain text").decode("ascii")])
    def test_invalid(self, payload):
        assert decode_frame(payload) is None


class TestFrameBuffer:

    def test_latest_frame_wins(self):
        buffer = FrameBuffer()
        assert buffer.latest() is None

        first, second = make_frame(), make_frame(32, 32)
        buffer.push(first)
        buffer.push(second)

        assert buffer.latest() is second
        assert buffer.frames_received == 2


class TestMediaPipeFaceDetector:
    """Tests for MediaPipeFaceDetector with a mocked model"""

    def make_detector(self, detections=None, error=None):
        detector = MediaPipeFaceDetector()
        detector._initialized = True
        detector.detector = Mock()
        if error:
            detector.detector.process.side_effect = error
        else:
            detector.detector.process.return_value = Mock(detections=detections)
        return detector

    def test_no_frame(self):
        detector = MediaPipeFaceDetector()

        assert detector.detect(None) == []
        assert not detector._initialized

    def test_boxes_scaled_to_pixels(self):
        bbox = Mock(xmin=0.25, ymin=0.5, width=0.5, height=0.25)
        detection = Mock(score=[0.93])
        detection.location_data.relative_bounding_box = bbox
        detector = self.make_detector(detections=[detection])

        faces = detector.detect(make_frame(width=200, height=100))

        assert faces == [FaceBox(x=50.0, y=50.0, width=100.0, height=25.0, confidence=0.93)]

    def test_no_detections(self):
        detector = self.make_detector(detections=None)

        assert detector.detect(make_frame()) == []

    def test_fails_open(self):
        detector = self.make_detector(error=RuntimeError("graph crashed"))

        assert detector.detect(make_frame()) == []

    def test_close(self):
        detector = self.make_detector(detections=[])
        model = detector.detector

        detector.close()

        model.close.assert_called_once()
        assert detector.detector is None


class TestYoloObjectDetector:
    """Tests for YoloObjectDetector with a mocked model"""

    def make_detector(self, classes, error=None):
        detector = YoloObjectDetector()
        detector._model_loaded = True
        detector.model = Mock()
        detector.model.names = {0: "person", 67: "cell phone", 73: "book"}

        if error:
            detector.model.predict.side_effect = error
        else:
            boxes = [Mock(cls=[cls_id], conf=[0.8]) for cls_id in classes]
            detector.model.predict.return_value = [Mock(boxes=boxes)]
        return detector

    def test_labels_returned(self):
        detector = self.make_detector([0, 67])

        detections = detector.detect(make_frame())

        assert [d.label for d in detections] == ["person", "cell phone"]
        assert detections[0].confidence == pytest.approx(0.8)

    def test_unknown_class(self):
        detector = self.make_detector([99])

        assert detector.detect(make_frame())[0].label == "class_99"

    def test_fails_open(self):
        detector = self.make_detector([], error=RuntimeError("CUDA out of memory"))

        assert detector.detect(make_frame()) == []

    def test_no_frame(self):
        assert YoloObjectDetector().detect(None) == []

    def test_close_releases_model(self):
        detector = self.make_detector([0])

        detector.close()

        assert detector.model is None
        assert detector.detect(make_frame()) == []


class TestFramePerception:
    """Tests for FramePerception"""

    @pytest.mark.asyncio
    async def test_uses_latest_frame(self):
        buffer = FrameBuffer()
        frame = make_frame()
        buffer.push(frame)
        face_detector = Mock(detect=Mock(return_value=[FaceBox(0, 0, 10, 10)]))
        object_detector = Mock(detect=Mock(return_value=[]))

        perception = FramePerception(buffer, face_detector, object_detector)

        assert len(perception.detect_faces()) == 1
        assert await perception.detect_objects() == []
        face_detector.detect.assert_called_once_with(frame)
        object_detector.detect.assert_called_once_with(frame)

    @pytest.mark.asyncio
    async def test_fails_open(self):
        buffer = FrameBuffer()
        buffer.push(make_frame())
        perception = FramePerception(
            buffer,
            Mock(detect=Mock(side_effect=RuntimeError("boom"))),
            Mock(detect=Mock(side_effect=RuntimeError("boom")))
        )

        assert perception.detect_faces() == []
        assert await perception.detect_objects() == []

    @pytest.mark.asyncio
    async def test_no_frame_skips_object_model(self):
        object_detector = Mock()
        perception = FramePerception(FrameBuffer(), Mock(detect=Mock(return_value=[])), object_detector)

        assert await perception.detect_objects() == []
        object_detector.detect.assert_not_called()

    def test_close_releases_models_and_frame(self):
        """Closing drops the YOLO model, the MediaPipe graph and the last frame"""
        buffer = FrameBuffer()
        buffer.push(make_frame())
        face_detector = MediaPipeFaceDetector()
        face_detector._initialized = True
        face_detector.detector = Mock()
        graph = face_detector.detector
        object_detector = YoloObjectDetector()
        object_detector._model_loaded = True
        object_detector.model = Mock()

        perception = FramePerception(buffer, face_detector, object_detector)
        perception.close()

        graph.close.assert_called_once()
        assert face_detector.detector is None
        assert object_detector.model is None
        assert buffer.latest() is None

    def test_close_continues_after_detector_error(self):
        buffer = FrameBuffer()
        buffer.push(make_frame())
        object_detector = Mock()
        perception = FramePerception(
            buffer,
            Mock(close=Mock(side_effect=RuntimeError("already closed"))),
            object_detector
        )

        perception.close()

        object_detector.close.assert_called_once()
        assert buffer.latest() is None


class TestScriptedPerception:

    @pytest.mark.asyncio
    async def test_replays_script(self):
        perception = ScriptedPerception(face_counts=[0, 2], object_labels=[["book"]])

        assert len(perception.detect_faces()) == 0
        assert len(perception.detect_faces()) == 2
        assert len(perception.detect_faces()) == 2
        assert [d.label for d in await perception.detect_objects()] == ["book"]
        assert await perception.detect_objects() == []
        assert perception.face_calls == 3
        assert perception.object_calls == 2

    def test_failure_entry(self):
        perception = ScriptedPerception(face_counts=[None])

        assert perception.detect_faces() == []
