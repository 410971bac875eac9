"""Tests for the ID-card scan session: sampling, triggering and completion."""
import pytest

from conftest import make_detection
from nativebridge.core.scan_session import OcrScanSession, include_image, shape_ocr_result


class FakeDetector:

    def __init__(self, detection):
        self.detection = detection
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        return self.detection


class FakeRecognizer:

    def __init__(self, error=None):
        self.error = error
        self.seen = []

    def recognize(self, data_url, document_type):
        self.seen.append((data_url, document_type))
        if self.error:
            raise self.error
        return {"name": "홍길동", "isValid": True, "confidence": 91.0, "imageBase64": data_url}


@pytest.fixture
def completions():
    return []


def make_session(completions, detection=None, recognizer=None, **options):
    return OcrScanSession(
        completions.append,
        options or {"documentType": "ID_CARD", "includeImage": True},
        detector=FakeDetector(detection if detection is not None else make_detection(560, 290, 1360, 798)),
        recognizer=recognizer or FakeRecognizer(),
    )


class TestOcrScanSession:

    def test_steady_frames_complete_the_screen_once(self, completions, wide_frame):
        session = make_session(completions)

        triggers = [session.feed_frame(wide_frame, now=t) for t in (0.0, 0.1, 0.2, 0.4)]

        assert triggers[:3] == [None, None, None]
        assert triggers[3].reason == "steady"
        # The frame at 0.1 falls inside the sampling interval.
        assert session.detector.calls == 3
        assert len(completions) == 1
        assert completions[0]["isValid"] is True
        assert completions[0]["imageBase64"].startswith("data:image/jpeg;base64,")
        assert session.finished

        assert session.feed_frame(wide_frame, now=0.6) is None
        assert len(completions) == 1

    def test_document_type_reaches_the_recognizer(self, completions, wide_frame):
        recognizer = FakeRecognizer()
        session = make_session(completions, recognizer=recognizer, documentType="DRIVER_LICENSE")

        session.capture(wide_frame, now=0.0)

        assert recognizer.seen[0][1] == "DRIVER_LICENSE"

    def test_image_left_out_when_not_requested(self, completions, wide_frame):
        session = make_session(completions, includeImage=False)

        assert session.capture(wide_frame, now=0.0).reason == "manual"

        assert "imageBase64" not in completions[0]
        assert completions[0]["name"] == "홍길동"

    def test_low_confidence_never_triggers(self, completions, wide_frame):
        session = make_session(completions, detection=make_detection(560, 290, 1360, 798, confidence=30))

        for i in range(10):
            session.feed_frame(wide_frame, now=i * 0.2)

        assert completions == []
        assert not session.is_capturing

    def test_fallback_deadline(self, completions, wide_frame):
        session = make_session(completions)
        # Detections that never agree with each other.
        boxes = [make_detection(0, 0, 100, 60), make_detection(500, 500, 900, 800)]

        for i, t in enumerate((0.0, 0.2, 0.4, 0.6, 0.8, 1.0, 1.2, 1.4)):
            session.detector.detection = boxes[i % 2]
            assert session.feed_frame(wide_frame, now=t) is None

        trigger = session.feed_frame(wide_frame, now=1.5)

        assert trigger.reason == "timeout"
        assert len(completions) == 1

    def test_recognizer_failure_still_completes(self, completions, wide_frame):
        session = make_session(completions, recognizer=FakeRecognizer(error=RuntimeError("no model")))

        session.capture(wide_frame, now=0.0)

        assert completions == [{"isValid": False, "confidence": 0, "error": "no model", "imageBase64": None}]

    def test_cancel_completes_with_none_once(self, completions, wide_frame):
        session = make_session(completions)

        session.cancel()
        session.cancel()
        session.capture(wide_frame, now=0.0)

        assert completions == [None]

    def test_runner_receives_the_pipeline(self, completions, wide_frame):
        queued = []
        session = OcrScanSession(
            completions.append,
            detector=FakeDetector(make_detection(0, 0, 10, 10)),
            recognizer=FakeRecognizer(),
            runner=queued.append,
        )

        session.capture(wide_frame, now=0.0)
        assert completions == []
        assert session.is_capturing

        queued[0]()
        assert len(completions) == 1


class TestResultShaping:

    def test_include_image_options(self):
        assert include_image({}) is True
        assert include_image({"includeImageBase64": False}) is False
        assert include_image({"includeImage": True, "includeImageBase64": False}) is True

    def test_shape_does_not_modify_the_input(self):
        result = {"isValid": True, "imageBase64": "data:..."}
        shaped = shape_ocr_result(result, {"includeImage": False})

        assert shaped == {"isValid": True}
        assert "imageBase64" in result
