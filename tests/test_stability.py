"""Tests for IoU, the stability window and the capture stability engine."""
import pytest

from conftest import make_detection
from nativebridge.core.stability import (
    CaptureStabilityEngine,
    DetectionResult,
    DetectionState,
    FrameSampler,
    Quad,
    StabilityWindow,
    intersection_over_union,
)


def quad(left, top, right, bottom):
    return Quad.from_points([(left, top), (right, top), (right, bottom), (left, bottom)])


class TestIntersectionOverUnion:

    def test_identical_quads(self):
        q = quad(10, 10, 110, 70)
        assert intersection_over_union(q, q) == pytest.approx(1.0)

    def test_disjoint_quads(self):
        assert intersection_over_union(quad(0, 0, 10, 10), quad(20, 20, 30, 30)) == 0.0

    def test_partial_overlap(self):
        # 50 overlap / 150 union
        assert intersection_over_union(quad(0, 0, 10, 10), quad(5, 0, 15, 10)) == pytest.approx(1 / 3)

    def test_empty_union_is_zero(self):
        point = quad(5, 5, 5, 5)
        assert intersection_over_union(point, point) == 0.0

    def test_uses_bounding_boxes_of_skewed_quads(self):
        skewed = Quad.from_points([(2, 0), (10, 2), (8, 10), (0, 8)])
        assert intersection_over_union(skewed, quad(0, 0, 10, 10)) == pytest.approx(1.0)


class TestDetectionParsing:

    def test_quad_needs_exactly_four_finite_points(self):
        assert Quad.from_points([(0, 0), (1, 0), (1, 1)]) is None
        assert Quad.from_points([(0, 0), (1, 0), (1, 1), (float("nan"), 1)]) is None
        assert Quad.from_points(None) is None
        assert Quad.from_points([{"x": 0, "y": 0}, {"x": 1, "y": 0}, {"x": 1, "y": 1}, {"x": 0, "y": 1}])

    def test_from_detector_dict(self):
        detection = DetectionResult.from_dict({
            "location": {"points": [{"x": 0, "y": 0}, {"x": 8, "y": 0}, {"x": 8, "y": 5}, {"x": 0, "y": 5}]},
            "confidenceAsDocumentBoundary": 92,
        })
        assert detection.confidence == 92.0
        assert detection.quad.bounding_box().area == 40.0

    def test_from_flat_dict(self):
        detection = DetectionResult.from_dict({"points": [(0, 0), (1, 0), (1, 1), (0, 1)], "confidence": "88"})
        assert detection.confidence == 88.0

    def test_malformed_dicts(self):
        assert DetectionResult.from_dict(None) is None
        assert DetectionResult.from_dict({"points": [(0, 0)]}) is None
        assert DetectionResult.from_dict({"points": [(0, 0), (1, 0), (1, 1), (0, 1)], "confidence": "x"}) is None


class TestStabilityWindow:

    def test_capacity_must_allow_comparison(self):
        with pytest.raises(ValueError):
            StabilityWindow(1)

    def test_push_keeps_most_recent(self):
        window = StabilityWindow(3)
        detections = [make_detection(i, 0, i + 10, 10) for i in range(4)]
        for d in detections:
            window.push(d)
        assert window.entries == tuple(detections[1:])

    def test_steady_requires_full_window(self):
        window = StabilityWindow(3)
        window.push(make_detection(0, 0, 100, 60))
        window.push(make_detection(0, 0, 100, 60))
        assert not window.is_steady(0.9)
        window.push(make_detection(1, 0, 100, 60))
        assert window.is_steady(0.9)
        assert len(window.pairwise_ious()) == 3


class TestCaptureStabilityEngine:

    def test_three_steady_detections_trigger_once(self):
        captures = []
        engine = CaptureStabilityEngine(on_capture=captures.append)

        results = [engine.evaluate(make_detection(100, 100, 500, 350), now=t) for t in (0.0, 0.2, 0.4)]

        assert results[:2] == [None, None]
        assert results[2].reason == "steady"
        assert captures == [results[2]]
        assert engine.state is DetectionState.CAPTURING

        # Further frames are ignored until the capture pipeline finishes.
        assert engine.evaluate(make_detection(100, 100, 500, 350), now=0.6) is None
        assert len(captures) == 1

    def test_unsteady_window_slides(self):
        engine = CaptureStabilityEngine()
        near = make_detection(100, 100, 500, 350)
        far = make_detection(600, 400, 900, 600)

        assert engine.evaluate(near, now=0.0) is None
        assert engine.evaluate(far, now=0.2) is None
        assert engine.evaluate(far, now=0.4) is None
        assert len(engine.window) == 2

        trigger = engine.evaluate(far, now=0.6)
        assert trigger is not None and trigger.reason == "steady"

    def test_timer_wins_over_steadiness(self):
        engine = CaptureStabilityEngine(hold_time=1.5)
        d = make_detection(100, 100, 500, 350)

        engine.evaluate(d, now=0.0)
        engine.evaluate(d, now=1.0)
        trigger = engine.evaluate(d, now=1.5)

        assert trigger.reason == "timeout"

    def test_deadline_starts_at_first_confident_detection(self):
        engine = CaptureStabilityEngine(hold_time=1.5)
        engine.evaluate(make_detection(0, 0, 100, 60, confidence=50), now=0.0)
        assert engine.deadline is None

        engine.evaluate(make_detection(0, 0, 100, 60), now=2.0)
        assert engine.deadline == pytest.approx(3.5)
        assert engine.state is DetectionState.DETECTED

    def test_confidence_must_exceed_threshold(self):
        engine = CaptureStabilityEngine(confidence_threshold=85)
        for t in (0.0, 0.2, 0.4):
            assert engine.evaluate(make_detection(0, 0, 100, 60, confidence=85), now=t) is None
        assert engine.state is DetectionState.NOT_DETECTED

    def test_low_confidence_resets_detection(self):
        engine = CaptureStabilityEngine()
        engine.evaluate(make_detection(0, 0, 100, 60), now=0.0)
        engine.evaluate(make_detection(0, 0, 100, 60), now=0.2)

        engine.evaluate(make_detection(0, 0, 100, 60, confidence=40), now=0.4)

        assert engine.state is DetectionState.NOT_DETECTED
        assert engine.deadline is None
        assert len(engine.window) == 0

    def test_poll_fires_fallback_after_deadline(self):
        engine = CaptureStabilityEngine(hold_time=1.5)
        assert engine.poll(now=10.0) is None

        engine.evaluate(make_detection(0, 0, 100, 60), now=0.0)
        assert engine.poll(now=1.0) is None

        trigger = engine.poll(now=1.6)
        assert trigger.reason == "timeout"
        assert trigger.detection is not None

    def test_invalid_detections_are_skipped(self):
        engine = CaptureStabilityEngine()
        assert engine.evaluate(None, now=0.0) is None
        assert engine.evaluate({"points": []}, now=0.1) is None
        assert engine.state is DetectionState.NOT_DETECTED

    def test_accepts_detector_dicts(self):
        engine = CaptureStabilityEngine()
        raw = {"points": [(0, 0), (100, 0), (100, 60), (0, 60)], "confidence": 97}
        triggers = [engine.evaluate(raw, now=t) for t in (0.0, 0.2, 0.4)]
        assert triggers[-1].reason == "steady"

    def test_manual_trigger_and_finish(self):
        engine = CaptureStabilityEngine()
        trigger = engine.trigger_manual(now=0.0)
        assert trigger.reason == "manual"
        assert engine.trigger_manual(now=0.1) is None

        engine.capture_finished()
        assert not engine.is_capturing
        assert engine.state is DetectionState.NOT_DETECTED

    def test_failed_capture_callback_re_enables_detection(self):
        def on_capture(trigger):
            raise RuntimeError("camera busy")

        engine = CaptureStabilityEngine(on_capture=on_capture)
        for t in (0.0, 0.2, 0.4):
            engine.evaluate(make_detection(0, 0, 100, 60), now=t)

        assert not engine.is_capturing
        assert engine.state is DetectionState.NOT_DETECTED

    def test_injected_clock(self):
        now = [0.0]
        engine = CaptureStabilityEngine(clock=lambda: now[0])
        engine.evaluate(make_detection(0, 0, 100, 60))
        assert engine.deadline == pytest.approx(1.5)


class TestFrameSampler:

    def test_limits_rate(self):
        sampler = FrameSampler(5)
        assert sampler.should_sample(0.0)
        assert not sampler.should_sample(0.1)
        assert sampler.should_sample(0.2)

    def test_admits_frames_exactly_one_interval_apart(self):
        sampler = FrameSampler(5)
        times = [0.0, 0.2, 0.4, 0.6, 0.8, 1.0]
        assert [t for t in times if sampler.should_sample(t)] == times

    def test_accumulated_timestamps(self):
        sampler = FrameSampler(5)
        now, admitted = 0.0, 0
        for _ in range(10):
            admitted += sampler.should_sample(now)
            now += 0.2
        assert admitted == 10

    def test_rejects_non_positive_rate(self):
        with pytest.raises(ValueError):
            FrameSampler(0)
