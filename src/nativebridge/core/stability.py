# -*- coding: utf-8 -*-
"""
src/nativebridge/core/stability.py

Capture stability engine for the ID-card scan flow.

A document detector reports, for each sampled video frame, the four corner
points of the document it sees and a confidence score (0-100). Triggering a
photo on the first confident frame produces blurry captures of a card that
is still moving, so this module waits until the last three confident
detections agree with each other geometrically (pairwise IoU of their
bounding boxes >= 0.9) before asking for a capture. A fallback deadline,
started on the first confident detection of a session, bounds the latency
for a detection that keeps jittering.

The engine is pure: time is passed in (or read from an injected clock), and
the capture request is reported through a callback, so it can be driven by a
Qt timer, a test, or a replay script alike. Frame evaluation must be
serialized by the caller; the engine is fed by a single producer.
"""

import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Any, Callable, Deque, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# --- Defaults ---
CONFIDENCE_THRESHOLD = 85.0   # a detection must score above this (0-100 scale)
IOU_THRESHOLD = 0.9           # every pair in the window must overlap at least this much
STABILITY_FRAME_COUNT = 3     # size of the stability window
DETECTION_HOLD_TIME = 1.5     # seconds from first detection to the fallback capture
FRAME_PROCESSOR_FPS = 5       # evaluations per second
SAMPLE_TOLERANCE = 1e-6       # seconds; absorbs float error in frame timestamps


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box, in frame pixel coordinates."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)


def _to_point(value: Any) -> Optional[Point]:
    """Accepts a Point, an {x, y} mapping or an (x, y) pair."""
    if isinstance(value, Point):
        x, y = value.x, value.y
    elif isinstance(value, dict):
        x, y = value.get("x"), value.get("y")
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        x, y = value
    else:
        return None
    try:
        x, y = float(x), float(y)
    except (TypeError, ValueError):
        return None
    if math.isnan(x) or math.isnan(y) or math.isinf(x) or math.isinf(y):
        return None
    return Point(x, y)


@dataclass(frozen=True)
class Quad:
    """The four corner points of a detected document boundary."""
    points: Tuple[Point, Point, Point, Point]

    @classmethod
    def from_points(cls, points: Optional[Iterable[Any]]) -> Optional["Quad"]:
        """
        Builds a Quad from four point-like values.

        Returns:
            The Quad, or None when the input does not hold exactly four valid
            points.
        """
        if points is None:
            return None
        try:
            raw = list(points)
        except TypeError:
            return None
        if len(raw) != 4:
            return None
        converted = [_to_point(p) for p in raw]
        if any(p is None for p in converted):
            return None
        return cls(tuple(converted))

    def bounding_box(self) -> BoundingBox:
        return bounding_box(self.points)


@dataclass(frozen=True)
class DetectionResult:
    """One frame's document detection. Ephemeral: consumed by one evaluation."""
    quad: Quad
    confidence: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional["DetectionResult"]:
        """
        Reads the detector's dict shape:
        `{"location": {"points": [{x, y}, ...]}, "confidenceAsDocumentBoundary": 92}`.
        A flat `{"points": [...], "confidence": 92}` is accepted as well.
        Returns None for malformed input instead of raising.
        """
        if not isinstance(data, dict):
            return None
        location = data.get("location")
        points = location.get("points") if isinstance(location, dict) else data.get("points")
        quad = Quad.from_points(points)
        if quad is None:
            return None
        confidence = data.get("confidenceAsDocumentBoundary", data.get("confidence", 0))
        try:
            confidence = float(confidence)
        except (TypeError, ValueError):
            return None
        return cls(quad=quad, confidence=confidence)


def bounding_box(points: Iterable[Point]) -> BoundingBox:
    points = list(points)
    if not points:
        raise ValueError("Invalid number of points")
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return BoundingBox(min(xs), min(ys), max(xs), max(ys))


def intersection_over_union(first: Quad, second: Quad) -> float:
    """
    IoU of two quadrilaterals, approximated by their axis-aligned bounding
    boxes: overlap / (area1 + area2 - overlap).

    Returns 0.0 when the boxes do not overlap or the union is empty.
    """
    if first is None or second is None:
        return 0.0
    box1 = first.bounding_box()
    box2 = second.bounding_box()

    x_overlap = max(0.0, min(box1.right, box2.right) - max(box1.left, box2.left))
    y_overlap = max(0.0, min(box1.bottom, box2.bottom) - max(box1.top, box2.top))
    intersection = x_overlap * y_overlap

    union = box1.area + box2.area - intersection
    if union <= 0:
        return 0.0
    return intersection / union


class StabilityWindow:
    """
    Rolling buffer of the most recent accepted detections.

    Holds at most `capacity` entries. The engine drops the oldest entry when
    the window is full but not steady, which keeps it sliding.
    """

    def __init__(self, capacity: int = STABILITY_FRAME_COUNT):
        if capacity < 2:
            raise ValueError("A stability window needs at least two entries to compare.")
        self.capacity = capacity
        self._entries: Deque[DetectionResult] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[DetectionResult, ...]:
        return tuple(self._entries)

    def is_full(self) -> bool:
        return len(self._entries) >= self.capacity

    def push(self, detection: DetectionResult) -> None:
        if self.is_full():
            self._entries.popleft()
        self._entries.append(detection)

    def drop_oldest(self) -> None:
        if self._entries:
            self._entries.popleft()

    def clear(self) -> None:
        self._entries.clear()

    def pairwise_ious(self) -> List[float]:
        return [
            intersection_over_union(a.quad, b.quad)
            for a, b in combinations(self._entries, 2)
        ]

    def is_steady(self, threshold: float = IOU_THRESHOLD) -> bool:
        """True when the window is full and every pair overlaps by at least `threshold`."""
        if not self.is_full():
            return False
        return all(iou >= threshold for iou in self.pairwise_ious())


class DetectionState(Enum):
    NOT_DETECTED = "not_detected"
    DETECTED = "detected"
    CAPTURING = "capturing"


@dataclass(frozen=True)
class CaptureTrigger:
    """
    Emitted exactly once per capture.

    reason is one of "steady", "timeout" or "manual".
    """
    reason: str
    detection: Optional[DetectionResult]
    timestamp: float


class FrameSampler:
    """Admits at most `max_fps` frame evaluations per second."""

    def __init__(self, max_fps: float = FRAME_PROCESSOR_FPS):
        if max_fps <= 0:
            raise ValueError("max_fps must be positive")
        self.interval = 1.0 / max_fps
        self._last: Optional[float] = None

    def should_sample(self, now: float) -> bool:
        if self._last is not None and now - self._last < self.interval - SAMPLE_TOLERANCE:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None


class CaptureStabilityEngine:
    """
    Decides the frame at which the scan flow captures a photo.

    Tie-break between the fallback deadline and steadiness: the timer wins.
    Each evaluation checks the deadline before the new detection is added to
    the window, so when both would fire on the same frame the capture reason
    is "timeout".
    """

    def __init__(
        self,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
        iou_threshold: float = IOU_THRESHOLD,
        window_size: int = STABILITY_FRAME_COUNT,
        hold_time: float = DETECTION_HOLD_TIME,
        on_capture: Optional[Callable[[CaptureTrigger], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.confidence_threshold = confidence_threshold
        self.iou_threshold = iou_threshold
        self.hold_time = hold_time
        self.on_capture = on_capture
        self._clock = clock

        self.window = StabilityWindow(window_size)
        self._state = DetectionState.NOT_DETECTED
        self._deadline: Optional[float] = None
        self._last_detection: Optional[DetectionResult] = None
        self._captured = False

    # --- Read-only state ---

    @property
    def state(self) -> DetectionState:
        return self._state

    @property
    def is_capturing(self) -> bool:
        return self._captured

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def last_detection(self) -> Optional[DetectionResult]:
        return self._last_detection

    # --- Frame path ---

    def evaluate(self, detection: Any, now: Optional[float] = None) -> Optional[CaptureTrigger]:
        """
        Feeds one sampled frame's detection into the engine.

        Args:
            detection: A DetectionResult, the detector's dict shape, or None
                       when nothing was detected in this frame.
            now (float, optional): Timestamp in seconds. Read from the clock
                                   when omitted.

        Returns:
            The CaptureTrigger if this evaluation triggered a capture,
            otherwise None.
        """
        if self._captured:
            return None
        now = self._clock() if now is None else now

        if isinstance(detection, dict):
            detection = DetectionResult.from_dict(detection)
        if not isinstance(detection, DetectionResult) or not isinstance(detection.quad, Quad):
            logger.debug("Skipping frame without a valid four-point detection.")
            return None

        self._last_detection = detection

        if detection.confidence <= self.confidence_threshold:
            if self._state is DetectionState.DETECTED:
                logger.debug(f"Confidence dropped to {detection.confidence:.1f}; detection reset.")
                self._reset_detection()
            return None

        if self._state is DetectionState.NOT_DETECTED:
            self._state = DetectionState.DETECTED
            self._deadline = now + self.hold_time
            logger.info(f"Document detected (confidence {detection.confidence:.1f}).")

        # Timer wins over steadiness.
        if self._deadline is not None and now >= self._deadline:
            return self._trigger("timeout", detection, now)

        self.window.push(detection)
        if self.window.is_full():
            if self.window.is_steady(self.iou_threshold):
                return self._trigger("steady", detection, now)
            self.window.drop_oldest()
        return None

    def poll(self, now: Optional[float] = None) -> Optional[CaptureTrigger]:
        """Fires the fallback capture when the deadline has passed without a frame doing so."""
        if self._captured or self._state is not DetectionState.DETECTED or self._deadline is None:
            return None
        now = self._clock() if now is None else now
        if now >= self._deadline:
            return self._trigger("timeout", self._last_detection, now)
        return None

    def trigger_manual(self, now: Optional[float] = None) -> Optional[CaptureTrigger]:
        """User pressed the shutter. Ignored while a capture is already in progress."""
        if self._captured:
            return None
        now = self._clock() if now is None else now
        return self._trigger("manual", self._last_detection, now)

    def capture_finished(self) -> None:
        """
        Re-enables detection after the capture/preprocessing/recognition
        pipeline completed or failed. The next confident detection starts a
        new session with a fresh deadline.
        """
        self._captured = False
        self._reset_detection()

    def reset(self) -> None:
        self._captured = False
        self._last_detection = None
        self._reset_detection()

    # --- Internals ---

    def _reset_detection(self) -> None:
        self._state = DetectionState.NOT_DETECTED
        self._deadline = None
        self.window.clear()

    def _trigger(self, reason: str, detection: Optional[DetectionResult], now: float) -> CaptureTrigger:
        self._captured = True
        self._state = DetectionState.CAPTURING
        self._deadline = None
        self.window.clear()

        trigger = CaptureTrigger(reason=reason, detection=detection, timestamp=now)
        logger.info(f"Capture triggered ({reason}).")
        if self.on_capture:
            try:
                self.on_capture(trigger)
            except Exception as e:
                logger.error(f"Capture callback failed: {e}", exc_info=True)
                self.capture_finished()
        return trigger
