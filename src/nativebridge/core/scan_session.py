# -*- coding: utf-8 -*-
"""
src/nativebridge/core/scan_session.py

One run of the ID-card scan screen, independent of any UI toolkit.

Video frames are fed in by the caller. The session samples them at the
frame-processor rate, runs the document detector and the stability engine,
and once a capture triggers it preprocesses the captured frame, runs the
recognizer and completes the screen with the result. The screen is
completed exactly once: with the recognition result (possibly
`isValid: False`), or with None when the user cancels.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

import numpy as np

from .document_detector import DocumentDetector
from .image_processor import ImagePreprocessor
from .recognizer import ID_CARD, IDCardRecognizer, failure_result
from .stability import CaptureStabilityEngine, CaptureTrigger, FrameSampler

logger = logging.getLogger(__name__)

Runner = Callable[[Callable[[], None]], None]


def include_image(options: Dict[str, Any]) -> bool:
    """`includeImage` (or the older `includeImageBase64`) option, default True."""
    if "includeImage" in options:
        return bool(options["includeImage"])
    return bool(options.get("includeImageBase64", True))


def shape_ocr_result(result: Dict[str, Any], options: Dict[str, Any]) -> Dict[str, Any]:
    """Drops the image from the result unless the request asked for it."""
    shaped = dict(result)
    if not include_image(options):
        shaped.pop("imageBase64", None)
    return shaped


def _run_inline(task: Callable[[], None]) -> None:
    task()


class OcrScanSession:
    """
    Args:
        complete (Callable): The screen's completion callback; receives the
            shaped result dict, or None on cancel.
        options (dict): Screen options (`documentType`, `includeImage`).
        detector / preprocessor / recognizer / engine / sampler: Pipeline
            stages; defaults are built when omitted.
        runner (Callable, optional): Runs the capture pipeline; inline by
            default. The GUI passes one that uses a worker thread.
        clock (Callable): Time source for sampling and the fallback deadline.
    """

    def __init__(
        self,
        complete: Callable[[Optional[Dict[str, Any]]], None],
        options: Optional[Dict[str, Any]] = None,
        detector: Optional[DocumentDetector] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        recognizer: Optional[IDCardRecognizer] = None,
        engine: Optional[CaptureStabilityEngine] = None,
        sampler: Optional[FrameSampler] = None,
        runner: Optional[Runner] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.complete = complete
        self.options = dict(options or {})
        self.document_type = self.options.get("documentType", ID_CARD)
        self.detector = detector or DocumentDetector()
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.recognizer = recognizer or IDCardRecognizer()
        self.engine = engine or CaptureStabilityEngine(clock=clock)
        self.sampler = sampler or FrameSampler()
        self.runner = runner or _run_inline
        self._clock = clock
        self._finished = False
        self._lock = threading.Lock()

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def is_capturing(self) -> bool:
        return self.engine.is_capturing

    def feed_frame(self, frame: np.ndarray, now: Optional[float] = None) -> Optional[CaptureTrigger]:
        """
        Offers one video frame. Returns the trigger when this frame was
        captured.
        """
        if self._finished or self.engine.is_capturing:
            return None
        now = self._clock() if now is None else now

        trigger = self.engine.poll(now)
        if trigger is None:
            if not self.sampler.should_sample(now):
                return None
            try:
                detection = self.detector.detect(frame)
            except Exception as e:
                logger.error(f"Document detection failed on a frame: {e}")
                return None
            trigger = self.engine.evaluate(detection, now)

        if trigger is not None:
            self._start_capture(frame, trigger)
        return trigger

    def capture(self, frame: np.ndarray, now: Optional[float] = None) -> Optional[CaptureTrigger]:
        """Shutter button: captures the frame regardless of stability."""
        if self._finished:
            return None
        trigger = self.engine.trigger_manual(now)
        if trigger is not None:
            self._start_capture(frame, trigger)
        return trigger

    def process(self, frame: Any, fallback_base64: Optional[str] = None) -> Dict[str, Any]:
        """Preprocesses and recognises one captured frame, then completes the screen."""
        try:
            data_url = self.preprocessor.preprocess(frame, fallback_base64)
            result = self.recognizer.recognize(data_url, self.document_type)
        except Exception as e:
            logger.error(f"Scan pipeline failed: {e}", exc_info=True)
            result = failure_result(str(e))
        shaped = shape_ocr_result(result, self.options)
        self._finish(shaped)
        return shaped

    def cancel(self) -> None:
        logger.info("Scan cancelled by user.")
        self._finish(None)

    # --- Internals ---

    def _start_capture(self, frame: np.ndarray, trigger: CaptureTrigger) -> None:
        logger.info(f"Capturing frame ({trigger.reason}); running recognition.")
        snapshot = frame.copy() if isinstance(frame, np.ndarray) else frame
        self.runner(lambda: self.process(snapshot))

    def _finish(self, result: Optional[Dict[str, Any]]) -> None:
        with self._lock:
            if self._finished:
                return
            self._finished = True
        self.engine.capture_finished()
        self.complete(result)
