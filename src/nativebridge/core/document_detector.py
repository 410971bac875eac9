# -*- coding: utf-8 -*-
"""
src/nativebridge/core/document_detector.py

Per-frame document detection with OpenCV. Finds the largest convex
four-sided contour in a video frame and reports it as a DetectionResult
for the capture stability engine.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from .stability import DetectionResult, Point, Quad

logger = logging.getLogger(__name__)

# --- Module-level Configuration ---

# Frames are analysed at this width; detected points are scaled back.
ANALYSIS_WIDTH = 640

# Gaussian blur kernel (must be odd) applied before edge detection.
BLUR_KERNEL_SIZE = 5

# Canny hysteresis thresholds.
CANNY_LOW = 50
CANNY_HIGH = 150

# Polygon approximation tolerance, as a fraction of the contour perimeter.
APPROX_EPSILON = 0.02

# Candidates covering less of the frame than this are ignored.
MIN_AREA_RATIO = 0.1

# A card filling this share of the frame scores full marks for area.
FULL_AREA_RATIO = 0.5


class DocumentDetector:
    """
    Detects a rectangular document (ID card) in BGR frames.

    The confidence (0-100) is the mean of two scores: how much of the frame
    the candidate covers, relative to FULL_AREA_RATIO, and how rectangular it
    is (contour area over the area of its minimum-area rectangle).
    """

    def __init__(self, analysis_width: int = ANALYSIS_WIDTH, min_area_ratio: float = MIN_AREA_RATIO):
        self.analysis_width = analysis_width
        self.min_area_ratio = min_area_ratio

    def detect(self, frame: np.ndarray) -> Optional[DetectionResult]:
        """
        Args:
            frame (np.ndarray): BGR (or BGRA / grayscale) video frame.

        Returns:
            DetectionResult with points in the frame's pixel coordinates, or
            None when no quadrilateral was found.
        """
        if frame is None or frame.size == 0:
            return None

        gray = self._to_gray(frame)
        h, w = gray.shape[:2]
        scale = 1.0
        if w > self.analysis_width:
            scale = self.analysis_width / w
            gray = cv2.resize(gray, (self.analysis_width, max(1, int(h * scale))), interpolation=cv2.INTER_AREA)

        edges = self._edges(gray)
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        frame_area = float(gray.shape[0] * gray.shape[1])

        best = None
        best_area = 0.0
        for contour in sorted(contours, key=cv2.contourArea, reverse=True):
            area = cv2.contourArea(contour)
            if area < frame_area * self.min_area_ratio:
                break
            perimeter = cv2.arcLength(contour, True)
            approx = cv2.approxPolyDP(contour, APPROX_EPSILON * perimeter, True)
            if len(approx) == 4 and cv2.isContourConvex(approx):
                best, best_area = approx, area
                break

        if best is None:
            return None

        confidence = self._confidence(best, best_area, frame_area)
        points = [Point(float(x) / scale, float(y) / scale) for [[x, y]] in best]
        quad = Quad.from_points(points)
        if quad is None:
            return None
        logger.debug(f"Detected document quad with confidence {confidence:.1f}.")
        return DetectionResult(quad=quad, confidence=confidence)

    # --- Internals ---

    @staticmethod
    def _to_gray(frame: np.ndarray) -> np.ndarray:
        if frame.ndim == 2:
            return frame
        if frame.shape[2] == 4:
            return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)

    @staticmethod
    def _edges(gray: np.ndarray) -> np.ndarray:
        blurred = cv2.GaussianBlur(gray, (BLUR_KERNEL_SIZE, BLUR_KERNEL_SIZE), 0)
        edges = cv2.Canny(blurred, CANNY_LOW, CANNY_HIGH)
        # Close small gaps so the card outline forms one contour.
        kernel = np.ones((3, 3), np.uint8)
        return cv2.dilate(edges, kernel, iterations=1)

    @staticmethod
    def _confidence(approx: np.ndarray, area: float, frame_area: float) -> float:
        (_, _), (rw, rh), _ = cv2.minAreaRect(approx)
        rect_area = rw * rh
        rectangularity = min(1.0, area / rect_area) if rect_area > 0 else 0.0
        coverage = min(1.0, (area / frame_area) / FULL_AREA_RATIO) if frame_area > 0 else 0.0
        return round(100.0 * (coverage + rectangularity) / 2.0, 2)


if __name__ == '__main__':
    # Standalone check: python -m nativebridge.core.document_detector
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')

    frame = np.full((720, 1280, 3), 40, dtype=np.uint8)
    cv2.rectangle(frame, (290, 160), (990, 605), (230, 230, 230), -1)
    result = DocumentDetector().detect(frame)
    if result:
        print(f"Confidence: {result.confidence}")
        for p in result.quad.points:
            print(f"  ({p.x:.0f}, {p.y:.0f})")
    else:
        print("No document found.")
