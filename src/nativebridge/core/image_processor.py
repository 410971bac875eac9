# -*- coding: utf-8 -*-
"""
src/nativebridge/core/image_processor.py

Implements the preprocessing step of the ID-card scan flow. A captured frame
is cropped to the ID-card aspect ratio, resized to a fixed width, re-encoded
as JPEG and returned as a base64 data URL ready for the recognition step.

Preprocessing is best-effort: whenever a step fails, the unmodified original
encoding is returned instead so that the scan flow still completes.
"""

import base64
import logging
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import cv2
import numpy as np

from .exceptions import PreprocessingError

logger = logging.getLogger(__name__)

# --- Module-level Configuration ---

# Standard ID-card proportions (width:height = 8.5:5.4).
ID_CARD_RATIO = 8.5 / 5.4

# When cropping the width, shift the window 2% of the source width to the
# left of centre; when cropping the height, shift it 5% of the source height
# down. Cards tend to sit slightly off-centre in the viewfinder.
HORIZONTAL_OFFSET = 0.02
VERTICAL_OFFSET = 0.05

# Output width in pixels. Height follows from the aspect ratio.
TARGET_WIDTH = 800

# JPEG quality (0-100) used when re-encoding.
JPEG_QUALITY = 90

DATA_URL_PREFIX = "data:image/jpeg;base64,"

# JPEG quality per camera `quality` option.
PHOTO_QUALITY = {"high": 95, "medium": 80, "low": 60}

ImageSource = Union[bytes, bytearray, str, Path, np.ndarray]


@dataclass(frozen=True)
class CropWindow:
    x: float
    y: float
    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def to_pixels(self, image_width: int, image_height: int) -> Tuple[int, int, int, int]:
        """Rounds to whole pixels while keeping the window inside the image."""
        w = max(1, min(image_width, int(round(self.width))))
        h = max(1, min(image_height, int(round(self.height))))
        x = min(max(0, int(round(self.x))), image_width - w)
        y = min(max(0, int(round(self.y))), image_height - h)
        return x, y, w, h


def compute_crop_window(
    width: float,
    height: float,
    ratio: float = ID_CARD_RATIO,
    horizontal_offset: float = HORIZONTAL_OFFSET,
    vertical_offset: float = VERTICAL_OFFSET,
) -> CropWindow:
    """
    Computes the crop that brings an image to the target aspect ratio.

    A source wider than the target keeps its height and loses width; the
    window is centred, then moved left by `horizontal_offset` of the source
    width. A taller source keeps its width and loses height; the window is
    centred, then moved down by `vertical_offset` of the source height. In
    both cases the window is clamped to stay inside the image.

    Args:
        width (float): Source width in pixels.
        height (float): Source height in pixels.
        ratio (float): Target width / height.

    Returns:
        CropWindow: Window in source pixel coordinates (not rounded).
    """
    if width <= 0 or height <= 0:
        raise PreprocessingError(f"Invalid image size {width}x{height}")

    if width / height > ratio:
        crop_width = height * ratio
        origin_x = (width - crop_width) / 2 - width * horizontal_offset
        origin_x = min(max(0.0, origin_x), width - crop_width)
        return CropWindow(origin_x, 0.0, crop_width, float(height))

    crop_height = width / ratio
    origin_y = (height - crop_height) / 2 + height * vertical_offset
    origin_y = min(max(0.0, origin_y), height - crop_height)
    return CropWindow(0.0, origin_y, float(width), crop_height)


def to_data_url(encoded: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(encoded).decode("ascii")


def strip_data_url(value: str) -> str:
    """Returns the bare base64 payload of a data URL (or the value itself)."""
    if value and value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


def resize_to_width(image: np.ndarray, target_width: int = TARGET_WIDTH) -> np.ndarray:
    """Resizes keeping the aspect ratio."""
    h, w = image.shape[:2]
    if w == target_width:
        return image
    target_height = max(1, int(round(h * target_width / w)))
    # INTER_AREA for shrinking, INTER_CUBIC keeps edges sharper when enlarging.
    interpolation = cv2.INTER_AREA if target_width < w else cv2.INTER_CUBIC
    return cv2.resize(image, (target_width, target_height), interpolation=interpolation)


class ImagePreprocessor:
    """
    Crops, resizes and re-encodes captured frames for the recognition step.
    """

    def __init__(
        self,
        ratio: float = ID_CARD_RATIO,
        target_width: int = TARGET_WIDTH,
        jpeg_quality: int = JPEG_QUALITY,
        horizontal_offset: float = HORIZONTAL_OFFSET,
        vertical_offset: float = VERTICAL_OFFSET,
    ):
        self.ratio = ratio
        self.target_width = target_width
        self.jpeg_quality = jpeg_quality
        self.horizontal_offset = horizontal_offset
        self.vertical_offset = vertical_offset

    def crop_to_ratio(self, image: np.ndarray) -> np.ndarray:
        h, w = image.shape[:2]
        window = compute_crop_window(w, h, self.ratio, self.horizontal_offset, self.vertical_offset)
        x, y, cw, ch = window.to_pixels(w, h)
        logger.debug(f"Cropping {w}x{h} to {cw}x{ch} at ({x}, {y}).")
        return image[y:y + ch, x:x + cw]

    def process_array(self, image: np.ndarray) -> bytes:
        """Runs crop, resize and JPEG encoding on a decoded BGR image."""
        if image is None or image.size == 0:
            raise PreprocessingError("Empty image")
        cropped = self.crop_to_ratio(image)
        resized = resize_to_width(cropped, self.target_width)
        ok, buffer = cv2.imencode(".jpg", resized, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            raise PreprocessingError("JPEG encoding failed")
        return buffer.tobytes()

    def preprocess(self, source: ImageSource, fallback_base64: Optional[str] = None) -> str:
        """
        Executes the full preprocessing pipeline.

        Args:
            source: Encoded image bytes, a file path, a data URL, or a decoded
                    BGR ndarray.
            fallback_base64 (str, optional): Base64 (or data URL) of the
                    original capture, returned when preprocessing fails.

        Returns:
            str: `data:image/jpeg;base64,...` of the processed image, or of the
                 original encoding on failure. Empty string when neither is
                 available.
        """
        original: Optional[bytes] = None
        try:
            original, image = self._load(source)
            return to_data_url(self.process_array(image))
        except Exception as e:
            logger.error(f"Image preprocessing failed, using the original image: {e}")
            return self._fallback(original, fallback_base64)

    # --- Internals ---

    @staticmethod
    def _load(source: ImageSource) -> Tuple[Optional[bytes], np.ndarray]:
        """Returns (original encoded bytes or None, decoded BGR image)."""
        if isinstance(source, np.ndarray):
            return None, source

        if isinstance(source, str) and source.startswith("data:"):
            encoded = base64.b64decode(strip_data_url(source))
        elif isinstance(source, (str, Path)):
            path = Path(str(source).replace("file://", "", 1))
            encoded = path.read_bytes()
        elif isinstance(source, (bytes, bytearray)):
            encoded = bytes(source)
        else:
            raise PreprocessingError(f"Unsupported image source: {type(source).__name__}")

        image = cv2.imdecode(np.frombuffer(encoded, dtype=np.uint8), cv2.IMREAD_COLOR)
        if image is None:
            # Keep the bytes so the caller can still fall back to them.
            logger.warning("Source image could not be decoded.")
            return encoded, np.array([])
        return encoded, image

    @staticmethod
    def _fallback(original: Optional[bytes], fallback_base64: Optional[str]) -> str:
        if fallback_base64:
            return DATA_URL_PREFIX + strip_data_url(fallback_base64)
        if original:
            return to_data_url(original)
        return ""


def preprocess_image(source: ImageSource, fallback_base64: Optional[str] = None) -> str:
    """Preprocesses with the default ID-card settings."""
    return ImagePreprocessor().preprocess(source, fallback_base64)


def photo_result(frame: np.ndarray, quality: Any = "high", directory: Optional[Path] = None) -> Dict[str, Any]:
    """
    Encodes a captured camera frame into the camera screen's result.

    The JPEG is written to `directory` (the system temp dir by default).

    Returns:
        Dict with `uri` (file URI), `width`, `height` and `base64` (data URL).
    """
    if frame is None or frame.size == 0:
        raise PreprocessingError("Empty frame")
    if isinstance(quality, (int, float)) and not isinstance(quality, bool):
        # Fractions (0-1) as well as percentages are accepted.
        level = int(quality * 100) if quality <= 1 else int(quality)
    else:
        level = PHOTO_QUALITY.get(str(quality), PHOTO_QUALITY["high"])
    ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, max(1, min(100, level))])
    if not ok:
        raise PreprocessingError("JPEG encoding failed")
    encoded = buffer.tobytes()

    directory = Path(directory or tempfile.gettempdir())
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"photo_{int(time.time() * 1000)}.jpg"
    path.write_bytes(encoded)

    h, w = frame.shape[:2]
    return {
        "uri": path.resolve().as_uri(),
        "width": w,
        "height": h,
        "base64": to_data_url(encoded),
    }


if __name__ == '__main__':
    # Standalone check: python -m nativebridge.core.image_processor
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')

    frame = np.full((1080, 1920, 3), 90, dtype=np.uint8)
    cv2.rectangle(frame, (560, 290), (1360, 798), (235, 235, 235), -1)
    processed = ImagePreprocessor().process_array(frame)
    decoded = cv2.imdecode(np.frombuffer(processed, dtype=np.uint8), cv2.IMREAD_COLOR)
    print(f"Processed size: {decoded.shape[1]}x{decoded.shape[0]} "
          f"(ratio {decoded.shape[1] / decoded.shape[0]:.4f}, target {ID_CARD_RATIO:.4f})")
