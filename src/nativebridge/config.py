# -*- coding: utf-8 -*-
"""
src/nativebridge/config.py

Settings for the NativeBridge shell, read from config.ini in the app
directory.

The built-in values come from the constants in `core.stability` and
`core.image_processor`, so the file only has to carry overrides.
"""

import configparser
import logging
import os
import platform
from pathlib import Path
from typing import List, Optional

from .core import image_processor, stability

# --- Constants ---
APP_NAME = "NativeBridge"
DEFAULT_CONFIG_FILENAME = "config.ini"
DEFAULT_START_URL = "http://localhost:3000"
HOME_ENV_VAR = "NATIVEBRIDGE_HOME"

logger = logging.getLogger(__name__)


def get_app_dir() -> Path:
    """
    Directory holding config.ini.

    `NATIVEBRIDGE_HOME` overrides the platform default:

    - Windows: %APPDATA%/NativeBridge
    - macOS: ~/Library/Application Support/NativeBridge
    - Linux: ~/.config/NativeBridge

    Returns:
        Path: The directory, created if missing.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        app_dir = Path(override).expanduser()
    elif platform.system() == "Windows":
        app_dir = Path.home() / "AppData" / "Roaming" / APP_NAME
    elif platform.system() == "Darwin":
        app_dir = Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        app_dir = Path.home() / ".config" / APP_NAME

    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


class Config:
    """
    NativeBridge settings: the page to load, the capture thresholds, the
    card preprocessing size and the OCR languages. Every key has a built-in
    value; config.ini only needs the ones being changed.

    Args:
        app_dir (Path, optional): Directory holding config.ini. Defaults to
            `get_app_dir()`.
    """

    def __init__(self, app_dir: Optional[Path] = None):
        self.parser = configparser.ConfigParser()
        self.app_dir = Path(app_dir) if app_dir else get_app_dir()
        self.config_file_path = self.app_dir / DEFAULT_CONFIG_FILENAME

        self._load_defaults()
        self._load_from_file()

    def _load_defaults(self):
        """Seeds every section with the built-in values."""
        self.parser["General"] = {
            "start_url": DEFAULT_START_URL,
            "log_level": "INFO",
        }
        self.parser["Capture"] = {
            "confidence_threshold": str(stability.CONFIDENCE_THRESHOLD),
            "iou_threshold": str(stability.IOU_THRESHOLD),
            "stability_frames": str(stability.STABILITY_FRAME_COUNT),
            "hold_time": str(stability.DETECTION_HOLD_TIME),
            "frame_rate": str(stability.FRAME_PROCESSOR_FPS),
            "camera_index": "0",
        }
        self.parser["Preprocessing"] = {
            "card_ratio": str(image_processor.ID_CARD_RATIO),
            "target_width": str(image_processor.TARGET_WIDTH),
            "jpeg_quality": str(image_processor.JPEG_QUALITY),
            "horizontal_offset": str(image_processor.HORIZONTAL_OFFSET),
            "vertical_offset": str(image_processor.VERTICAL_OFFSET),
        }
        self.parser["Recognition"] = {
            "languages": "ko,en",
            "gpu": "False",
        }

    def _load_from_file(self):
        """
        Reads config.ini on top of the built-in values. A first run writes
        the built-in values out so there is a file to edit.
        """
        if not self.config_file_path.exists():
            self._save_defaults()
        else:
            self.parser.read(self.config_file_path, encoding="utf-8")

    def _save_defaults(self):
        try:
            with open(self.config_file_path, 'w', encoding="utf-8") as configfile:
                configfile.write(f"# {APP_NAME} settings\n")
                configfile.write("# Changes apply on the next launch.\n\n")
                self.parser.write(configfile)
        except IOError as e:
            # Defaults stay in effect.
            logger.error(f"Could not write to config file at {self.config_file_path}: {e}")

    # --- General ---

    @property
    def start_url(self) -> str:
        """URL (or local file path) of the web app the shell hosts."""
        return self.parser.get("General", "start_url", fallback=DEFAULT_START_URL)

    @property
    def log_level(self) -> int:
        name = self.parser.get("General", "log_level", fallback="INFO").upper()
        level = logging.getLevelName(name)
        return level if isinstance(level, int) else logging.INFO

    # --- Capture ---

    @property
    def confidence_threshold(self) -> float:
        """Detections must score above this (0-100) to count."""
        return self.parser.getfloat("Capture", "confidence_threshold", fallback=stability.CONFIDENCE_THRESHOLD)

    @property
    def iou_threshold(self) -> float:
        return self.parser.getfloat("Capture", "iou_threshold", fallback=stability.IOU_THRESHOLD)

    @property
    def stability_frames(self) -> int:
        return self.parser.getint("Capture", "stability_frames", fallback=stability.STABILITY_FRAME_COUNT)

    @property
    def hold_time(self) -> float:
        """Seconds from the first confident detection to the fallback capture."""
        return self.parser.getfloat("Capture", "hold_time", fallback=stability.DETECTION_HOLD_TIME)

    @property
    def frame_rate(self) -> float:
        return self.parser.getfloat("Capture", "frame_rate", fallback=float(stability.FRAME_PROCESSOR_FPS))

    @property
    def camera_index(self) -> int:
        """OpenCV VideoCapture device index."""
        return self.parser.getint("Capture", "camera_index", fallback=0)

    # --- Preprocessing ---

    @property
    def card_ratio(self) -> float:
        return self.parser.getfloat("Preprocessing", "card_ratio", fallback=image_processor.ID_CARD_RATIO)

    @property
    def target_width(self) -> int:
        return self.parser.getint("Preprocessing", "target_width", fallback=image_processor.TARGET_WIDTH)

    @property
    def jpeg_quality(self) -> int:
        return self.parser.getint("Preprocessing", "jpeg_quality", fallback=image_processor.JPEG_QUALITY)

    @property
    def horizontal_offset(self) -> float:
        return self.parser.getfloat("Preprocessing", "horizontal_offset",
                                    fallback=image_processor.HORIZONTAL_OFFSET)

    @property
    def vertical_offset(self) -> float:
        return self.parser.getfloat("Preprocessing", "vertical_offset",
                                    fallback=image_processor.VERTICAL_OFFSET)

    # --- Recognition ---

    @property
    def languages(self) -> List[str]:
        """EasyOCR language codes."""
        raw = self.parser.get("Recognition", "languages", fallback="ko,en")
        return [code.strip() for code in raw.split(",") if code.strip()]

    @property
    def gpu(self) -> bool:
        return self.parser.getboolean("Recognition", "gpu", fallback=False)

    # --- Builders ---

    def make_engine(self, on_capture=None) -> stability.CaptureStabilityEngine:
        """A capture stability engine with the configured thresholds."""
        return stability.CaptureStabilityEngine(
            confidence_threshold=self.confidence_threshold,
            iou_threshold=self.iou_threshold,
            window_size=self.stability_frames,
            hold_time=self.hold_time,
            on_capture=on_capture,
        )

    def make_preprocessor(self) -> image_processor.ImagePreprocessor:
        return image_processor.ImagePreprocessor(
            ratio=self.card_ratio,
            target_width=self.target_width,
            jpeg_quality=self.jpeg_quality,
            horizontal_offset=self.horizontal_offset,
            vertical_offset=self.vertical_offset,
        )


# --- Singleton Instance ---
# e.g., from nativebridge.config import config
config = Config()


if __name__ == '__main__':
    print(f"{APP_NAME} settings from {config.config_file_path}")
    print(f"Start URL: {config.start_url}")
    print(f"Confidence threshold: {config.confidence_threshold}")
    print(f"IoU threshold: {config.iou_threshold}")
    print(f"Stability frames: {config.stability_frames}")
    print(f"Hold time: {config.hold_time}s")
    print(f"Target width: {config.target_width}px")
    print(f"OCR languages: {config.languages} (gpu={config.gpu})")
