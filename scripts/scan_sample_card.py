import os
import platform
import sys
import time
from pathlib import Path

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

# --- Path Setup ---
# Run from the project root; the package is imported from src/.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

from nativebridge.core.document_detector import DocumentDetector
from nativebridge.core.image_processor import ID_CARD_RATIO, ImagePreprocessor
from nativebridge.core.recognizer import IDCardRecognizer
from nativebridge.core.stability import CaptureStabilityEngine

# --- Constants ---
FRAME_SIZE = (1280, 720)
CARD_WIDTH = 760
OUTPUT_DIR = PROJECT_ROOT / "data"

SAMPLE_LINES = [
    ("주민등록증", 40),
    ("홍길동(洪吉童)", 34),
    ("800101-1234567", 30),
    ("서울특별시 종로구 세종대로 209", 24),
    ("2020.1.15", 24),
    ("서울특별시 종로구청장", 26),
]

# Fonts with Hangul glyphs, tried in order.
HANGUL_FONT_NAMES = ["NanumGothic.ttf", "malgun.ttf", "AppleSDGothicNeo.ttc", "NotoSansCJK-Regular.ttc"]


def find_hangul_font() -> str | None:
    """Looks for a Hangul-capable font in the usual system font directories."""
    system = platform.system()
    if system == "Windows":
        font_dirs = [Path(os.environ.get("windir", "C:/Windows")) / "Fonts"]
    elif system == "Darwin":
        font_dirs = [Path("/System/Library/Fonts"), Path("/Library/Fonts"), Path.home() / "Library/Fonts"]
    else:
        font_dirs = [Path("/usr/share/fonts"), Path("/usr/local/share/fonts"), Path.home() / ".fonts"]

    for name in HANGUL_FONT_NAMES:
        for font_dir in font_dirs:
            if font_dir.is_dir():
                for match in font_dir.rglob(name):
                    return str(match)
    return None


def render_card(font_path: str | None) -> Image.Image:
    """Renders a synthetic ID card (white card, dark text) with Pillow."""
    height = int(CARD_WIDTH / ID_CARD_RATIO)
    card = Image.new("RGB", (CARD_WIDTH, height), color=(246, 246, 240))
    draw = ImageDraw.Draw(card)

    y = 30
    for text, size in SAMPLE_LINES:
        try:
            font = ImageFont.truetype(font_path, size) if font_path else ImageFont.load_default()
        except IOError:
            font = ImageFont.load_default()
        draw.text((40, y), text, font=font, fill=(20, 20, 20))
        y += size + 22
    return card


def compose_frame(card: Image.Image) -> np.ndarray:
    """Places the card on a dark desk-like background, as a BGR frame."""
    frame = Image.new("RGB", FRAME_SIZE, color=(52, 48, 44))
    offset = ((FRAME_SIZE[0] - card.width) // 2 - 30, (FRAME_SIZE[1] - card.height) // 2 + 20)
    frame.paste(card, offset)
    return cv2.cvtColor(np.array(frame), cv2.COLOR_RGB2BGR)


def main():
    """
    1. Renders a sample card and composes a camera-like frame.
    2. Runs the document detector and feeds the stability engine.
    3. Preprocesses the captured frame and saves the result.
    4. With --ocr, runs the recognizer (downloads EasyOCR models on first use).
    """
    print("--- Sample Card Scan ---")
    OUTPUT_DIR.mkdir(exist_ok=True)

    font_path = find_hangul_font()
    print(f"Font: {font_path or 'Pillow default (no Hangul glyphs)'}")
    frame = compose_frame(render_card(font_path))
    cv2.imwrite(str(OUTPUT_DIR / "sample_frame.jpg"), frame)

    detection = DocumentDetector().detect(frame)
    if detection is None:
        print("ERROR: No document detected in the sample frame.")
        sys.exit(1)
    print(f"Detected quad with confidence {detection.confidence}")

    engine = CaptureStabilityEngine()
    start = time.monotonic()
    trigger = None
    for i in range(5):
        trigger = engine.evaluate(detection, start + i * 0.2)
        if trigger:
            break
    print(f"Capture: {trigger.reason if trigger else 'not triggered'}")

    encoded = ImagePreprocessor().process_array(frame)
    out_path = OUTPUT_DIR / "sample_preprocessed.jpg"
    out_path.write_bytes(encoded)
    print(f"Preprocessed image saved to: {out_path}")

    if "--ocr" in sys.argv:
        data_url = ImagePreprocessor().preprocess(encoded)
        result = IDCardRecognizer().recognize(data_url)
        result.pop("imageBase64", None)
        print("\n--- Recognition Result ---")
        for key, value in result.items():
            print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
