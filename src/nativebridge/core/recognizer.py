# -*- coding: utf-8 -*-
"""
src/nativebridge/core/recognizer.py

Recognition step of the ID-card scan flow. Runs EasyOCR on the preprocessed
image and pulls the card fields out of the recognised text with regular
expressions.

The EasyOCR model takes seconds to load, so the reader is created lazily on
the first scan and then reused for the lifetime of the recognizer.
"""

import base64
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

import cv2
import numpy as np

from .exceptions import RecognitionError
from .image_processor import strip_data_url

logger = logging.getLogger(__name__)

# --- Module-level Configuration ---

DEFAULT_LANGUAGES = ['ko', 'en']

# Fragments below this confidence (0-1) are left out of the text.
OCR_CONFIDENCE_THRESHOLD = 0.3

ID_CARD = "ID_CARD"
DRIVER_LICENSE = "DRIVER_LICENSE"

REGISTRATION_NUMBER_RE = re.compile(r"(\d{6})\s*-\s*(\d{7})")
LICENSE_NUMBER_RE = re.compile(r"(\d{2})\s*-\s*(\d{2})\s*-\s*(\d{6})\s*-\s*(\d{2})")
ISSUE_DATE_RE = re.compile(r"(\d{4})\s*[.\-/]\s*(\d{1,2})\s*[.\-/]\s*(\d{1,2})")
ISSUER_RE = re.compile(r"(청장|시장|구청장|군수)\s*(인|\(인\))?$")
NAME_RE = re.compile(r"^([가-힣]{2,5})\s*(\(.*\))?$")

# Card titles and labels that look like names.
LABELS = {"주민등록증", "운전면허증", "자동차운전면허증", "대한민국", "성명", "주소"}


# --- Field extraction ---

def group_lines(fragments: Sequence[Any]) -> List[str]:
    """
    Orders EasyOCR fragments `(bbox, text, confidence)` into text lines.

    Fragments whose vertical centres lie within half a line height of each
    other are joined left to right.
    """
    boxes = []
    for bbox, text, conf in fragments:
        if conf < OCR_CONFIDENCE_THRESHOLD or not str(text).strip():
            continue
        ys = [p[1] for p in bbox]
        xs = [p[0] for p in bbox]
        boxes.append(((min(ys) + max(ys)) / 2, max(ys) - min(ys), min(xs), str(text).strip()))
    boxes.sort(key=lambda b: (b[0], b[2]))

    lines: List[List[Any]] = []
    for box in boxes:
        if lines:
            last = lines[-1]
            centre = sum(b[0] for b in last) / len(last)
            height = max(b[1] for b in last)
            if abs(box[0] - centre) <= height / 2:
                last.append(box)
                continue
        lines.append([box])
    return [" ".join(b[3] for b in sorted(line, key=lambda b: b[2])) for line in lines]


def extract_fields(lines: Sequence[str], document_type: str = ID_CARD) -> Dict[str, Any]:
    """
    Extracts card fields from recognised text lines.

    Returns:
        Dict with `name`, `registrationNumber`, `address`, `issueDate` and
        `issuer` (None when not found), plus `licenseNumber` for driver
        licenses, and `isValid` (name and registration number both found).
    """
    name = registration = issue_date = issuer = license_number = None
    address_parts: List[str] = []
    registration_index = None

    for index, line in enumerate(lines):
        compact = line.strip()
        if not compact:
            continue

        match = REGISTRATION_NUMBER_RE.search(compact)
        if match and registration is None:
            registration = f"{match.group(1)}-{match.group(2)}"
            registration_index = index
            continue

        if document_type == DRIVER_LICENSE and license_number is None:
            match = LICENSE_NUMBER_RE.search(compact)
            if match:
                license_number = "-".join(match.groups())
                continue

        match = ISSUE_DATE_RE.search(compact)
        if match:
            year, month, day = match.groups()
            issue_date = f"{year}.{int(month):02d}.{int(day):02d}"
            # The issuer is often printed on the same line as the date.
            compact = (compact[:match.start()] + compact[match.end():]).strip()
            if not compact:
                continue

        if ISSUER_RE.search(compact):
            issuer = ISSUER_RE.sub(r"\1", compact).strip()
            continue

        match = NAME_RE.match(compact)
        if name is None and registration_index is None and match and match.group(1) not in LABELS:
            name = match.group(1)
            continue

        if registration_index is not None and issue_date is None and compact not in LABELS:
            # Between the registration number and the issue date.
            address_parts.append(compact)

    fields: Dict[str, Any] = {
        "name": name,
        "registrationNumber": registration,
        "address": " ".join(address_parts) or None,
        "issueDate": issue_date,
        "issuer": issuer,
        "isValid": bool(name and registration),
    }
    if document_type == DRIVER_LICENSE:
        fields["licenseNumber"] = license_number
        fields["isValid"] = bool(name and (registration or license_number))
    return fields


def failure_result(error: str, image_base64: Optional[str] = None) -> Dict[str, Any]:
    return {
        "isValid": False,
        "confidence": 0,
        "error": error,
        "imageBase64": image_base64,
    }


# --- Recognizer ---

class IDCardRecognizer:
    """
    Recognises ID cards and driver licenses.

    Args:
        languages (List[str]): EasyOCR language codes. Defaults to ['ko', 'en'].
        gpu (bool): Passed to easyocr.Reader.
        reader_factory (Callable, optional): Builds the reader; defaults to
            `easyocr.Reader(languages, gpu=gpu)`.
    """

    def __init__(self, languages: Optional[List[str]] = None, gpu: bool = False,
                 reader_factory: Optional[Callable[[], Any]] = None):
        self.languages = list(languages or DEFAULT_LANGUAGES)
        self.gpu = gpu
        self._reader_factory = reader_factory
        self._reader = None

    @property
    def reader(self):
        if self._reader is None:
            logger.info(f"Initializing EasyOCR Reader for languages: {self.languages}...")
            if self._reader_factory is not None:
                self._reader = self._reader_factory()
            else:
                import easyocr
                self._reader = easyocr.Reader(self.languages, gpu=self.gpu)
            logger.info("EasyOCR Reader initialized successfully.")
        return self._reader

    def read_lines(self, image: np.ndarray) -> List[Any]:
        try:
            return self.reader.readtext(image, detail=1, paragraph=False)
        except Exception as e:
            raise RecognitionError(f"OCR failed: {e}") from e

    def recognize(self, data_url: str, document_type: str = ID_CARD) -> Dict[str, Any]:
        """
        Args:
            data_url (str): `data:image/jpeg;base64,...` (or bare base64) of
                the preprocessed image.
            document_type (str): "ID_CARD" or "DRIVER_LICENSE".

        Returns:
            Dict with the card fields, `confidence` (0-100), `rawText` and
            `imageBase64`. Never raises; failures come back as
            `{isValid: False, confidence: 0, error, imageBase64}`.
        """
        try:
            if not data_url:
                raise RecognitionError("No image to recognise")
            encoded = base64.b64decode(strip_data_url(data_url))
            image = cv2.imdecode(np.frombuffer(encoded, dtype=np.uint8), cv2.IMREAD_COLOR)
            if image is None:
                raise RecognitionError("Image could not be decoded")

            fragments = self.read_lines(image)
            lines = group_lines(fragments)
            confidences = [conf for _, _, conf in fragments if conf >= OCR_CONFIDENCE_THRESHOLD]
            if not lines:
                logger.warning("OCR did not find any text with sufficient confidence.")

            result = extract_fields(lines, document_type)
            result["confidence"] = round(100.0 * sum(confidences) / len(confidences), 1) if confidences else 0
            result["rawText"] = "\n".join(lines)
            result["imageBase64"] = data_url
            logger.info(f"Recognition finished: valid={result['isValid']}, confidence={result['confidence']}")
            return result
        except Exception as e:
            logger.error(f"Recognition failed: {e}")
            return failure_result(str(e), data_url or None)
