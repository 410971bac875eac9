"""Pytest configuration and shared fixtures for the NativeBridge tests.

Puts `src/` on the import path, points the app directory at a temporary
location, and provides a recording transport plus a bridge session wired to
in-memory providers.
"""
import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

# The config module creates config.ini on import; keep it out of the home directory.
os.environ.setdefault("NATIVEBRIDGE_HOME", tempfile.mkdtemp(prefix="nativebridge-tests-"))

from nativebridge.bridge import Bridge
from nativebridge.core.stability import DetectionResult, Quad
from nativebridge.providers import stub_providers

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)


class RecordingTransport:
    """Collects everything the bridge delivers to the page."""

    def __init__(self):
        self.delivered: List[str] = []
        self.notified: List[Any] = []

    def deliver(self, serialized: str) -> None:
        self.delivered.append(serialized)

    def notify(self, callback_id: str, data: Dict[str, Any]) -> None:
        self.notified.append((callback_id, data))

    @property
    def responses(self) -> List[Dict[str, Any]]:
        return [json.loads(s) for s in self.delivered]

    def response_for(self, request_id: str) -> Dict[str, Any]:
        matches = [r for r in self.responses if r["id"] == request_id]
        assert len(matches) == 1, f"expected one response for {request_id}, got {matches}"
        return matches[0]


def make_message(message_id: str, message_type: str, payload: Any = None) -> str:
    message = {"id": message_id, "type": message_type}
    if payload is not None:
        message["payload"] = payload
    return json.dumps(message, ensure_ascii=False)


def make_detection(left: float, top: float, right: float, bottom: float,
                   confidence: float = 95.0) -> DetectionResult:
    quad = Quad.from_points([(left, top), (right, top), (right, bottom), (left, bottom)])
    return DetectionResult(quad=quad, confidence=confidence)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def providers():
    return stub_providers()


@pytest.fixture
def bridge(transport, providers):
    return Bridge(transport.deliver, providers=providers, notify=transport.notify)


@pytest.fixture
def wide_frame():
    """A 1920x1080 BGR frame with a light card on a dark background."""
    frame = np.full((1080, 1920, 3), 50, dtype=np.uint8)
    frame[290:798, 560:1360] = 235
    return frame
