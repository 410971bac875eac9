# -*- coding: utf-8 -*-
"""
The Core Package for NativeBridge.

Everything here is independent of the GUI toolkit: the message envelopes and
dispatcher, the handler registry, the screen controller, and the ID-card
scan pipeline (document detection, capture stability, preprocessing and
recognition). The Qt shell in `nativebridge.gui` drives these pieces.
"""

from .dispatcher import MessageDispatcher
from .envelope import (
    MessageEnvelope,
    MessageType,
    ResponseEnvelope,
    error_response,
    parse_message,
    success_response,
)
from .exceptions import BridgeError, CapabilityError, EnvelopeParseError
from .image_processor import ImagePreprocessor, preprocess_image
from .registry import SCREENS, HandlerRegistry, combine_handlers, create_screen_handlers
from .screens import ScreenController, ScreenPresenter
from .stability import CaptureStabilityEngine, DetectionResult, intersection_over_union

__all__ = [
    "BridgeError",
    "CapabilityError",
    "CaptureStabilityEngine",
    "DetectionResult",
    "EnvelopeParseError",
    "HandlerRegistry",
    "ImagePreprocessor",
    "MessageDispatcher",
    "MessageEnvelope",
    "MessageType",
    "ResponseEnvelope",
    "SCREENS",
    "ScreenController",
    "ScreenPresenter",
    "combine_handlers",
    "create_screen_handlers",
    "error_response",
    "intersection_over_union",
    "parse_message",
    "preprocess_image",
    "success_response",
]
