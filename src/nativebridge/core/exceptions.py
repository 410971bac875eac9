# -*- coding: utf-8 -*-
"""
src/nativebridge/core/exceptions.py

Exception types raised inside the bridge core. None of them is allowed to
escape across the web/native boundary: the dispatcher and the screen
controller turn every one of them into a `success: false` response.
"""


class BridgeError(Exception):
    """Base bridge error."""
    pass


class EnvelopeParseError(BridgeError):
    """The inbound text is not a well-formed request envelope."""
    pass


class CapabilityError(BridgeError):
    """A capability provider failed. The message is reported to the web side as-is."""
    pass


class ScreenError(BridgeError):
    """A screen could not be presented or resolved."""
    pass


class ScreenAlreadyOpenError(ScreenError):
    """A show request arrived for a screen that is already visible."""
    pass


class PreprocessingError(BridgeError):
    """Image preprocessing failed."""
    pass


class RecognitionError(BridgeError):
    """The recognition step failed."""
    pass
