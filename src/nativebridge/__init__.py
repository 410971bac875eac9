# -*- coding: utf-8 -*-
"""
NativeBridge Application Package.

A desktop shell that hosts a web application and exposes native
capabilities to it over a JSON message bridge: dialogs, user info, camera
and ID-card scanning (with on-device OCR), and bluetooth.

The GUI entry point lives in `nativebridge.app`; it is not imported here so
that the bridge core can be used without PyQt6.
"""

__version__ = "0.1.0"

from .bridge import Bridge

__all__ = ["Bridge", "__version__"]
