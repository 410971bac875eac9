# -*- coding: utf-8 -*-
"""
The GUI Package for NativeBridge.

The PyQt6 shell: the web view host with its bridge channel, the camera and
ID-card scan screens, and the Qt dialog provider. Import the modules directly
(e.g. `from nativebridge.gui.web_host import WebHostWindow`); this package
does not import PyQt6 on its own so that the core stays usable headless.
"""
