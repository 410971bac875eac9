# -*- coding: utf-8 -*-
"""
src/nativebridge/__main__.py

Entry point: `python -m nativebridge [URL]`, or the `nativebridge` script.
"""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from .app import BridgeApp
from .config import config


def main():
    """
    Configures logging, creates the QApplication and the BridgeApp, and runs
    the Qt event loop. An optional first argument overrides the start URL.
    """
    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    app = QApplication(sys.argv)
    start_url = sys.argv[1] if len(sys.argv) > 1 else None
    bridge_app = BridgeApp(app, config, start_url=start_url)
    bridge_app.run()
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
