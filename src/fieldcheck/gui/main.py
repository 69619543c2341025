"""
Main entry point for the field checker demo application.
"""

import sys

from PySide6.QtWidgets import QApplication

from fieldcheck.core.config_manager import ConfigManager
from fieldcheck.core.error_handler import init_logging, setup_error_handling
from fieldcheck.gui.main_window import MainWindow


def main() -> int:
    """Main application entry point."""
    app = QApplication(sys.argv)

    config_manager = ConfigManager()
    init_logging(config_manager.get("log_level"))
    error_handler = setup_error_handling()

    window = MainWindow(config=config_manager.checker_config())
    window.show()

    try:
        return app.exec()
    finally:
        error_handler.restore_hooks()


if __name__ == "__main__":
    raise SystemExit(main())
