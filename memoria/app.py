"""Application entry point and setup for the Memoria memory game."""

import logging
import sys
from PySide6.QtGui import QFont, QGuiApplication
from PySide6.QtWidgets import QApplication

from memoria.core.achievements import LocalAchievementGateway
from memoria.core.config import load_config
from memoria.core.decks import DeckRepository
from memoria.core.progress import ProgressStore
from memoria.ui.main_window import MainWindow


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def apply_application_font(app: QApplication) -> None:
    """Use a rounded UI font with emoji fallbacks so card symbols render everywhere."""
    app_font = QFont()
    app_font.setFamilies(
        [
            "Nunito",
            "Noto Sans",
            "Noto Color Emoji",  # Linux (common)
            "Segoe UI Emoji",  # Windows
            "Apple Color Emoji",  # macOS
        ]
    )
    app_font.setPointSize(11)
    app.setFont(app_font)


def run() -> None:
    """Initialize the application, load decks and progress, and show the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("Memoria")
    app.setApplicationDisplayName("Memoria")

    apply_application_font(app)

    config = load_config()
    decks = DeckRepository()
    progress_store = ProgressStore()
    gateway = LocalAchievementGateway(progress_store)
    logging.info("Loaded %d decks and %d achievements", len(decks.all()), len(gateway.achievements))

    window = MainWindow(decks=decks, gateway=gateway, config=config)
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(min(geometry.width(), 1100), min(geometry.height(), 860))
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
