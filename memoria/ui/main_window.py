from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from memoria.core.achievements import AchievementGateway
from memoria.core.config import GameConfig
from memoria.core.decks import Deck, DeckRepository
from memoria.core.models import Achievement, BonusQualification, Card, Feedback, GameStats
from memoria.core.notifications import NotificationQueueManager
from memoria.core.scoring import format_time
from memoria.core.session import FeedbackSink, GameSessionController
from memoria.ui.board import BoardWidget
from memoria.ui.colors import BoardColors
from memoria.ui.overlays import AchievementToast, ExitConfirmOverlay, GameCompletedOverlay, WarningBanner
from memoria.ui.timers import QtScheduler

logger = logging.getLogger(__name__)

_FEEDBACK_TEXT = {
    Feedback.SUCCESS: "Great match! 🎉",
    Feedback.ERROR: "Not quite, try again!",
    Feedback.WINNER: "You found them all! 🏆",
    Feedback.LOSER: "Let's try again!",
}


class _WindowSink(FeedbackSink):
    """Forwards engine events to the window widgets."""

    def __init__(self, window: "MainWindow") -> None:
        self._window = window

    def on_feedback(self, feedback: Feedback) -> None:
        self._window.show_feedback(feedback)

    def on_cards_changed(self, cards: Tuple[Card, ...]) -> None:
        self._window.board.set_cards(cards)

    def on_stats_changed(self, stats: GameStats) -> None:
        self._window.update_stats(stats)

    def on_game_completed(self, stats: GameStats, bonus: BonusQualification, message: str) -> None:
        self._window.completed_overlay.show_result(stats, bonus, message)

    def on_warning(self, message: str) -> None:
        self._window.warning_banner.show_message(message)

    def confirm_exit(self, on_closed: Callable[[bool], None]) -> None:
        self._window.ask_exit(on_closed)

    def show_notification(self, achievement: Achievement) -> None:
        self._window.toast.show_achievement(achievement)

    def hide_notification(self, achievement: Achievement) -> None:
        self._window.toast.hide()


class MainWindow(QMainWindow):
    """Deck picker plus the memory board for the selected deck."""

    def __init__(self, decks: DeckRepository, gateway: AchievementGateway, config: Optional[GameConfig] = None) -> None:
        super().__init__()
        self._decks = decks
        self._gateway = gateway
        self._config = config or GameConfig()
        self._scheduler = QtScheduler(self)
        self._sink = _WindowSink(self)
        self._session: Optional[GameSessionController] = None
        self._exit_callback: Optional[Callable[[bool], None]] = None

        self.setWindowTitle("Memoria")
        self._build_ui()
        # One queue for the whole app so notifications survive deck changes.
        self._notifications = NotificationQueueManager(
            self._scheduler,
            self._config,
            on_show=self._sink.show_notification,
            on_hide=self._sink.hide_notification,
        )
        self.toast.dismissed.connect(self._notifications.on_dismissed)

        self._clock_timer = QTimer(self)
        self._clock_timer.setInterval(1000)
        self._clock_timer.timeout.connect(self._refresh_clock)
        self._clock_timer.start()

    # -- construction ------------------------------------------------------

    def _build_ui(self) -> None:
        root = QWidget()
        root.setStyleSheet(
            f"background: qlineargradient(x1:0, y1:0, x2:0, y2:1, "
            f"stop:0 {BoardColors.BG_TOP}, stop:1 {BoardColors.BG_BOTTOM});"
        )
        root_layout = QVBoxLayout(root)
        root_layout.setContentsMargins(16, 16, 16, 16)

        self.toast = AchievementToast(root)
        self.warning_banner = WarningBanner(root)
        self.warning_banner.retry_requested.connect(self._retry_sync)
        root_layout.addWidget(self.toast)
        root_layout.addWidget(self.warning_banner)

        self._stack = QStackedWidget()
        self._stack.addWidget(self._build_home_screen())
        self._stack.addWidget(self._build_game_screen())
        root_layout.addWidget(self._stack, 1)
        self.setCentralWidget(root)

        self.exit_overlay = ExitConfirmOverlay(root)
        self.exit_overlay.closed.connect(self._on_exit_overlay_closed)
        self.completed_overlay = GameCompletedOverlay(root)
        self.completed_overlay.play_again.connect(self._restart)
        self.completed_overlay.closed.connect(self._show_home_screen)

    def _build_home_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        title = QLabel("Memoria")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet(f"color: {BoardColors.PRIMARY_DARK}; font-size: 32px; font-weight: 900;")
        layout.addWidget(title)
        subtitle = QLabel("Pick a deck and find all the pairs")
        subtitle.setAlignment(Qt.AlignCenter)
        subtitle.setStyleSheet(f"color: {BoardColors.TEXT_SECONDARY}; font-size: 15px;")
        layout.addWidget(subtitle)
        for deck in self._decks.all():
            btn = QPushButton(f"{deck.name}  ·  {deck.total_pairs} pairs")
            btn.setCursor(Qt.CursorShape.PointingHandCursor)
            btn.setMinimumHeight(56)
            btn.setStyleSheet(
                f"QPushButton {{ background: rgba(255, 255, 255, 0.85); border-radius: 14px;"
                f" color: {BoardColors.TEXT_PRIMARY}; font-size: 16px; font-weight: 700; }}"
            )
            btn.clicked.connect(lambda _checked=False, d=deck: self._start_deck(d))
            layout.addWidget(btn)
        layout.addStretch(1)
        return screen

    def _build_game_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)

        header = QHBoxLayout()
        back_btn = QPushButton("← Back")
        back_btn.clicked.connect(self._request_back)
        self._title_label = QLabel("")
        self._title_label.setStyleSheet(f"color: {BoardColors.PRIMARY_DARK}; font-size: 20px; font-weight: 800;")
        restart_btn = QPushButton("↻ Restart")
        restart_btn.clicked.connect(self._restart)
        header.addWidget(back_btn, 0)
        header.addWidget(self._title_label, 1, Qt.AlignCenter)
        header.addWidget(restart_btn, 0)
        layout.addLayout(header)

        stats_row = QHBoxLayout()
        self._pairs_label = QLabel("")
        self._attempts_label = QLabel("")
        self._errors_label = QLabel("")
        self._time_label = QLabel("")
        for label in (self._pairs_label, self._attempts_label, self._errors_label, self._time_label):
            label.setStyleSheet(f"color: {BoardColors.TEXT_SECONDARY}; font-size: 14px; font-weight: 600;")
            stats_row.addWidget(label, 1, Qt.AlignCenter)
        layout.addLayout(stats_row)

        self._feedback_label = QLabel("")
        self._feedback_label.setAlignment(Qt.AlignCenter)
        self._feedback_label.setStyleSheet(f"color: {BoardColors.PRIMARY}; font-size: 18px; font-weight: 800;")
        layout.addWidget(self._feedback_label)

        self.board = BoardWidget(self._on_card_clicked)
        layout.addWidget(self.board, 1)
        return screen

    # -- session -----------------------------------------------------------

    def _start_deck(self, deck: Deck) -> None:
        self._session = GameSessionController(
            deck,
            self._gateway,
            self._scheduler,
            sink=self._sink,
            config=self._config,
            notifications=self._notifications,
        )
        self._title_label.setText(deck.name)
        self._feedback_label.setText("Remember the cards!")
        self._stack.setCurrentIndex(1)
        self._session.start_game()

    def _restart(self) -> None:
        if self._session is None:
            return
        self._feedback_label.setText("Remember the cards!")
        self._session.reset_game()
        self._stack.setCurrentIndex(1)

    def _on_card_clicked(self, card_id: int) -> None:
        if self._session is not None:
            self._session.flip(card_id)

    def _request_back(self) -> None:
        if self._session is None:
            self._show_home_screen()
            return
        self._session.request_exit(self._show_home_screen)

    def _retry_sync(self) -> None:
        if self._session is not None:
            self._session.retry_achievement_sync()

    def _show_home_screen(self) -> None:
        self._stack.setCurrentIndex(0)

    # -- called by the sink ------------------------------------------------

    def ask_exit(self, on_closed: Callable[[bool], None]) -> None:
        self._exit_callback = on_closed
        self.exit_overlay.show()

    def _on_exit_overlay_closed(self, confirmed: bool) -> None:
        callback, self._exit_callback = self._exit_callback, None
        if callback is not None:
            callback(confirmed)

    def show_feedback(self, feedback: Feedback) -> None:
        self._feedback_label.setText(_FEEDBACK_TEXT[feedback])

    def update_stats(self, stats: GameStats) -> None:
        total = self._session.engine.total_pairs if self._session is not None else 0
        self._pairs_label.setText(f"Pairs {stats.matches_found}/{total}")
        self._attempts_label.setText(f"Attempts {stats.total_attempts}")
        self._errors_label.setText(f"Errors {stats.errors}")
        self._refresh_clock()

    def _refresh_clock(self) -> None:
        if self._session is None:
            return
        self._time_label.setText(f"Time {format_time(self._session.engine.elapsed_ms)}")

    def closeEvent(self, event: QCloseEvent) -> None:
        if self._session is not None:
            self._session.engine.cancel_timers()
        super().closeEvent(event)
