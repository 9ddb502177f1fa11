"""In-window overlays: exit confirmation, game completed, achievement toast, warning banner."""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import Qt, QEvent, Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QFrame,
    QGraphicsDropShadowEffect,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from memoria.core.models import Achievement, BonusQualification, GameStats
from memoria.core.scoring import format_time
from memoria.ui.colors import BoardColors

_PRIMARY = BoardColors.PRIMARY
_PRIMARY_LIGHT = BoardColors.PRIMARY_LIGHT


def _themed_card_container(radius: int = 20, object_name: str = "overlayContainer") -> QFrame:
    container = QFrame()
    container.setObjectName(object_name)
    container.setMinimumWidth(400)
    container.setMaximumWidth(480)
    container.setStyleSheet(
        f"""
        QFrame#{object_name} {{
            background: #ffffff;
            border: 1px solid rgba(0, 131, 143, 0.12);
            border-radius: {radius}px;
        }}
        """
    )
    shadow = QGraphicsDropShadowEffect(container)
    shadow.setBlurRadius(20)
    shadow.setOffset(0, 6)
    shadow.setColor(QColor(0, 80, 100, 25))
    container.setGraphicsEffect(shadow)
    return container


def _overlay_background(parent: QWidget, on_click: Callable[[], None]) -> QWidget:
    overlay_bg = QWidget(parent)
    overlay_bg.setStyleSheet("background: rgba(0, 0, 0, 0.2);")
    overlay_bg.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
    overlay_bg.mousePressEvent = lambda e: on_click()
    return overlay_bg


def _button(text: str, primary: bool) -> QPushButton:
    btn = QPushButton(text)
    if primary:
        btn.setStyleSheet(
            f"""
            QPushButton {{
                background: qlineargradient(x1:0, y1:0, x2:1, y2:1,
                    stop:0 {_PRIMARY_LIGHT}, stop:1 {_PRIMARY});
                color: white; padding: 10px 16px; border: none;
                border-radius: 12px; font-weight: 600; font-size: 13px;
            }}
            QPushButton:hover {{ background: {_PRIMARY}; }}
            """
        )
    else:
        btn.setStyleSheet(
            f"""
            QPushButton {{
                background: #fafafa; color: {BoardColors.TEXT_PRIMARY};
                padding: 10px 16px; border: 1px solid #e0e0e0;
                border-radius: 12px; font-weight: 600; font-size: 13px;
            }}
            QPushButton:hover {{ border-color: {_PRIMARY}; color: {_PRIMARY}; }}
            """
        )
    btn.setCursor(Qt.CursorShape.PointingHandCursor)
    btn.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
    return btn


class _ModalOverlay(QWidget):
    """Full-window dimmed overlay that follows its parent's size."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._grid = QGridLayout(self)
        self._grid.setContentsMargins(0, 0, 0, 0)
        self._grid.setRowStretch(0, 1)
        self._grid.setColumnStretch(0, 1)
        self._grid.addWidget(_overlay_background(self, self._on_background_click), 0, 0)
        self.hide()

    def _set_content(self, container: QFrame) -> None:
        self._grid.addWidget(container, 0, 0, 1, 1, Qt.AlignCenter)

    def _on_background_click(self) -> None:
        pass

    def _update_geometry(self) -> None:
        parent = self.parentWidget()
        if parent is not None:
            self.setGeometry(parent.rect())

    def eventFilter(self, obj: QWidget, event: QEvent) -> bool:
        if obj is self.parentWidget() and event.type() == QEvent.Type.Resize:
            self._update_geometry()
        return super().eventFilter(obj, event)

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self._update_geometry()
        self.raise_()
        parent = self.parentWidget()
        if parent is not None:
            parent.installEventFilter(self)

    def hideEvent(self, event) -> None:
        parent = self.parentWidget()
        if parent is not None:
            parent.removeEventFilter(self)
        super().hideEvent(event)


class ExitConfirmOverlay(_ModalOverlay):
    """Asks before leaving a game that is in progress."""

    closed = Signal(bool)  # True if the player confirmed leaving

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        container = _themed_card_container(object_name="exitContainer")
        content = QVBoxLayout(container)
        content.setContentsMargins(28, 24, 28, 24)
        content.setSpacing(18)

        title = QLabel("Leave the game?")
        title.setStyleSheet(f"color: {_PRIMARY}; font-size: 18px; font-weight: 800;")
        content.addWidget(title)

        msg = QLabel("Are you sure you want to leave? You will lose your current progress.")
        msg.setStyleSheet(f"color: {BoardColors.TEXT_PRIMARY}; font-size: 14px;")
        msg.setWordWrap(True)
        content.addWidget(msg)

        row = QHBoxLayout()
        stay_btn = _button("Keep playing", primary=False)
        stay_btn.clicked.connect(lambda: self._finish(False))
        leave_btn = _button("Leave", primary=True)
        leave_btn.clicked.connect(lambda: self._finish(True))
        row.addWidget(stay_btn, 1)
        row.addWidget(leave_btn, 1)
        content.addLayout(row)
        self._set_content(container)

    def _on_background_click(self) -> None:
        self._finish(False)

    def _finish(self, confirmed: bool) -> None:
        self.hide()
        self.closed.emit(confirmed)


class GameCompletedOverlay(_ModalOverlay):
    """Stars, time and encouragement once every pair is found."""

    play_again = Signal()
    closed = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        container = _themed_card_container(object_name="completedContainer")
        content = QVBoxLayout(container)
        content.setContentsMargins(28, 24, 28, 24)
        content.setSpacing(14)

        self._stars = QLabel("")
        self._stars.setAlignment(Qt.AlignCenter)
        self._stars.setStyleSheet("font-size: 36px;")
        self._message = QLabel("")
        self._message.setAlignment(Qt.AlignCenter)
        self._message.setWordWrap(True)
        self._message.setStyleSheet(f"color: {_PRIMARY}; font-size: 18px; font-weight: 800;")
        self._details = QLabel("")
        self._details.setAlignment(Qt.AlignCenter)
        self._details.setStyleSheet(f"color: {BoardColors.TEXT_SECONDARY}; font-size: 13px;")
        self._bonus = QLabel("")
        self._bonus.setAlignment(Qt.AlignCenter)
        self._bonus.setStyleSheet(f"color: {BoardColors.CORAL}; font-size: 14px; font-weight: 700;")
        for widget in (self._stars, self._message, self._details, self._bonus):
            content.addWidget(widget)

        row = QHBoxLayout()
        back_btn = _button("Back", primary=False)
        back_btn.clicked.connect(lambda: (self.hide(), self.closed.emit()))
        again_btn = _button("Play again", primary=True)
        again_btn.clicked.connect(lambda: (self.hide(), self.play_again.emit()))
        row.addWidget(back_btn, 1)
        row.addWidget(again_btn, 1)
        content.addLayout(row)
        self._set_content(container)

    def show_result(self, stats: GameStats, bonus: BonusQualification, message: str) -> None:
        self._stars.setText("★" * stats.stars + "☆" * (3 - stats.stars))
        self._message.setText(message)
        self._details.setText(
            f"Time {format_time(stats.completion_time_ms)} · "
            f"Attempts {stats.total_attempts} · Efficiency {stats.efficiency_percent}%"
        )
        self._bonus.setText(bonus.message or "")
        self._bonus.setVisible(bonus.qualified)
        self.show()


class AchievementToast(QFrame):
    """Top-of-window card announcing one unlocked achievement."""

    dismissed = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("achievementToast")
        self.setStyleSheet(
            f"""
            QFrame#achievementToast {{
                background: #fffdf5;
                border: 2px solid {BoardColors.AMBER};
                border-radius: 16px;
            }}
            """
        )
        layout = QHBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        self._icon = QLabel("")
        self._icon.setStyleSheet("font-size: 30px;")
        text_col = QVBoxLayout()
        self._title = QLabel("")
        self._title.setStyleSheet(f"color: {BoardColors.TEXT_PRIMARY}; font-size: 15px; font-weight: 800;")
        self._description = QLabel("")
        self._description.setWordWrap(True)
        self._description.setStyleSheet(f"color: {BoardColors.TEXT_SECONDARY}; font-size: 12px;")
        text_col.addWidget(self._title)
        text_col.addWidget(self._description)
        ok_btn = _button("Great!", primary=True)
        ok_btn.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        ok_btn.clicked.connect(self.dismissed.emit)
        layout.addWidget(self._icon, 0)
        layout.addLayout(text_col, 1)
        layout.addWidget(ok_btn, 0)
        self.hide()

    def show_achievement(self, achievement: Achievement) -> None:
        self._icon.setText(achievement.icon or "🏆")
        self._title.setText(f"Achievement unlocked: {achievement.title}")
        self._description.setText(f"{achievement.description} (+{achievement.points} points)")
        self.show()
        self.raise_()


class WarningBanner(QFrame):
    """Dismissible, non-blocking warning strip with an optional retry action."""

    retry_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("warningBanner")
        self.setStyleSheet(
            """
            QFrame#warningBanner { background: #fff3e0; border: 1px solid #ffb74d; border-radius: 10px; }
            """
        )
        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 8, 12, 8)
        self._label = QLabel("")
        self._label.setWordWrap(True)
        retry_btn = _button("Retry", primary=False)
        retry_btn.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        retry_btn.clicked.connect(lambda: (self.hide(), self.retry_requested.emit()))
        close_btn = _button("✕", primary=False)
        close_btn.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        close_btn.clicked.connect(self.hide)
        layout.addWidget(self._label, 1)
        layout.addWidget(retry_btn, 0)
        layout.addWidget(close_btn, 0)
        self.hide()

    def show_message(self, message: str) -> None:
        self._label.setText(message)
        self.show()
