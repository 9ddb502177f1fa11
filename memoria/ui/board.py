"""Memory board UI: CardButton and BoardWidget."""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Sequence

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QGridLayout, QPushButton, QSizePolicy, QWidget

from memoria.core.models import Card
from memoria.ui.colors import BoardColors, blend_hex


class CardButton(QPushButton):
    """One card. Shows its symbol while face up; the engine decides when that is."""

    def __init__(self, card_id: int, on_click: Callable[[int], None], parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._card_id = card_id
        self.setMinimumSize(84, 96)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.clicked.connect(lambda: on_click(self._card_id))

    def apply(self, card: Card) -> None:
        if card.matched:
            bg, border = BoardColors.CARD_MATCHED, BoardColors.MINT
        elif card.face_up:
            bg, border = BoardColors.CARD_FACE, BoardColors.PRIMARY
        else:
            bg, border = BoardColors.CARD_BACK, BoardColors.PRIMARY_DARK
        hover = blend_hex(bg, "#ffffff", 0.25)
        self.setText(f"{card.symbol}\n{card.label}" if card.face_up else "?")
        self.setStyleSheet(
            f"""
            QPushButton {{
                background: {bg};
                border: 2px solid {border};
                border-radius: 14px;
                color: {BoardColors.TEXT_PRIMARY};
                font-size: 26px;
                font-weight: 700;
            }}
            QPushButton:hover {{ background: {hover}; }}
            """
        )


class BoardWidget(QWidget):
    """Square-ish grid of :class:`CardButton`."""

    def __init__(self, on_card_clicked: Callable[[int], None], parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._on_card_clicked = on_card_clicked
        self._buttons: Dict[int, CardButton] = {}
        self._layout = QGridLayout(self)
        self._layout.setSpacing(12)

    def set_cards(self, cards: Sequence[Card]) -> None:
        if set(self._buttons) != {card.id for card in cards}:
            self._rebuild(cards)
        for card in cards:
            self._buttons[card.id].apply(card)

    def _rebuild(self, cards: Sequence[Card]) -> None:
        for button in self._buttons.values():
            self._layout.removeWidget(button)
            button.deleteLater()
        self._buttons = {}
        columns = max(2, math.ceil(math.sqrt(len(cards))))
        for position, card in enumerate(cards):
            button = CardButton(card.id, self._on_card_clicked, self)
            self._layout.addWidget(button, position // columns, position % columns)
            self._buttons[card.id] = button
