"""Tests for memoria.ui.timers – QTimer-backed scheduler."""

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QCoreApplication, QEvent, QEventLoop, QTimer

from memoria.core.match_engine import EngineState, MatchEngine
from memoria.ui.timers import QtScheduler


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def run_event_loop(ms: int) -> None:
    loop = QEventLoop()
    QTimer.singleShot(ms, loop.quit)
    loop.exec()
    QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete)


# ---------------------------------------------------------------------------
# QtScheduler
# ---------------------------------------------------------------------------

class TestQtScheduler:
    def test_callback_fires(self, qt_app):
        scheduler = QtScheduler()
        fired = []
        handle = scheduler.call_later(5, fired.append, "tick")
        run_event_loop(100)
        assert fired == ["tick"]
        assert handle.active is False

    def test_cancel_before_firing(self, qt_app):
        scheduler = QtScheduler()
        fired = []
        handle = scheduler.call_later(20, fired.append, "tick")
        handle.cancel()
        run_event_loop(100)
        assert fired == []

    def test_cancel_after_firing_is_noop(self, qt_app):
        scheduler = QtScheduler()
        handle = scheduler.call_later(5, lambda: None)
        run_event_loop(100)
        handle.cancel()
        handle.cancel()
        assert handle.active is False

    def test_now_ms_moves_forward(self, qt_app):
        scheduler = QtScheduler()
        start = scheduler.now_ms()
        run_event_loop(30)
        assert scheduler.now_ms() >= start


class TestEngineOnQtScheduler:
    def test_redeal_after_preview_fired(self, qt_app):
        engine = MatchEngine(QtScheduler())
        engine.build_deck(["a", "b"])
        engine.start_preview(10)
        run_event_loop(200)
        assert engine.state == EngineState.ACTIVE

        engine.cancel_timers()
        engine.build_deck(["a", "b"])
        assert engine.state == EngineState.PREVIEWING
        assert all(card.face_up for card in engine.cards)
