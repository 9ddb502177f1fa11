"""Tests for memoria.ui.colors – palette and color blending."""

from __future__ import annotations

import pytest

from memoria.ui.colors import BoardColors, blend_hex


class TestBoardColors:
    @pytest.mark.parametrize(
        "name", ["BG_TOP", "PRIMARY", "CARD_BACK", "CARD_FACE", "CARD_MATCHED", "TEXT_PRIMARY"]
    )
    def test_is_hex(self, name):
        value = getattr(BoardColors, name)
        assert value.startswith("#")
        assert len(value) == 7


class TestBlendHex:
    def test_t_zero_returns_a(self):
        assert blend_hex("#FF0000", "#0000FF", 0.0) == "#FF0000"

    def test_t_one_returns_b(self):
        assert blend_hex("#FF0000", "#0000FF", 1.0) == "#0000FF"

    def test_quarter_blend(self):
        assert blend_hex("#000000", "#FF0000", 0.25) == "#3F0000"

    def test_t_clamped(self):
        assert blend_hex("#000000", "#FFFFFF", 5.0) == "#FFFFFF"
        assert blend_hex("#000000", "#FFFFFF", -1.0) == "#000000"

    def test_invalid_input_returns_a(self):
        assert blend_hex("red", "#FFFFFF", 0.5) == "red"
        assert blend_hex("#GG0000", "#FFFFFF", 0.5) == "#GG0000"
