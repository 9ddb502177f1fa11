"""Tests for memoria.core.config – YAML game settings."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from memoria.core.config import CONFIG_ENV_VAR, GameConfig, default_config_path, load_config


class TestDefaults:
    def test_timings(self):
        config = GameConfig()
        assert config.preview_ms == 4000
        assert config.match_confirm_ms == 500
        assert config.mismatch_reset_ms == 1000
        assert config.selection_unlock_ms == 1200
        assert config.completion_grace_ms == 1000
        assert config.notification_settle_ms == 1000

    def test_missing_file(self, tmp_path: Path):
        assert load_config(tmp_path / "absent.yaml") == GameConfig()


class TestConfigPath:
    def test_home_default(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert default_config_path() == Path.home() / ".memoria" / "config.yaml"

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = tmp_path / "custom.yaml"
        path.write_text("preview_ms: 2000\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert default_config_path() == path
        assert load_config().preview_ms == 2000


class TestLoadConfig:
    def test_overrides(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("preview_ms: 3000\nnotification_settle_ms: 500\nactivity_type: Pairs\n", encoding="utf-8")
        config = load_config(path)
        assert config.preview_ms == 3000
        assert config.notification_settle_ms == 500
        assert config.activity_type == "Pairs"
        assert config.selection_unlock_ms == 1200

    def test_unknown_key_ignored(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        path = tmp_path / "config.yaml"
        path.write_text("turbo: true\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            assert load_config(path) == GameConfig()
        assert "unknown key" in caplog.text

    @pytest.mark.parametrize("value", ["-5", "fast", "true", "1.5"])
    def test_invalid_value_ignored(self, tmp_path: Path, value: str):
        path = tmp_path / "config.yaml"
        path.write_text(f"preview_ms: {value}\n", encoding="utf-8")
        assert load_config(path).preview_ms == 4000

    def test_malformed_yaml(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        path = tmp_path / "config.yaml"
        path.write_text("preview_ms: [unclosed\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            assert load_config(path) == GameConfig()
        assert "Could not load config" in caplog.text

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        assert load_config(path) == GameConfig()

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == GameConfig()
