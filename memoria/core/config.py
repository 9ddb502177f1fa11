from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MEMORIA_CONFIG"


@dataclass(frozen=True)
class GameConfig:
    """Pacing of the memory game, in milliseconds."""

    preview_ms: int = 4000
    match_confirm_ms: int = 500
    mismatch_reset_ms: int = 1000
    selection_unlock_ms: int = 1200
    completion_grace_ms: int = 1000
    notification_settle_ms: int = 1000
    took_time_threshold_ms: int = 60000
    activity_type: str = "Visual memory"


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".memoria" / "config.yaml"


def load_config(path: Optional[Path] = None) -> GameConfig:
    """Load a :class:`GameConfig` from YAML, falling back to defaults.

    A missing file is normal. Unreadable files, unknown keys and invalid
    values are logged and ignored.
    """
    config_path = path or default_config_path()
    config = GameConfig()
    if not config_path.exists():
        return config
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Could not load config from %s: %s", config_path, e)
        return config
    if raw is None:
        return config
    if not isinstance(raw, dict):
        logger.warning("%s: expected a mapping, using defaults", config_path)
        return config

    known = {f.name: f for f in fields(GameConfig)}
    overrides = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("%s: ignoring unknown key %r", config_path, key)
            continue
        if key == "activity_type":
            if isinstance(value, str) and value.strip():
                overrides[key] = value.strip()
            else:
                logger.warning("%s: invalid value for %s: %r", config_path, key, value)
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning("%s: invalid value for %s: %r", config_path, key, value)
            continue
        overrides[key] = value
    return replace(config, **overrides)
