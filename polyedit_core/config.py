"""Editor configuration loaded from an optional JSON file."""
from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_ENV = "POLYEDIT_CONFIG"
CONFIG_FILENAME = "polyedit_config.json"


@dataclass
class EditorConfig:
    """Tunables for navigation, editing and import."""

    nudge_step: float = 1.0
    zoom_rate: float = 0.001
    fit_padding: float = 0.05
    hit_tolerance_px: float = 6.0
    surface_width: float = 800.0
    surface_height: float = 600.0
    flatten_distance: float = 0.01


def _config_path(path: Optional[os.PathLike | str]) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV)
    if env_path:
        return Path(env_path)
    return Path(__file__).with_name(CONFIG_FILENAME)


def load_config(path: Optional[os.PathLike | str] = None) -> EditorConfig:
    """Read overrides from JSON; anything missing or malformed keeps its default."""
    config = EditorConfig()
    config_path = _config_path(path)
    if not config_path.exists():
        return config
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_path, exc)
        return config
    if not isinstance(data, dict):
        return config

    for spec in fields(EditorConfig):
        if spec.name not in data:
            continue
        try:
            value = float(data[spec.name])
        except (OverflowError, TypeError, ValueError):
            logger.warning("Ignoring invalid config value %s=%r", spec.name, data[spec.name])
            continue
        if not math.isfinite(value) or value < 0:
            continue
        setattr(config, spec.name, value)
    return config
