"""Read-only settings for tiling, fetching and logging.

Values come from a `config.json` laid over :data:`DEFAULT_CONFIG_JSON`. The
file is optional; when it is missing the defaults apply and nothing is
written.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from .logger import get_logger

logger = get_logger(__name__)

USER_CONFIG_PATH = Path.home() / ".iiif-pyramid" / "config.json"

DEFAULT_CONFIG_JSON: dict[str, Any] = {
    "paths": {
        "logs_dir": "logs",
    },
    "settings": {
        "network": {
            "request_timeout": 15,
            "resolver_workers": 8,
        },
        "tiling": {
            "default_tile_size": 0,
            "tile_format": "jpg",
        },
        "layer": {
            "tile_size": 256,
            "min_zoom": -6,
            "max_zoom": 3,
        },
        "logging": {
            "level": "INFO",
            "to_file": True,
        },
    },
}


def _overlay(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """New dict with `overrides` applied section by section over `base`."""
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _overlay(current, value)
        else:
            merged[key] = value
    return merged


def default_config_path() -> Path:
    """`./config.json` when one exists, else the per-user file."""
    local = Path.cwd() / "config.json"
    return local if local.is_file() else USER_CONFIG_PATH


@dataclass
class ConfigManager:
    path: Path
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | None = None) -> ConfigManager:
        cfg_path = path or default_config_path()
        defaults = json.loads(json.dumps(DEFAULT_CONFIG_JSON))
        if not cfg_path.is_file():
            return cls(path=cfg_path, data=defaults)

        try:
            loaded = json.loads(cfg_path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", cfg_path, exc)
            return cls(path=cfg_path, data=defaults)
        if not isinstance(loaded, dict):
            logger.warning("Ignoring config %s: top level is %s, not an object", cfg_path, type(loaded).__name__)
            return cls(path=cfg_path, data=defaults)

        logger.debug("Loaded settings from %s", cfg_path)
        return cls(path=cfg_path, data=_overlay(defaults, loaded))

    def get_setting(self, dotted_path: str, default: Any = None) -> Any:
        """Nested value under `settings`, e.g. ``get_setting("tiling.tile_format", "jpg")``."""
        node: Any = self.data.get("settings") or {}
        for part in dotted_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def get_int_setting(self, dotted_path: str, default: int) -> int:
        """Read a setting coerced to `int`, falling back to `default` on junk values."""
        value = self.get_setting(dotted_path, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("Invalid integer setting %s=%r, using %s", dotted_path, value, default)
            return default

    def get_logs_dir(self) -> Path:
        """``paths.logs_dir``; relative values resolve against the config file's folder."""
        raw = (self.data.get("paths") or {}).get("logs_dir") or "logs"
        path = Path(str(raw)).expanduser()
        return path if path.is_absolute() else self.path.parent / path


@lru_cache(maxsize=1)
def get_config_manager() -> ConfigManager:
    return ConfigManager.load()
