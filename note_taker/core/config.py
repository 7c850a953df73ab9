"""Configuration persistence using JSON format.

Settings live at ``~/.note_taker/config.json`` next to the managed
documents directory, so a single folder holds everything the app owns.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from .constants import (
    APP_DIR_NAME,
    DEFAULT_CHANNELS,
    DEFAULT_SAMPLE_RATE,
    DOCUMENTS_DIR_NAME,
    SKIP_SECONDS,
    STORE_FILE_NAME,
    TICK_INTERVAL_MS,
    WEB_CONTENT_LIMIT,
    WEB_FETCH_TIMEOUT,
)

log = logging.getLogger(__name__)

# Default configuration schema
DEFAULT_CONFIG = {
    "version": "1.0",
    "storage": {
        "documents_dir": "",  # empty -> <config_dir>/documents
        "store_file": STORE_FILE_NAME,
    },
    "recording": {
        "sample_rate": DEFAULT_SAMPLE_RATE,
        "channels": DEFAULT_CHANNELS,
        "tick_interval_ms": TICK_INTERVAL_MS,
    },
    "playback": {
        "tick_interval_ms": TICK_INTERVAL_MS,
        "skip_seconds": SKIP_SECONDS,
    },
    "import": {
        "overwrite": False,
    },
    "web": {
        "content_limit": WEB_CONTENT_LIMIT,
        "timeout_seconds": WEB_FETCH_TIMEOUT,
    },
    "library": {
        "sort_order": "desc",  # "asc", "desc"
    },
}


class ConfigManager:
    """Manages user configuration with JSON persistence."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            config_dir: Custom config directory. If None, uses ~/.note_taker/
        """
        if config_dir is None:
            config_dir = Path.home() / APP_DIR_NAME
        self.config_dir = config_dir
        self.config_file = config_dir / "config.json"
        self._config: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load config from disk or create default."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        if self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    loaded = json.load(f)
                if not isinstance(loaded, dict):
                    raise ValueError("config root must be an object")
                # Merge with defaults (in case new keys were added)
                self._config = self._merge_defaults(loaded)
            except (json.JSONDecodeError, OSError, ValueError) as e:
                log.warning("Failed to load config: %s. Using defaults.", e)
                self._config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save()

    def _merge_defaults(self, loaded: dict) -> dict:
        """Recursively merge loaded config with defaults."""
        def deep_merge(base: dict, override: dict) -> dict:
            merged = copy.deepcopy(base)
            for key, value in override.items():
                if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                    merged[key] = deep_merge(merged[key], value)
                else:
                    merged[key] = value
            return merged

        return deep_merge(DEFAULT_CONFIG, loaded)

    def _save(self) -> None:
        """Write config to disk."""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2, ensure_ascii=False)
        except OSError as e:
            log.warning("Failed to save config: %s", e)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value using dot notation.

        Example:
            config.get("recording.sample_rate")
            config.get("import.overwrite", False)
        """
        keys = key_path.split(".")
        value = self._config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default
        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set config value using dot notation and save.

        Example:
            config.set("playback.skip_seconds", 30)
        """
        keys = key_path.split(".")
        target = self._config
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                target[key] = {}
            target = target[key]
        target[keys[-1]] = value
        self._save()

    def get_all(self) -> dict[str, Any]:
        """Get entire config dictionary (for debugging)."""
        return copy.deepcopy(self._config)

    def reset(self) -> None:
        """Reset config to defaults."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._save()

    # ── Resolved paths ──────────────────────────────────

    @property
    def documents_dir(self) -> Path:
        """Managed storage root for recordings and imported files."""
        custom = self.get("storage.documents_dir", "")
        path = Path(custom).expanduser() if custom else self.config_dir / DOCUMENTS_DIR_NAME
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def store_path(self) -> Path:
        """JSON file backing the note store."""
        return self.config_dir / self.get("storage.store_file", STORE_FILE_NAME)


# Global singleton instance
_global_config: ConfigManager | None = None


def get_config() -> ConfigManager:
    """Get global config instance (singleton pattern)."""
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager()
    return _global_config
