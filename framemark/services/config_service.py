"""
Configuration service for FrameMark.

This module handles loading, saving, and managing editor settings.
Configuration is stored as JSON in ~/.config/framemark/config.json following
the XDG Base Directory Specification.
"""

import copy
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from framemark.services.logging_service import get_logger

# Default configuration directory following XDG Base Directory Specification
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "framemark"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    # Bounding box the surface is fitted into (never upscaled)
    "max_width": 800,
    "max_height": 600,
    # Number of snapshots kept for undo, including the initial state
    "undo_depth": 20,
    # Encoding of the annotated image handed back on save
    "export_format": "JPEG",
    "export_quality": 0.9,
    # Initial tool state
    "default_tool": "freehand",
    "default_color": "#dc2626",
    "default_stroke_width": 4,
    # Controls offered by the toolbar
    "palette": [
        "#dc2626",
        "#ea580c",
        "#ca8a04",
        "#16a34a",
        "#0891b2",
        "#2563eb",
        "#7c3aed",
        "#000000",
    ],
    "stroke_widths": [2, 4, 6, 8, 12],
}


class ConfigService:
    """
    Service for managing editor configuration.

    Handles loading, saving, and accessing configuration values.
    Provides sensible defaults when config file is missing or corrupted.
    """

    def __init__(self, config_path: Optional[Path] = None, persist: bool = True) -> None:
        """
        Initialize the ConfigService.

        Args:
            config_path: Optional path to config file. Defaults to
                        ~/.config/framemark/config.json
            persist: When False the service never touches the disk and
                     serves the defaults (plus in-memory overrides).
        """
        self._logger = get_logger(__name__)
        self._config_path = config_path or DEFAULT_CONFIG_FILE
        self._persist = persist
        self._config: Dict[str, Any] = self._deep_copy_defaults()

        if persist:
            self._load()

    def _load(self) -> None:
        """Load configuration from file, using defaults if needed."""
        self._config = self._deep_copy_defaults()

        if not self._config_path.exists():
            self._logger.info(
                f"Config file not found at {self._config_path}. Using defaults."
            )
            self._save_to_file()
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

            # Loaded values override defaults
            if isinstance(loaded_config, dict):
                self._deep_merge(self._config, loaded_config)
                self._logger.info(f"Configuration loaded from {self._config_path}")
                # Persist any new default keys
                self._save_to_file()
            else:
                raise ValueError("Config file does not contain a valid JSON object")

        except (json.JSONDecodeError, ValueError) as e:
            self._logger.warning(
                f"Config file corrupted or invalid: {e}. Recreating with defaults."
            )
            self._config = self._deep_copy_defaults()
            self._save_to_file()

        except (OSError, PermissionError) as e:
            self._logger.warning(
                f"Could not read config file: {e}. Using defaults."
            )

    def _deep_copy_defaults(self) -> Dict[str, Any]:
        """Create a deep copy of default config."""
        return copy.deepcopy(DEFAULT_CONFIG)

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Recursively merge override dict into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save_to_file(self) -> None:
        """Save current configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)

            self._logger.debug(f"Configuration saved to {self._config_path}")

        except (OSError, PermissionError) as e:
            self._logger.error(f"Could not save config file: {e}")

    @property
    def config_path(self) -> Path:
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: The configuration key to retrieve.
            default: Default value if key doesn't exist.

        Returns:
            The configuration value, or default if not found.
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value (in memory only).

        Call save() to persist changes to disk.
        """
        self._config[key] = value
        self._logger.debug(f"Config key '{key}' set to '{value}'")

    def save(self) -> None:
        """Persist current configuration to disk."""
        if self._persist:
            self._save_to_file()

    # ─── Surface Settings ─────────────────────────────────────────────────

    def _number(self, key: str, convert: Callable[[Any], Any]) -> Any:
        """Read ``key`` through ``convert``, falling back to the default when it fails."""
        value = self.get(key, DEFAULT_CONFIG[key])
        try:
            return convert(value)
        except (TypeError, ValueError):
            self._logger.warning(
                f"Invalid config value {value!r} for '{key}', using {DEFAULT_CONFIG[key]!r}"
            )
            return convert(DEFAULT_CONFIG[key])

    @property
    def max_width(self) -> int:
        return self._number("max_width", int)

    @property
    def max_height(self) -> int:
        return self._number("max_height", int)

    @property
    def undo_depth(self) -> int:
        """Undo depth, never below 1 (the initial snapshot)."""
        return max(1, self._number("undo_depth", int))

    # ─── Export Settings ──────────────────────────────────────────────────

    @property
    def export_format(self) -> str:
        return str(self.get("export_format", DEFAULT_CONFIG["export_format"])).upper()

    @property
    def export_quality(self) -> float:
        """Encoding quality clamped to [0, 1]."""
        return min(1.0, max(0.0, self._number("export_quality", float)))

    # ─── Tool Settings ────────────────────────────────────────────────────

    @property
    def default_tool(self) -> str:
        return self.get("default_tool", DEFAULT_CONFIG["default_tool"])

    @property
    def default_color(self) -> str:
        return self.get("default_color", DEFAULT_CONFIG["default_color"])

    @property
    def default_stroke_width(self) -> int:
        return self._number("default_stroke_width", int)

    @property
    def palette(self) -> List[str]:
        return list(self.get("palette", DEFAULT_CONFIG["palette"]))

    @property
    def stroke_widths(self) -> List[int]:
        return self._number("stroke_widths", lambda widths: [int(w) for w in widths])
