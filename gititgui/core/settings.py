# -*- coding: utf-8 -*-
"""
GitItGUI Settings Module
Application settings persisted as JSON in the user config directory.

Covers the merge/diff tool selection, default Git-LFS track patterns,
the history tool and the most-recently-used repository list.
"""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir

from .result import Result
from . import log

APP_NAME = "gititgui"
CONFIG_FILENAME = "settings.json"
CONFIG_DIR_ENV = "GITITGUI_CONFIG_DIR"

DEFAULT_LFS_EXTENSIONS = [
    "*.psd",
    "*.jpg",
    "*.jpeg",
    "*.png",
    "*.bmp",
    "*.tga",
    "*.tif",
    "*.tiff",
    "*.mp3",
    "*.wav",
    "*.ogg",
    "*.mp4",
    "*.mov",
    "*.fbx",
    "*.obj",
    "*.blend",
    "*.zip",
    "*.7z",
    "*.pdf",
]


@dataclass
class AppSettings:
    """
    User-level application settings.

    Defaults apply when no settings file exists or a key is missing.
    """

    merge_diff_tool: str = "meld"
    merge_diff_tool_path: str = ""
    history_tool: str = "gitk"
    default_lfs_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_LFS_EXTENSIONS)
    )
    repo_history: list[str] = field(default_factory=list)
    max_repo_history: int = 10

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> AppSettings:
        """Create AppSettings from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def merge_diff_tool_installed(self) -> bool:
        """
        Check that the configured merge/diff tool can be launched.

        An explicit path wins over a PATH lookup of the tool name.
        """
        if self.merge_diff_tool_path:
            return os.path.isfile(self.merge_diff_tool_path)
        if not self.merge_diff_tool:
            return False
        return shutil.which(self.merge_diff_tool) is not None

    def add_repo_to_history(self, path: str) -> None:
        """Move path to the front of the MRU list, keeping it bounded."""
        if not path:
            return
        norm = os.path.normpath(path)
        history = [p for p in self.repo_history if os.path.normpath(p) != norm]
        history.insert(0, norm)
        self.repo_history = history[: max(self.max_repo_history, 1)]


def config_dir() -> Path:
    """Directory holding the settings file (GITITGUI_CONFIG_DIR overrides)."""
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override)
    return Path(user_config_dir(APP_NAME, appauthor=False))


def config_path() -> Path:
    return config_dir() / CONFIG_FILENAME


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """
    Load settings from disk, falling back to defaults.

    Args:
        path: Settings file (defaults to config_path())

    Returns:
        AppSettings with loaded or default values
    """
    settings_file = path or config_path()

    if not settings_file.exists():
        log.debug(f"No settings file at {settings_file}, using defaults")
        return AppSettings()

    try:
        with open(settings_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            log.warning(f"Settings file {settings_file} is not an object, using defaults")
            return AppSettings()
        settings = AppSettings.from_dict(data)
        log.debug(f"Loaded settings from {settings_file}")
        return settings
    except json.JSONDecodeError as e:
        log.warning(f"Invalid JSON in settings file: {e}")
        log.info("Using default settings")
        return AppSettings()
    except (OSError, TypeError) as e:
        log.error(f"Failed to load settings: {e}")
        return AppSettings()


def save_settings(settings: AppSettings, path: Optional[Path] = None) -> Result:
    """
    Save settings to disk.

    Args:
        settings: Settings to save
        path: Settings file (defaults to config_path())

    Returns:
        Result with the written path on success
    """
    settings_file = path or config_path()
    try:
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        with open(settings_file, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)
        log.debug(f"Saved settings to {settings_file}")
        return Result.success(str(settings_file))
    except PermissionError as e:
        log.error(f"Failed to save settings: {e}")
        return Result.failure("PERMISSION_DENIED", str(e))
    except OSError as e:
        log.error(f"Failed to save settings: {e}")
        return Result.failure("SAVE_ERROR", str(e))
