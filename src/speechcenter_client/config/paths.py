from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIR_NAME = "speechcenter-client"


def user_config_dir() -> Path:
    """Per-user directory holding `settings.json` and the fallback `token.txt`."""
    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA")
        return Path(base) / APP_DIR_NAME if base else Path.home() / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    return Path(os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config") / APP_DIR_NAME


def default_settings_path() -> Path:
    return user_config_dir() / "settings.json"


def default_token_path() -> Path:
    return user_config_dir() / "token.txt"
