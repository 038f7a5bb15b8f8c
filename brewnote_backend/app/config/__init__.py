# brewnote_backend/app/config/__init__.py
from __future__ import annotations

# Re-export config surface expected by callers across the app.

# Env-driven settings live in manifest.py
from .manifest import Settings, load_settings

# Path helpers live in paths.py
from .paths import (
    REPO_ROOT,
    APP_ROOT,
    get_data_dir,
    get_rules_dir,
    resolve_rules_file,
    ensure_data_dir_exists,
)

__all__ = [
    # manifest
    "Settings",
    "load_settings",
    # paths
    "REPO_ROOT",
    "APP_ROOT",
    "get_data_dir",
    "get_rules_dir",
    "resolve_rules_file",
    "ensure_data_dir_exists",
]
