# brewnote_backend/app/config/paths.py
"""
Central path resolution for Brewnote.

Env overrides (read on every call so tests can point them at tmp dirs):
    DATA_DIR
    BREWNOTE_RULES_DIR

Defaults:
    <repo_root>/data
    <repo_root>/brewnote_backend/app/brewing/rules
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict

# ──────────────────────────────────────────────────────────────────────────────
_THIS_FILE = Path(__file__).resolve()

def _resolve_repo_root() -> Path:
    p = _THIS_FILE
    for _ in range(6):
        if (p.parent / "brewnote_backend" / "app").exists():
            return p.parent
        p = p.parent
    return _THIS_FILE.parents[3]

REPO_ROOT: Path = _resolve_repo_root()
APP_ROOT: Path = _THIS_FILE.parents[1]

_default_data = REPO_ROOT / "data"
_default_rules = APP_ROOT / "brewing" / "rules"

def clean_env(value: str | None) -> str | None:
    if value is None:
        return None
    v = value.strip().strip('"').strip("'")
    return v or None

def _env_path(name: str) -> Path | None:
    raw = clean_env(os.getenv(name))
    if not raw:
        return None
    return Path(raw).expanduser().resolve()

# ── Getters
def get_repo_root() -> Path: return REPO_ROOT
def get_app_root()  -> Path: return APP_ROOT
def get_data_dir()  -> Path: return (_env_path("DATA_DIR") or _default_data).resolve()
def get_rules_dir() -> Path: return (_env_path("BREWNOTE_RULES_DIR") or _default_rules).resolve()

# ── Resolvers
def resolve_rules_file(name: str) -> Path:
    """Return absolute path under the rulebook dir for a given filename."""
    return get_rules_dir() / name

def ensure_data_dir_exists(*parts: str) -> Path:
    """
    Ensure DATA_DIR (and optional subpaths) exist.
    Examples:
        ensure_data_dir_exists() -> <DATA_DIR>
        ensure_data_dir_exists("store") -> <DATA_DIR>/store
    """
    p = get_data_dir().joinpath(*parts)
    p.mkdir(parents=True, exist_ok=True)
    return p

def get_paths() -> Dict[str, Path]:
    return {
        "DATA_DIR": get_data_dir(),
        "RULES_DIR": get_rules_dir(),
        "REPO_ROOT": REPO_ROOT,
        "APP_ROOT": APP_ROOT,
    }

__all__ = [
    "REPO_ROOT", "APP_ROOT",
    "clean_env",
    "get_repo_root", "get_app_root", "get_data_dir", "get_rules_dir",
    "resolve_rules_file", "ensure_data_dir_exists", "get_paths",
]
