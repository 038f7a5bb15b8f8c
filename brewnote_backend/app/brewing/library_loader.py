# brewnote_backend/app/brewing/library_loader.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml  # PyYAML

from brewnote_backend.app.config.paths import resolve_rules_file
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("library_loader")

FALLBACK_RULES_FILE = "fallback_rules.yaml"
_REQUIRED_METHOD_KEYS = ("defaults", "bounds")

# -----------------------------------------------------------------------------
# Internal IO helpers
# -----------------------------------------------------------------------------
def _load_yaml_from(path: Path) -> Any:
    try:
        txt = path.read_text(encoding="utf-8")
        return yaml.safe_load(txt)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

def _check_rulebook(book: Any, path: Path) -> Dict[str, Any]:
    if not isinstance(book, dict) or not isinstance(book.get("methods"), dict):
        raise ValueError(f"Rulebook {path} has no 'methods' mapping")
    for method, spec in book["methods"].items():
        missing = [k for k in _REQUIRED_METHOD_KEYS if k not in (spec or {})]
        if missing:
            raise ValueError(f"Rulebook {path}: method {method!r} missing {missing}")
    return book

# -----------------------------------------------------------------------------
# Public loader API
# -----------------------------------------------------------------------------
@lru_cache(maxsize=8)
def load_yaml_rules(filename: str) -> Any:
    """
    Load a YAML rulebook from the rules dir.
    Raises FileNotFoundError if it is not there.
    """
    path = resolve_rules_file(filename)
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found: {path}")
    obj = _load_yaml_from(path)
    log.info(f"[rules] loaded {filename} from {path}")
    return obj

def load_fallback_rules() -> Dict[str, Any]:
    path = resolve_rules_file(FALLBACK_RULES_FILE)
    return _check_rulebook(load_yaml_rules(FALLBACK_RULES_FILE), path)

def has_rules_file(filename: str) -> bool:
    return resolve_rules_file(filename).exists()

def clear_cache() -> None:
    load_yaml_rules.cache_clear()
