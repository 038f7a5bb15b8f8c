# brewnote_backend/app/brewing/migration.py
"""
Legacy brew records.

Before method-specific forms, brews were stored with a free-text coffee type
(`coffeeType`, later `brewMethod`) and flat `coffeeAmount` / `waterAmount` /
`brewTime` fields. `upgrade_brew_record` is the only place that knows both
shapes; everything downstream reads the current layout.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from brewnote_backend.app.errors import UnknownMethod
from brewnote_backend.app.utils.logs import get_logger
from .methods import DEFAULT_METHOD, get_method, is_known_method

log = get_logger("migration")

LEGACY_METHOD_MAP: Dict[str, str] = {
    "espresso": "espresso",
    "americano": "pourover",
    "latte": "pourover",
    "cappuccino": "espresso",
    "pourover": "pourover",
    "french_press": "frenchpress",
    "aeropress": "pourover",
}

DEFAULT_GRIND = "medium"
DEFAULT_WATER_TEMP_C = 95
DEFAULT_BREW_TIME_SEC = 240
DEFAULT_BREW_TIME_MIN = 4

SCHEMA_LEGACY = 1
SCHEMA_CURRENT = 2


def migrate_brew_method(legacy_type: Any) -> str:
    """Map an old coffee type (or a current method key) to a method; unknown → pourover."""
    key = str(getattr(legacy_type, "value", legacy_type) or "").strip().lower()
    if key in LEGACY_METHOD_MAP:
        return LEGACY_METHOD_MAP[key]
    if is_known_method(key):
        return key
    return DEFAULT_METHOD

def resolve_method(key: Any) -> str:
    """Registry lookup that falls back through the legacy table instead of raising."""
    try:
        return get_method(key).key
    except UnknownMethod:
        return migrate_brew_method(key)


# What it does:
# Tell the two record shapes apart. Current records carry "method".
def brew_schema_version(record: Dict[str, Any]) -> int:
    return SCHEMA_CURRENT if record.get("method") else SCHEMA_LEGACY

def is_legacy_brew(record: Dict[str, Any]) -> bool:
    return brew_schema_version(record) == SCHEMA_LEGACY


def _first_present(record: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = record.get(k)
        if v is not None and v != "":
            return v
    return None

def _minutes_from_seconds(v: Any) -> Optional[float]:
    try:
        secs = float(v)
    except (TypeError, ValueError):
        return None
    return round(secs / 60.0, 1)


def upgrade_brew_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return `record` in the current layout. Records that already carry a
    registered "method" are returned as-is (same object). An unregistered
    "method" goes through the legacy table. Legacy keys are kept next to the
    new ones.
    """
    if not is_legacy_brew(record):
        if is_known_method(record.get("method")):
            return record
        out = dict(record)
        out["method"] = migrate_brew_method(record.get("method"))
        return out

    out = dict(record)
    method = migrate_brew_method(_first_present(record, "brewMethod", "coffeeType"))
    out["method"] = method

    dose = _first_present(record, "doseG", "coffeeAmount")
    if dose is not None:
        out["doseG"] = dose
    water = _first_present(record, "waterMl", "waterAmount")
    if water is not None:
        out["waterMl"] = water

    grind = _first_present(record, "grindSize")
    out["grindSize"] = grind if grind is not None else DEFAULT_GRIND
    temp = _first_present(record, "waterTempC")
    out["waterTempC"] = temp if temp is not None else DEFAULT_WATER_TEMP_C

    if get_method(method).time_unit == "seconds":
        secs = _first_present(record, "brewTimeSec", "brewTime")
        out["brewTimeSec"] = secs if secs is not None else DEFAULT_BREW_TIME_SEC
    else:
        mins = _first_present(record, "brewTimeMin")
        if mins is None:
            mins = _minutes_from_seconds(record.get("brewTime"))
        out["brewTimeMin"] = mins if mins is not None else DEFAULT_BREW_TIME_MIN

    return out


def migrate_brew_records(records: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    """Upgrade a whole collection. Returns (records, number upgraded); order and count are preserved."""
    out: List[Dict[str, Any]] = []
    changed = 0
    for rec in records:
        if not isinstance(rec, dict):
            out.append(rec)
            continue
        upgraded = upgrade_brew_record(rec)
        if upgraded is not rec:
            changed += 1
        out.append(upgraded)
    return out, changed


def migrate_brew_data(repo) -> List[Any]:
    """
    Normalize the stored brew log in place and return it as Brew models.
    Writes back only when a legacy record was found, so repeated calls are free.
    """
    raw = repo.get_raw_brews()
    migrated, changed = migrate_brew_records(raw)
    if changed:
        repo.save_raw_brews(migrated)
        log.info("migrated %d legacy brew record(s)", changed)
    return repo.get_brews()


__all__ = [
    "LEGACY_METHOD_MAP",
    "migrate_brew_method",
    "resolve_method",
    "brew_schema_version",
    "is_legacy_brew",
    "upgrade_brew_record",
    "migrate_brew_records",
    "migrate_brew_data",
]
