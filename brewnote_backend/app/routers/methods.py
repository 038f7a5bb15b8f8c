from __future__ import annotations
from typing import Any, Dict, List

from fastapi import APIRouter

from brewnote_backend.app.brewing.fallback import default_suggestion, method_bounds
from brewnote_backend.app.brewing.methods import BREW_METHODS, calculate_ratio, field_advisories, get_method
from brewnote_backend.app.brewing.migration import migrate_brew_method
from brewnote_backend.app.errors import BrewnoteError
from brewnote_backend.app.services.router_helpers.common import raise_http

router = APIRouter(prefix="/methods", tags=["methods"])

# What it does:
# List every brew method in display order (fields, ratio label, time unit).
@router.get("")
def list_methods() -> List[Dict[str, Any]]:
    return [spec.as_dict() for spec in BREW_METHODS.values()]

# What it does:
# Map an old free-text coffee type onto a current method (unknown -> pourover).
@router.get("/migrate/{legacy_type}")
def migrate_method(legacy_type: str) -> Dict[str, str]:
    return {"legacyType": legacy_type, "method": migrate_brew_method(legacy_type)}

# What it does:
# One method plus its starting defaults and the clamps the rules respect.
@router.get("/{key}")
def read_method(key: str) -> Dict[str, Any]:
    try:
        spec = get_method(key)
        return {
            **spec.as_dict(),
            "defaults": default_suggestion(spec.key).to_store(),
            "bounds": method_bounds(spec.key),
        }
    except BrewnoteError as e:
        raise_http(e, "read method")

# What it does:
# Live ratio for the form fields, plus any out-of-range hints.
@router.post("/{key}/ratio")
def ratio_for(key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    try:
        ratio = calculate_ratio(key, fields)
        return {**ratio, "advisories": field_advisories(key, fields)}
    except BrewnoteError as e:
        raise_http(e, "ratio")
