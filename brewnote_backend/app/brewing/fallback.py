# brewnote_backend/app/brewing/fallback.py
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from brewnote_backend.app.schemas import Brew, Suggestion
from .library_loader import load_fallback_rules
from .methods import NO_RATIO, MethodSpec, calculate_ratio, get_method
from .migration import resolve_method, upgrade_brew_record

# Purpose:
# Rule-based suggestion used when the remote service is off or failing.
# Pure: the same history always yields the same suggestion (no clock, no RNG).

HistoryItem = Union[Brew, Dict[str, Any]]


def _round_half_up(x: float, places: int = 0) -> float:
    f = 10 ** places
    return math.floor(x * f + 0.5) / f

def _clamp(x: float, bounds: Optional[Sequence[float]]) -> float:
    if not bounds:
        return x
    lo, hi = bounds
    return max(lo, min(hi, x))

def _num(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None

def _tidy(x: float) -> Union[int, float]:
    return int(x) if float(x).is_integer() else x

def _fields_of(item: HistoryItem) -> Dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True)
    return upgrade_brew_record(dict(item))

def primary_taste(fields: Dict[str, Any]) -> Optional[str]:
    """First taste tag in insertion order; legacy scalar tags count as a one-element set."""
    taste = fields.get("taste")
    if isinstance(taste, (list, tuple)):
        for t in taste:
            if t:
                return str(getattr(t, "value", t))
        return None
    return str(taste) if taste else None


def default_suggestion(method: str) -> Suggestion:
    spec = get_method(resolve_method(method))
    d = load_fallback_rules()["methods"][spec.key]["defaults"]
    return Suggestion(
        method=spec.key,
        grind_size=d["grindSize"],
        ratio=d["ratio"],
        brew_time=d["brewTime"],
        water_temp_c=d["waterTempC"],
        pressure_bar=d.get("pressureBar") if spec.key == "espresso" else None,
        explanation=d["explanation"],
        source="default",
    )


def _step_grind(previous: Optional[str], direction: str, book: Dict[str, Any]) -> str:
    ladder: List[str] = list(book.get("grind_ladder") or [])
    label = (previous or "").strip().lower()
    if label in ladder:
        i = ladder.index(label) + (1 if direction == "coarser" else -1)
        return ladder[max(0, min(len(ladder) - 1, i))]
    return (book.get("grind_fallback") or {}).get(direction, f"slightly {direction}")

def _adjust(value: float, op: Optional[Dict[str, float]]) -> float:
    if not op:
        return value
    if "mul" in op:
        return value * float(op["mul"])
    return value + float(op.get("add", 0))

def _round_time(value: float, spec: MethodSpec) -> Union[int, float]:
    if spec.time_unit == "seconds":
        return int(_round_half_up(value))
    return _tidy(_round_half_up(value, 1))

def _previous_ratio(fields: Dict[str, Any], spec: MethodSpec, default: str) -> str:
    computed = calculate_ratio(spec.key, fields)["value"]
    if computed != NO_RATIO:
        return computed
    legacy = fields.get("ratio")
    return str(legacy) if legacy else default


def _baseline(fields: Dict[str, Any], spec: MethodSpec, defaults: Dict[str, Any]) -> Tuple[Optional[str], float, float, Optional[float]]:
    grind = fields.get("grindSize")
    time = _num(fields.get(spec.time_field))
    temp = _num(fields.get("waterTempC"))
    pressure = _num(fields.get("pressureBar"))
    return (
        str(grind) if grind not in (None, "") else None,
        time if time is not None else float(defaults["brewTime"]),
        temp if temp is not None else float(defaults["waterTempC"]),
        pressure if pressure is not None else _num(defaults.get("pressureBar")),
    )


def suggest(history: Sequence[HistoryItem], method: str) -> Suggestion:
    """
    Next-brew suggestion from the most recent brew in `history` (newest first).
    Only the first taste tag of that brew drives the adjustment.
    """
    spec = get_method(resolve_method(method))
    if not history:
        return default_suggestion(spec.key)

    book = load_fallback_rules()
    mbook = book["methods"][spec.key]
    defaults, bounds = mbook["defaults"], mbook.get("bounds") or {}

    last = _fields_of(history[0])
    grind, time, temp, pressure = _baseline(last, spec, defaults)
    ratio = _previous_ratio(last, spec, defaults["ratio"])

    tag = primary_taste(last)
    rule = (mbook.get("rules") or {}).get(tag) if tag else None
    explanations = book.get("explanations") or {}

    # a grind step is relative to what was actually used; with nothing recorded we can only say which way
    if rule:
        grind = _step_grind(grind, rule["grind"], book) if rule.get("grind") else (grind or defaults["grindSize"])
        time = _adjust(time, rule.get("brewTime"))
        temp = _adjust(temp, rule.get("waterTempC"))
        ratio = rule.get("ratio") or ratio
        explanation = rule["explanation"]
    elif tag == "balanced":
        explanation = explanations.get("balanced", "Keep the same parameters.")
    else:
        explanation = explanations.get("baseline", "Using previous parameters as baseline for next brew.")

    if not rule:
        grind = grind or defaults["grindSize"]
    time = _clamp(time, bounds.get("brewTime"))
    temp = _clamp(temp, bounds.get("waterTempC"))

    return Suggestion(
        method=spec.key,
        grind_size=grind,
        ratio=ratio,
        brew_time=_round_time(time, spec),
        water_temp_c=_tidy(_round_half_up(temp, 1)),
        pressure_bar=_tidy(_clamp(pressure, bounds.get("pressureBar"))) if spec.key == "espresso" and pressure is not None else None,
        explanation=explanation,
        source="fallback",
    )


def method_bounds(method: str) -> Dict[str, List[float]]:
    spec = get_method(resolve_method(method))
    return dict(load_fallback_rules()["methods"][spec.key].get("bounds") or {})
