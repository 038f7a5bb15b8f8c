# brewnote_backend/app/brewing/methods.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from brewnote_backend.app.errors import UnknownMethod

# Purpose:
# Static registry of the supported brew methods: display name, the form fields
# that apply (in display order), how the ratio is labelled and the time unit.

@dataclass(frozen=True)
class MethodSpec:
    key: str
    name: str
    fields: Tuple[str, ...]
    ratio_label: str
    time_unit: str          # "seconds" | "minutes"

    @property
    def time_field(self) -> str:
        return "brewTimeSec" if self.time_unit == "seconds" else "brewTimeMin"

    @property
    def ratio_numerator(self) -> str:
        return "yieldG" if self.key == "espresso" else "waterMl"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "fields": list(self.fields),
            "ratioLabel": self.ratio_label,
            "timeUnit": self.time_unit,
            "timeField": self.time_field,
        }


BREW_METHODS: Dict[str, MethodSpec] = {
    "espresso": MethodSpec(
        key="espresso",
        name="Espresso",
        fields=("doseG", "yieldG", "grindSize", "waterTempC", "brewTimeSec", "pressureBar"),
        ratio_label="Yield/Dose",
        time_unit="seconds",
    ),
    "pourover": MethodSpec(
        key="pourover",
        name="Pour Over",
        fields=("doseG", "waterMl", "grindSize", "waterTempC", "brewTimeSec", "pouringNote"),
        ratio_label="Water/Dose",
        time_unit="seconds",
    ),
    "frenchpress": MethodSpec(
        key="frenchpress",
        name="French Press",
        fields=("doseG", "waterMl", "grindSize", "waterTempC", "brewTimeMin"),
        ratio_label="Water/Dose",
        time_unit="minutes",
    ),
    "mokapot": MethodSpec(
        key="mokapot",
        name="Moka Pot",
        fields=("doseG", "waterMl", "grindSize", "waterTempC", "brewTimeMin"),
        ratio_label="Water/Dose",
        time_unit="minutes",
    ),
}

DEFAULT_METHOD = "pourover"
NO_RATIO = "--"


def method_keys() -> List[str]:
    return list(BREW_METHODS)

def get_method(key: Any) -> MethodSpec:
    spec = BREW_METHODS.get(getattr(key, "value", key)) if isinstance(key, str) else None
    if spec is None:
        raise UnknownMethod(key)
    return spec

def is_known_method(key: Any) -> bool:
    return isinstance(key, str) and key in BREW_METHODS


def _as_fields(brew_fields: Any) -> Mapping[str, Any]:
    if isinstance(brew_fields, BaseModel):
        return brew_fields.model_dump(by_alias=True)
    return brew_fields or {}

def _positive(v: Any) -> Optional[float]:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if f > 0 else None


# What it does:
# Brew ratio as text ("2.0:1") plus the method's label; "--" when it can't be computed.
def calculate_ratio(method: str, brew_fields: Any) -> Dict[str, str]:
    spec = get_method(method)
    fields = _as_fields(brew_fields)
    dose = _positive(fields.get("doseG"))
    out = _positive(fields.get(spec.ratio_numerator))
    if dose is None or out is None:
        return {"value": NO_RATIO, "label": spec.ratio_label}
    return {"value": f"{out / dose:.1f}:1", "label": spec.ratio_label}


# ----------------------------------------------------------------------
# Advisory ranges (never block a save; shown next to the field)
# ----------------------------------------------------------------------

_ADVISORY_RANGES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "doseG":       {"*": (5, 40)},
    "yieldG":      {"*": (10, 70)},
    "waterMl":     {"pourover": (150, 500), "frenchpress": (250, 1000), "mokapot": (100, 400)},
    "grindSize":   {"*": (1, 40)},
    "waterTempC":  {"*": (80, 100)},
    "brewTimeSec": {"espresso": (15, 45), "pourover": (120, 360)},
    "brewTimeMin": {"frenchpress": (3, 8), "mokapot": (2, 6)},
    "pressureBar": {"*": (6, 12)},
}

_UNITS = {
    "doseG": "g", "yieldG": "g", "waterMl": "ml", "waterTempC": "°C",
    "brewTimeSec": "s", "brewTimeMin": "min", "pressureBar": "bar",
}

def _range_for(field: str, method: str) -> Optional[Tuple[float, float]]:
    ranges = _ADVISORY_RANGES.get(field) or {}
    return ranges.get(method) or ranges.get("*")

def field_advisories(method: str, brew_fields: Any) -> Dict[str, str]:
    """
    Out-of-range hints for the fields that apply to `method`.
    Grind size may be free text ("medium-coarse"); only numeric grinds are checked.
    """
    spec = get_method(method)
    fields = _as_fields(brew_fields)
    out: Dict[str, str] = {}
    for field in spec.fields:
        value = fields.get(field)
        if value is None or value == "":
            continue
        bounds = _range_for(field, spec.key)
        if bounds is None:
            continue
        try:
            num = float(value)
        except (TypeError, ValueError):
            continue
        lo, hi = bounds
        if num < lo or num > hi:
            if field == "grindSize":
                out[field] = f"Suggested range: {lo:g}-{hi:g}"
            else:
                out[field] = f"Recommended range: {lo:g}-{hi:g} {_UNITS.get(field, '')}".rstrip()
    return out
