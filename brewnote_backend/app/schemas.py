# schemas.py  (beans / brews / suggestions; camelCase on the wire and in the store)

from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from brewnote_backend.app.utils.strings import null_to_none_or_strip


# ===================== Enums =====================

class BrewMethod(str, Enum):
    ESPRESSO = "espresso"
    POUROVER = "pourover"
    FRENCHPRESS = "frenchpress"
    MOKAPOT = "mokapot"

class RoastLevel(str, Enum):
    LIGHT = "light"
    MEDIUM_LIGHT = "medium-light"
    MEDIUM = "medium"
    MEDIUM_DARK = "medium-dark"
    DARK = "dark"

class TasteTag(str, Enum):
    TOO_BITTER = "too_bitter"
    TOO_SOUR = "too_sour"
    BALANCED = "balanced"
    WEAK = "weak"
    STRONG = "strong"

class OnboardingStatus(str, Enum):
    NOT_STARTED = "not-started"
    SKIPPED = "skipped"
    COMPLETED = "completed"

SuggestionSource = Literal["default", "fallback", "remote"]
Number = Union[int, float]


# ===================== Base =====================

class CamelModel(BaseModel):
    # records keep unknown keys so older clients (and legacy blobs) never lose data
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        use_enum_values=True,
    )

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _taste_as_list(v: Any) -> List[Any]:
    # legacy records carry a single tag; keep insertion order, drop repeats
    if v is None or v == "":
        return []
    items = v if isinstance(v, (list, tuple)) else [v]
    out: List[Any] = []
    for t in items:
        if t is None:
            continue
        t = t.value if isinstance(t, Enum) else str(t).strip()
        if t and t not in out:
            out.append(t)
    return out


# ===================== Suggestions =====================

class Suggestion(CamelModel):
    model_config = ConfigDict(extra="ignore")

    method: BrewMethod
    grind_size: str
    ratio: str
    brew_time: Number
    water_temp_c: Number
    pressure_bar: Optional[Number] = None
    explanation: str
    source: SuggestionSource = "fallback"
    updated_at: Optional[str] = None

    @field_validator("grind_size", "ratio", "explanation", mode="before")
    @classmethod
    def _textify(cls, v):
        # remote services happily send grind as a number
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return f"{v:g}"
        return v


# ===================== Beans =====================

class BeanIn(CamelModel):
    name: str
    origin: Optional[str] = None
    roast_level: RoastLevel = RoastLevel.MEDIUM
    notes: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_required(cls, v):
        s = null_to_none_or_strip(v)
        if not s:
            raise ValueError("bean name is required")
        return s

    @field_validator("origin", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return null_to_none_or_strip(v)

class BeanPatch(CamelModel):
    name: Optional[str] = None
    origin: Optional[str] = None
    roast_level: Optional[RoastLevel] = None
    notes: Optional[str] = None

class Bean(BeanIn):
    id: str
    created_at: str
    suggestions: Dict[str, Suggestion] = Field(default_factory=dict)


# ===================== Brews =====================

class BrewParams(CamelModel):
    dose_g: Optional[Number] = None
    yield_g: Optional[Number] = None
    water_ml: Optional[Number] = None
    grind_size: Optional[str] = None
    water_temp_c: Optional[Number] = None
    brew_time_sec: Optional[Number] = None
    brew_time_min: Optional[Number] = None
    pressure_bar: Optional[Number] = None
    pouring_note: Optional[str] = None

    @field_validator("grind_size", mode="before")
    @classmethod
    def _grind_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return f"{v:g}"
        return v

class BrewIn(BrewParams):
    """Write path: strict taste set, method from the registry."""
    bean_id: str
    method: BrewMethod
    taste: List[TasteTag]
    notes: Optional[str] = None

    @field_validator("taste", mode="before")
    @classmethod
    def _taste_set(cls, v):
        tags = _taste_as_list(v)
        if not tags:
            raise ValueError("select at least one taste feedback")
        return tags

class Brew(BrewParams):
    """Read path: tolerant of whatever older clients stored."""
    id: str
    bean_id: str
    method: BrewMethod
    taste: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: str

    @field_validator("taste", mode="before")
    @classmethod
    def _taste_any(cls, v):
        return _taste_as_list(v)

    @property
    def primary_taste(self) -> Optional[str]:
        return self.taste[0] if self.taste else None

class PendingBrew(Brew):
    pending: bool = True


# ===================== API shapes =====================

class SuggestionRequest(CamelModel):
    history: List[Dict[str, Any]] = Field(default_factory=list)
    method: str = BrewMethod.POUROVER.value
    bean_name: Optional[str] = None

class ConnectivityIn(CamelModel):
    online: bool

class OnboardingIn(CamelModel):
    status: OnboardingStatus

class BrewSaved(CamelModel):
    brew: Dict[str, Any]
    pending: bool = False
    suggestion: Optional[Suggestion] = None
    advisories: Dict[str, str] = Field(default_factory=dict)
