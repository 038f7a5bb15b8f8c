# brewnote_backend/app/services/data_stores/repository.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from brewnote_backend.app.brewing.migration import upgrade_brew_record
from brewnote_backend.app.errors import NotFoundFailure, StoreWriteFailure, ValidationFailure
from brewnote_backend.app.schemas import (
    Bean, BeanIn, BeanPatch, Brew, BrewIn, OnboardingStatus, PendingBrew, Suggestion,
)
from brewnote_backend.app.utils.logs import get_logger
from .io_utils import dumps_json, loads_json
from .kv_store import KeyValueStore

log = get_logger("repository")

STORAGE_KEYS = {
    "BEANS": "coffee_beans",
    "BREWS": "coffee_brews",
    "PENDING": "coffee_pending_brews",
    "ONBOARDING": "coffee_onboarding_status",
}

M = TypeVar("M", bound=BaseModel)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def new_id() -> str:
    return uuid.uuid4().hex

def coerce_model(model_cls: Type[M], data: Any) -> M:
    """Validate into `model_cls`, turning pydantic errors into ValidationFailure."""
    if isinstance(data, model_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, exclude_none=True)
    try:
        return model_cls.model_validate(data or {})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        msg = first.get("msg", "invalid value")
        raise ValidationFailure(f"{field}: {msg}" if field else msg, field=field) from e

def _newest_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # createdAt ties keep the later insert first
    indexed = list(enumerate(records))
    indexed.sort(key=lambda p: (str(p[1].get("createdAt") or ""), p[0]), reverse=True)
    return [r for _, r in indexed]


class BrewRepository:
    """
    Beans, brews, the offline queue and app flags on top of a flat key/value
    store. Reads never raise on bad blobs (logged, read as empty); writes raise
    StoreWriteFailure.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = RLock()

    # ---------------- low-level blob IO ----------------

    def _read(self, key: str, default: Any) -> Any:
        try:
            return loads_json(self.store.get(key), default)
        except (ValueError, UnicodeDecodeError) as e:
            log.error("unreadable blob %r (%s); treating as empty", key, e)
            return default

    def _read_list(self, key: str) -> List[Dict[str, Any]]:
        data = self._read(key, [])
        if not isinstance(data, list):
            log.error("blob %r is not a list; treating as empty", key)
            return []
        return [d for d in data if isinstance(d, dict)]

    def _write(self, key: str, obj: Any) -> None:
        try:
            self.store.set(key, dumps_json(obj))
        except StoreWriteFailure:
            raise
        except Exception as e:
            log.error("write to %r failed: %s", key, e)
            raise StoreWriteFailure(key, e) from e

    @staticmethod
    def parse_records(model_cls: Type[M], records: Iterable[Dict[str, Any]], what: str) -> List[M]:
        out: List[M] = []
        for rec in records:
            try:
                out.append(model_cls.model_validate(rec))
            except ValidationError as e:
                log.warning("skipping unreadable %s %r: %s", what, rec.get("id"), e.errors()[0].get("msg"))
        return out

    # ---------------- beans ----------------

    def get_raw_beans(self) -> List[Dict[str, Any]]:
        return self._read_list(STORAGE_KEYS["BEANS"])

    def get_beans(self) -> List[Bean]:
        return self.parse_records(Bean, self.get_raw_beans(), "bean")

    def find_bean(self, bean_id: str) -> Optional[Bean]:
        for rec in self.get_raw_beans():
            if rec.get("id") == bean_id:
                return coerce_model(Bean, rec)
        return None

    def get_bean(self, bean_id: str) -> Bean:
        bean = self.find_bean(bean_id)
        if bean is None:
            raise NotFoundFailure(f"bean not found: {bean_id}")
        return bean

    def bean_exists(self, bean_id: str) -> bool:
        return any(rec.get("id") == bean_id for rec in self.get_raw_beans())

    def create_bean(self, bean: Any) -> Bean:
        data = coerce_model(BeanIn, bean)
        with self._lock:
            beans = self.get_raw_beans()
            rec = data.to_store()
            rec.update({"id": new_id(), "createdAt": now_iso(), "suggestions": {}})
            beans.append(rec)
            self._write(STORAGE_KEYS["BEANS"], beans)
        return coerce_model(Bean, rec)

    def update_bean(self, bean_id: str, patch: Any) -> Bean:
        changes = coerce_model(BeanPatch, patch).to_store()
        with self._lock:
            beans = self.get_raw_beans()
            for i, rec in enumerate(beans):
                if rec.get("id") != bean_id:
                    continue
                merged = {**rec, **{k: v for k, v in changes.items() if k not in ("id", "createdAt")}}
                bean = coerce_model(Bean, merged)
                beans[i] = merged
                self._write(STORAGE_KEYS["BEANS"], beans)
                return bean
        raise NotFoundFailure(f"bean not found: {bean_id}")

    def save_bean(self, bean: Any) -> Bean:
        """Upsert: an existing id updates that bean, anything else creates one."""
        bid = str((bean.get("id") if isinstance(bean, dict) else getattr(bean, "id", None)) or "").strip()
        if bid and self.bean_exists(bid):
            return self.update_bean(bid, bean)
        return self.create_bean(bean)

    def delete_bean(self, bean_id: str) -> Dict[str, int]:
        """Delete a bean and every brew (logged or pending) that points at it."""
        with self._lock:
            beans = self.get_raw_beans()
            kept_beans = [b for b in beans if b.get("id") != bean_id]
            if len(kept_beans) == len(beans):
                raise NotFoundFailure(f"bean not found: {bean_id}")

            brews = self.get_raw_brews()
            kept_brews = [b for b in brews if b.get("beanId") != bean_id]
            pending = self.get_raw_pending()
            kept_pending = [b for b in pending if b.get("beanId") != bean_id]

            # children first: a failure here leaves the bean (and its brews) in place
            if len(kept_brews) != len(brews):
                self._write(STORAGE_KEYS["BREWS"], kept_brews)
            if len(kept_pending) != len(pending):
                self._write(STORAGE_KEYS["PENDING"], kept_pending)
            self._write(STORAGE_KEYS["BEANS"], kept_beans)

        return {
            "beans": 1,
            "brews": len(brews) - len(kept_brews),
            "pending": len(pending) - len(kept_pending),
        }

    # ---------------- suggestion cache (per bean, per method) ----------------

    def save_bean_suggestion(self, bean_id: str, method: str, suggestion: Suggestion) -> Suggestion:
        stamped = suggestion.model_copy(update={"updated_at": now_iso()})
        with self._lock:
            beans = self.get_raw_beans()
            for rec in beans:
                if rec.get("id") == bean_id:
                    cache = rec.get("suggestions")
                    if not isinstance(cache, dict):
                        cache = {}
                    cache[str(method)] = stamped.to_store()
                    rec["suggestions"] = cache
                    self._write(STORAGE_KEYS["BEANS"], beans)
                    return stamped
        raise NotFoundFailure(f"bean not found: {bean_id}")

    def get_bean_suggestion(self, bean_id: str, method: str) -> Optional[Suggestion]:
        for rec in self.get_raw_beans():
            if rec.get("id") != bean_id:
                continue
            cached = (rec.get("suggestions") or {}).get(str(method))
            if not cached:
                return None
            try:
                return Suggestion.model_validate(cached)
            except ValidationError:
                log.warning("ignoring unreadable cached suggestion for %s/%s", bean_id, method)
                return None
        return None

    # ---------------- brews ----------------

    def get_raw_brews(self) -> List[Dict[str, Any]]:
        return self._read_list(STORAGE_KEYS["BREWS"])

    def save_raw_brews(self, records: List[Dict[str, Any]]) -> None:
        with self._lock:
            self._write(STORAGE_KEYS["BREWS"], list(records))

    def get_brews(self) -> List[Brew]:
        """Whole log in stored order, legacy records upgraded on the fly (not persisted)."""
        return self.parse_records(Brew, (upgrade_brew_record(r) for r in self.get_raw_brews()), "brew")

    def get_brew(self, brew_id: str) -> Brew:
        for brew in self.get_brews():
            if brew.id == brew_id:
                return brew
        raise NotFoundFailure(f"brew not found: {brew_id}")

    def get_brews_for_bean(self, bean_id: str, method: Optional[str] = None) -> List[Brew]:
        rows = [upgrade_brew_record(r) for r in self.get_raw_brews() if r.get("beanId") == bean_id]
        if method:
            rows = [r for r in rows if r.get("method") == str(method)]
        return self.parse_records(Brew, _newest_first(rows), "brew")

    def get_recent_brews(self, limit: int = 5) -> List[Brew]:
        rows = [upgrade_brew_record(r) for r in self.get_raw_brews()]
        return self.parse_records(Brew, _newest_first(rows)[: max(0, limit)], "brew")

    def prepare_brew(self, brew: Any) -> Dict[str, Any]:
        """Validate a new brew and stamp id/createdAt. Nothing is written."""
        data = coerce_model(BrewIn, brew)
        if not self.bean_exists(data.bean_id):
            raise NotFoundFailure(f"bean not found: {data.bean_id}")
        rec = data.to_store()
        rec.pop("pending", None)
        rec.update({"id": new_id(), "createdAt": now_iso(), "brewMethod": rec["method"]})
        return rec

    def save_brew(self, brew: Any) -> Brew:
        rec = self.prepare_brew(brew)
        with self._lock:
            brews = self.get_raw_brews()
            brews.append(rec)
            self._write(STORAGE_KEYS["BREWS"], brews)
        return coerce_model(Brew, rec)

    def delete_brew(self, brew_id: str) -> None:
        with self._lock:
            brews = self.get_raw_brews()
            kept = [b for b in brews if b.get("id") != brew_id]
            if len(kept) == len(brews):
                raise NotFoundFailure(f"brew not found: {brew_id}")
            self._write(STORAGE_KEYS["BREWS"], kept)

    # ---------------- offline queue ----------------

    def get_raw_pending(self) -> List[Dict[str, Any]]:
        return self._read_list(STORAGE_KEYS["PENDING"])

    def get_pending_brews(self) -> List[PendingBrew]:
        return self.parse_records(PendingBrew, self.get_raw_pending(), "pending brew")

    def enqueue_pending_brew(self, brew: Any) -> PendingBrew:
        rec = self.prepare_brew(brew)
        rec["pending"] = True
        with self._lock:
            queue = self.get_raw_pending()
            queue.append(rec)
            self._write(STORAGE_KEYS["PENDING"], queue)
        return coerce_model(PendingBrew, rec)

    def drop_pending(self, brew_ids: Iterable[str]) -> None:
        """Remove the given ids from the queue; entries added meanwhile stay."""
        ids = set(brew_ids)
        with self._lock:
            queue = self.get_raw_pending()
            self._write(STORAGE_KEYS["PENDING"], [p for p in queue if p.get("id") not in ids])

    def clear_pending_brews(self) -> None:
        with self._lock:
            self._write(STORAGE_KEYS["PENDING"], [])

    # ---------------- flags ----------------

    def get_onboarding_status(self) -> str:
        raw = self._read(STORAGE_KEYS["ONBOARDING"], OnboardingStatus.NOT_STARTED.value)
        try:
            return OnboardingStatus(raw).value
        except ValueError:
            return OnboardingStatus.NOT_STARTED.value

    def set_onboarding_status(self, status: Any) -> str:
        try:
            value = OnboardingStatus(getattr(status, "value", status)).value
        except ValueError as e:
            raise ValidationFailure(f"unknown onboarding status: {status!r}", field="status") from e
        with self._lock:
            self._write(STORAGE_KEYS["ONBOARDING"], value)
        return value
