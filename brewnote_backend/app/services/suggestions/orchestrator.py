# brewnote_backend/app/services/suggestions/orchestrator.py
from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from brewnote_backend.app.brewing import fallback
from brewnote_backend.app.brewing.migration import resolve_method, upgrade_brew_record
from brewnote_backend.app.errors import RemoteSuggestionFailure
from brewnote_backend.app.schemas import Suggestion
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("suggest")

# Purpose:
# Remote first (when a credential is configured), rules otherwise. The caller
# always gets a Suggestion back; remote trouble is logged and absorbed here.


def _as_record(item: Any) -> Dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True, exclude_none=True)
    return upgrade_brew_record(dict(item))


class SuggestionService:
    def __init__(self, repo, remote=None, history_limit: int = 5):
        self.repo = repo
        self.remote = remote
        self.history_limit = max(1, int(history_limit))
        self._seq: Dict[Tuple[str, str], int] = {}
        self._seq_lock = threading.Lock()

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    async def get_suggestion(
        self,
        history: Sequence[Any],
        method: Any,
        bean_name: Optional[str] = None,
    ) -> Suggestion:
        """
        Next-brew suggestion for `method` given `history` (newest first).
        Unknown method keys resolve through the legacy table.
        """
        key = resolve_method(method)
        records: List[Dict[str, Any]] = [_as_record(h) for h in history]
        if self.remote is not None:
            try:
                return await self.remote.fetch_remote_suggestion(records, key, bean_name)
            except RemoteSuggestionFailure as e:
                log.warning("remote suggestion failed for %s (%s); using fallback rules", key, e)
        return fallback.suggest(records, key)

    # ---------------- per-bean refresh ----------------

    def _next_ticket(self, bean_id: str, method: str) -> int:
        with self._seq_lock:
            n = self._seq.get((bean_id, method), 0) + 1
            self._seq[(bean_id, method)] = n
            return n

    def _is_latest(self, bean_id: str, method: str, ticket: int) -> bool:
        with self._seq_lock:
            return self._seq.get((bean_id, method)) == ticket

    async def refresh_for_bean(self, bean_id: str, method: Any) -> Optional[Suggestion]:
        """
        Recompute and cache the suggestion for (bean, method). Returns None when a
        newer refresh for the same pair started while this one was in flight;
        the older result is dropped instead of overwriting the newer one.
        """
        key = resolve_method(method)
        bean = self.repo.get_bean(bean_id)
        ticket = self._next_ticket(bean_id, key)
        history = self.repo.get_brews_for_bean(bean_id, key)[: self.history_limit]
        suggestion = await self.get_suggestion(history, key, bean.name)
        if not self._is_latest(bean_id, key, ticket):
            log.info("dropping superseded suggestion for %s/%s", bean_id, key)
            return None
        return self.repo.save_bean_suggestion(bean_id, key, suggestion)

    def cached_suggestion(self, bean_id: str, method: Any) -> Optional[Suggestion]:
        return self.repo.get_bean_suggestion(bean_id, resolve_method(method))


class SuggestionSelector:
    """
    Tracks what the user currently has selected. A suggestion that resolves after
    the selection moved on is discarded (select() returns None).
    """

    def __init__(self, service: SuggestionService):
        self.service = service
        self.current: Optional[Tuple[str, str]] = None
        self.suggestion: Optional[Suggestion] = None
        self._token = 0

    def choose(self, bean_id: str, method: Any) -> int:
        self._token += 1
        self.current = (bean_id, resolve_method(method))
        self.suggestion = None
        return self._token

    async def select(
        self,
        bean_id: str,
        method: Any,
        history: Sequence[Any],
        bean_name: Optional[str] = None,
    ) -> Optional[Suggestion]:
        token = self.choose(bean_id, method)
        suggestion = await self.service.get_suggestion(history, method, bean_name)
        if token != self._token:
            return None
        self.suggestion = suggestion
        return suggestion


__all__ = ["SuggestionService", "SuggestionSelector"]
