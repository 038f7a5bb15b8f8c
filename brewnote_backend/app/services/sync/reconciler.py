# brewnote_backend/app/services/sync/reconciler.py
from __future__ import annotations

import asyncio
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional

from brewnote_backend.app.errors import BrewnoteError
from brewnote_backend.app.schemas import Brew, PendingBrew
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("sync")

Sleeper = Callable[[float], Awaitable[Any]]

# Purpose:
# Offline/online state machine around the pending-brew queue.
#   offline: new brews go to the queue, not the main log
#   offline -> online: wait the settle delay, then flush once; brews recorded
#   before that flush ends are still queued so the log keeps arrival order
# A flush appends the queue to the main log first and trims the queue after,
# so a failed main-log write never loses a pending brew.


class OfflineQueueReconciler:
    def __init__(
        self,
        repo,
        settle_delay_s: float = 1.0,
        online: bool = True,
        sleep: Optional[Sleeper] = None,
    ):
        self.repo = repo
        self.settle_delay_s = max(0.0, float(settle_delay_s))
        self._online = bool(online)
        self._sleep: Sleeper = sleep or asyncio.sleep
        self._generation = 0
        self._settling = False
        self._flush_lock = threading.Lock()
        self.last_flush_count = 0
        self.last_error: Optional[str] = None

    @property
    def online(self) -> bool:
        return self._online

    @property
    def queueing(self) -> bool:
        """New brews go to the queue while offline and until the reconnect flush is done."""
        return not self._online or self._settling

    @property
    def flushing(self) -> bool:
        return self._flush_lock.locked()

    # What it does:
    # Queue a brew recorded while offline (validated, id/createdAt stamped).
    def enqueue_pending_brew(self, brew: Any) -> PendingBrew:
        pending = self.repo.enqueue_pending_brew(brew)
        log.info("queued brew %s while offline", pending.id)
        return pending

    def flush_pending_brews(self) -> List[Brew]:
        """
        Move every queued brew into the main log, in queue order, with the
        pending flag stripped. A flush already in progress makes this a no-op.
        Store errors propagate and leave the queue as it was.
        """
        if not self._flush_lock.acquire(blocking=False):
            log.info("flush already in progress; skipping")
            return []
        try:
            queue = self.repo.get_raw_pending()
            if not queue:
                self.last_flush_count = 0
                return []

            brews = self.repo.get_raw_brews()
            logged_ids = {b.get("id") for b in brews}
            moved: List[Dict[str, Any]] = []
            for rec in queue:
                clean = {k: v for k, v in rec.items() if k != "pending"}
                if clean.get("id") in logged_ids:
                    # already delivered by an earlier flush whose queue trim failed
                    continue
                moved.append(clean)
                logged_ids.add(clean.get("id"))

            if moved:
                self.repo.save_raw_brews(brews + moved)
            self.repo.drop_pending(rec.get("id") for rec in queue)

            self.last_flush_count = len(moved)
            self.last_error = None
            log.info("flushed %d pending brew(s) into the log", len(moved))
            return self.repo.parse_records(Brew, moved, "brew")
        finally:
            self._flush_lock.release()

    async def set_online(self, online: bool) -> List[Brew]:
        """
        Feed a connectivity change. Only an offline->online edge flushes, and only
        if we are still online after the settle delay and no other change arrived.
        """
        online = bool(online)
        if online == self._online:
            return []
        self._online = online
        self._settling = online
        self._generation += 1
        generation = self._generation

        if not online:
            log.info("connectivity lost; new brews will be queued")
            return []

        if self.settle_delay_s > 0:
            await self._sleep(self.settle_delay_s)
        if generation != self._generation or not self._online:
            log.info("connectivity changed during settle delay; flush skipped")
            return []

        try:
            return self.flush_pending_brews()
        except BrewnoteError as e:
            self.last_error = str(e)
            log.error("flush failed, queue kept for the next reconnect: %s", e)
            return []
        finally:
            if generation == self._generation:
                self._settling = False

    def status(self) -> Dict[str, Any]:
        return {
            "online": self._online,
            "queueing": self.queueing,
            "flushing": self.flushing,
            "pending": len(self.repo.get_raw_pending()),
            "settleDelayS": self.settle_delay_s,
            "lastFlushCount": self.last_flush_count,
            "lastError": self.last_error,
        }


__all__ = ["OfflineQueueReconciler"]
