# brewnote_backend/app/services/router_helpers/brew_helpers.py
from __future__ import annotations

from typing import Any, Dict, Optional

from brewnote_backend.app.brewing.methods import field_advisories
from brewnote_backend.app.errors import BrewnoteError
from brewnote_backend.app.schemas import BrewSaved, Suggestion
from brewnote_backend.app.services.container import Services
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("brews")


# ----------------------------------------------------------------------
# Brew recording (online: log + refresh; offline: queue + cached)
# ----------------------------------------------------------------------

async def record_brew(services: Services, payload: Dict[str, Any]) -> BrewSaved:
    """
    Save a brew from the form. Online it lands in the log and the bean's
    suggestion for that method is refreshed; a refresh failure only costs the
    new suggestion. Offline it is queued and the last cached suggestion is
    returned instead.
    """
    if services.reconciler.queueing:
        pending = services.reconciler.enqueue_pending_brew(payload)
        return BrewSaved(
            brew=pending.to_store(),
            pending=True,
            suggestion=services.suggestions.cached_suggestion(pending.bean_id, pending.method),
            advisories=field_advisories(pending.method, pending),
        )

    brew = services.repo.save_brew(payload)
    suggestion: Optional[Suggestion] = None
    try:
        suggestion = await services.suggestions.refresh_for_bean(brew.bean_id, brew.method)
    except BrewnoteError as e:
        log.warning("suggestion refresh after brew %s failed: %s", brew.id, e)
    if suggestion is None:
        suggestion = services.suggestions.cached_suggestion(brew.bean_id, brew.method)

    return BrewSaved(
        brew=brew.to_store(),
        pending=False,
        suggestion=suggestion,
        advisories=field_advisories(brew.method, brew),
    )


__all__ = ["record_brew"]
