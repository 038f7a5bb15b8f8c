# brewnote_backend/app/services/container.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from brewnote_backend.app.config import Settings, ensure_data_dir_exists, load_settings
from brewnote_backend.app.services.data_stores import BrewRepository, JsonFileStore, KeyValueStore
from brewnote_backend.app.services.suggestions import RemoteSuggestionClient, SuggestionService
from brewnote_backend.app.services.sync import OfflineQueueReconciler
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("wiring")


@dataclass
class Services:
    settings: Settings
    repo: BrewRepository
    suggestions: SuggestionService
    reconciler: OfflineQueueReconciler


# What it does:
# Wire store -> repository -> suggestion service + reconciler from settings.
# Tests pass an InMemoryStore (and a transport-backed remote) instead.
def build_services(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    remote: Optional[RemoteSuggestionClient] = None,
) -> Services:
    settings = settings or load_settings()
    if store is None:
        store = JsonFileStore(ensure_data_dir_exists("store"))
    repo = BrewRepository(store)

    if remote is None and settings.remote_enabled:
        remote = RemoteSuggestionClient(
            api_key=settings.remote_api_key or "",
            base_url=settings.remote_base_url,
            model=settings.remote_model,
            timeout_s=settings.remote_timeout_s,
        )
    log.info("remote suggestions %s", "enabled" if remote is not None else "disabled (fallback rules only)")

    return Services(
        settings=settings,
        repo=repo,
        suggestions=SuggestionService(repo, remote=remote, history_limit=settings.history_limit),
        reconciler=OfflineQueueReconciler(repo, settle_delay_s=settings.settle_delay_s),
    )


__all__ = ["Services", "build_services"]
