# brewnote_backend/app/services/suggestions/__init__.py
from __future__ import annotations

from .orchestrator import SuggestionService, SuggestionSelector  # noqa: F401
from .remote import RemoteSuggestionClient, parse_remote_suggestion, required_keys  # noqa: F401

__all__ = [
    "SuggestionService",
    "SuggestionSelector",
    "RemoteSuggestionClient",
    "parse_remote_suggestion",
    "required_keys",
]
