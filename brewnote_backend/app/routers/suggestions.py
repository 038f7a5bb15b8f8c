from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends

from brewnote_backend.app.schemas import SuggestionRequest
from brewnote_backend.app.services.container import Services
from brewnote_backend.app.services.router_helpers.common import get_services

router = APIRouter(prefix="/suggestions", tags=["suggestions"])

# What it does:
# Suggestion for an arbitrary history (newest first). Never fails on remote
# trouble: the rules take over.
@router.post("")
async def suggest(req: SuggestionRequest, services: Services = Depends(get_services)) -> Dict[str, Any]:
    suggestion = await services.suggestions.get_suggestion(req.history, req.method, req.bean_name)
    return suggestion.to_store()
