from __future__ import annotations
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from brewnote_backend.app.brewing.migration import migrate_brew_data
from brewnote_backend.app.errors import BrewnoteError
from brewnote_backend.app.schemas import BrewSaved
from brewnote_backend.app.services.container import Services
from brewnote_backend.app.services.router_helpers.brew_helpers import record_brew
from brewnote_backend.app.services.router_helpers.common import get_services, raise_http

router = APIRouter(prefix="/brews", tags=["brews"])

# What it does:
# Record a brew. Offline, it is queued and the response says pending=true.
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_brew(body: Dict[str, Any], services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        saved: BrewSaved = await record_brew(services, body)
        return saved.model_dump(by_alias=True, exclude_none=True)
    except BrewnoteError as e:
        raise_http(e, "save brew")

# What it does:
# Most recent brews across all beans.
@router.get("/recent")
def recent_brews(limit: int = 5, services: Services = Depends(get_services)) -> List[Dict[str, Any]]:
    return [b.to_store() for b in services.repo.get_recent_brews(limit)]

# What it does:
# One brew from the log, legacy shape upgraded.
@router.get("/{brew_id}")
def get_brew(brew_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        return services.repo.get_brew(brew_id).to_store()
    except BrewnoteError as e:
        raise_http(e, "get brew")

# What it does:
# Upgrade any legacy brew records in place and return the normalised log.
@router.post("/migrate")
def migrate_brews(services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        brews = migrate_brew_data(services.repo)
        return {"ok": True, "count": len(brews), "brews": [b.to_store() for b in brews]}
    except BrewnoteError as e:
        raise_http(e, "migrate brews")

@router.delete("/{brew_id}")
def remove_brew(brew_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        services.repo.delete_brew(brew_id)
        return {"ok": True}
    except BrewnoteError as e:
        raise_http(e, "delete brew")
