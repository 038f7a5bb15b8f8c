from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status

from brewnote_backend.app.brewing.migration import resolve_method
from brewnote_backend.app.brewing.methods import DEFAULT_METHOD
from brewnote_backend.app.errors import BrewnoteError
from brewnote_backend.app.services.container import Services
from brewnote_backend.app.services.router_helpers.common import get_services, raise_http

router = APIRouter(prefix="/beans", tags=["beans"])

# What it does:
# All beans in the library, oldest first.
@router.get("")
def list_beans(services: Services = Depends(get_services)) -> List[Dict[str, Any]]:
    return [b.to_store() for b in services.repo.get_beans()]

# What it does:
# Add a bean (name required; roast defaults to medium).
@router.post("", status_code=status.HTTP_201_CREATED)
def create_bean(body: Dict[str, Any], services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        return services.repo.create_bean(body).to_store()
    except BrewnoteError as e:
        raise_http(e, "create bean")

@router.get("/{bean_id}")
def read_bean(bean_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        return services.repo.get_bean(bean_id).to_store()
    except BrewnoteError as e:
        raise_http(e, "read bean")

# What it does:
# Partial update; fields left out keep their stored value.
@router.put("/{bean_id}")
def update_bean(bean_id: str, body: Dict[str, Any], services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        return services.repo.update_bean(bean_id, body).to_store()
    except BrewnoteError as e:
        raise_http(e, "update bean")

# What it does:
# Delete a bean together with its logged and queued brews.
@router.delete("/{bean_id}")
def remove_bean(bean_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        return {"ok": True, "deleted": services.repo.delete_bean(bean_id)}
    except BrewnoteError as e:
        raise_http(e, "delete bean")

# What it does:
# Brew history for a bean, newest first, optionally for one method.
@router.get("/{bean_id}/brews")
def bean_brews(
    bean_id: str,
    method: Optional[str] = None,
    services: Services = Depends(get_services),
) -> List[Dict[str, Any]]:
    try:
        services.repo.get_bean(bean_id)
        key = resolve_method(method) if method else None
        return [b.to_store() for b in services.repo.get_brews_for_bean(bean_id, key)]
    except BrewnoteError as e:
        raise_http(e, "bean brews")

# What it does:
# Cached next-brew suggestion for (bean, method); computed and cached on a miss.
@router.get("/{bean_id}/suggestion")
async def bean_suggestion(
    bean_id: str,
    method: str = DEFAULT_METHOD,
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    try:
        services.repo.get_bean(bean_id)
        cached = services.suggestions.cached_suggestion(bean_id, method)
        if cached is not None:
            return cached.to_store()
        fresh = await services.suggestions.refresh_for_bean(bean_id, method)
        if fresh is None:
            fresh = services.suggestions.cached_suggestion(bean_id, method)
        return fresh.to_store() if fresh is not None else {}
    except BrewnoteError as e:
        raise_http(e, "bean suggestion")
