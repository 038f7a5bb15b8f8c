from __future__ import annotations
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from brewnote_backend.app.errors import BrewnoteError
from brewnote_backend.app.schemas import ConnectivityIn
from brewnote_backend.app.services.container import Services
from brewnote_backend.app.services.router_helpers.common import get_services, raise_http

router = APIRouter(prefix="/sync", tags=["sync"])

@router.get("/status")
def sync_status(services: Services = Depends(get_services)) -> Dict[str, Any]:
    return services.reconciler.status()

# What it does:
# Connectivity signal from the client. Going online waits the settle delay and
# flushes the offline queue once.
@router.post("/connectivity")
async def connectivity(body: ConnectivityIn, services: Services = Depends(get_services)) -> Dict[str, Any]:
    flushed = await services.reconciler.set_online(body.online)
    return {**services.reconciler.status(), "flushed": [b.to_store() for b in flushed]}

# What it does:
# Manual flush (retry after a failed one). No-op while another flush runs.
@router.post("/flush")
def flush(services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        flushed = services.reconciler.flush_pending_brews()
        return {"ok": True, "flushed": [b.to_store() for b in flushed]}
    except BrewnoteError as e:
        raise_http(e, "flush")

@router.get("/pending")
def pending(services: Services = Depends(get_services)) -> List[Dict[str, Any]]:
    return [p.to_store() for p in services.repo.get_pending_brews()]
