# brewnote_backend/app/services/router_helpers/common.py
from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, Request, status

from brewnote_backend.app.errors import NotFoundFailure, StoreWriteFailure, ValidationFailure
from brewnote_backend.app.services.container import Services
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("api")


def get_services(request: Request) -> Services:
    """FastAPI dependency: the bundle create_app() stored on app.state."""
    return request.app.state.services


# What it does:
# Convert a core failure into the HTTPException the routers raise.
#   ValidationFailure -> 422, NotFound -> 404, store write -> 500
def raise_http(e: Exception, what: str) -> NoReturn:
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, ValidationFailure):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"{what} failed: {e}") from e
    if isinstance(e, NotFoundFailure):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    if isinstance(e, StoreWriteFailure):
        log.error("%s failed: %s", what, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"{what} failed: could not save") from e
    log.exception("%s failed", what)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"{what} failed: {e}") from e


__all__ = ["get_services", "raise_http"]
