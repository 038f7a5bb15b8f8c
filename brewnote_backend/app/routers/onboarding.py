from __future__ import annotations
from typing import Dict

from fastapi import APIRouter, Depends

from brewnote_backend.app.errors import BrewnoteError
from brewnote_backend.app.schemas import OnboardingIn
from brewnote_backend.app.services.container import Services
from brewnote_backend.app.services.router_helpers.common import get_services, raise_http

router = APIRouter(prefix="/onboarding", tags=["onboarding"])

@router.get("")
def read_onboarding(services: Services = Depends(get_services)) -> Dict[str, str]:
    return {"status": services.repo.get_onboarding_status()}

# What it does:
# Record that the intro was completed or skipped.
@router.put("")
def write_onboarding(body: OnboardingIn, services: Services = Depends(get_services)) -> Dict[str, str]:
    try:
        return {"status": services.repo.set_onboarding_status(body.status)}
    except BrewnoteError as e:
        raise_http(e, "onboarding")
