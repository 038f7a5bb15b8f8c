# main.py: backend entrypoint
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brewnote_backend.app.brewing.migration import migrate_brew_data
from brewnote_backend.app.routers import beans, brews, methods, onboarding, suggestions, sync
from brewnote_backend.app.services.container import Services, build_services
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("app")


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the API around a service bundle. Tests hand in one backed by an
    in-memory store; `app` below uses the env-driven defaults.
    """
    services = services or build_services()

    app = FastAPI(title="Brewnote API")
    app.state.services = services

    # --- CORS for Vite dev -------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Routers under /api ------------------------------------------------------
    for module in (methods, beans, brews, suggestions, sync, onboarding):
        app.include_router(module.router, prefix="/api")

    # legacy brew records are upgraded once at startup; later calls find nothing to do
    migrated = migrate_brew_data(services.repo)
    log.info("ready: %d brew(s) on record", len(migrated))

    @app.get("/api/health")
    async def health():
        return {
            "ok": True,
            "online": services.reconciler.online,
            "remote": services.suggestions.remote_enabled,
        }

    return app


app = create_app()
