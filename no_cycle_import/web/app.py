"""FastAPI application factory."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from no_cycle_import import __version__
from no_cycle_import.web.api import router
from no_cycle_import.web.state import state


def create_app(allowed_root: Path | None = None) -> FastAPI:
    """Build the app; only directories under ``allowed_root`` (default: home) are checked."""
    state.allowed_root = Path(allowed_root or Path.home()).expanduser().resolve()

    app = FastAPI(title="no-cycle-import", version=__version__)
    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app
