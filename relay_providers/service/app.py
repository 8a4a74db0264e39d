from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay_providers import __version__
from relay_providers.config.defaults import PROVIDER_SERVICE_CORS_DEFAULT_ORIGINS
from relay_providers.di import ProvidersContainer, build_container

from .chat_stream import router as chat_stream_router
from .chat_ws import router as chat_ws_router


def _allowed_origins() -> List[str]:
    raw = os.getenv("PROVIDER_SERVICE_CORS_ORIGINS", PROVIDER_SERVICE_CORS_DEFAULT_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app(container: Optional[ProvidersContainer] = None) -> FastAPI:
    """Build the relay service around ``container`` (a fresh one by default)."""
    application = FastAPI(title="Relay Provider Service", version=__version__)
    application.state.container = container or build_container()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/api/health")
    def health() -> Dict[str, Any]:
        """Liveness probe."""
        return {"ok": True}

    application.include_router(chat_stream_router)
    application.include_router(chat_ws_router)
    return application


app = create_app()


def get_app() -> FastAPI:
    """Return the module-level app served by ``dev_server``."""
    return app


__all__ = ["app", "create_app", "get_app"]
