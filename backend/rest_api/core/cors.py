"""
CORS for the POS frontends (waiter, kitchen and cashier screens).

Origins come from ALLOWED_ORIGINS; development falls back to the local
Vite dev server.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        # No preflight caching while developing
        max_age=0 if settings.environment == "development" else 600,
    )
