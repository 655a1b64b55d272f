from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings, load_settings
from .middleware.error_handler import http_exception_handler, unhandled_exception_handler
from .middleware.rate_limit import RateLimitMiddleware
from .routes import highscores, system
from .services.score_store import ScoreStore
from .services.storage_service import get_score_store

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[ScoreStore] = None) -> FastAPI:
    """Build the API around ``store``, or the store ``settings`` describe."""
    settings = settings or load_settings()

    app = FastAPI(title="Puzzle High Scores", version=__version__)
    app.state.settings = settings
    app.state.store = store if store is not None else get_score_store(settings)

    app.include_router(system.router)
    app.include_router(highscores.router)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    if settings.rate_limit_enabled:
        logger.info(
            f"Rate limiting enabled: {settings.rate_limit_requests} requests "
            f"per {settings.rate_limit_window_seconds} seconds"
        )
        app.add_middleware(
            RateLimitMiddleware,
            requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            trust_forwarded_for=settings.trust_forwarded_for,
        )
    else:
        logger.warning("Rate limiting is DISABLED. Only use this in trusted environments.")

    # Added last so it runs first (LIFO) and CORS headers reach 429 responses too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    return app
