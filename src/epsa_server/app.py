"""FastAPI application for the ePSA calculator.

``create_app(settings)`` wires the SDK into a web service:

  - the lifespan handler builds a :class:`ModelConfigStore` from
    ``settings.model_dir`` and loads it before the first request, so a
    malformed bundled configuration stops the process at startup
  - CORS for the questionnaire front end
  - SDK exceptions mapped to status codes (see :mod:`epsa_server.errors`)
  - scoring, model and admin routers under ``/api/v1``
  - ``/health`` reporting the active model version

Run it with the ``epsa-server`` console script (:func:`cli`).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from epsa_engine.config_store import ModelConfigStore

from epsa_server.config import ServerSettings, load_settings
from epsa_server.errors import (
    validation_error_handler,
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from epsa_server.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: ServerSettings = app.state.settings

    store = ModelConfigStore(settings.model_dir, history_limit=settings.history_limit)
    store.load()
    app.state.store = store
    logger.info(
        "Serving ePSA model %s (history limit %d)", store.current.version, settings.history_limit
    )

    yield

    logger.info("ePSA server stopped; active model was %s", store.current.version)


def _install_error_handlers(app: FastAPI) -> None:
    # Most specific first: ValidationError is itself a ValueError
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build the application; settings default to the environment."""
    settings = settings or load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="ePSA Risk Calculator API",
        description="Two-stage prostate-cancer risk scoring with a publishable model configuration",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Read by the lifespan handler and the admin-key dependency
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    @app.get("/health")
    async def health(request: Request) -> dict:
        """Readiness check: ok once a model configuration is active."""
        store: ModelConfigStore | None = getattr(request.app.state, "store", None)
        if store is None:
            return {"status": "error", "detail": "model configuration not loaded"}
        return {"status": "ok", "model_version": store.current.version}

    register_routes(app)
    return app


def cli() -> None:
    """``epsa-server``: serve the app with uvicorn using env settings."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "epsa_server.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
