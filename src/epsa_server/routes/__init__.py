"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from epsa_server.routes.admin import router as admin_router
from epsa_server.routes.model import router as model_router
from epsa_server.routes.scoring import router as scoring_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(scoring_router, prefix=API_PREFIX)
    app.include_router(model_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
