"""Admin endpoints — publish, roll back and simulate calculator configurations.

Protected by the ``ADMIN_API_KEY`` environment variable.  Every request
must include an ``X-Admin-Key`` header whose value matches the configured
key.  Returns 401 if missing, 403 if wrong.

A published configuration is validated before it becomes active; a
malformed one is rejected with 422 and the active configuration is left
untouched.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from epsa_engine.cohort import CohortSummary, simulate_cohort
from epsa_engine.config_store import ModelConfigStore
from epsa_engine.guidelines import review_config
from epsa_engine.models.config import ModelConfig

from epsa_server.dependencies import get_store, require_admin_key

router = APIRouter(prefix="/admin", tags=["admin"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class PublishResult(BaseModel):
    """Response body for operations that change the active configuration."""
    version: str
    action: str
    # Advisory weight-guideline findings; never block publishing
    warnings: list[str] = []


class CohortRequest(BaseModel):
    """Body for POST /admin/cohort/simulate.

    ``config`` lets an editor try candidate weights before publishing;
    omitted, the active configuration is used.
    """
    records: list[dict[str, Any]]
    config: dict[str, Any] | None = None


def _result(store: ModelConfigStore, config: ModelConfig, action: str) -> PublishResult:
    return PublishResult(
        version=config.version,
        action=action,
        warnings=review_config(config, store.guidelines),
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/config")
def publish_config(
    config: dict[str, Any] = Body(...),
    store: ModelConfigStore = Depends(get_store),
    _admin: str = Depends(require_admin_key),
) -> PublishResult:
    """Validate and publish a new calculator configuration."""
    published = store.publish(config)
    return _result(store, published, "publish")


@router.post("/config/rollback/{version}")
def rollback_config(
    version: str,
    store: ModelConfigStore = Depends(get_store),
    _admin: str = Depends(require_admin_key),
) -> PublishResult:
    """Re-activate a previously published version.  404 if not in history."""
    return _result(store, store.rollback(version), "rollback")


@router.post("/config/reset")
def reset_config(
    store: ModelConfigStore = Depends(get_store),
    _admin: str = Depends(require_admin_key),
) -> PublishResult:
    """Re-activate the bundled default configuration."""
    return _result(store, store.reset_to_default(), "reset")


@router.post("/config/template/{key}")
def preview_template(
    key: str,
    store: ModelConfigStore = Depends(get_store),
    _admin: str = Depends(require_admin_key),
) -> ModelConfig:
    """Return the active config with a template applied, without publishing it."""
    return store.apply_template(key)


@router.post("/cohort/simulate")
def simulate(
    body: CohortRequest,
    store: ModelConfigStore = Depends(get_store),
    _admin: str = Depends(require_admin_key),
) -> CohortSummary:
    """Score a cohort with the active or a candidate configuration."""
    config = store.current if body.config is None else ModelConfig.model_validate(body.config)
    return simulate_cohort(body.records, config)
