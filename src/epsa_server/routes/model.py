"""Model reference endpoints — active configuration, documentation, versions.

These are read-only endpoints.  They don't require authentication since
the model coefficients and tables are public reference information.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from epsa_engine.config_store import ModelConfigStore
from epsa_engine.documentation import ModelDescription, describe_model
from epsa_engine.models.catalog import ModelTemplate
from epsa_engine.models.config import ModelConfig

from epsa_server.dependencies import get_config, get_store

router = APIRouter(prefix="/model", tags=["model"])


class VersionInfo(BaseModel):
    version: str
    published_at: datetime
    source: str


class VariantAssignment(BaseModel):
    user_id: str
    variant: str
    model_version: str


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/config")
def get_active_config(config: ModelConfig = Depends(get_config)) -> ModelConfig:
    """Return the active calculator configuration."""
    return config


@router.get("/description")
def get_description(config: ModelConfig = Depends(get_config)) -> ModelDescription:
    """Return the formula, tier thresholds and points tables of the active model."""
    return describe_model(config)


@router.get("/versions")
def list_versions(store: ModelConfigStore = Depends(get_store)) -> list[VersionInfo]:
    """Return the publish history, oldest first."""
    return [
        VersionInfo(version=e.version, published_at=e.published_at, source=e.source)
        for e in store.history()
    ]


@router.get("/templates")
def list_templates(store: ModelConfigStore = Depends(get_store)) -> dict[str, ModelTemplate]:
    """Return the alternative model templates."""
    return store.templates


@router.get("/variant")
def get_variant(
    user_id: str = Query(..., min_length=1),
    store: ModelConfigStore = Depends(get_store),
) -> VariantAssignment:
    """Return the A/B variant a user is assigned to and its model version."""
    variant = store.assign_variant(user_id)
    config = store.variant_config(variant)
    return VariantAssignment(user_id=user_id, variant=variant, model_version=config.version)
