"""FastAPI dependency injection — provides the config store and a config snapshot.

Each scoring request takes one ``ModelConfig`` reference via
``get_config()`` and uses it for every stage it computes, so a publish
that lands mid-request never mixes coefficients from two versions.
"""

import hmac

from fastapi import Depends, Header, HTTPException, Request

from epsa_engine.config_store import ModelConfigStore
from epsa_engine.models.config import ModelConfig


# ------------------------------------------------------------------
# Store & config snapshot, stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_store(request: Request) -> ModelConfigStore:
    """Return the ModelConfigStore singleton from ``app.state``."""
    return request.app.state.store


def get_config(store: ModelConfigStore = Depends(get_store)) -> ModelConfig:
    """Snapshot the active configuration for the duration of one request."""
    return store.current


# ------------------------------------------------------------------
# Admin auth
# ------------------------------------------------------------------

async def require_admin_key(
    request: Request,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> str:
    """Validate the ``X-Admin-Key`` header against the configured admin key.

    Raises 403 if admin endpoints are disabled (no key configured) or the
    key does not match, 401 if the header is missing.
    """
    expected: str | None = request.app.state.settings.admin_api_key
    if not expected:
        raise HTTPException(
            status_code=403,
            detail="Admin endpoints are disabled (ADMIN_API_KEY not configured)",
        )
    if not x_admin_key:
        raise HTTPException(status_code=401, detail="X-Admin-Key header is required")
    # Constant-time comparison to prevent timing side-channels.
    if not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_admin_key
