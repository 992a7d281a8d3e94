"""Server settings for the ePSA API, taken from the process environment.

Defaults suit a local checkout: the bundled ``v1/model`` configuration,
open CORS and admin endpoints switched off until ``ADMIN_API_KEY`` is set.
"""

import os
from dataclasses import dataclass, field

from epsa_engine.constants import CONFIG_HISTORY_LIMIT


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class ServerSettings:
    """Read once at startup; routes see it as ``app.state.settings``."""

    host: str = "0.0.0.0"
    port: int = 8080

    # Allowed browser origins for the questionnaire front end; ["*"] in dev
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Directory with default.yaml and the catalogue files (None: repo v1/model)
    model_dir: str | None = None

    # Published configurations kept for rollback
    history_limit: int = CONFIG_HISTORY_LIMIT

    log_level: str = "INFO"

    # X-Admin-Key secret for publish/rollback; None leaves /admin disabled
    admin_api_key: str | None = None


def load_settings() -> ServerSettings:
    """Build :class:`ServerSettings` from ``SERVER_*`` and ``ADMIN_API_KEY``."""
    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=_split_origins(os.getenv("SERVER_CORS_ORIGINS", "*")),
        model_dir=os.getenv("SERVER_MODEL_DIR") or None,
        history_limit=int(os.getenv("CONFIG_HISTORY_LIMIT", str(CONFIG_HISTORY_LIMIT))),
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        admin_api_key=os.getenv("ADMIN_API_KEY") or None,
    )
