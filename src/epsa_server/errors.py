"""Exception handlers installed on the app by ``create_app()``.

Routes call the SDK directly and let its exceptions propagate:

  - ``pydantic.ValidationError``: a configuration failed its integrity
    checks, or a request body could not be parsed -> 422 with the
    failing field locations
  - ``ValueError``: a call that cannot proceed, e.g. Stage 2 with no
    Stage 1 result or a reused model version -> 409, otherwise 400
  - ``KeyError``: unknown model version, template or A/B variant -> 404

Answer validation problems never reach these handlers; they are returned
as data in the response body.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)

# (substring of the lower-cased message, status, client-facing detail)
_VALUE_ERROR_RULES: list[tuple[str, int, str]] = [
    ("not found", 404, "Resource not found"),
    ("requires an available", 409, "Stage 1 result required"),
    ("already published", 409, "Model version already published"),
]


def _classify(message: str) -> tuple[int, str]:
    lowered = message.lower()
    for needle, status, detail in _VALUE_ERROR_RULES:
        if needle in lowered:
            return status, detail
    return 400, "Invalid request"


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Turn an SDK ``ValueError`` into 400/404/409.

    The exception text is only logged; the body carries a fixed detail.
    """
    status, detail = _classify(str(exc))
    logger.warning("Request failed [%d] at %s: %s", status, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": detail})


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Report a model that failed validation as 422.

    Each entry is ``{"loc": [...], "msg": ...}``; the submitted values are
    left out of the response.
    """
    logger.warning(
        "Validation failed at %s: %d error(s) in %s", request.url.path, exc.error_count(), exc.title
    )
    errors = [
        {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"detail": errors})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    logger.warning("Unknown model reference at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback and answer 500."""
    logger.exception("Unhandled error while serving %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
