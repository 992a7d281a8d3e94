"""Scoring endpoints — validate answers and run Stage 1 / Stage 2.

The request bodies are raw form records: the validator, not FastAPI, is
responsible for rejecting bad answers, so every problem comes back in one
response instead of failing on the first.  An unavailable Stage 1 result
is reported as data (``available: false``) rather than an HTTP error.

``/assess`` runs both stages against a single configuration snapshot.
``/stage2`` resolves the configuration by the Stage 1 result's
``model_version`` so the two stages always use the same coefficients.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ValidationError

from epsa_engine.config_store import ModelConfigStore
from epsa_engine.models.config import ModelConfig
from epsa_engine.models.results import Stage1Result, Stage2Result, ValidationReport
from epsa_engine.points import score_stage2
from epsa_engine.scoring import Stage1Scorer
from epsa_engine.validator import validate_answers, validate_supplementary

from epsa_server.dependencies import get_config, get_store

router = APIRouter(tags=["scoring"])

_stage1 = Stage1Scorer()


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class Stage1Response(BaseModel):
    """Stage 1 outcome; ``result`` is None whenever ``errors`` is non-empty."""
    available: bool
    result: Stage1Result | None = None
    errors: list[str] = []
    warnings: list[str] = []


class Stage2Request(BaseModel):
    """Body for POST /stage2."""
    stage1: Stage1Result
    supplementary: dict[str, Any] = {}


class Stage2Response(BaseModel):
    available: bool
    result: Stage2Result | None = None
    errors: list[str] = []
    warnings: list[str] = []


class AssessRequest(BaseModel):
    """Body for POST /assess.  ``supplementary`` omitted means Stage 1 only."""
    answers: dict[str, Any]
    supplementary: dict[str, Any] | None = None
    # A/B variant name, e.g. from GET /model/variant
    variant: str | None = None


class AssessResponse(BaseModel):
    model_version: str
    stage1: Stage1Response
    stage2: Stage2Response | None = None


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _run_stage1(answers: dict[str, Any], config: ModelConfig) -> Stage1Response:
    report = validate_answers(answers, config)
    if not report.valid:
        return Stage1Response(available=False, errors=report.errors, warnings=report.warnings)
    result = _stage1.score_record(report.record, config)
    return Stage1Response(available=True, result=result, warnings=report.warnings)


def _run_stage2(
    stage1: Stage1Result, supplementary: dict[str, Any], config: ModelConfig
) -> Stage2Response:
    report = validate_supplementary(supplementary, config)
    if not report.valid:
        return Stage2Response(available=False, errors=report.errors, warnings=report.warnings)
    try:
        result = score_stage2(stage1, supplementary, config)
    except ValidationError as exc:
        # A field the validator does not inspect, e.g. hormonal_therapy_type
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        return Stage2Response(available=False, errors=errors, warnings=report.warnings)
    return Stage2Response(available=True, result=result, warnings=report.warnings)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/validate")
def validate(
    answers: dict[str, Any] = Body(...),
    config: ModelConfig = Depends(get_config),
) -> ValidationReport:
    """Validate Stage 1 answers without scoring them."""
    return validate_answers(answers, config)


@router.post("/stage1")
def stage1(
    answers: dict[str, Any] = Body(...),
    config: ModelConfig = Depends(get_config),
) -> Stage1Response:
    """Validate and score Stage 1 with the active configuration."""
    return _run_stage1(answers, config)


@router.post("/stage2")
def stage2(
    body: Stage2Request,
    store: ModelConfigStore = Depends(get_store),
) -> Stage2Response:
    """Score Stage 2 with the configuration that produced the Stage 1 result.

    Returns 404 if that model version is no longer known to the server.
    """
    config = store.get_version(body.stage1.model_version)
    return _run_stage2(body.stage1, body.supplementary, config)


@router.post("/assess")
def assess(
    body: AssessRequest,
    config: ModelConfig = Depends(get_config),
    store: ModelConfigStore = Depends(get_store),
) -> AssessResponse:
    """Run Stage 1 and, when supplementary answers are given, Stage 2.

    Both stages use one configuration snapshot (optionally an A/B variant
    of it).  Stage 2 is skipped when Stage 1 is unavailable.
    """
    if body.variant:
        config = store.variant_config(body.variant, base=config)

    first = _run_stage1(body.answers, config)
    second = None
    if body.supplementary is not None and first.result is not None:
        second = _run_stage2(first.result, body.supplementary, config)

    return AssessResponse(model_version=config.version, stage1=first, stage2=second)
