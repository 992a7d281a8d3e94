"""Builders shared by the test modules.

``derive`` produces a modified copy of a ModelConfig (configs are frozen),
re-running every integrity check, so tests exercise the same validation
path as a real publish.
"""

import copy
from pathlib import Path
from typing import Any

from epsa_engine.models.config import ModelConfig
from epsa_engine.models.results import RiskTier, Stage1Result

MODEL_DIR = Path(__file__).resolve().parents[1] / "v1" / "model"


def baseline_answers(**overrides: Any) -> dict[str, Any]:
    """65-year-old white patient, BMI 26, no urinary symptoms, full SHIM."""
    answers = {
        "age": 65,
        "race": "white",
        "bmi": 26.0,
        "exercise": 0,
        "family_history": 0,
        "ipss": [0, 0, 0, 0, 0, 0, 0],
        "shim": [5, 5, 5, 5, 5],
    }
    answers.update(overrides)
    return answers


def raw_config(config: ModelConfig) -> dict[str, Any]:
    return copy.deepcopy(config.model_dump())


def derive(
    config: ModelConfig,
    *,
    version: str | None = None,
    intercept: float | None = None,
    weights: dict[str, float] | None = None,
    zero_weights: bool = False,
    extra_variables: list[dict[str, Any]] | None = None,
    race_black: Any = ...,
    part2: dict[str, Any] | None = None,
) -> ModelConfig:
    """Return a validated copy of ``config`` with the given changes."""
    raw = raw_config(config)
    if version is not None:
        raw["version"] = version
    if intercept is not None:
        raw["part1"]["intercept"] = intercept
    for var in raw["part1"]["variables"]:
        if zero_weights:
            var["weight"] = 0.0
        if weights and var["id"] in weights:
            var["weight"] = weights[var["id"]]
    if extra_variables:
        raw["part1"]["variables"].extend(extra_variables)
    if race_black is not ...:
        raw["part1"]["encodings"]["race_black"] = race_black
    if part2:
        raw["part2"].update(part2)
    return ModelConfig.model_validate(raw)


def stage1_with_score(score: int, version: str = "1.1.0") -> Stage1Result:
    """A Stage 1 result carrying only what Stage 2 reads: score and version."""
    return Stage1Result(
        score=score,
        range_low=max(0, score - 10),
        range_high=min(100, score + 10),
        risk=RiskTier.MODERATE,
        score_range="8% – 20%",
        color="#D4AF37",
        action="",
        probability=score / 100,
        logit=0.0,
        intercept=0.0,
        contributions=[],
        age=60,
        bmi=25.0,
        ipss_total=0,
        shim_total=25,
        model_version=version,
    )
