"""Stage 1 scorer — the configurable logistic regression model.

Pipeline for one record:

  1. validate the raw answers (any error -> unavailable, ``None``)
  2. resolve every configured variable through its fixed extraction rule
  3. logit = intercept + sum(weight * value)
  4. probability = sigmoid(logit); score = round(probability * 100)
  5. display band = score +/- 10, clamped to [0, 100]
  6. tier by strict ``<`` comparisons: LOWER, MODERATE, else HIGHER

The scorer is a pure function of ``(record, config)``.  Variable ids the
scorer has no extraction rule for resolve to 0, so zero-weight placeholder
variables in a newer config never break the computation.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable

from epsa_engine.constants import DEFAULT_RACE_BLACK_CODE, DISPLAY_BAND_WIDTH
from epsa_engine.models.config import CutoffTier, ModelConfig, RiskCutoffs
from epsa_engine.models.records import AnswerRecord
from epsa_engine.models.results import RiskTier, Stage1Result, VariableContribution
from epsa_engine.validator import validate_answers

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves going up (22.5 -> 23, -0.5 -> 0)."""
    return int(math.floor(x + 0.5))


def sigmoid(x: float) -> float:
    """Logistic function without overflow for large negative inputs."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def clamp_percent(value: int) -> int:
    return max(0, min(100, value))


def select_tier(probability: float, cutoffs: RiskCutoffs) -> tuple[RiskTier, CutoffTier]:
    """Pick the tier for a probability.

    Boundary values belong to the higher tier; ``cutoffs.higher.threshold``
    is never used as an upper bound.
    """
    if probability < cutoffs.lower.threshold:
        return RiskTier.LOWER, cutoffs.lower
    if probability < cutoffs.moderate.threshold:
        return RiskTier.MODERATE, cutoffs.moderate
    return RiskTier.HIGHER, cutoffs.higher


# ---------------------------------------------------------------------------
# Extraction rules: variable id -> numeric value
# ---------------------------------------------------------------------------

def _race_black(record: AnswerRecord, config: ModelConfig) -> float:
    race = record.race.strip().lower()
    codes = config.part1.encodings.race_black
    if codes is None:
        return 1.0 if race == DEFAULT_RACE_BLACK_CODE else 0.0
    return 1.0 if race in {c.strip().lower() for c in codes} else 0.0


_EXTRACTORS: dict[str, Callable[[AnswerRecord, ModelConfig], float]] = {
    "age": lambda r, c: float(r.age),
    "raceBlack": _race_black,
    "bmi": lambda r, c: r.bmi,
    "ipssTotal": lambda r, c: float(r.ipss_total),
    "shimTotal": lambda r, c: float(r.shim_total),
    "exerciseCode": lambda r, c: float(r.exercise),
    "fhBinary": lambda r, c: 1.0 if r.family_history > 0 else 0.0,
}


def extract_value(var_id: str, record: AnswerRecord, config: ModelConfig) -> float:
    """Resolve one variable's value; ids without an extraction rule give 0."""
    extractor = _EXTRACTORS.get(var_id)
    if extractor is None:
        return 0.0
    return extractor(record, config)


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------

class Stage1Scorer:
    """Evaluates the Part 1 logistic model."""

    def score(self, record: Any, config: ModelConfig) -> Stage1Result | None:
        """Validate then score a raw answer record.

        Returns ``None`` (result unavailable) when validation reports any
        error; never computes on partial data.
        """
        report = validate_answers(record, config)
        if not report.valid:
            logger.warning(
                "Stage 1 unavailable: %d validation error(s) (model %s)",
                len(report.errors),
                config.version,
            )
            return None
        return self.score_record(report.record, config)

    def score_record(self, record: AnswerRecord, config: ModelConfig) -> Stage1Result:
        """Score an already-validated record.  Ranges are not re-checked."""
        part1 = config.part1

        contributions: list[VariableContribution] = []
        for var in part1.variables:
            value = extract_value(var.id, record, config)
            contributions.append(
                VariableContribution(
                    id=var.id,
                    name=var.name or var.id,
                    weight=var.weight,
                    value=value,
                    contribution=var.weight * value,
                )
            )

        logit = part1.intercept + sum(c.contribution for c in contributions)
        probability = sigmoid(logit)
        score = round_half_up(probability * 100)
        risk, tier = select_tier(probability, part1.risk_cutoffs)

        logger.debug(
            "Stage 1 scored: logit=%.5f probability=%.4f score=%d tier=%s",
            logit, probability, score, risk.value,
        )

        return Stage1Result(
            score=score,
            range_low=clamp_percent(score - DISPLAY_BAND_WIDTH),
            range_high=clamp_percent(score + DISPLAY_BAND_WIDTH),
            risk=risk,
            score_range=tier.label,
            color=tier.color,
            action=tier.action,
            probability=probability,
            logit=logit,
            intercept=part1.intercept,
            contributions=contributions,
            age=record.age,
            bmi=round(record.bmi, 1),
            ipss_total=record.ipss_total,
            shim_total=record.shim_total,
            model_version=config.version,
        )


_default_scorer = Stage1Scorer()


def score_stage1(record: Any, config: ModelConfig) -> Stage1Result | None:
    """Score a raw Stage 1 record; ``None`` means the result is unavailable."""
    return _default_scorer.score(record, config)
