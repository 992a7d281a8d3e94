"""Cohort simulation — run a configuration over a batch of records.

Used by the admin surface before publishing new weights: each record is
scored through Stage 1 exactly as a live submission would be, so invalid
records are skipped rather than scored on partial data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from epsa_engine.models.config import ModelConfig
from epsa_engine.models.results import RiskTier
from epsa_engine.scoring import score_stage1

logger = logging.getLogger(__name__)


class CohortSummary(BaseModel):
    total_patients: int
    scored: int
    skipped: int
    detected_cases: int
    # Mean Stage 1 probability over scored records, in percent (1 decimal)
    avg_predicted_risk: float | None
    tier_counts: dict[RiskTier, int]
    model_version: str


def simulate_cohort(records: Iterable[Mapping[str, Any]], config: ModelConfig) -> CohortSummary:
    """Score every record and summarise the cohort.

    Records may carry a ``cancer_detected`` (or ``cancerDetected``) flag;
    it is counted but never used for scoring.
    """
    total = 0
    detected = 0
    probabilities: list[float] = []
    tier_counts = {tier: 0 for tier in RiskTier}

    for record in records:
        total += 1
        if record.get("cancer_detected", record.get("cancerDetected")):
            detected += 1
        result = score_stage1(record, config)
        if result is None:
            continue
        probabilities.append(result.probability)
        tier_counts[result.risk] += 1

    skipped = total - len(probabilities)
    if skipped:
        logger.info("Cohort simulation skipped %d of %d invalid record(s)", skipped, total)

    avg = round(sum(probabilities) / len(probabilities) * 100, 1) if probabilities else None
    return CohortSummary(
        total_patients=total,
        scored=len(probabilities),
        skipped=skipped,
        detected_cases=detected,
        avg_predicted_risk=avg,
        tier_counts=tier_counts,
        model_version=config.version,
    )
