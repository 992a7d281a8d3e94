"""Stage 2 scorer — the points model combining Stage 1 with PSA and PI-RADS.

Steps for one submission:

  1. Stage 1 percent -> pre-score points through the piecewise schedule
  2. PSA -> points (first bracket whose max >= PSA; unknown PSA -> lowest bracket)
  3. PI-RADS: an override entry fixes the category outright; otherwise an
     exact-value match awards points (unmatched values award 0)
  4. total = pre-score + baseline carry + PSA + PI-RADS
  5. total -> category (first entry whose max_points >= total), skipped
     when an override fired

Every step reads its tables from ``config.part2``; no table length is
assumed.  The full breakdown is returned whether or not an override fired.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from epsa_engine.models.config import (
    ModelConfig,
    PIRADSPoints,
    PointsPiece,
    PSAPoints,
    RiskCategory,
)
from epsa_engine.models.records import SupplementaryRecord
from epsa_engine.models.results import Stage1Result, Stage2Result
from epsa_engine.scoring import round_half_up

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Table lookups
# ---------------------------------------------------------------------------

def pre_score_points(percent: float, pieces: list[PointsPiece]) -> int:
    """Convert a Stage 1 percentage to points.

    Each piece covers ``[previous piece's max, max)``; the first piece starts
    at 0.  A percentage at or beyond the last bound uses the last piece.
    """
    lower_bounds = [0.0] + [p.max for p in pieces[:-1]]
    for piece, lower in zip(pieces, lower_bounds):
        if percent < piece.max:
            break
    else:
        piece, lower = pieces[-1], lower_bounds[-1]
    return piece.base + round_half_up((percent - lower) / piece.divisor * piece.multiplier)


def psa_points(psa: float | None, table: list[PSAPoints]) -> int:
    """Points for a PSA value.  Unknown or zero PSA earns the lowest bracket."""
    if psa is None or psa <= 0:
        return table[0].points
    for bracket in table:
        if bracket.max is None or psa <= bracket.max:
            return bracket.points
    # Above every bounded bracket: the highest bracket applies
    return table[-1].points


def pirads_points(pirads: int | None, table: list[PIRADSPoints]) -> int:
    """Points for a PI-RADS value by exact match; anything unmatched earns 0."""
    if pirads is None:
        return 0
    for entry in table:
        if entry.value == pirads:
            return entry.points
    return 0


def category_for_points(total: float, categories: list[RiskCategory]) -> RiskCategory:
    """First category whose ``max_points`` covers the total; the last is the catch-all."""
    for category in categories:
        if category.max_points is None or total <= category.max_points:
            return category
    return categories[-1]


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------

class Stage2Scorer:
    """Evaluates the Part 2 points model."""

    def score(
        self,
        stage1: Stage1Result | None,
        supplementary: SupplementaryRecord | Mapping[str, Any],
        config: ModelConfig,
    ) -> Stage2Result:
        """Score Stage 2 from a Stage 1 result and the supplementary answers.

        Raises:
            ValueError: if ``stage1`` is None (Stage 1 was unavailable) or the
                supplementary mapping cannot be parsed.
        """
        if stage1 is None:
            raise ValueError("Stage 2 requires an available Stage 1 result")
        if not isinstance(supplementary, SupplementaryRecord):
            supplementary = SupplementaryRecord.model_validate(supplementary)

        part2 = config.part2
        pre = pre_score_points(stage1.score, part2.pre_score_to_points)
        psa = psa_points(supplementary.psa_value, part2.psa_points)

        pirads = supplementary.pirads_value
        override = part2.pirads_overrides.get(pirads) if pirads is not None else None

        if override is not None:
            pirads_pts = 0
            category = override
        else:
            pirads_pts = pirads_points(pirads, part2.pirads_points)
            category = None

        total = pre + part2.baseline_carry_points + psa + pirads_pts
        if category is None:
            category = category_for_points(total, part2.risk_categories)

        logger.debug(
            "Stage 2 scored: pre=%d carry=%d psa=%d pirads=%d total=%d override=%s -> %s",
            pre, part2.baseline_carry_points, psa, pirads_pts, total,
            override is not None, category.risk_class,
        )

        return Stage2Result(
            total_points=total,
            pre_points=pre,
            baseline_carry_points=part2.baseline_carry_points,
            psa_points=psa,
            pirads_points=pirads_pts,
            pirads_overridden=override is not None,
            risk_pct=category.risk_pct,
            risk_cat=category.risk_cat,
            risk_class=category.risk_class,
            next_steps=list(category.next_steps),
            model_version=config.version,
        )


_default_scorer = Stage2Scorer()


def score_stage2(
    stage1: Stage1Result | None,
    supplementary: SupplementaryRecord | Mapping[str, Any],
    config: ModelConfig,
) -> Stage2Result:
    """Score Stage 2 with the module-level scorer."""
    return _default_scorer.score(stage1, supplementary, config)
