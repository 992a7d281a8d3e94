"""Advisory review of a configuration against the weight guidelines.

Unlike the integrity checks on :class:`ModelConfig`, these findings never
block publishing.  The admin surface shows them next to the config so an
editor notices a coefficient that drifted outside the clinically
validated range.
"""

from epsa_engine.models.catalog import WeightGuidelines
from epsa_engine.models.config import ModelConfig


def review_config(config: ModelConfig, guidelines: WeightGuidelines | None = None) -> list[str]:
    """Return human-readable warnings; an empty list means nothing to flag."""
    guidelines = guidelines or WeightGuidelines()
    warnings: list[str] = []

    part1 = config.part1
    if not guidelines.min_intercept <= part1.intercept <= guidelines.max_intercept:
        warnings.append(
            f"Intercept value ({part1.intercept}) is outside reasonable range "
            f"({guidelines.min_intercept:g} to {guidelines.max_intercept:g})"
        )

    for var in part1.variables:
        label = var.name or var.id
        if not guidelines.min_weight <= var.weight <= guidelines.max_weight:
            warnings.append(
                f"{label} weight ({var.weight}) is outside the allowed range "
                f"[{guidelines.min_weight:g}, {guidelines.max_weight:g}]"
            )
            continue
        recommended = guidelines.recommended_ranges.get(var.id)
        # Zero weights are placeholders, not tuning decisions
        if recommended is None or var.weight == 0:
            continue
        low, high = recommended
        if not low <= var.weight <= high:
            warnings.append(
                f"{label} weight ({var.weight}) is outside recommended range [{low:g}, {high:g}]"
            )

    return warnings
