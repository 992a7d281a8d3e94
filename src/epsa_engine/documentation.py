"""Human-readable description of the active model.

Renders the Stage 1 formula, tier thresholds and Stage 2 tables from a
configuration so documentation never drifts from the published weights.
"""

from pydantic import BaseModel

from epsa_engine.constants import KNOWN_VARIABLES
from epsa_engine.models.config import ModelConfig


class VariableSummary(BaseModel):
    id: str
    name: str
    type: str
    weight: float
    # "risk" for positive weights, "protective" for negative, "unused" for zero
    direction: str
    scored: bool


class ModelDescription(BaseModel):
    version: str
    formula: list[str]
    tiers: list[str]
    variables: list[VariableSummary]
    points: list[str]


def _pct(threshold: float) -> str:
    return f"{threshold * 100:g}%"


def _direction(weight: float) -> str:
    if weight > 0:
        return "risk"
    if weight < 0:
        return "protective"
    return "unused"


def describe_model(config: ModelConfig) -> ModelDescription:
    part1, part2 = config.part1, config.part2

    formula = [f"logit = {part1.intercept:g}"]
    for var in part1.variables:
        if var.weight == 0:
            continue
        sign = "+" if var.weight > 0 else "-"
        label = KNOWN_VARIABLES.get(var.id, var.name or var.id)
        formula.append(f"  {sign} {abs(var.weight):g} × {label}")
    formula.append("probability = 1 / (1 + e^(-logit))")
    formula.append("score = round(probability × 100)")

    cutoffs = part1.risk_cutoffs
    tiers = [
        f"Lower Risk: < {_pct(cutoffs.lower.threshold)}",
        f"Moderate Risk: {_pct(cutoffs.lower.threshold)} – {_pct(cutoffs.moderate.threshold)}",
        f"Higher Risk: ≥ {_pct(cutoffs.moderate.threshold)}",
    ]

    variables = [
        VariableSummary(
            id=var.id,
            name=var.name or var.id,
            type=var.type,
            weight=var.weight,
            direction=_direction(var.weight),
            scored=var.id in KNOWN_VARIABLES,
        )
        for var in part1.variables
    ]

    points = [f"Baseline carry-forward: {part2.baseline_carry_points} pts"]
    lower = 0.0
    for piece in part2.pre_score_to_points:
        points.append(
            f"Stage 1 {lower:g}–{piece.max:g}%: {piece.base} + "
            f"round((score − {lower:g}) / {piece.divisor:g} × {piece.multiplier:g}) pts"
        )
        lower = piece.max
    for bracket in part2.psa_points:
        bound = "above" if bracket.max is None else f"≤ {bracket.max:g}"
        points.append(f"PSA {bound} ng/mL: {bracket.points} pts")
    for entry in part2.pirads_points:
        points.append(f"PI-RADS {entry.value}: {entry.points} pts")
    for value, override in sorted(part2.pirads_overrides.items()):
        points.append(f"PI-RADS {value}: overrides to {override.risk_cat} ({override.risk_pct})")

    return ModelDescription(
        version=config.version,
        formula=formula,
        tiers=tiers,
        variables=variables,
        points=points,
    )
