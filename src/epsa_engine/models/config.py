"""Pydantic models for the calculator configuration.

These models mirror ``v1/model/default.yaml``:

  Part 1 (Stage 1 logistic model):
    - VariableDef: named model variable with weight and optional bounds
    - Encodings: categorical code lists used by the extraction rules
    - CutoffTier / RiskCutoffs: probability thresholds for LOWER/MODERATE/HIGHER

  Part 2 (Stage 2 points model):
    - PointsPiece: one piece of the Stage 1 percent -> points schedule
    - PSAPoints, PIRADSPoints: point awards
    - RiskCategory: category reached by total points (also used for overrides)

  ValidationLimits: input ranges enforced by the validator.

Integrity checks run when a ``ModelConfig`` is constructed, so a malformed
configuration is rejected at load/publish time and never reaches a scorer.
"""

import math
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


def _unbounded(value: Optional[float]) -> Optional[float]:
    # YAML ``.inf`` and ``null`` both mean "no upper bound"
    if isinstance(value, (int, float)) and math.isinf(value) and value > 0:
        return None
    return value


def _check_ascending(bounds: list[Optional[float]], table: str) -> None:
    """Require strictly increasing bounds where only the last may be None."""
    if not bounds:
        raise ValueError(f"{table} must not be empty")
    for i, bound in enumerate(bounds):
        if bound is None and i != len(bounds) - 1:
            raise ValueError(f"{table}[{i}]: only the last entry may be unbounded")
    finite = [b for b in bounds if b is not None]
    for prev, cur in zip(finite, finite[1:]):
        if cur <= prev:
            raise ValueError(f"{table} bounds must be strictly increasing ({prev} -> {cur})")


# ---------------------------------------------------------------------------
# Part 1: logistic model
# ---------------------------------------------------------------------------

class VariableDef(_Frozen):
    """Model variable.  ``id`` selects the extraction rule in the Stage 1 scorer."""

    id: str
    name: str = ""
    type: Literal["continuous", "binary", "ordinal"] = "continuous"
    weight: float
    min: Optional[float] = None
    max: Optional[float] = None
    unit: Optional[str] = None
    description: Optional[str] = None


class Encodings(_Frozen):
    # None means "not configured"; the scorer then falls back to the literal "black"
    race_black: Optional[List[str]] = None


class CutoffTier(_Frozen):
    threshold: float
    label: str
    color: str
    action: str = ""


class RiskCutoffs(_Frozen):
    """Three ordered tiers.  ``higher.threshold`` is nominal: HIGHER is the catch-all."""

    lower: CutoffTier
    moderate: CutoffTier
    higher: CutoffTier

    @model_validator(mode="after")
    def _check_thresholds(self) -> "RiskCutoffs":
        tiers = [("lower", self.lower), ("moderate", self.moderate), ("higher", self.higher)]
        for name, tier in tiers:
            if not 0.0 <= tier.threshold <= 1.0:
                raise ValueError(f"{name} threshold {tier.threshold} is outside [0, 1]")
        if self.lower.threshold >= self.moderate.threshold:
            raise ValueError("lower threshold must be less than moderate threshold")
        if self.moderate.threshold >= self.higher.threshold:
            raise ValueError("moderate threshold must be less than higher threshold")
        return self


class Part1Config(_Frozen):
    intercept: float
    variables: List[VariableDef]
    encodings: Encodings = Field(default_factory=Encodings)
    risk_cutoffs: RiskCutoffs

    @field_validator("variables")
    @classmethod
    def _check_variables(cls, variables: List[VariableDef]) -> List[VariableDef]:
        if not variables:
            raise ValueError("part1.variables must not be empty")
        ids = [v.id for v in variables]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate variable ids: {dupes}")
        return variables

    def get_variable(self, var_id: str) -> VariableDef:
        for v in self.variables:
            if v.id == var_id:
                return v
        raise KeyError(f"Variable '{var_id}' not found")


# ---------------------------------------------------------------------------
# Part 2: points model
# ---------------------------------------------------------------------------

class PointsPiece(_Frozen):
    """Stage 1 percentages below ``max`` (exclusive) map through this piece."""

    max: float
    base: int = 0
    multiplier: float
    divisor: float

    @field_validator("divisor")
    @classmethod
    def _positive_divisor(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("divisor must be positive")
        return v


class PSAPoints(_Frozen):
    """PSA values up to ``max`` (inclusive) earn ``points``.  None = unbounded."""

    max: Optional[float] = None
    points: int

    @field_validator("max", mode="before")
    @classmethod
    def _normalise_max(cls, v):
        return _unbounded(v)


class PIRADSPoints(_Frozen):
    value: int
    points: int


class RiskCategory(_Frozen):
    """Stage 2 category.  Overrides use the same shape without ``max_points``."""

    max_points: Optional[float] = None
    risk_pct: str
    risk_cat: str
    risk_class: str
    next_steps: List[str] = []

    @field_validator("max_points", mode="before")
    @classmethod
    def _normalise_max(cls, v):
        return _unbounded(v)


class Part2Config(_Frozen):
    baseline_carry_points: int
    pre_score_to_points: List[PointsPiece]
    psa_points: List[PSAPoints]
    pirads_points: List[PIRADSPoints] = []
    pirads_overrides: dict[int, RiskCategory] = {}
    risk_categories: List[RiskCategory]

    @model_validator(mode="after")
    def _check_tables(self) -> "Part2Config":
        _check_ascending([p.max for p in self.pre_score_to_points], "pre_score_to_points")
        _check_ascending([p.max for p in self.psa_points], "psa_points")
        _check_ascending([c.max_points for c in self.risk_categories], "risk_categories")
        if self.risk_categories[-1].max_points is not None:
            raise ValueError("the last risk category must be unbounded (max_points: null)")
        for key in list(self.pirads_overrides) + [p.value for p in self.pirads_points]:
            if not 1 <= key <= 5:
                raise ValueError(f"PI-RADS value {key} is outside 1-5")
        return self


# ---------------------------------------------------------------------------
# Validation limits and the top-level config
# ---------------------------------------------------------------------------

class ValidationLimits(_Frozen):
    min_age: float = 18
    max_age: float = 120
    min_bmi: float = 15
    max_bmi: float = 60
    min_psa: float = 0
    max_psa: float = 1000

    @model_validator(mode="after")
    def _check_ranges(self) -> "ValidationLimits":
        for field in ("age", "bmi", "psa"):
            lo, hi = getattr(self, f"min_{field}"), getattr(self, f"max_{field}")
            if lo >= hi:
                raise ValueError(f"min_{field} ({lo}) must be less than max_{field} ({hi})")
        return self


class ModelConfig(_Frozen):
    """Complete calculator configuration.  ``version`` is echoed into every result."""

    version: str
    part1: Part1Config
    part2: Part2Config
    validation: ValidationLimits = Field(default_factory=ValidationLimits)
