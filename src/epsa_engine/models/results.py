"""Result models — the contract between the engine and its callers.

These are read-only records.  The report/export layer renders them as-is
and must not recompute tiers or categories.

  - ValidationReport: validator output (errors block scoring, warnings don't)
  - Stage1Result: logistic model output with a per-variable audit trail
  - Stage2Result: points model output with the full points breakdown
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from epsa_engine.models.records import AnswerRecord


class RiskTier(str, Enum):
    """Stage 1 risk tiers, ordered from least to most severe."""

    LOWER = "LOWER"
    MODERATE = "MODERATE"
    HIGHER = "HIGHER"


class ValidationReport(BaseModel):
    """Outcome of validating one raw record.

    ``ipss_total`` / ``shim_total`` are None whenever the corresponding
    answers are malformed; they are never partially summed.  ``record`` is
    the normalised :class:`AnswerRecord` and is only set when ``errors`` is
    empty (Stage 1 validation only).
    """

    model_config = ConfigDict(frozen=True)

    errors: List[str] = []
    warnings: List[str] = []
    ipss_total: Optional[int] = None
    shim_total: Optional[int] = None
    record: Optional[AnswerRecord] = None

    @property
    def valid(self) -> bool:
        return not self.errors


class VariableContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    weight: float
    value: float
    contribution: float


class Stage1Result(BaseModel):
    """Stage 1 (logistic model) output."""

    model_config = ConfigDict(frozen=True)

    score: int
    range_low: int
    range_high: int
    risk: RiskTier
    # Tier presentation, copied verbatim from the config cutoffs
    score_range: str
    color: str
    action: str

    probability: float
    logit: float
    intercept: float
    contributions: List[VariableContribution]

    age: int
    bmi: float
    ipss_total: int
    shim_total: int
    model_version: str

    @property
    def display_range(self) -> str:
        return f"{self.range_low}%–{self.range_high}%"


class Stage2Result(BaseModel):
    """Stage 2 (points model) output.

    When ``pirads_overridden`` is true the category fields come straight
    from the override table and ``total_points`` excludes PI-RADS points.
    """

    model_config = ConfigDict(frozen=True)

    total_points: int
    pre_points: int
    baseline_carry_points: int
    psa_points: int
    pirads_points: int
    pirads_overridden: bool

    risk_pct: str
    risk_cat: str
    risk_class: str
    next_steps: List[str] = []
    model_version: str
