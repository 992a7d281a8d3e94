"""Models for the configuration catalogue kept by :class:`ModelConfigStore`.

These mirror the auxiliary YAML files in ``v1/model/``:

  - ModelTemplate: alternative Stage 1 weights (alternatives.yaml)
  - VariantDef: A/B testing cutoff overrides (variants.yaml)
  - WeightGuidelines: advisory weight ranges (guidelines.yaml)

plus ``ConfigVersion``, one entry of the published-config history.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from epsa_engine.models.config import ModelConfig


class ModelTemplate(BaseModel):
    """Alternative model: replaces the intercept and the listed weights."""

    name: str
    description: str = ""
    intercept: float
    weights: dict[str, float]


class VariantDef(BaseModel):
    """A/B variant.  Thresholds left unset keep the published values."""

    name: str
    suffix: Optional[str] = None
    lower_threshold: Optional[float] = None
    moderate_threshold: Optional[float] = None


class WeightGuidelines(BaseModel):
    min_weight: float = -2.0
    max_weight: float = 2.0
    min_intercept: float = -10.0
    max_intercept: float = 10.0
    # variable id -> [low, high]
    recommended_ranges: dict[str, tuple[float, float]] = {}


class ConfigVersion(BaseModel):
    """One published configuration in the rollback history."""

    model_config = ConfigDict(frozen=True)

    version: str
    published_at: datetime
    source: Literal["default", "publish", "rollback", "reset"]
    config: ModelConfig
