"""epsa_engine — configurable ePSA prostate-cancer risk scoring SDK.

Public API:
    validate_answers       — check a raw Stage 1 answer record (errors + warnings)
    validate_supplementary — check raw Stage 2 inputs (PSA, PI-RADS)
    score_stage1           — logistic model; returns None when input is invalid
    score_stage2           — points model combining Stage 1 with PSA / PI-RADS
    ModelConfigStore       — loads YAML configs; publish, history, rollback, variants
    ConfigProvider         — ABC for configuration providers

Supporting tools:
    describe_model   — formula and tables rendered from a config
    review_config    — advisory weight-guideline warnings
    simulate_cohort  — run a config over a batch of records

Every scorer is a pure function of ``(data, config)``; snapshot the
configuration once per request and pass the same object to both stages.
"""

from epsa_engine.cohort import CohortSummary, simulate_cohort
from epsa_engine.config_store import ModelConfigStore, load_model_config
from epsa_engine.documentation import ModelDescription, describe_model
from epsa_engine.guidelines import review_config
from epsa_engine.interfaces import ConfigProvider
from epsa_engine.models import (
    AnswerRecord,
    ModelConfig,
    RiskTier,
    Stage1Result,
    Stage2Result,
    SupplementaryRecord,
    ValidationReport,
)
from epsa_engine.points import Stage2Scorer, score_stage2
from epsa_engine.scoring import Stage1Scorer, score_stage1
from epsa_engine.validator import InputValidator, validate_answers, validate_supplementary

__all__ = [
    # Engine
    "InputValidator",
    "Stage1Scorer",
    "Stage2Scorer",
    "validate_answers",
    "validate_supplementary",
    "score_stage1",
    "score_stage2",
    # Configuration
    "ConfigProvider",
    "ModelConfigStore",
    "load_model_config",
    # Data models
    "AnswerRecord",
    "ModelConfig",
    "RiskTier",
    "Stage1Result",
    "Stage2Result",
    "SupplementaryRecord",
    "ValidationReport",
    # Tools
    "CohortSummary",
    "ModelDescription",
    "describe_model",
    "review_config",
    "simulate_cohort",
]
