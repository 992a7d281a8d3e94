"""Public model re-exports for epsa_engine.

Consumers should import from ``epsa_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Configuration ---
from epsa_engine.models.config import (
    CutoffTier,
    Encodings,
    ModelConfig,
    Part1Config,
    Part2Config,
    PIRADSPoints,
    PointsPiece,
    PSAPoints,
    RiskCategory,
    RiskCutoffs,
    ValidationLimits,
    VariableDef,
)

# --- Input records ---
from epsa_engine.models.records import AnswerRecord, SupplementaryRecord

# --- Results ---
from epsa_engine.models.results import (
    RiskTier,
    Stage1Result,
    Stage2Result,
    ValidationReport,
    VariableContribution,
)

__all__ = [
    # Configuration
    "CutoffTier",
    "Encodings",
    "ModelConfig",
    "Part1Config",
    "Part2Config",
    "PIRADSPoints",
    "PointsPiece",
    "PSAPoints",
    "RiskCategory",
    "RiskCutoffs",
    "ValidationLimits",
    "VariableDef",
    # Records
    "AnswerRecord",
    "SupplementaryRecord",
    # Results
    "RiskTier",
    "Stage1Result",
    "Stage2Result",
    "ValidationReport",
    "VariableContribution",
]
