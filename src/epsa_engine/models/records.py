"""Input records — what the questionnaire layer hands to the engine.

Both models accept the camelCase keys used by the web client
(``familyHistory``, ``knowPirads``, ...) as well as snake_case names.

``AnswerRecord`` is the *validated* Stage 1 input: the validator builds it
from a raw form mapping once every required field has passed.  Callers
normally pass raw mappings to :func:`epsa_engine.validator.validate_answers`
or :func:`epsa_engine.scoring.score_stage1` rather than constructing it.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class AnswerRecord(BaseModel):
    """One patient's Stage 1 questionnaire answers."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    age: int
    race: str
    bmi: float
    exercise: int
    family_history: float
    ipss: List[int]
    shim: List[int]

    # Zero-weight in the current model; accepted and ignored.
    brca_status: Optional[Any] = None
    smoking: Optional[Any] = None
    chemical_exposure: Optional[Any] = None
    diet_pattern: Optional[Any] = None
    inflammation_history: Optional[Any] = None
    geographic_origin: Optional[Any] = None

    @property
    def ipss_total(self) -> int:
        return sum(self.ipss)

    @property
    def shim_total(self) -> int:
        return sum(self.shim)


class SupplementaryRecord(BaseModel):
    """Stage 2 clinical inputs: PSA and MRI PI-RADS.

    ``know_psa`` left unset means "use ``psa`` if given"; an explicit
    ``False`` marks the PSA value as unknown.  Hormonal therapy fields are
    informational and never scored.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    psa: Optional[float] = None
    know_psa: Optional[bool] = None
    pirads: Optional[int] = None
    know_pirads: bool = False
    on_hormonal_therapy: bool = False
    hormonal_therapy_type: Optional[str] = None

    @field_validator("psa", mode="before")
    @classmethod
    def _blank_psa(cls, v: Any) -> Any:
        # The web form submits "" for an empty PSA box
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("know_psa", "know_pirads", "on_hormonal_therapy", mode="before")
    @classmethod
    def _blank_flag(cls, v: Any, info: ValidationInfo) -> Any:
        # An unanswered checkbox arrives as null or ""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None if info.field_name == "know_psa" else False
        return v

    @field_validator("pirads", mode="before")
    @classmethod
    def _blank_pirads(cls, v: Any) -> Any:
        # "0" is the form's "not known" choice
        if v is None or (isinstance(v, str) and v.strip() in ("", "0")) or v == 0:
            return None
        return v

    @property
    def psa_value(self) -> Optional[float]:
        """PSA to score with, or None when unknown."""
        if self.know_psa is False:
            return None
        return self.psa

    @property
    def pirads_value(self) -> Optional[int]:
        """PI-RADS to score with, or None when unknown."""
        if not self.know_pirads:
            return None
        return self.pirads
