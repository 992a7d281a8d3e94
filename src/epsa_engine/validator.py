"""InputValidator — checks raw questionnaire answers before scoring.

Two entry points, one per stage:

  - **answers** (Stage 1): required fields, numeric coercion, exercise code,
    IPSS/SHIM array shape and item ranges, config-declared age/BMI ranges,
    and the age-under-40 warning.
  - **supplementary** (Stage 2): PSA range and PI-RADS value when known.

Problems are returned as data in a :class:`ValidationReport` so the form
layer can show every error at once.  The validator never raises on bad
input: a non-empty ``errors`` list is the hard stop.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from epsa_engine.constants import (
    EXERCISE_CODES,
    IPSS_ITEM_COUNT,
    ITEM_MAX,
    ITEM_MIN,
    SHIM_ITEM_COUNT,
    YOUNG_AGE_WARNING_THRESHOLD,
)
from epsa_engine.models.config import ModelConfig
from epsa_engine.models.records import AnswerRecord
from epsa_engine.models.results import ValidationReport

logger = logging.getLogger(__name__)

# Form flags arrive as booleans or strings such as "true"/"false"/"0"
_FLAG = TypeAdapter(bool)

# Optional Stage 1 fields carried through to the AnswerRecord unscored.
_OPTIONAL_FIELDS = (
    "brca_status",
    "smoking",
    "chemical_exposure",
    "diet_pattern",
    "inflammation_history",
    "geographic_origin",
)


def _lookup(record: Mapping[str, Any], key: str) -> Any:
    """Read ``key`` from a form mapping, accepting the camelCase spelling too."""
    if key in record:
        return record[key]
    return record.get(to_camel(key))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(value: Any) -> float | None:
    """Coerce a form value to a finite float, or None if it doesn't parse."""
    if isinstance(value, bool):
        return None
    try:
        num = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def _to_integer(value: Any) -> int | None:
    """Coerce a form value to an int; floats must be whole numbers."""
    num = _to_number(value)
    if num is None or not num.is_integer():
        return None
    return int(num)


def _fmt(num: float) -> str:
    return f"{num:g}"


class InputValidator:
    """Validates raw answer mappings against a :class:`ModelConfig`."""

    # ------------------------------------------------------------------
    # Stage 1
    # ------------------------------------------------------------------

    def validate_answers(self, record: Any, config: ModelConfig) -> ValidationReport:
        """Validate a Stage 1 answer record.

        Args:
            record: raw form mapping (snake_case or camelCase keys), or an
                    already-built :class:`AnswerRecord`
            config: the configuration supplying age/BMI ranges

        Returns:
            A report whose ``record`` is set only when there are no errors.
        """
        if isinstance(record, BaseModel):
            record = record.model_dump()
        if not isinstance(record, Mapping):
            return ValidationReport(errors=["Answer record must be a mapping of field names to values"])

        errors: list[str] = []
        warnings: list[str] = []
        limits = config.validation

        age = self._require_number(_lookup(record, "age"), "Age", errors)
        bmi = self._require_number(_lookup(record, "bmi"), "BMI", errors)

        race = _lookup(record, "race")
        if _is_blank(race):
            errors.append("Race is required")

        exercise = self._check_exercise(_lookup(record, "exercise"), errors)

        family_history = _lookup(record, "family_history")
        if family_history is None:
            errors.append("Family history is required")
        else:
            family_history = _to_number(family_history)
            if family_history is None:
                errors.append("Family history must be a number")
            elif family_history < 0:
                errors.append("Family history must not be negative")
                family_history = None

        ipss = self._check_items(_lookup(record, "ipss"), "IPSS", IPSS_ITEM_COUNT, errors)
        shim = self._check_items(_lookup(record, "shim"), "SHIM", SHIM_ITEM_COUNT, errors)

        # --- Config-declared ranges: errors, never clamped ---
        if age is not None and not limits.min_age <= age <= limits.max_age:
            errors.append(f"Age must be between {_fmt(limits.min_age)} and {_fmt(limits.max_age)}")
        if bmi is not None and not limits.min_bmi <= bmi <= limits.max_bmi:
            errors.append(f"BMI must be between {_fmt(limits.min_bmi)} and {_fmt(limits.max_bmi)}")

        if age is not None and age < YOUNG_AGE_WARNING_THRESHOLD:
            warnings.append(
                f"Age under {YOUNG_AGE_WARNING_THRESHOLD}: model may be less validated in very young patients"
            )

        ipss_total = sum(ipss) if ipss is not None else None
        shim_total = sum(shim) if shim is not None else None

        answer_record = None
        if not errors:
            answer_record = AnswerRecord(
                age=int(age),
                race=str(race).strip(),
                bmi=bmi,
                exercise=exercise,
                family_history=family_history,
                ipss=ipss,
                shim=shim,
                **{name: _lookup(record, name) for name in _OPTIONAL_FIELDS},
            )
        else:
            logger.debug("Answer validation failed with %d error(s): %s", len(errors), errors)

        return ValidationReport(
            errors=errors,
            warnings=warnings,
            ipss_total=ipss_total,
            shim_total=shim_total,
            record=answer_record,
        )

    # ------------------------------------------------------------------
    # Stage 2
    # ------------------------------------------------------------------

    def validate_supplementary(self, record: Any, config: ModelConfig) -> ValidationReport:
        """Validate Stage 2 inputs: PSA within the configured range, PI-RADS 1-5.

        An unknown PSA (blank, or ``know_psa`` false) is allowed; so is an
        unknown PI-RADS.  Hormonal therapy only yields a warning.
        """
        if isinstance(record, BaseModel):
            record = record.model_dump()
        if not isinstance(record, Mapping):
            return ValidationReport(errors=["Supplementary record must be a mapping of field names to values"])

        errors: list[str] = []
        warnings: list[str] = []
        limits = config.validation

        know_psa = self._check_flag(_lookup(record, "know_psa"), "PSA known flag", errors)
        psa = _lookup(record, "psa")
        if not _is_blank(psa):
            psa_num = _to_number(psa)
            if psa_num is None:
                errors.append("PSA must be a number")
            elif know_psa is not False and not limits.min_psa <= psa_num <= limits.max_psa:
                errors.append(
                    f"PSA must be between {_fmt(limits.min_psa)} and {_fmt(limits.max_psa)}"
                )
        elif know_psa:
            errors.append("PSA is required when the PSA level is known")

        know_pirads = self._check_flag(_lookup(record, "know_pirads"), "PI-RADS known flag", errors)
        pirads = _lookup(record, "pirads")
        if not _is_blank(pirads):
            value = _to_integer(pirads)
            if value is None or (know_pirads and not 1 <= value <= 5):
                errors.append("PI-RADS score must be an integer between 1 and 5")
        elif know_pirads:
            errors.append("PI-RADS score is required when the PI-RADS score is known")

        on_therapy = self._check_flag(
            _lookup(record, "on_hormonal_therapy"), "Hormonal therapy flag", errors
        )
        if on_therapy:
            warnings.append(
                "Hormonal therapy (e.g. finasteride, dutasteride) can lower PSA; "
                "interpret PSA-based points with caution"
            )

        return ValidationReport(errors=errors, warnings=warnings)

    # ------------------------------------------------------------------
    # Field helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_flag(value: Any, label: str, errors: list[str]) -> bool | None:
        """Parse a yes/no flag with the same coercion as :class:`SupplementaryRecord`."""
        if _is_blank(value):
            return None
        try:
            return _FLAG.validate_python(value)
        except ValidationError:
            errors.append(f"{label} must be true or false")
            return None

    @staticmethod
    def _require_number(value: Any, label: str, errors: list[str]) -> float | None:
        if _is_blank(value):
            errors.append(f"{label} is required")
            return None
        num = _to_number(value)
        if num is None:
            errors.append(f"{label} must be a number")
        return num

    @staticmethod
    def _check_exercise(value: Any, errors: list[str]) -> int | None:
        if _is_blank(value):
            errors.append("Exercise level is required")
            return None
        code = _to_integer(value)
        if code not in EXERCISE_CODES:
            errors.append("Exercise level must be one of: 0 (regular), 1 (some), 2 (none)")
            return None
        return code

    @staticmethod
    def _check_items(value: Any, label: str, count: int, errors: list[str]) -> list[int] | None:
        """Validate a questionnaire answer array.

        Every problem is reported with its 1-based item number.  Returns the
        parsed items, or None if anything is wrong (no partial totals).
        """
        if value is None:
            errors.append(f"{label} responses are required")
            return None
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            errors.append(f"{label} responses must be a list of {count} answers")
            return None

        ok = True
        if len(value) != count:
            errors.append(f"{label} must have exactly {count} answers (got {len(value)})")
            ok = False

        parsed: list[int] = []
        for i, item in enumerate(value, start=1):
            if _is_blank(item):
                errors.append(f"{label} item {i} is missing")
                ok = False
                continue
            num = _to_integer(item)
            if num is None:
                errors.append(f"{label} item {i} must be an integer")
                ok = False
            elif not ITEM_MIN <= num <= ITEM_MAX:
                errors.append(f"{label} item {i} must be between {ITEM_MIN} and {ITEM_MAX}")
                ok = False
            else:
                parsed.append(num)

        return parsed if ok else None


_default_validator = InputValidator()


def validate_answers(record: Any, config: ModelConfig) -> ValidationReport:
    """Validate a Stage 1 record with the module-level validator."""
    return _default_validator.validate_answers(record, config)


def validate_supplementary(record: Any, config: ModelConfig) -> ValidationReport:
    """Validate a Stage 2 record with the module-level validator."""
    return _default_validator.validate_supplementary(record, config)
