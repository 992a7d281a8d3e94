"""Engine constants shared across the SDK.

These values are referenced by the validator, the scorers and the config
store.  Questionnaire shapes (IPSS/SHIM) are fixed by the instruments
themselves and are not configurable.

Several constants can be overridden via environment variables so that
deployments can adjust them without code changes.
"""

import os

# IPSS: 7 items, SHIM: 5 items; every item is answered on a 0-5 scale.
IPSS_ITEM_COUNT = 7
SHIM_ITEM_COUNT = 5
ITEM_MIN = 0
ITEM_MAX = 5

# Permitted exercise codes: 0 = regular (3+ days/week), 1 = some, 2 = none.
EXERCISE_CODES: tuple[int, ...] = (0, 1, 2)

# Patients younger than this get a non-blocking model-validity warning.
# Overridable via YOUNG_AGE_WARNING_THRESHOLD env var.
YOUNG_AGE_WARNING_THRESHOLD = int(os.getenv("YOUNG_AGE_WARNING_THRESHOLD", "40"))

# Half-width (percentage points) of the Stage 1 display band.
DISPLAY_BAND_WIDTH = 10

# Race code used for the raceBlack indicator when the config has no encoding list.
DEFAULT_RACE_BLACK_CODE = "black"

# Number of published configurations kept for rollback.
# Overridable via CONFIG_HISTORY_LIMIT env var.
CONFIG_HISTORY_LIMIT = int(os.getenv("CONFIG_HISTORY_LIMIT", "20"))

# Human-readable names of the Stage 1 variable ids the scorer knows how to extract.
KNOWN_VARIABLES: dict[str, str] = {
    "age": "Age (years)",
    "raceBlack": "Race_Black (1 = Black, 0 = other)",
    "bmi": "BMI (kg/m²)",
    "ipssTotal": "IPSS total (0-35)",
    "shimTotal": "SHIM total (0-25)",
    "exerciseCode": "Exercise (0 = regular, 1 = some, 2 = none)",
    "fhBinary": "Family history (1 = yes, 0 = no)",
}
