"""ModelConfig loading and integrity tests.

A malformed configuration must be rejected when it is parsed, never
tolerated mid-calculation.  Each integrity rule has a negative case built
by mutating the bundled default.
"""

import math

import pytest
from pydantic import ValidationError

from factories import MODEL_DIR, raw_config
from epsa_engine.config_store import load_model_config, load_yaml
from epsa_engine.models.config import ModelConfig


# =====================================================================
# Default configuration
# =====================================================================


class TestDefaultConfig:
    """The bundled v1/model/default.yaml loads with the published values."""

    def test_version_and_intercept(self, config):
        assert config.version == "1.1.0"
        assert config.part1.intercept == pytest.approx(-1.44968)

    def test_weights(self, config):
        weights = {v.id: v.weight for v in config.part1.variables}
        assert weights["age"] == pytest.approx(0.03879)
        assert weights["bmi"] == pytest.approx(0.01455)
        assert weights["ipssTotal"] == pytest.approx(-0.03683)
        for zero in ("raceBlack", "exerciseCode", "fhBinary", "shimTotal"):
            assert weights[zero] == 0.0, f"{zero} should carry no weight"

    def test_cutoffs(self, config):
        cutoffs = config.part1.risk_cutoffs
        assert cutoffs.lower.threshold == 0.08
        assert cutoffs.moderate.threshold == 0.20
        assert cutoffs.higher.threshold == 1.0
        assert cutoffs.lower.action, "tier action text should come from config"

    def test_unbounded_last_entries(self, config):
        """The last PSA bracket and risk category are catch-alls (None)."""
        assert config.part2.psa_points[-1].max is None
        assert config.part2.risk_categories[-1].max_points is None

    def test_override_keys_are_ints(self, config):
        assert set(config.part2.pirads_overrides) == {4, 5}

    def test_get_variable(self, config):
        assert config.part1.get_variable("age").type == "continuous"
        with pytest.raises(KeyError):
            config.part1.get_variable("nope")

    def test_config_is_frozen(self, config):
        with pytest.raises(ValidationError):
            config.version = "9.9.9"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")


# =====================================================================
# Integrity checks
# =====================================================================


@pytest.fixture
def raw(config):
    return raw_config(config)


class TestCutoffIntegrity:

    def test_non_increasing_cutoffs_rejected(self, raw):
        raw["part1"]["risk_cutoffs"]["lower"]["threshold"] = 0.25
        with pytest.raises(ValidationError, match="lower threshold"):
            ModelConfig.model_validate(raw)

    def test_equal_cutoffs_rejected(self, raw):
        raw["part1"]["risk_cutoffs"]["moderate"]["threshold"] = 1.0
        with pytest.raises(ValidationError, match="moderate threshold"):
            ModelConfig.model_validate(raw)

    def test_threshold_outside_unit_interval_rejected(self, raw):
        raw["part1"]["risk_cutoffs"]["higher"]["threshold"] = 1.5
        with pytest.raises(ValidationError, match="outside"):
            ModelConfig.model_validate(raw)


class TestVariableIntegrity:

    def test_empty_variables_rejected(self, raw):
        raw["part1"]["variables"] = []
        with pytest.raises(ValidationError, match="must not be empty"):
            ModelConfig.model_validate(raw)

    def test_duplicate_ids_rejected(self, raw):
        raw["part1"]["variables"].append({"id": "age", "weight": 0.1})
        with pytest.raises(ValidationError, match="duplicate"):
            ModelConfig.model_validate(raw)

    def test_unknown_variable_type_rejected(self, raw):
        raw["part1"]["variables"][0]["type"] = "categorical"
        with pytest.raises(ValidationError):
            ModelConfig.model_validate(raw)


class TestPointsTableIntegrity:

    @pytest.mark.parametrize("table", ["pre_score_to_points", "psa_points", "risk_categories"])
    def test_empty_tables_rejected(self, raw, table):
        raw["part2"][table] = []
        with pytest.raises(ValidationError, match="must not be empty"):
            ModelConfig.model_validate(raw)

    def test_non_increasing_pieces_rejected(self, raw):
        raw["part2"]["pre_score_to_points"][1]["max"] = 15
        with pytest.raises(ValidationError, match="strictly increasing"):
            ModelConfig.model_validate(raw)

    def test_zero_divisor_rejected(self, raw):
        raw["part2"]["pre_score_to_points"][0]["divisor"] = 0
        with pytest.raises(ValidationError, match="divisor"):
            ModelConfig.model_validate(raw)

    def test_unbounded_psa_bracket_must_be_last(self, raw):
        raw["part2"]["psa_points"][1]["max"] = None
        with pytest.raises(ValidationError, match="only the last"):
            ModelConfig.model_validate(raw)

    def test_last_category_must_be_unbounded(self, raw):
        raw["part2"]["risk_categories"][-1]["max_points"] = 500
        with pytest.raises(ValidationError, match="unbounded"):
            ModelConfig.model_validate(raw)

    def test_pirads_key_out_of_range_rejected(self, raw):
        raw["part2"]["pirads_overrides"][6] = raw["part2"]["pirads_overrides"][5]
        with pytest.raises(ValidationError, match="PI-RADS"):
            ModelConfig.model_validate(raw)

    def test_yaml_inf_is_normalised(self, raw):
        """``.inf`` in YAML means the same as null: unbounded."""
        raw["part2"]["risk_categories"][-1]["max_points"] = math.inf
        raw["part2"]["psa_points"][-1]["max"] = math.inf
        config = ModelConfig.model_validate(raw)
        assert config.part2.risk_categories[-1].max_points is None
        assert config.part2.psa_points[-1].max is None

    def test_string_override_keys_coerced(self, raw):
        """JSON bodies carry override keys as strings."""
        raw["part2"]["pirads_overrides"] = {
            str(k): v for k, v in raw["part2"]["pirads_overrides"].items()
        }
        config = ModelConfig.model_validate(raw)
        assert set(config.part2.pirads_overrides) == {4, 5}


class TestValidationLimits:

    def test_min_must_be_below_max(self, raw):
        raw["validation"]["min_bmi"] = 60
        with pytest.raises(ValidationError, match="min_bmi"):
            ModelConfig.model_validate(raw)

    def test_limits_default_when_omitted(self, raw):
        del raw["validation"]
        config = ModelConfig.model_validate(raw)
        assert config.validation.max_psa == 1000


def test_every_bundled_file_parses():
    """default.yaml round-trips through the loader used by the store."""
    config = load_model_config(MODEL_DIR / "default.yaml")
    assert ModelConfig.model_validate(config.model_dump()) == config
