"""Tests for the admin-side tools: model description, weight review, cohort simulation."""

import pytest

from factories import baseline_answers, derive
from epsa_engine.cohort import simulate_cohort
from epsa_engine.documentation import describe_model
from epsa_engine.guidelines import review_config
from epsa_engine.models.catalog import WeightGuidelines
from epsa_engine.models.results import RiskTier


# 18 y, BMI 15, IPSS 35: logit -1.82226 -> p ~ 0.139 (MODERATE)
MODERATE_ANSWERS = baseline_answers(age=18, bmi=15, ipss=[5] * 7)


# =====================================================================
# describe_model
# =====================================================================


class TestDescribeModel:

    def test_formula_lists_weighted_terms(self, config):
        description = describe_model(config)
        assert description.version == "1.1.0"
        assert description.formula[0] == "logit = -1.44968"
        assert "  + 0.03879 × Age (years)" in description.formula
        assert "  - 0.03683 × IPSS total (0-35)" in description.formula
        # Zero-weight variables are left out of the formula
        assert not any("SHIM" in line for line in description.formula)

    def test_tiers(self, config):
        assert describe_model(config).tiers == [
            "Lower Risk: < 8%",
            "Moderate Risk: 8% – 20%",
            "Higher Risk: ≥ 20%",
        ]

    def test_variables(self, config):
        variables = {v.id: v for v in describe_model(config).variables}
        assert variables["age"].direction == "risk"
        assert variables["ipssTotal"].direction == "protective"
        assert variables["shimTotal"].direction == "unused"
        assert variables["age"].scored
        assert not variables["brcaStatus"].scored

    def test_points_tables(self, config):
        points = describe_model(config).points
        assert points[0] == "Baseline carry-forward: 15 pts"
        assert "PSA above ng/mL: 40 pts" in points
        assert "PI-RADS 3: 10 pts" in points
        assert any(line.startswith("PI-RADS 5: overrides to") for line in points)

    def test_follows_config(self, config):
        custom = derive(config, intercept=-2.0, weights={"fhBinary": 0.8})
        formula = describe_model(custom).formula
        assert formula[0] == "logit = -2"
        assert any("Family history" in line for line in formula)


# =====================================================================
# review_config
# =====================================================================


class TestReviewConfig:

    def test_published_config_is_clean(self, config, store):
        assert review_config(config, store.guidelines) == []
        assert review_config(config) == []

    def test_weight_outside_allowed_range(self, config):
        warnings = review_config(derive(config, weights={"age": 3.0}))
        assert warnings == ["Age weight (3.0) is outside the allowed range [-2, 2]"]

    def test_weight_outside_recommended_range(self, config, store):
        warnings = review_config(derive(config, weights={"age": 0.1}), store.guidelines)
        assert warnings == ["Age weight (0.1) is outside recommended range [0.03, 0.06]"]

    def test_intercept_outside_range(self, config):
        warnings = review_config(derive(config, intercept=-12.0))
        assert warnings == ["Intercept value (-12.0) is outside reasonable range (-10 to 10)"]

    def test_custom_guidelines(self, config):
        strict = WeightGuidelines(min_weight=-0.01, max_weight=0.01)
        warnings = review_config(config, strict)
        assert len(warnings) == 3


# =====================================================================
# simulate_cohort
# =====================================================================


class TestSimulateCohort:

    def test_summary(self, config):
        records = [
            baseline_answers(),
            {**baseline_answers(), "cancer_detected": True},
            {**MODERATE_ANSWERS, "cancerDetected": True},
            {"age": 65},
        ]
        summary = simulate_cohort(records, config)
        assert summary.total_patients == 4
        assert summary.scored == 3
        assert summary.skipped == 1
        assert summary.detected_cases == 2
        assert summary.tier_counts == {
            RiskTier.LOWER: 0,
            RiskTier.MODERATE: 1,
            RiskTier.HIGHER: 2,
        }
        assert summary.model_version == "1.1.0"
        # (81.0 + 81.0 + 13.9) / 3
        assert summary.avg_predicted_risk == pytest.approx(58.6, abs=0.05)

    def test_empty_cohort(self, config):
        summary = simulate_cohort([], config)
        assert summary.total_patients == 0
        assert summary.avg_predicted_risk is None

    def test_config_changes_outcome(self, config):
        records = [baseline_answers()] * 3
        strict = derive(config, intercept=-8.0)
        assert simulate_cohort(records, strict).tier_counts[RiskTier.LOWER] == 3
