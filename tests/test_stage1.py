"""Tests for the Stage 1 logistic scorer.

Expected values are computed by hand from the published coefficients:
the baseline patient (65 y, BMI 26, IPSS 0) has
logit = -1.44968 + 0.03879*65 + 0.01455*26 = 1.44997 -> p ~ 0.810.
"""

import math

import pytest

from factories import baseline_answers, derive
from epsa_engine.models.config import ModelConfig
from epsa_engine.models.results import RiskTier
from epsa_engine.scoring import (
    Stage1Scorer,
    extract_value,
    round_half_up,
    score_stage1,
    select_tier,
    sigmoid,
)
from epsa_engine.validator import validate_answers


# =====================================================================
# Numeric helpers
# =====================================================================


class TestHelpers:

    @pytest.mark.parametrize(
        "value, expected",
        [(22.5, 23), (22.4999, 22), (0.5, 1), (-0.5, 0), (99.5, 100), (7.0, 7)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_sigmoid_midpoint(self):
        assert sigmoid(0.0) == 0.5

    def test_sigmoid_extremes_do_not_overflow(self):
        assert sigmoid(-1000.0) == 0.0
        assert sigmoid(1000.0) == 1.0

    def test_sigmoid_symmetry(self):
        assert sigmoid(2.3) + sigmoid(-2.3) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "probability, tier",
        [
            (0.0, RiskTier.LOWER),
            (0.0799, RiskTier.LOWER),
            (0.08, RiskTier.MODERATE),
            (0.1999, RiskTier.MODERATE),
            (0.20, RiskTier.HIGHER),
            (1.0, RiskTier.HIGHER),
        ],
    )
    def test_tier_boundaries_go_up(self, config, probability, tier):
        assert select_tier(probability, config.part1.risk_cutoffs)[0] is tier


# =====================================================================
# Scoring
# =====================================================================


class TestBaselineScore:

    def test_baseline(self, config, answers):
        result = score_stage1(answers, config)
        assert result.logit == pytest.approx(1.44997, abs=1e-9)
        assert result.probability == pytest.approx(1 / (1 + math.exp(-1.44997)))
        assert result.score == 81
        assert (result.range_low, result.range_high) == (71, 91)
        assert result.display_range == "71%–91%"
        assert result.risk is RiskTier.HIGHER

    def test_presentation_copied_from_config(self, config, answers):
        result = score_stage1(answers, config)
        higher = config.part1.risk_cutoffs.higher
        assert result.score_range == higher.label
        assert result.color == higher.color
        assert result.action == higher.action

    def test_echoes_inputs_and_version(self, config):
        result = score_stage1(baseline_answers(bmi=26.04, shim=[1, 1, 1, 1, 1]), config)
        assert result.age == 65
        assert result.bmi == 26.0
        assert result.ipss_total == 0
        assert result.shim_total == 5
        assert result.model_version == "1.1.0"
        assert result.intercept == config.part1.intercept

    def test_contributions_sum_to_logit(self, config, answers):
        result = score_stage1(answers, config)
        assert [c.id for c in result.contributions] == [v.id for v in config.part1.variables]
        total = result.intercept + sum(c.contribution for c in result.contributions)
        assert total == pytest.approx(result.logit)
        age = next(c for c in result.contributions if c.id == "age")
        assert age.value == 65.0
        assert age.contribution == pytest.approx(0.03879 * 65)

    def test_deterministic(self, config, answers):
        assert score_stage1(answers, config) == score_stage1(answers, config)

    def test_class_scorer(self, config, answers):
        assert Stage1Scorer().score(answers, config) == score_stage1(answers, config)


class TestDisplayBand:

    def test_band_clamped_at_top(self, config):
        # p = 0.95 exactly with every weight zero
        flat = derive(config, intercept=math.log(19), zero_weights=True)
        result = score_stage1(baseline_answers(), flat)
        assert result.score == 95
        assert (result.range_low, result.range_high) == (85, 100)

    def test_band_clamped_at_bottom(self, config):
        flat = derive(config, intercept=-3.4760986898, zero_weights=True)
        result = score_stage1(baseline_answers(), flat)
        assert result.score == 3
        assert (result.range_low, result.range_high) == (0, 13)
        assert result.risk is RiskTier.LOWER


class TestModelProperties:

    def test_score_bounds(self, config):
        for age in (18, 40, 65, 90, 120):
            for ipss in ([0] * 7, [5] * 7):
                result = score_stage1(baseline_answers(age=age, ipss=ipss), config)
                assert 0 <= result.score <= 100
                assert 0 <= result.range_low <= result.score <= result.range_high <= 100

    def test_age_monotone_with_positive_weight(self, config):
        scores = [
            score_stage1(baseline_answers(age=age), config).probability for age in range(40, 91, 5)
        ]
        assert scores == sorted(scores)

    def test_ipss_lowers_risk_with_negative_weight(self, config):
        low = score_stage1(baseline_answers(ipss=[0] * 7), config)
        high = score_stage1(baseline_answers(ipss=[5] * 7), config)
        assert high.probability < low.probability

    def test_zero_weight_inputs_do_not_change_score(self, config):
        a = score_stage1(baseline_answers(exercise=0, family_history=0, shim=[5] * 5), config)
        b = score_stage1(baseline_answers(exercise=2, family_history=3, shim=[0] * 5), config)
        assert a.logit == b.logit

    def test_higher_tier_cutoff_never_bounds(self, config):
        raw = config.model_dump()
        raw["part1"]["risk_cutoffs"]["higher"]["threshold"] = 0.5
        capped = ModelConfig.model_validate(raw)
        result = score_stage1(baseline_answers(), capped)
        assert result.probability > 0.5
        assert result.risk is RiskTier.HIGHER


class TestExtraction:

    @pytest.mark.parametrize("race", ["Black", "african american", " African-American "])
    def test_race_encoding_list(self, config, race):
        record = validate_answers(baseline_answers(race=race), config).record
        assert extract_value("raceBlack", record, config) == 1.0

    def test_race_other(self, config, answers):
        record = validate_answers(answers, config).record
        assert extract_value("raceBlack", record, config) == 0.0

    def test_race_fallback_without_encoding(self, config):
        bare = derive(config, race_black=None)
        black = validate_answers(baseline_answers(race="black"), bare).record
        aa = validate_answers(baseline_answers(race="african-american"), bare).record
        assert extract_value("raceBlack", black, bare) == 1.0
        assert extract_value("raceBlack", aa, bare) == 0.0

    def test_race_weight_applies(self, config):
        weighted = derive(config, weights={"raceBlack": 0.5})
        white = score_stage1(baseline_answers(race="white"), weighted)
        black = score_stage1(baseline_answers(race="black"), weighted)
        assert black.logit - white.logit == pytest.approx(0.5)

    @pytest.mark.parametrize("fh, expected", [(0, 0.0), (1, 1.0), (3, 1.0)])
    def test_family_history_binary(self, config, fh, expected):
        record = validate_answers(baseline_answers(family_history=fh), config).record
        assert extract_value("fhBinary", record, config) == expected

    def test_unknown_variable_contributes_zero(self, config, answers):
        extended = derive(
            config, extra_variables=[{"id": "psaVelocity", "weight": 3.0, "type": "continuous"}]
        )
        base = score_stage1(answers, config)
        result = score_stage1(answers, extended)
        assert result.logit == pytest.approx(base.logit)
        extra = result.contributions[-1]
        assert (extra.id, extra.value, extra.contribution) == ("psaVelocity", 0.0, 0.0)


class TestUnavailable:

    def test_invalid_input_returns_none(self, config):
        assert score_stage1(baseline_answers(age=10), config) is None

    def test_missing_items_return_none(self, config):
        assert score_stage1(baseline_answers(ipss=[0] * 5), config) is None

    def test_unavailable_is_logged(self, config, caplog):
        with caplog.at_level("WARNING", logger="epsa_engine.scoring"):
            score_stage1({}, config)
        assert "Stage 1 unavailable" in caplog.text
