import pytest

import openrisk
from openrisk.core.engine import analyze, request_fingerprint
from openrisk.core.errors import InvalidMetricRangeWarning, MalformedInputError, UnknownCategoryError
from openrisk.core.models import AreaType, BusinessCategory, Factor, RiskLevel
from openrisk.core.normalize import build_thresholds
from openrisk.core.scoring import classify_risk_level
from openrisk.core.validation import validate_request

from conftest import make_payload


class TestAnalyze:
    def test_cafe_scenario(self, payload):
        result = analyze(payload)
        assert 0 <= result.risk_score < 50
        assert result.risk_level in (RiskLevel.LOW, RiskLevel.MEDIUM)
        assert result.area_type == AreaType.RESIDENTIAL
        assert result.category == BusinessCategory.CAFE
        assert result.category_name == "Cafe"
        assert "Low competition" in result.interpretation.top_factors.opportunities
        assert any("anchor" in risk.lower() for risk in result.interpretation.risks)
        assert [c.id for c in result.risk_cards] == ["anchor_none"]
        assert result.warnings == []

    def test_exact_score(self, payload):
        result = analyze(payload)
        assert result.risk_score == 12
        assert result.time_adjustment == -5

    def test_level_is_function_of_score(self):
        for same_category in (0, 5, 12, 25):
            result = analyze(make_payload(competition={"same_category": same_category}))
            assert result.risk_level == classify_risk_level(result.risk_score)

    def test_pathological_inputs_stay_in_range(self):
        with pytest.warns(InvalidMetricRangeWarning):
            result = analyze(make_payload(
                competition={"same_category": 10**6},
                cost={"avg_rent": -5},
                survival={"closure_rate": 10**6, "opening_rate": 0, "net_change": -100},
            ))
        assert 0 <= result.risk_score <= 100
        assert len(result.warnings) == 2

    @pytest.mark.parametrize("category", [c.value for c in BusinessCategory])
    def test_every_category_scores(self, category):
        result = analyze(make_payload(category=category))
        assert 0 <= result.risk_score <= 100
        assert result.interpretation.summary

    def test_same_input_same_output(self, payload):
        assert analyze(payload).model_dump_json() == analyze(make_payload()).model_dump_json()

    def test_errors_propagate(self):
        with pytest.raises(UnknownCategoryError):
            analyze(make_payload(category="casino"))
        with pytest.raises(MalformedInputError):
            analyze({"category": "cafe"})

    def test_nan_metric_is_malformed(self):
        with pytest.raises(MalformedInputError):
            analyze(make_payload(cost={"avg_rent": float("nan")}))

    @pytest.mark.parametrize("avg_rent,district_avg", [(10, 1e-310), (1e308, 1e-3)])
    def test_extreme_rent_ratio_does_not_overflow(self, avg_rent, district_avg):
        result = analyze(make_payload(cost={"avg_rent": avg_rent, "district_avg": district_avg}))
        assert 0 <= result.risk_score <= 100
        assert "{rent_vs_avg_percent}" not in result.interpretation.model_dump_json()

    def test_custom_thresholds(self, payload):
        custom = build_thresholds({
            Factor.COMPETITION: (5, 20),
            Factor.COST: (5, 10),
            Factor.SURVIVAL: (5, 15),
            Factor.TRAFFIC: (10, 40),
        })
        default = analyze(payload)
        strict = analyze(payload, thresholds=custom)
        assert default.sub_risks.cost == 20
        assert strict.sub_risks.cost == 100
        assert strict.risk_score > default.risk_score

    def test_package_exports(self, payload):
        assert openrisk.analyze(payload) == analyze(payload)


class TestFingerprint:
    def test_stable(self, payload):
        assert request_fingerprint(validate_request(payload)) == request_fingerprint(validate_request(make_payload()))

    def test_changes_with_input(self):
        a = validate_request(make_payload())
        b = validate_request(make_payload(stable_id="cell-other"))
        assert request_fingerprint(a) != request_fingerprint(b)
