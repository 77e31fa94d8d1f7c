import pytest

from openrisk.core.categories import DEFAULT_PROFILES
from openrisk.core.models import AreaType, BusinessCategory, Impact, Level, SurvivalTrend
from openrisk.core.survival import (
    MAX_CLOSURE_RATE,
    MIN_CLOSURE_RATE,
    closure_risk_factors,
    closure_risk_level,
    describe_closure_risk,
    estimate_survival,
    survival_outlook,
    survival_summary,
    survival_trend,
)


class TestTrend:
    @pytest.mark.parametrize("opening,closure,trend", [
        (10, 7, SurvivalTrend.GROWING),
        (10, 8, SurvivalTrend.STABLE),
        (8, 10, SurvivalTrend.STABLE),
        (7, 10, SurvivalTrend.SHRINKING),
    ])
    def test_band_of_two_points(self, opening, closure, trend):
        assert survival_trend(opening, closure) == trend


class TestEstimate:
    def test_cafe_in_mixed_area(self):
        cafe = DEFAULT_PROFILES[BusinessCategory.CAFE]
        estimate = estimate_survival(cafe, 0.3, 10, Level.MEDIUM, AreaType.MIXED)
        # 100 - 45 base survival, no density/traffic/rent adjustment
        assert estimate.closure_rate == 55.0
        assert estimate.opening_rate == 35.0
        assert estimate.net_change == -20

    def test_crowded_expensive_special_area(self):
        chicken = DEFAULT_PROFILES[BusinessCategory.RESTAURANT_CHICKEN]
        estimate = estimate_survival(chicken, 0.9, 1, Level.HIGH, AreaType.SPECIAL)
        assert estimate.closure_rate == MAX_CLOSURE_RATE

    def test_floor(self):
        pharmacy = DEFAULT_PROFILES[BusinessCategory.PHARMACY]
        estimate = estimate_survival(pharmacy, 0.1, 50, Level.LOW, AreaType.RESIDENTIAL)
        assert estimate.closure_rate == MIN_CLOSURE_RATE

    def test_residential_dampens_closures(self):
        bar = DEFAULT_PROFILES[BusinessCategory.BAR]
        residential = estimate_survival(bar, 0.3, 10, Level.MEDIUM, AreaType.RESIDENTIAL)
        commercial = estimate_survival(bar, 0.3, 10, Level.MEDIUM, AreaType.COMMERCIAL)
        assert residential.closure_rate < commercial.closure_rate
        assert residential.opening_rate < commercial.opening_rate

    @pytest.mark.parametrize("area_type,opening", [
        (AreaType.RESIDENTIAL, 30.0),
        (AreaType.MIXED, 35.0),
        (AreaType.COMMERCIAL, 45.0),
        (AreaType.SPECIAL, 40.0),
    ])
    def test_opening_rate_by_area(self, area_type, opening):
        cafe = DEFAULT_PROFILES[BusinessCategory.CAFE]
        assert estimate_survival(cafe, 0.3, 30, Level.MEDIUM, area_type).opening_rate == opening


# ── Outlook ───────────────────────────────────────────────────────────────────

class TestClosureRiskLevel:
    @pytest.mark.parametrize("rate,level", [
        (0, Level.LOW), (29.9, Level.LOW), (30, Level.MEDIUM), (49.9, Level.MEDIUM), (50, Level.HIGH), (80, Level.HIGH),
    ])
    def test_bands(self, rate, level):
        assert closure_risk_level(rate) == level


class TestOutlook:
    def test_cafe_in_mixed_area(self):
        cafe = DEFAULT_PROFILES[BusinessCategory.CAFE]
        outlook = survival_outlook(cafe, 0.3, 10, Level.MEDIUM, AreaType.MIXED)
        assert outlook.estimate.closure_rate == 55.0
        assert outlook.risk == Level.HIGH
        assert outlook.trend == SurvivalTrend.SHRINKING
        assert outlook.trend_label == "store count shrinking"
        assert outlook.risk_label == "Caution"
        assert outlook.summary == "Many shops are closing here. Find out why on site."
        assert outlook.description == "Cafe: high closure risk for the category (estimated closure rate 55%, net decline -20%)"
        assert [(f.factor, f.impact) for f in outlook.factors] == [("Category", Impact.NEGATIVE)]

    def test_pharmacy_in_residential_area(self):
        pharmacy = DEFAULT_PROFILES[BusinessCategory.PHARMACY]
        outlook = survival_outlook(pharmacy, 0.1, 50, Level.LOW, AreaType.RESIDENTIAL)
        assert outlook.estimate.closure_rate == MIN_CLOSURE_RATE
        assert outlook.risk == Level.LOW
        assert outlook.trend == SurvivalTrend.GROWING
        assert outlook.risk_label == "Stable"
        assert outlook.summary.startswith("New shops keep opening here")
        assert "net growth +15%" in outlook.description
        assert all(f.impact == Impact.POSITIVE for f in outlook.factors)
        assert len(outlook.factors) == 5

    @pytest.mark.parametrize("trend,risk,closure,start", [
        (SurvivalTrend.GROWING, Level.MEDIUM, 20, "Openings are brisk"),
        (SurvivalTrend.SHRINKING, Level.LOW, 10, "Store numbers are falling"),
        (SurvivalTrend.STABLE, Level.LOW, 10, "Store numbers are holding steady"),
        (SurvivalTrend.STABLE, Level.HIGH, 60, "Openings and closures roughly cancel out"),
    ])
    def test_summary(self, trend, risk, closure, start):
        assert survival_summary(trend, risk, closure).startswith(start)

    def test_flat_net_change(self):
        gym = DEFAULT_PROFILES[BusinessCategory.GYM]
        estimate = estimate_survival(gym, 0.3, 10, Level.MEDIUM, AreaType.MIXED)
        estimate = estimate.model_copy(update={"net_change": -3})
        assert describe_closure_risk(estimate, gym).endswith(", flat)")

    def test_negative_factors(self):
        chicken = DEFAULT_PROFILES[BusinessCategory.RESTAURANT_CHICKEN]
        factors = closure_risk_factors(chicken, 0.75, 2, Level.HIGH, AreaType.SPECIAL)
        assert [f.factor for f in factors] == ["Heavy competition", "Foot traffic", "Rent", "District character", "Category"]
        assert all(f.impact == Impact.NEGATIVE for f in factors)
        assert "75%" in factors[0].description
