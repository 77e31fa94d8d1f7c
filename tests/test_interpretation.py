import pytest
from pydantic import ValidationError

from openrisk.core.categories import DEFAULT_PROFILES
from openrisk.core.interpretation import (
    NO_SIGNAL,
    build_condition_key,
    build_dynamic_vars,
    discretize,
    find_template,
    interpolate,
    interpret,
    select_phrase,
    subway_band,
    weekend_bias,
)
from openrisk.core.models import (
    AnchorMetrics,
    AreaType,
    BusinessCategory,
    ConditionKey,
    Level,
    RiskLevel,
    SubRiskScores,
    SubwayBand,
    SurvivalTrend,
    Template,
    Tone,
    WeekendBias,
)
from openrisk.core.normalize import compute_sub_risks
from openrisk.core.templates import ANCHOR_TEMPLATES, CATEGORY_TEMPLATES, TEMPLATE_POOLS, when
from openrisk.core.validation import validate_request

from conftest import make_payload


FULL_ANCHORS = {
    "has_any_anchor": True,
    "subway": {"name": "Hapjeong", "distance": 150},
    "starbucks": {"count": 3, "distance": 120},
    "mart": {"name": "Homeplus", "distance": 400},
    "department": {"name": "Hyundai", "distance": 450},
}


def key(**fields):
    base = dict(
        competition=Level.MEDIUM,
        traffic=Level.MEDIUM,
        cost=Level.MEDIUM,
        survival=Level.MEDIUM,
        area_type=AreaType.MIXED,
        category=BusinessCategory.CAFE,
    )
    base.update(fields)
    return ConditionKey(**base)


# ── Condition key ─────────────────────────────────────────────────────────────

class TestConditionKey:
    @pytest.mark.parametrize("score,level", [
        (0, Level.LOW), (39.9, Level.LOW), (40, Level.MEDIUM), (60, Level.MEDIUM), (60.1, Level.HIGH), (100, Level.HIGH),
    ])
    def test_discretize(self, score, level):
        assert discretize(score) == level

    @pytest.mark.parametrize("distance,band", [(300, "near"), (301, "walkable"), (500, "walkable"), (501, "far")])
    def test_subway_band(self, distance, band):
        anchors = AnchorMetrics.model_validate({"subway": {"name": "S", "distance": distance}, "has_any_anchor": True})
        assert subway_band(anchors) == band

    def test_nearby_facilities(self):
        request = validate_request(make_payload(anchors=FULL_ANCHORS))
        profile = DEFAULT_PROFILES[BusinessCategory.CAFE]
        k = build_condition_key(request, compute_sub_risks(request), AreaType.MIXED, profile)
        assert k.subway == SubwayBand.NEAR
        assert k.station_adjacent and k.coffee_cluster and k.mart_near and k.department_near

    @pytest.mark.parametrize("ratio,bias", [(0.51, WeekendBias.WEEKEND), (0.5, WeekendBias.BALANCED), (0.3, WeekendBias.BALANCED), (0.29, WeekendBias.WEEKDAY)])
    def test_weekend_bias(self, ratio, bias):
        assert weekend_bias(ratio) == bias

    def test_bands_are_closed_sets(self):
        with pytest.raises(ValidationError):
            key(subway="nearby")
        with pytest.raises(ValidationError):
            key(weekend_bias="holiday")

    def test_cafe_scenario_key(self):
        request = validate_request(make_payload())
        profile = DEFAULT_PROFILES[BusinessCategory.CAFE]
        k = build_condition_key(request, compute_sub_risks(request), AreaType.RESIDENTIAL, profile)
        assert (k.competition, k.traffic, k.cost, k.survival) == (Level.LOW,) * 4
        assert k.peak_fit is True
        assert k.subway == SubwayBand.NONE
        assert k.weekend_bias == WeekendBias.BALANCED
        assert k.has_any_anchor is False
        assert not (k.mart_near or k.department_near or k.coffee_cluster or k.station_adjacent)
        assert k.survival_trend == SurvivalTrend.STABLE


# ── Templates ─────────────────────────────────────────────────────────────────

class TestTemplates:
    def test_when_matches_fields_and_tuples(self):
        predicate = when(competition=Level.HIGH, subway=("near", "walkable"))
        assert predicate(key(competition=Level.HIGH, subway="walkable"))
        assert not predicate(key(competition=Level.HIGH, subway="far"))
        assert not predicate(key(competition=Level.LOW, subway="near"))

    def test_every_category_has_templates(self):
        for category in BusinessCategory:
            assert any(t.id.startswith(category.value + "_") for t in CATEGORY_TEMPLATES), category

    def test_template_ids_unique(self):
        ids = [t.id for pool in TEMPLATE_POOLS for t in pool]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("metric", ["competition", "traffic", "cost", "survival", "time_pattern", "area_type", "anchor"])
    @pytest.mark.parametrize("level", list(Level))
    def test_every_metric_always_explained(self, metric, level):
        for area_type in AreaType:
            k = key(competition=level, traffic=level, cost=level, survival=level, area_type=area_type, category=BusinessCategory.GYM)
            assert find_template(metric, k) is not None

    def test_combination_beats_category(self):
        k = key(competition=Level.HIGH, traffic=Level.HIGH, cost=Level.HIGH)
        assert find_template("competition", k).id == "worst_combination"

    def test_category_beats_generic(self):
        k = key(competition=Level.LOW, traffic=Level.LOW)
        assert find_template("competition", k).id == "cafe_competition_low"

    def test_injected_pools(self):
        only = Template(id="only", metric="cost", predicate=lambda k: True, tone=Tone.CAUTION, phrases=("x",))
        assert find_template("cost", key(), pools=[[only]]).id == "only"
        assert find_template("traffic", key(), pools=[[only]]) is None


# ── Phrase selection ──────────────────────────────────────────────────────────

class TestPhraseSelection:
    template = Template(
        id="demo", metric="cost", predicate=lambda k: True, tone=Tone.CAUTION,
        phrases=tuple(f"phrase {i}" for i in range(7)),
    )

    def test_same_location_same_phrase(self):
        assert select_phrase(self.template, "cell-1") == select_phrase(self.template, "cell-1")

    def test_without_stable_id_still_deterministic(self):
        assert select_phrase(self.template) == select_phrase(self.template, None) == select_phrase(self.template, "")

    def test_locations_vary(self):
        chosen = {select_phrase(self.template, f"cell-{i}") for i in range(50)}
        assert len(chosen) > 1

    def test_interpolate_leaves_unknown_placeholders(self):
        assert interpolate("{same_category} shops near {subway_name}", {"same_category": "4"}) == "4 shops near {subway_name}"

    def test_dynamic_vars(self):
        request = validate_request(make_payload(cost={"avg_rent": 12.5, "district_avg": 10}))
        profile = DEFAULT_PROFILES[BusinessCategory.CAFE]
        variables = build_dynamic_vars(request, profile, AreaType.RESIDENTIAL).as_format_map()
        assert variables["avg_rent"] == "12.5"
        assert variables["rent_monthly_10"] == "125"
        assert variables["rent_vs_avg_percent"] == "25"
        assert variables["peak_time_label"] == "morning"
        assert "subway_name" not in variables

    def test_near_zero_district_average_leaves_comparison_out(self):
        request = validate_request(make_payload(cost={"avg_rent": 10, "district_avg": 1e-310}))
        profile = DEFAULT_PROFILES[BusinessCategory.CAFE]
        assert build_dynamic_vars(request, profile, AreaType.RESIDENTIAL).rent_vs_avg_percent is None

    def test_facility_names(self):
        request = validate_request(make_payload(anchors=FULL_ANCHORS))
        profile = DEFAULT_PROFILES[BusinessCategory.CAFE]
        variables = build_dynamic_vars(request, profile, AreaType.MIXED).as_format_map()
        assert variables["mart_name"] == "Homeplus"
        assert variables["department_distance"] == "450"


# ── Full interpretation ───────────────────────────────────────────────────────

class TestInterpret:
    def test_cafe_scenario(self):
        request = validate_request(make_payload())
        result = interpret(request, "cafe", AreaType.RESIDENTIAL)

        assert "Low competition" in result.top_factors.opportunities
        assert result.easy_explanations.competition in result.opportunities
        assert any("anchor" in risk.lower() for risk in result.risks)
        assert result.top_factors.risks == ["No anchor facilities"]
        assert result.summary.startswith("Conditions here are favourable for this cafe.")

    def test_round_trip_is_byte_identical(self):
        request = validate_request(make_payload())
        first = interpret(request, "cafe", AreaType.RESIDENTIAL)
        second = interpret(validate_request(make_payload()), "cafe", AreaType.RESIDENTIAL)
        assert first.model_dump_json() == second.model_dump_json()

    def test_defaults_are_computed(self):
        request = validate_request(make_payload())
        assert interpret(request) == interpret(
            request, "cafe", AreaType.RESIDENTIAL,
            sub_risks=compute_sub_risks(request), risk_level=RiskLevel.LOW,
        )

    def test_worst_case(self):
        request = validate_request(make_payload(
            category="restaurant_chicken",
            competition={"same_category": 30},
            traffic={"index": 5},
            cost={"avg_rent": 50},
            survival={"closure_rate": 20, "opening_rate": 5, "net_change": -4},
        ))
        result = interpret(request)
        assert result.easy_explanations.competition.startswith(("Honestly", "This is a hard spot"))
        assert len(result.top_factors.risks) == 3
        assert result.easy_explanations.cost in result.risks
        assert "Competition is fierce, foot traffic is thin and rent is high." in result.summary
        assert result.survival_trend == SurvivalTrend.SHRINKING

    def test_top_factors_sorted_by_severity(self):
        request = validate_request(make_payload(
            competition={"same_category": 30},
            cost={"avg_rent": 50},
            survival={"closure_rate": 20, "opening_rate": 5, "net_change": -4},
        ))
        result = interpret(request)
        # critical combination and closure chips come before warnings
        assert result.top_factors.risks[0] == "High rent and heavy competition"
        assert result.top_factors.risks[1] == "High closure rate"

    def test_lists_are_deduplicated(self):
        result = interpret(validate_request(make_payload()))
        assert len(result.risks) == len(set(result.risks))
        assert len(result.opportunities) == len(set(result.opportunities))

    def test_missing_template_falls_back(self):
        result = interpret(validate_request(make_payload()), pools=[])
        assert result.easy_explanations.cost == NO_SIGNAL
        assert result.risks == [] and result.opportunities == []

    def test_contribution_included(self):
        result = interpret(validate_request(make_payload()))
        assert set(result.score_contribution) == {"competition", "cost", "survival", "traffic", "anchor", "time_pattern"}


# ── Composed explanations ─────────────────────────────────────────────────────

class TestAnchorExplanation:
    def test_all_nearby_facilities_are_mentioned(self):
        result = interpret(validate_request(make_payload(anchors=FULL_ANCHORS)))
        text = result.easy_explanations.anchor
        assert text.startswith("Close to the station")
        assert "coffee chains" in text
        assert "Homeplus" in text
        assert "Hyundai" in text
        assert text.endswith("higher rent and competition.")
        assert text in result.opportunities

    def test_station_caveat_only_when_adjacent(self):
        anchors = dict(FULL_ANCHORS, subway={"name": "Hapjeong", "distance": 250})
        text = interpret(validate_request(make_payload(anchors=anchors))).easy_explanations.anchor
        assert "Homeplus" in text
        assert "higher rent and competition" not in text

    def test_distant_facilities_are_not_mentioned(self):
        anchors = {"has_any_anchor": True, "mart": {"name": "Homeplus", "distance": 800}}
        text = interpret(validate_request(make_payload(anchors=anchors))).easy_explanations.anchor
        assert "Homeplus" not in text

    def test_facilities_stand_alone_without_a_template(self):
        anchors = {"has_any_anchor": True, "mart": {"name": "Homeplus", "distance": 300}}
        result = interpret(validate_request(make_payload(anchors=anchors)), pools=[ANCHOR_TEMPLATES])
        assert result.easy_explanations.anchor == "Homeplus is close, so you can tie into grocery trips."
        assert result.easy_explanations.anchor in result.opportunities
        assert "Homeplus nearby" in result.top_factors.opportunities

    def test_distant_template_when_nothing_is_close(self):
        anchors = {"has_any_anchor": True, "mart": {"name": "Homeplus", "distance": 800}}
        result = interpret(validate_request(make_payload(anchors=anchors)), pools=[ANCHOR_TEMPLATES])
        assert "far enough that their pull is limited" in result.easy_explanations.anchor

    def test_station_ignored_without_anchor_flag(self):
        anchors = {"has_any_anchor": False, "subway": {"name": "Sinchon", "distance": 100}}
        result = interpret(validate_request(make_payload(anchors=anchors)))
        assert "anchor facilit" in result.easy_explanations.anchor
        assert result.easy_explanations.anchor in result.risks
        assert not any(f.startswith("Station") for f in result.top_factors.opportunities)
        assert "No anchor facilities" in result.top_factors.risks


class TestTimePatternExplanation:
    def test_weekend_heavy_is_appended_to_peak_phrase(self):
        result = interpret(validate_request(make_payload(traffic={"weekend_ratio": 0.6})))
        text = result.easy_explanations.time_pattern
        peak_fit = find_template("time_pattern", key(peak_time="morning", peak_fit=True))
        assert any(text.startswith(interpolate(p, {"peak_time_label": "morning"})) for p in peak_fit.phrases)
        assert text.endswith("weekday fixed costs have to be carried.")
        assert text in result.risks
        assert "Weekend-dependent traffic" in result.top_factors.risks

    def test_weekday_heavy_is_appended(self):
        result = interpret(validate_request(make_payload(traffic={"weekend_ratio": 0.2})))
        text = result.easy_explanations.time_pattern
        assert text.endswith("closing at weekends could be an option.")
        assert text in result.opportunities

    def test_balanced_week_has_no_suffix(self):
        text = interpret(validate_request(make_payload())).easy_explanations.time_pattern
        assert "weekend" not in text.lower()
