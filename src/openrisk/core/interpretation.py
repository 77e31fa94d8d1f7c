"""Interpretation generator — condition keys, template matching and phrase selection.

Turns sub-risk scores into a discretized ConditionKey, walks the template
pools for each explanation metric, and routes the chosen phrases into risk
and opportunity bullets. Phrase choice is a hash of (stable id, template id),
so the same location always reads the same while neighbours vary.
"""

from __future__ import annotations

import hashlib
import logging
import math
from typing import Iterable, Mapping, NamedTuple, Optional, Sequence, Union

from pydantic import BaseModel

from .area import AREA_TYPE_LABELS, classify_area_type
from .categories import DEFAULT_PROFILES, ProfileTable, get_profile
from .models import (
    AnalysisRequest,
    AnchorMetrics,
    AreaType,
    BusinessCategory,
    CategoryProfile,
    ConditionKey,
    EasyExplanations,
    Factor,
    InterpretationResult,
    Level,
    PeakTime,
    RiskLevel,
    SubRiskScores,
    SubwayBand,
    Template,
    TopFactors,
    Tone,
    WeekendBias,
)
from .normalize import NORMALIZATION, Thresholds, compute_sub_risks
from .scoring import classify_risk_level, compute_risk_score, explain_contribution, observed_peak_time, time_pattern_adjustment
from .survival import survival_trend
from .templates import ADDENDA, SUMMARY_LEADS, SUMMARY_RULES, TEMPLATE_POOLS, Addendum, SummaryRule

logger = logging.getLogger(__name__)

LEVEL_LOW_BELOW = 40
LEVEL_HIGH_ABOVE = 60

SUBWAY_NEAR = 300
SUBWAY_WALKABLE = 500
STATION_ADJACENT = 200
FACILITY_NEAR = 500
COFFEE_CLUSTER_MIN = 2

WEEKEND_HEAVY_ABOVE = 0.5
WEEKDAY_HEAVY_BELOW = 0.3

MAX_TOP_FACTORS = 3

EXPLANATION_METRICS = ("competition", "traffic", "cost", "survival", "time_pattern", "area_type", "anchor")

NO_SIGNAL = "No notable signal for this indicator."

PEAK_TIME_LABELS = {
    PeakTime.MORNING: "morning",
    PeakTime.DAY: "midday",
    PeakTime.NIGHT: "evening",
}

SEVERITY_ORDER = {
    Tone.CRITICAL: 0,
    Tone.WARNING: 1,
    Tone.CAUTION: 2,
    Tone.POSITIVE: 3,
}

TemplatePools = Sequence[Sequence[Template]]


# ─── Condition key ──────────────────────────────────────────────────────────


def discretize(sub_risk: float) -> Level:
    if sub_risk < LEVEL_LOW_BELOW:
        return Level.LOW
    if sub_risk > LEVEL_HIGH_ABOVE:
        return Level.HIGH
    return Level.MEDIUM


def subway_band(anchors: AnchorMetrics) -> SubwayBand:
    if anchors.subway is None:
        return SubwayBand.NONE
    if anchors.subway.distance <= SUBWAY_NEAR:
        return SubwayBand.NEAR
    if anchors.subway.distance <= SUBWAY_WALKABLE:
        return SubwayBand.WALKABLE
    return SubwayBand.FAR


def weekend_bias(weekend_ratio: float) -> WeekendBias:
    if weekend_ratio > WEEKEND_HEAVY_ABOVE:
        return WeekendBias.WEEKEND
    if weekend_ratio < WEEKDAY_HEAVY_BELOW:
        return WeekendBias.WEEKDAY
    return WeekendBias.BALANCED


def _within(anchor, distance: int) -> bool:
    return anchor is not None and anchor.distance <= distance


def build_condition_key(
    request: AnalysisRequest,
    sub_risks: SubRiskScores,
    area_type: AreaType,
    profile: CategoryProfile,
) -> ConditionKey:
    peak = observed_peak_time(request.traffic)
    anchors = request.anchors
    return ConditionKey(
        competition=discretize(sub_risks.competition),
        traffic=discretize(sub_risks.traffic),
        cost=discretize(sub_risks.cost),
        survival=discretize(sub_risks.survival),
        area_type=area_type,
        category=profile.category,
        peak_time=peak,
        peak_fit=peak == profile.optimal_peak_time,
        weekend_bias=weekend_bias(request.traffic.weekend_ratio),
        subway=subway_band(anchors),
        has_any_anchor=anchors.has_any_anchor,
        station_adjacent=_within(anchors.subway, STATION_ADJACENT),
        coffee_cluster=anchors.starbucks is not None and anchors.starbucks.count >= COFFEE_CLUSTER_MIN,
        mart_near=_within(anchors.mart, FACILITY_NEAR),
        department_near=_within(anchors.department, FACILITY_NEAR),
        survival_trend=survival_trend(request.survival.opening_rate, request.survival.closure_rate),
    )


# ─── Dynamic variables ──────────────────────────────────────────────────────


class DynamicVars(BaseModel):
    """Values available to phrase placeholders, built once per request."""

    category_name: str
    category_lower: str
    same_category: int
    total_stores: int
    avg_rent: float
    rent_monthly_10: float
    closure_rate: float
    opening_rate: float
    traffic_index: float
    peak_time_label: str
    area_type_label: str
    subway_name: Optional[str] = None
    subway_distance: Optional[int] = None
    starbucks_count: Optional[int] = None
    mart_name: Optional[str] = None
    mart_distance: Optional[int] = None
    department_name: Optional[str] = None
    department_distance: Optional[int] = None
    nearest_competitor: Optional[str] = None
    rent_vs_avg_percent: Optional[int] = None

    def as_format_map(self) -> dict[str, str]:
        return {k: _fmt(v) for k, v in self.model_dump().items() if v is not None}


def _fmt(value) -> str:
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.1f}"
    return str(value)


def build_dynamic_vars(request: AnalysisRequest, profile: CategoryProfile, area_type: AreaType) -> DynamicVars:
    cost = request.cost
    rent_vs_avg = None
    if cost.district_avg:
        ratio = (cost.avg_rent / cost.district_avg - 1) * 100
        # a near-zero district average overflows to inf
        if math.isfinite(ratio):
            rent_vs_avg = round(ratio)

    subway = request.anchors.subway
    starbucks = request.anchors.starbucks
    mart = request.anchors.mart
    department = request.anchors.department
    nearest = request.competition.nearest_competitor

    return DynamicVars(
        category_name=profile.name,
        category_lower=profile.name.lower(),
        same_category=request.competition.same_category,
        total_stores=request.competition.total,
        avg_rent=cost.avg_rent,
        rent_monthly_10=round(cost.avg_rent * 10, 1),
        closure_rate=request.survival.closure_rate,
        opening_rate=request.survival.opening_rate,
        traffic_index=request.traffic.index,
        peak_time_label=PEAK_TIME_LABELS[observed_peak_time(request.traffic)],
        area_type_label=AREA_TYPE_LABELS[area_type],
        subway_name=subway.name if subway else None,
        subway_distance=subway.distance if subway else None,
        starbucks_count=starbucks.count if starbucks else None,
        mart_name=mart.name if mart else None,
        mart_distance=mart.distance if mart else None,
        department_name=department.name if department else None,
        department_distance=department.distance if department else None,
        nearest_competitor=nearest.name if nearest else None,
        rent_vs_avg_percent=rent_vs_avg,
    )


class _KeepMissing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def interpolate(text: str, variables: Mapping[str, str]) -> str:
    """Fill ``{name}`` placeholders; unknown names are left verbatim."""
    return text.format_map(_KeepMissing(variables))


# ─── Template selection ─────────────────────────────────────────────────────


def select_phrase(template: Template, stable_id: Optional[str] = None) -> str:
    """Deterministically pick one phrase for this location and template."""
    seed = f"{stable_id or ''}:{template.id}"
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return template.phrases[int(digest, 16) % len(template.phrases)]


def find_template(metric: str, key: ConditionKey, pools: TemplatePools = TEMPLATE_POOLS) -> Optional[Template]:
    """First template, in pool priority order, explaining ``metric`` for ``key``."""
    for pool in pools:
        for template in pool:
            if template.metric == metric and template.predicate(key):
                return template
    return None


def summarize(
    key: ConditionKey,
    risk_level: RiskLevel,
    variables: Mapping[str, str],
    rules: Iterable[SummaryRule] = SUMMARY_RULES,
) -> str:
    lead = interpolate(SUMMARY_LEADS[risk_level], variables)
    for rule in rules:
        if rule.predicate(key):
            return f"{lead} {interpolate(rule.sentence, variables)}"
    return lead


def _dedupe(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _top_factors(matched: list[tuple[Tone, str]]) -> TopFactors:
    risks = []
    opportunities = []
    for tone, label in matched:
        if tone == Tone.POSITIVE:
            opportunities.append((tone, label))
        else:
            risks.append((tone, label))
    risks.sort(key=lambda pair: SEVERITY_ORDER[pair[0]])
    return TopFactors(
        risks=_dedupe(label for _, label in risks)[:MAX_TOP_FACTORS],
        opportunities=_dedupe(label for _, label in opportunities)[:MAX_TOP_FACTORS],
    )


class _Explanation(NamedTuple):
    text: str
    tone: Tone
    factors: list[tuple[Tone, str]]


def explain_metric(
    metric: str,
    key: ConditionKey,
    variables: Mapping[str, str],
    stable_id: Optional[str] = None,
    pools: TemplatePools = TEMPLATE_POOLS,
    addenda: Iterable[Addendum] = ADDENDA,
) -> Optional[_Explanation]:
    """Chosen phrase for ``metric`` followed by any matching addenda.

    The explanation takes the most severe tone among its parts. Returns None
    when neither a template nor an addendum applies.
    """
    parts = []
    tones = []
    factors = []
    template = find_template(metric, key, pools)
    if template is not None:
        parts.append(interpolate(select_phrase(template, stable_id), variables))
        tones.append(template.tone)
        if template.factor:
            factors.append((template.tone, interpolate(template.factor, variables)))
    for extra in addenda:
        if extra.metric != metric or not extra.predicate(key):
            continue
        parts.append(interpolate(extra.sentence, variables))
        if extra.tone is not None:
            tones.append(extra.tone)
            if extra.factor:
                factors.append((extra.tone, interpolate(extra.factor, variables)))
    if not parts:
        return None
    tone = min(tones, key=lambda t: SEVERITY_ORDER[t], default=Tone.CAUTION)
    return _Explanation(" ".join(parts), tone, factors)


# ─── Entry point ────────────────────────────────────────────────────────────


def interpret(
    request: AnalysisRequest,
    category: Optional[Union[str, BusinessCategory]] = None,
    area_type: Optional[AreaType] = None,
    *,
    sub_risks: Optional[SubRiskScores] = None,
    risk_level: Optional[RiskLevel] = None,
    profiles: ProfileTable = DEFAULT_PROFILES,
    pools: TemplatePools = TEMPLATE_POOLS,
    addenda: Iterable[Addendum] = ADDENDA,
    thresholds: Mapping[Factor, Thresholds] = NORMALIZATION,
) -> InterpretationResult:
    """Generate the natural-language interpretation of a validated request.

    ``sub_risks`` and ``risk_level`` are recomputed when not supplied, and
    ``area_type`` is classified from the request when omitted, so the
    function can be called on its own.
    """
    profile = get_profile(category if category is not None else request.category, profiles)
    if area_type is None:
        area_type = classify_area_type(request)
    if sub_risks is None:
        sub_risks = compute_sub_risks(request, thresholds)
    if risk_level is None:
        adjustment = time_pattern_adjustment(profile, request.traffic)
        risk_level = classify_risk_level(compute_risk_score(sub_risks, profile, adjustment))

    key = build_condition_key(request, sub_risks, area_type, profile)
    variables = build_dynamic_vars(request, profile, area_type).as_format_map()
    addenda = tuple(addenda)

    explanations = {}
    risks = []
    opportunities = []
    matched = []
    for metric in EXPLANATION_METRICS:
        explanation = explain_metric(metric, key, variables, request.stable_id, pools, addenda)
        if explanation is None:
            logger.debug("No template for %s under %s", metric, key)
            explanations[metric] = NO_SIGNAL
            continue
        explanations[metric] = explanation.text
        if explanation.tone == Tone.POSITIVE:
            opportunities.append(explanation.text)
        else:
            risks.append(explanation.text)
        matched.extend(explanation.factors)

    return InterpretationResult(
        summary=summarize(key, risk_level, variables),
        risks=_dedupe(risks),
        opportunities=_dedupe(opportunities),
        easy_explanations=EasyExplanations(**explanations),
        top_factors=_top_factors(matched),
        score_contribution=explain_contribution(sub_risks, profile, request.traffic.weekend_ratio),
        survival_trend=key.survival_trend,
    )
