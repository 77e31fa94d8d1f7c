"""Composite risk scoring — weighted sub-risks, timing adjustment, and explainability.

This is the numeric heart of the engine: five normalized sub-risk scores are
combined with a per-category weight vector, nudged by how well the observed
traffic timing suits the category, and clamped to an integer 0-100 score.
The same weight vector feeds the contribution breakdown so the number and
its explanation never disagree.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, NamedTuple, Optional, Union

from .categories import DEFAULT_PROFILES, ProfileTable, get_profile
from .models import (
    AnalysisRequest,
    BusinessCategory,
    CategoryProfile,
    Contribution,
    Factor,
    Impact,
    PeakTime,
    RiskLevel,
    SubRiskScores,
    TrafficMetrics,
    WeekendSensitivity,
)
from .normalize import NORMALIZATION, Thresholds, compute_sub_risks

logger = logging.getLogger(__name__)

# Lower bounds of each band, highest first
RISK_LEVEL_BREAKPOINTS = (
    (70, RiskLevel.VERY_HIGH),
    (50, RiskLevel.HIGH),
    (30, RiskLevel.MEDIUM),
)

IMPACT_POSITIVE_BELOW = 40
IMPACT_NEGATIVE_ABOVE = 60

TIME_PATTERN_PERCENT = 10


class ScoreBreakdown(NamedTuple):
    score: int
    sub_risks: SubRiskScores
    time_adjustment: int


def observed_peak_time(traffic: TrafficMetrics) -> PeakTime:
    """Explicit peak if supplied, else the busiest band (ties: morning, day, night)."""
    if traffic.peak_time is not None:
        return traffic.peak_time
    pattern = traffic.time_pattern
    busiest = max(pattern.morning, pattern.day, pattern.night)
    if pattern.morning == busiest:
        return PeakTime.MORNING
    if pattern.day == busiest:
        return PeakTime.DAY
    return PeakTime.NIGHT


# ─── Time-pattern adjustment ────────────────────────────────────────────────


class _TimingRule(NamedTuple):
    name: str
    applies: Callable[[CategoryProfile, PeakTime, float], bool]
    adjustment: int


def _peak_matches(profile: CategoryProfile, peak: PeakTime, ratio: float) -> bool:
    return peak == profile.optimal_peak_time


def _weekend_category_quiet_weekend(profile: CategoryProfile, peak: PeakTime, ratio: float) -> bool:
    return profile.weekend_sensitivity == WeekendSensitivity.WEEKEND_FAVORED and ratio < 0.30


def _weekend_category_busy_weekend(profile: CategoryProfile, peak: PeakTime, ratio: float) -> bool:
    return profile.weekend_sensitivity == WeekendSensitivity.WEEKEND_FAVORED and ratio > 0.45


def _weekday_category_busy_weekend(profile: CategoryProfile, peak: PeakTime, ratio: float) -> bool:
    return profile.weekend_sensitivity == WeekendSensitivity.WEEKDAY_FAVORED and ratio > 0.50


def _weekday_category_quiet_weekend(profile: CategoryProfile, peak: PeakTime, ratio: float) -> bool:
    return profile.weekend_sensitivity == WeekendSensitivity.WEEKDAY_FAVORED and ratio < 0.30


def _always(profile: CategoryProfile, peak: PeakTime, ratio: float) -> bool:
    return True


TIMING_RULES: tuple[_TimingRule, ...] = (
    _TimingRule("peak_match", _peak_matches, -5),
    _TimingRule("weekend_category_quiet_weekend", _weekend_category_quiet_weekend, 8),
    _TimingRule("weekend_category_busy_weekend", _weekend_category_busy_weekend, -3),
    _TimingRule("weekday_category_busy_weekend", _weekday_category_busy_weekend, 8),
    _TimingRule("weekday_category_quiet_weekend", _weekday_category_quiet_weekend, -3),
    _TimingRule("peak_mismatch", _always, 3),
)


def time_pattern_adjustment(profile: CategoryProfile, traffic: TrafficMetrics) -> int:
    """Signed correction (-5..+8) for how well traffic timing suits the category.

    First matching rule wins.
    """
    peak = observed_peak_time(traffic)
    for rule in TIMING_RULES:
        if rule.applies(profile, peak, traffic.weekend_ratio):
            logger.debug("Timing rule %s matched for %s: %+d", rule.name, profile.category.value, rule.adjustment)
            return rule.adjustment
    return 0


# ─── Composite score ────────────────────────────────────────────────────────


def compute_risk_score(sub_risks: SubRiskScores, profile: CategoryProfile, adjustment: int = 0) -> int:
    """Weighted sum of sub-risks plus the timing adjustment, clamped and rounded."""
    weighted = sum(sub_risks.get(f) * profile.weights.get(f) for f in Factor)
    return round(max(0.0, min(100.0, weighted + adjustment)))


def classify_risk_level(score: int) -> RiskLevel:
    for lower_bound, level in RISK_LEVEL_BREAKPOINTS:
        if score >= lower_bound:
            return level
    return RiskLevel.LOW


def score_risk(
    request: AnalysisRequest,
    category: Optional[Union[str, BusinessCategory]] = None,
    profiles: ProfileTable = DEFAULT_PROFILES,
    thresholds: Mapping[Factor, Thresholds] = NORMALIZATION,
) -> ScoreBreakdown:
    """Score a validated request for its category (or an explicit override)."""
    profile = get_profile(category if category is not None else request.category, profiles)
    sub_risks = compute_sub_risks(request, thresholds)
    adjustment = time_pattern_adjustment(profile, request.traffic)
    score = compute_risk_score(sub_risks, profile, adjustment)
    return ScoreBreakdown(score=score, sub_risks=sub_risks, time_adjustment=adjustment)


# ─── Contribution breakdown ─────────────────────────────────────────────────


def _impact(sub_risk: float) -> Impact:
    if sub_risk < IMPACT_POSITIVE_BELOW:
        return Impact.POSITIVE
    if sub_risk > IMPACT_NEGATIVE_ABOVE:
        return Impact.NEGATIVE
    return Impact.NEUTRAL


def _time_pattern_proxy(weekend_ratio: float) -> float:
    # Proxy sub-score from weekend share only; the live adjustment is not reported here.
    if weekend_ratio > 0.5:
        return 60.0
    if weekend_ratio < 0.3:
        return 30.0
    return 45.0


def explain_contribution(
    sub_risks: SubRiskScores,
    profile: CategoryProfile,
    weekend_ratio: float,
) -> dict[str, Contribution]:
    """Per-factor weight (as a percent) and direction of influence."""
    breakdown = {
        f.value: Contribution(
            percent=round(profile.weights.get(f) * 100),
            impact=_impact(sub_risks.get(f)),
        )
        for f in Factor
    }
    breakdown["time_pattern"] = Contribution(
        percent=TIME_PATTERN_PERCENT,
        impact=_impact(_time_pattern_proxy(weekend_ratio)),
    )
    return breakdown
