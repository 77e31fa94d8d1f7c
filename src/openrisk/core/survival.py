"""Survival outlook — store-count trend and closure-rate estimation.

``estimate_survival`` is for callers that have no closure data for a location.
It is never applied implicitly; a request must always carry survival metrics.
``survival_outlook`` wraps the estimate with a risk band, labels, a one-line
summary and the factors that pushed the estimate up or down.
"""

from __future__ import annotations

from .models import (
    AreaType,
    CategoryProfile,
    ClosureRiskFactor,
    Impact,
    Level,
    SurvivalMetrics,
    SurvivalOutlook,
    SurvivalTrend,
)

TREND_BAND = 2.0

AREA_RISK_MULTIPLIER = {
    AreaType.RESIDENTIAL: 0.9,
    AreaType.MIXED: 1.0,
    AreaType.COMMERCIAL: 1.2,
    AreaType.SPECIAL: 1.3,
}

AREA_OPENING_ADJUSTMENT = {
    AreaType.RESIDENTIAL: -5.0,
    AreaType.MIXED: 0.0,
    AreaType.COMMERCIAL: 10.0,
    AreaType.SPECIAL: 5.0,
}

RENT_ADJUSTMENT = {
    Level.LOW: -5.0,
    Level.MEDIUM: 0.0,
    Level.HIGH: 10.0,
}

MIN_CLOSURE_RATE = 5.0
MAX_CLOSURE_RATE = 80.0

# Closure-risk bands over the estimated annual closure rate
CLOSURE_RISK_LOW_BELOW = 30.0
CLOSURE_RISK_HIGH_FROM = 50.0

CROWDED_DENSITY = 0.6
SPARSE_DENSITY = 0.2
BUSY_TRAFFIC_INDEX = 20
THIN_TRAFFIC_INDEX = 7
FRAGILE_CATEGORY_BELOW = 50
DURABLE_CATEGORY_FROM = 70
MANY_CLOSURES_ABOVE = 15.0
NET_DECLINE_BELOW = -5

TREND_LABELS = {
    SurvivalTrend.GROWING: "store count growing",
    SurvivalTrend.STABLE: "store count flat",
    SurvivalTrend.SHRINKING: "store count shrinking",
}

RISK_LABELS = {
    Level.LOW: "Stable",
    Level.MEDIUM: "Average",
    Level.HIGH: "Caution",
}

_RISK_WORDS = {
    Level.LOW: "stable",
    Level.MEDIUM: "average",
    Level.HIGH: "high",
}


def survival_trend(opening_rate: float, closure_rate: float) -> SurvivalTrend:
    diff = opening_rate - closure_rate
    if diff > TREND_BAND:
        return SurvivalTrend.GROWING
    if diff < -TREND_BAND:
        return SurvivalTrend.SHRINKING
    return SurvivalTrend.STABLE


def closure_risk_level(closure_rate: float) -> Level:
    if closure_rate < CLOSURE_RISK_LOW_BELOW:
        return Level.LOW
    if closure_rate < CLOSURE_RISK_HIGH_FROM:
        return Level.MEDIUM
    return Level.HIGH


def _traffic_adjustment(traffic_index: float) -> float:
    if traffic_index >= 40:
        return -5.0
    if traffic_index >= BUSY_TRAFFIC_INDEX:
        return -3.0
    if traffic_index >= THIN_TRAFFIC_INDEX:
        return 0.0
    if traffic_index >= 3:
        return 3.0
    return 5.0


def estimate_survival(
    profile: CategoryProfile,
    competition_density: float,
    traffic_index: float,
    rent_level: Level,
    area_type: AreaType,
) -> SurvivalMetrics:
    """Estimate closure and opening rates from category and district character.

    Args:
        profile: Category profile carrying the base survival rate and opening trend.
        competition_density: Same-category share of nearby stores, 0-1.
        traffic_index: Foot-traffic index.
        rent_level: Discretized rent risk.
        area_type: Classified area type.
    """
    closure = 100.0 - profile.base_survival_rate

    if competition_density > 0.5:
        closure += (competition_density - 0.5) * 40
    elif competition_density < SPARSE_DENSITY:
        closure -= 5

    closure += _traffic_adjustment(traffic_index)
    closure += RENT_ADJUSTMENT[rent_level]
    closure *= AREA_RISK_MULTIPLIER[area_type]
    closure = round(max(MIN_CLOSURE_RATE, min(MAX_CLOSURE_RATE, closure)), 1)

    opening = round(max(0.0, profile.opening_trend + AREA_OPENING_ADJUSTMENT[area_type]), 1)

    return SurvivalMetrics(
        closure_rate=closure,
        opening_rate=opening,
        net_change=round(opening - closure),
    )


def survival_summary(trend: SurvivalTrend, risk: Level, closure_rate: float) -> str:
    """One line: what the store count is doing and how that tends to fail."""
    if trend == SurvivalTrend.GROWING:
        if risk == Level.LOW:
            return "New shops keep opening here, though that also means more competitors arriving."
        return "Openings are brisk but so is competition. Jumping in without an edge could be hard."
    if trend == SurvivalTrend.SHRINKING:
        if closure_rate > MANY_CLOSURES_ABOVE:
            return "Many shops are closing here. Find out why on site."
        return "Store numbers are falling. The district may be contracting."
    if risk == Level.LOW:
        return "Store numbers are holding steady. A district without big swings."
    return "Openings and closures roughly cancel out. Shops may come and go easily here."


def describe_closure_risk(estimate: SurvivalMetrics, profile: CategoryProfile) -> str:
    risk = closure_risk_level(estimate.closure_rate)
    if estimate.net_change > 0:
        net = f"net growth +{estimate.net_change}%"
    elif estimate.net_change < NET_DECLINE_BELOW:
        net = f"net decline {estimate.net_change}%"
    else:
        net = "flat"
    return (
        f"{profile.name}: {_RISK_WORDS[risk]} closure risk for the category "
        f"(estimated closure rate {estimate.closure_rate:g}%, {net})"
    )


def closure_risk_factors(
    profile: CategoryProfile,
    competition_density: float,
    traffic_index: float,
    rent_level: Level,
    area_type: AreaType,
) -> list[ClosureRiskFactor]:
    """Inputs that pushed the closure estimate up (negative) or down (positive)."""
    factors = []

    if competition_density > CROWDED_DENSITY:
        factors.append(ClosureRiskFactor(
            factor="Heavy competition",
            impact=Impact.NEGATIVE,
            description=f"Competition density of {round(competition_density * 100)}% makes for a crowded market",
        ))
    elif competition_density < SPARSE_DENSITY:
        factors.append(ClosureRiskFactor(
            factor="Light competition",
            impact=Impact.POSITIVE,
            description="Few competitors, a chance to get in first",
        ))

    if traffic_index >= BUSY_TRAFFIC_INDEX:
        factors.append(ClosureRiskFactor(
            factor="Foot traffic",
            impact=Impact.POSITIVE,
            description="Plenty of passers-by to draw customers from",
        ))
    elif traffic_index < THIN_TRAFFIC_INDEX:
        factors.append(ClosureRiskFactor(
            factor="Foot traffic",
            impact=Impact.NEGATIVE,
            description="Few passers-by, so customers are hard to win",
        ))

    if rent_level == Level.HIGH:
        factors.append(ClosureRiskFactor(
            factor="Rent",
            impact=Impact.NEGATIVE,
            description="High rent raises the fixed-cost burden",
        ))
    elif rent_level == Level.LOW:
        factors.append(ClosureRiskFactor(
            factor="Rent",
            impact=Impact.POSITIVE,
            description="Relatively low rent keeps costs down",
        ))

    if area_type == AreaType.SPECIAL:
        factors.append(ClosureRiskFactor(
            factor="District character",
            impact=Impact.NEGATIVE,
            description="A tourist or event district with seasonal swings",
        ))
    elif area_type == AreaType.RESIDENTIAL:
        factors.append(ClosureRiskFactor(
            factor="District character",
            impact=Impact.POSITIVE,
            description="A stable, densely residential district",
        ))

    if profile.base_survival_rate < FRAGILE_CATEGORY_BELOW:
        factors.append(ClosureRiskFactor(
            factor="Category",
            impact=Impact.NEGATIVE,
            description=f"{profile.name} averages {profile.base_survival_rate:g}% one-year survival",
        ))
    elif profile.base_survival_rate >= DURABLE_CATEGORY_FROM:
        factors.append(ClosureRiskFactor(
            factor="Category",
            impact=Impact.POSITIVE,
            description=f"{profile.name} has a high {profile.base_survival_rate:g}% one-year survival",
        ))

    return factors


def survival_outlook(
    profile: CategoryProfile,
    competition_density: float,
    traffic_index: float,
    rent_level: Level,
    area_type: AreaType,
) -> SurvivalOutlook:
    """Estimate plus risk band, labels, summary and contributing factors."""
    estimate = estimate_survival(profile, competition_density, traffic_index, rent_level, area_type)
    risk = closure_risk_level(estimate.closure_rate)
    trend = survival_trend(estimate.opening_rate, estimate.closure_rate)
    return SurvivalOutlook(
        estimate=estimate,
        risk=risk,
        trend=trend,
        trend_label=TREND_LABELS[trend],
        risk_label=RISK_LABELS[risk],
        summary=survival_summary(trend, risk, estimate.closure_rate),
        description=describe_closure_risk(estimate, profile),
        factors=closure_risk_factors(profile, competition_density, traffic_index, rent_level, area_type),
    )
