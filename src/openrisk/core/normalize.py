"""Metric normalizer — maps each raw indicator onto a 0-100 sub-risk scale.

Higher sub-risk means riskier. Thresholds are tuned configuration data and
are preserved exactly; they are validated when the table is built so the
interpolation below never divides by zero.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, NamedTuple

from .models import AnalysisRequest, AnchorMetrics, Factor, SubRiskScores


class Thresholds(NamedTuple):
    low: float
    high: float


def build_thresholds(rows: Mapping[Factor, tuple[float, float]]) -> Mapping[Factor, Thresholds]:
    table = {}
    for factor, (low, high) in rows.items():
        if not high > low:
            raise ValueError(f"{factor.value}: high threshold {high} must exceed low threshold {low}")
        table[factor] = Thresholds(low, high)
    return MappingProxyType(table)


NORMALIZATION = build_thresholds({
    Factor.COMPETITION: (5, 20),   # same-category stores in radius
    Factor.COST: (15, 40),         # avg rent per area unit
    Factor.SURVIVAL: (5, 15),      # annual closure rate, %
    Factor.TRAFFIC: (10, 40),      # foot-traffic index
})

ANCHOR_CAP = 80.0
NO_ANCHOR_RISK = 80.0


def _ramp(value: float, t: Thresholds) -> float:
    """0-30 up to the low threshold, 30-100 up to the high threshold, then flat."""
    if value <= t.low:
        return max(0.0, value / t.low * 30)
    if value >= t.high:
        return 100.0
    return 30 + (value - t.low) / (t.high - t.low) * 70


def normalize_competition(same_category: float, thresholds: Mapping[Factor, Thresholds] = NORMALIZATION) -> float:
    return _ramp(same_category, thresholds[Factor.COMPETITION])


def normalize_cost(avg_rent: float, thresholds: Mapping[Factor, Thresholds] = NORMALIZATION) -> float:
    return _ramp(avg_rent, thresholds[Factor.COST])


def normalize_survival(closure_rate: float, thresholds: Mapping[Factor, Thresholds] = NORMALIZATION) -> float:
    return _ramp(closure_rate, thresholds[Factor.SURVIVAL])


def normalize_traffic(index: float, thresholds: Mapping[Factor, Thresholds] = NORMALIZATION) -> float:
    """Inverted: busy streets lower the risk."""
    t = thresholds[Factor.TRAFFIC]
    if index >= t.high:
        return 0.0
    if index <= t.low:
        return 100.0
    return 100 - (index - t.low) / (t.high - t.low) * 100


def normalize_anchor(anchors: AnchorMetrics) -> float:
    """Accumulate penalties for missing or distant anchor facilities."""
    if not anchors.has_any_anchor:
        return NO_ANCHOR_RISK

    score = 0.0

    # Subway proximity matters most
    if anchors.subway is None:
        score += 40
    elif anchors.subway.distance <= 100:
        score += 0
    elif anchors.subway.distance <= 300:
        score += 10
    elif anchors.subway.distance <= 500:
        score += 20
    else:
        score += 40

    # Coffee-chain density as a proxy for an active street
    if anchors.starbucks is None:
        score += 15
    elif anchors.starbucks.count >= 3:
        score += 0
    elif anchors.starbucks.count >= 1:
        score += 5
    else:
        score += 10

    if anchors.mart is None:
        score += 10
    if anchors.department is None:
        score += 5

    return min(ANCHOR_CAP, score)


def compute_sub_risks(
    metrics: AnalysisRequest,
    thresholds: Mapping[Factor, Thresholds] = NORMALIZATION,
) -> SubRiskScores:
    """Normalize all five factors of a validated request."""
    return SubRiskScores(
        competition=normalize_competition(metrics.competition.same_category, thresholds),
        cost=normalize_cost(metrics.cost.avg_rent, thresholds),
        survival=normalize_survival(metrics.survival.closure_rate, thresholds),
        traffic=normalize_traffic(metrics.traffic.index, thresholds),
        anchor=normalize_anchor(metrics.anchors),
    )
