"""Area-type classification from store mix, traffic, and anchor proximity.

A first-match-wins rule cascade. Independent of the risk score.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, NamedTuple

from .models import AnalysisRequest, AreaType, BusinessCategory

logger = logging.getLogger(__name__)

COMMERCIAL_GROUP = frozenset({
    BusinessCategory.RESTAURANT_KOREAN,
    BusinessCategory.RESTAURANT_WESTERN,
    BusinessCategory.RESTAURANT_JAPANESE,
    BusinessCategory.RESTAURANT_CHINESE,
    BusinessCategory.RESTAURANT_CHICKEN,
    BusinessCategory.RESTAURANT_PIZZA,
    BusinessCategory.RESTAURANT_FASTFOOD,
    BusinessCategory.CAFE,
    BusinessCategory.BAKERY,
    BusinessCategory.DESSERT,
    BusinessCategory.BAR,
})

RESIDENTIAL_GROUP = frozenset({
    BusinessCategory.CONVENIENCE,
    BusinessCategory.LAUNDRY,
    BusinessCategory.PHARMACY,
    BusinessCategory.MART,
    BusinessCategory.BEAUTY,
})

AREA_TYPE_LABELS = {
    AreaType.RESIDENTIAL: "residential neighbourhood",
    AreaType.MIXED: "mixed work-and-live district",
    AreaType.COMMERCIAL: "commercial hub",
    AreaType.SPECIAL: "special-purpose district",
}


class StoreMix(NamedTuple):
    commercial_ratio: float
    residential_ratio: float
    total: int


def store_mix(store_counts: Mapping[str, int], total: int) -> StoreMix:
    """Share of commercial and residential-serving stores among all stores."""
    if total <= 0:
        return StoreMix(0.0, 0.0, 0)
    commercial = sum(store_counts.get(c.value, 0) for c in COMMERCIAL_GROUP)
    residential = sum(store_counts.get(c.value, 0) for c in RESIDENTIAL_GROUP)
    return StoreMix(commercial / total, residential / total, total)


class _AreaRule(NamedTuple):
    name: str
    applies: Callable[[AnalysisRequest, StoreMix], bool]
    area_type: AreaType


def weekend_heavy(request: AnalysisRequest, mix: StoreMix) -> bool:
    return request.traffic.weekend_ratio > 0.5


def station_hotspot(request: AnalysisRequest, mix: StoreMix) -> bool:
    subway = request.anchors.subway
    return subway is not None and subway.distance < 300 and mix.commercial_ratio > 0.7


def busy_commercial(request: AnalysisRequest, mix: StoreMix) -> bool:
    return request.traffic.index > 30 and mix.commercial_ratio > 0.6


def sparse_or_residential(request: AnalysisRequest, mix: StoreMix) -> bool:
    return mix.total < 20 or mix.residential_ratio > 0.4


def _otherwise(request: AnalysisRequest, mix: StoreMix) -> bool:
    return True


AREA_RULES: tuple[_AreaRule, ...] = (
    _AreaRule("weekend_heavy", weekend_heavy, AreaType.SPECIAL),
    _AreaRule("station_hotspot", station_hotspot, AreaType.SPECIAL),
    _AreaRule("busy_commercial", busy_commercial, AreaType.COMMERCIAL),
    _AreaRule("sparse_or_residential", sparse_or_residential, AreaType.RESIDENTIAL),
    _AreaRule("mixed", _otherwise, AreaType.MIXED),
)


def classify_area_type(request: AnalysisRequest) -> AreaType:
    mix = store_mix(request.store_counts, request.competition.total)
    for rule in AREA_RULES:
        if rule.applies(request, mix):
            logger.debug("Area rule %s matched -> %s", rule.name, rule.area_type.value)
            return rule.area_type
    return AreaType.MIXED
