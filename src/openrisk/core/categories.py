"""Category profile table — per-category weights and timing metadata.

Built once at import time and never mutated. Every profile is validated
when the table is built, so scoring code can assume a well-formed vector.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Union

from .errors import UnknownCategoryError
from .models import (
    BusinessCategory,
    CategoryProfile,
    FactorWeights,
    PeakTime,
    WeekendSensitivity,
)

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6

ProfileTable = Mapping[BusinessCategory, CategoryProfile]

_WF = WeekendSensitivity.WEEKEND_FAVORED
_WD = WeekendSensitivity.WEEKDAY_FAVORED
_N = WeekendSensitivity.NEUTRAL

# category: (name, group, (competition, cost, survival, traffic, anchor), peak, weekend,
#            base survival %, opening trend %, competition tolerance)
_PROFILE_ROWS = {
    BusinessCategory.RESTAURANT_KOREAN: ("Korean restaurant", "Restaurants", (0.30, 0.30, 0.20, 0.15, 0.05), PeakTime.DAY, _WD, 55, 25, 1.2),
    BusinessCategory.RESTAURANT_WESTERN: ("Western restaurant", "Restaurants", (0.25, 0.25, 0.20, 0.25, 0.05), PeakTime.NIGHT, _WF, 52, 28, 1.6),
    BusinessCategory.RESTAURANT_JAPANESE: ("Japanese restaurant", "Restaurants", (0.30, 0.25, 0.20, 0.20, 0.05), PeakTime.DAY, _N, 58, 25, 1.5),
    BusinessCategory.RESTAURANT_CHINESE: ("Chinese restaurant", "Restaurants", (0.25, 0.25, 0.20, 0.15, 0.15), PeakTime.DAY, _WD, 60, 25, 1.2),
    BusinessCategory.RESTAURANT_CHICKEN: ("Fried chicken shop", "Restaurants", (0.35, 0.25, 0.25, 0.10, 0.05), PeakTime.NIGHT, _WF, 48, 30, 1.3),
    BusinessCategory.RESTAURANT_PIZZA: ("Pizza restaurant", "Restaurants", (0.35, 0.25, 0.25, 0.10, 0.05), PeakTime.NIGHT, _WF, 50, 25, 1.3),
    BusinessCategory.RESTAURANT_FASTFOOD: ("Fast-food restaurant", "Restaurants", (0.30, 0.20, 0.20, 0.25, 0.05), PeakTime.DAY, _N, 62, 25, 1.4),
    BusinessCategory.CAFE: ("Cafe", "Cafes & bakeries", (0.35, 0.20, 0.20, 0.20, 0.05), PeakTime.MORNING, _N, 45, 35, 2.2),
    BusinessCategory.BAKERY: ("Bakery", "Cafes & bakeries", (0.30, 0.25, 0.20, 0.20, 0.05), PeakTime.MORNING, _N, 55, 25, 1.6),
    BusinessCategory.DESSERT: ("Dessert shop", "Cafes & bakeries", (0.30, 0.20, 0.25, 0.20, 0.05), PeakTime.DAY, _WF, 50, 38, 1.8),
    BusinessCategory.BAR: ("Bar", "Bars", (0.25, 0.25, 0.25, 0.20, 0.05), PeakTime.NIGHT, _WF, 52, 25, 1.4),
    BusinessCategory.CONVENIENCE: ("Convenience store", "Retail", (0.15, 0.20, 0.15, 0.25, 0.25), PeakTime.NIGHT, _N, 72, 15, 1.1),
    BusinessCategory.MART: ("Supermarket", "Retail", (0.20, 0.25, 0.20, 0.15, 0.20), PeakTime.DAY, _N, 65, 25, 1.0),
    BusinessCategory.BEAUTY: ("Hair salon", "Services", (0.25, 0.25, 0.20, 0.15, 0.15), PeakTime.DAY, _WF, 60, 22, 0.9),
    BusinessCategory.NAIL: ("Nail salon", "Services", (0.30, 0.25, 0.25, 0.15, 0.05), PeakTime.DAY, _WF, 55, 25, 0.8),
    BusinessCategory.LAUNDRY: ("Laundry", "Services", (0.20, 0.20, 0.15, 0.15, 0.30), PeakTime.MORNING, _WD, 70, 25, 0.6),
    BusinessCategory.PHARMACY: ("Pharmacy", "Services", (0.15, 0.25, 0.10, 0.20, 0.30), PeakTime.DAY, _WD, 85, 25, 0.5),
    BusinessCategory.GYM: ("Gym", "Other", (0.25, 0.30, 0.20, 0.10, 0.15), PeakTime.NIGHT, _WD, 55, 28, 0.9),
    BusinessCategory.ACADEMY: ("Academy", "Other", (0.25, 0.25, 0.20, 0.10, 0.20), PeakTime.NIGHT, _WD, 62, 25, 0.8),
}


def build_profile_table(rows: Mapping = _PROFILE_ROWS) -> ProfileTable:
    """Build and validate a read-only profile table.

    Raises ValueError if any weight vector does not sum to 1.0.
    """
    table = {}
    for category, (name, group, weights, peak, weekend, survival, opening, tolerance) in rows.items():
        competition, cost, survival_w, traffic, anchor = weights
        profile = CategoryProfile(
            category=category,
            name=name,
            group=group,
            weights=FactorWeights(
                competition=competition,
                cost=cost,
                survival=survival_w,
                traffic=traffic,
                anchor=anchor,
            ),
            optimal_peak_time=peak,
            weekend_sensitivity=weekend,
            base_survival_rate=survival,
            opening_trend=opening,
            competition_tolerance=tolerance,
        )
        total = profile.weights.total()
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"Weights for {category.value} sum to {total:.6f}, expected 1.0")
        table[category] = profile
    logger.debug("Built category profile table with %d categories", len(table))
    return MappingProxyType(table)


DEFAULT_PROFILES: ProfileTable = build_profile_table()


def parse_category(value: Union[str, BusinessCategory]) -> BusinessCategory:
    """Resolve a category id, raising UnknownCategoryError for anything outside the closed set."""
    if isinstance(value, BusinessCategory):
        return value
    try:
        return BusinessCategory(value)
    except ValueError:
        raise UnknownCategoryError(value) from None


def get_profile(
    category: Union[str, BusinessCategory],
    profiles: ProfileTable = DEFAULT_PROFILES,
) -> CategoryProfile:
    category = parse_category(category)
    try:
        return profiles[category]
    except KeyError:
        raise UnknownCategoryError(category.value) from None


def list_categories(profiles: ProfileTable = DEFAULT_PROFILES) -> list[dict]:
    """Category list grouped for selection UIs."""
    return [
        {"key": p.category.value, "name": p.name, "group": p.group}
        for p in profiles.values()
    ]
