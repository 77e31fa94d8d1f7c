"""Top-level analysis: validate, score, classify, interpret, flag.

``analyze`` is a pure function of its input. Identical requests always yield
identical results, so callers may memoize on ``request_fingerprint``.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Mapping, Union

from .area import classify_area_type
from .categories import DEFAULT_PROFILES, ProfileTable, get_profile
from .interpretation import TemplatePools, build_condition_key, interpret
from .models import AnalysisRequest, AnalysisResult, Factor
from .normalize import NORMALIZATION, Thresholds
from .risk_cards import CardContext, top_risk_cards
from .scoring import classify_risk_level, score_risk
from .templates import TEMPLATE_POOLS
from .validation import validate_request

logger = logging.getLogger(__name__)


def request_fingerprint(request: AnalysisRequest) -> str:
    """Stable hash of a validated request, usable as a cache key."""
    payload = request.model_dump_json()
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def analyze(
    payload: Union[AnalysisRequest, Mapping[str, Any]],
    profiles: ProfileTable = DEFAULT_PROFILES,
    pools: TemplatePools = TEMPLATE_POOLS,
    thresholds: Mapping[Factor, Thresholds] = NORMALIZATION,
) -> AnalysisResult:
    """Run a full analysis for one location and category.

    Raises:
        UnknownCategoryError: category outside the closed set.
        MalformedInputError: required fields missing or mistyped.
    """
    notes: list[str] = []
    request = validate_request(payload, notes)
    profile = get_profile(request.category, profiles)

    breakdown = score_risk(request, profiles=profiles, thresholds=thresholds)
    risk_level = classify_risk_level(breakdown.score)
    area_type = classify_area_type(request)

    interpretation = interpret(
        request,
        area_type=area_type,
        sub_risks=breakdown.sub_risks,
        risk_level=risk_level,
        profiles=profiles,
        pools=pools,
    )
    key = build_condition_key(request, breakdown.sub_risks, area_type, profile)
    cards = top_risk_cards(CardContext(key=key, request=request, profile=profile))

    logger.info(
        "Analyzed %s: score=%d level=%s area=%s cards=%d",
        request.category.value, breakdown.score, risk_level.value, area_type.value, len(cards),
    )

    return AnalysisResult(
        risk_score=breakdown.score,
        risk_level=risk_level,
        area_type=area_type,
        category=request.category,
        category_name=profile.name,
        sub_risks=breakdown.sub_risks,
        time_adjustment=breakdown.time_adjustment,
        interpretation=interpretation,
        risk_cards=cards,
        warnings=notes,
    )
