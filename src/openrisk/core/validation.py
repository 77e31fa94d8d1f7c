"""Entry-boundary validation.

Structural problems are fatal (MalformedInputError, UnknownCategoryError).
Out-of-range values are clamped to the nearest valid boundary and reported,
because callers always expect a result. Everything downstream assumes the
request has been through here.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from .categories import parse_category
from .errors import InvalidMetricRangeWarning, MalformedInputError
from .models import AnalysisRequest

logger = logging.getLogger(__name__)

MAX_PERCENT = 100.0


class _Clamper:
    """Collects a note for every value pulled back into range."""

    def __init__(self):
        self.notes: list[str] = []

    def __call__(self, field: str, value, low=0, high=None):
        clamped = value
        if value < low:
            clamped = type(value)(low)
        elif high is not None and value > high:
            clamped = type(value)(high)
        if clamped != value:
            note = f"{field}={value!r} out of range, clamped to {clamped!r}"
            self.notes.append(note)
        return clamped


def _clamp_request(request: AnalysisRequest, clamp: _Clamper) -> AnalysisRequest:
    competition = request.competition.model_copy(update={
        "same_category": clamp("competition.same_category", request.competition.same_category),
        "total": clamp("competition.total", request.competition.total),
    })

    pattern = request.traffic.time_pattern
    traffic = request.traffic.model_copy(update={
        "index": clamp("traffic.index", request.traffic.index),
        "weekend_ratio": clamp("traffic.weekend_ratio", request.traffic.weekend_ratio, 0.0, 1.0),
        "time_pattern": pattern.model_copy(update={
            "morning": clamp("traffic.time_pattern.morning", pattern.morning),
            "day": clamp("traffic.time_pattern.day", pattern.day),
            "night": clamp("traffic.time_pattern.night", pattern.night),
        }),
    })

    cost = request.cost.model_copy(update={
        "avg_rent": clamp("cost.avg_rent", request.cost.avg_rent),
    })
    if cost.district_avg is not None:
        cost = cost.model_copy(update={"district_avg": clamp("cost.district_avg", cost.district_avg)})

    survival = request.survival.model_copy(update={
        "closure_rate": clamp("survival.closure_rate", request.survival.closure_rate, 0.0, MAX_PERCENT),
        "opening_rate": clamp("survival.opening_rate", request.survival.opening_rate, 0.0, MAX_PERCENT),
    })

    anchors = request.anchors
    updates = {}
    for name in ("subway", "mart", "department"):
        anchor = getattr(anchors, name)
        if anchor is not None:
            updates[name] = anchor.model_copy(update={
                "distance": clamp(f"anchors.{name}.distance", anchor.distance),
            })
    if anchors.starbucks is not None:
        updates["starbucks"] = anchors.starbucks.model_copy(update={
            "count": clamp("anchors.starbucks.count", anchors.starbucks.count),
            "distance": clamp("anchors.starbucks.distance", anchors.starbucks.distance),
        })
    if updates:
        anchors = anchors.model_copy(update=updates)

    store_counts = {
        key: clamp(f"store_counts.{key}", count)
        for key, count in request.store_counts.items()
    }

    return request.model_copy(update={
        "competition": competition,
        "traffic": traffic,
        "cost": cost,
        "survival": survival,
        "anchors": anchors,
        "store_counts": store_counts,
    })


def validate_request(
    payload: Union[AnalysisRequest, Mapping[str, Any]],
    notes: Optional[list[str]] = None,
) -> AnalysisRequest:
    """Parse and sanitize an analysis request.

    Args:
        payload: A raw mapping (e.g. decoded JSON) or an already-built request.
        notes: Optional list that receives a message for every clamped value.

    Raises:
        UnknownCategoryError: category id outside the closed set.
        MalformedInputError: required fields missing or of the wrong type.
    """
    if isinstance(payload, AnalysisRequest):
        request = payload
    else:
        if not isinstance(payload, Mapping):
            raise MalformedInputError(f"Expected a mapping, got {type(payload).__name__}")
        if "category" not in payload or payload["category"] is None:
            raise MalformedInputError("Missing required field: category")
        data = dict(payload)
        data["category"] = parse_category(payload["category"])
        try:
            request = AnalysisRequest.model_validate(data)
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            raise MalformedInputError(f"Invalid analysis request ({fields}): {exc.error_count()} error(s)") from exc

    clamp = _Clamper()
    request = _clamp_request(request, clamp)

    for note in clamp.notes:
        logger.warning("Invalid metric range: %s", note)
        warnings.warn(note, InvalidMetricRangeWarning, stacklevel=2)
    if notes is not None:
        notes.extend(clamp.notes)

    return request
