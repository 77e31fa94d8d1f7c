"""Analysis cache and per-location history.

The core is pure, so a result can be reused for any request with the same
fingerprint. Every fresh computation is persisted; rows with a stable id
double as that location's score history.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from sqlalchemy import select

from .core.engine import analyze, request_fingerprint
from .core.models import AnalysisRequest, AnalysisResult
from .core.validation import validate_request
from .db import get_session_factory
from .sqlmodels import AnalysisSnapshot

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


async def get_cached(request_hash: str) -> Optional[AnalysisResult]:
    """Most recent stored result for a request fingerprint, if any."""
    session_factory = get_session_factory()
    async with session_factory() as session:
        result = await session.execute(
            select(AnalysisSnapshot)
            .where(AnalysisSnapshot.request_hash == request_hash)
            .order_by(AnalysisSnapshot.computed_at.desc(), AnalysisSnapshot.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()

    if row is None:
        return None
    return AnalysisResult.model_validate_json(row.result_json)


async def save_analysis(request: AnalysisRequest, result: AnalysisResult) -> None:
    session_factory = get_session_factory()
    async with session_factory() as session:
        session.add(AnalysisSnapshot(
            request_hash=request_fingerprint(request),
            stable_id=request.stable_id,
            category=result.category.value,
            risk_score=result.risk_score,
            risk_level=result.risk_level.value,
            area_type=result.area_type.value,
            result_json=result.model_dump_json(),
            computed_at=datetime.utcnow(),
        ))
        await session.commit()


async def analyze_cached(
    payload: Union[AnalysisRequest, Mapping[str, Any]],
    use_cache: bool = True,
) -> tuple[AnalysisResult, bool]:
    """Analyze with memoization. Returns the result and whether it came from the cache.

    Validation always runs so range warnings reflect this call's input.
    """
    notes: list[str] = []
    request = validate_request(payload, notes)
    request_hash = request_fingerprint(request)

    if use_cache:
        cached = await get_cached(request_hash)
        if cached is not None:
            logger.info("Cache hit for %s (%s)", request.category.value, request_hash[:12])
            return cached.model_copy(update={"warnings": notes}), True

    result = analyze(request)
    result = result.model_copy(update={"warnings": notes})
    await save_analysis(request, result)
    return result, False


async def get_history(
    stable_id: str,
    category: Optional[str] = None,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[dict]:
    """Score history for a location, newest first.

    Args:
        stable_id: Location id the analyses were keyed on.
        category: Restrict to one business category. If None, returns all.
        limit: Maximum number of snapshots.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        query = select(AnalysisSnapshot).where(AnalysisSnapshot.stable_id == stable_id)
        if category:
            query = query.where(AnalysisSnapshot.category == category)
        query = query.order_by(AnalysisSnapshot.computed_at.desc(), AnalysisSnapshot.id.desc()).limit(limit)
        result = await session.execute(query)
        rows = result.scalars().all()

    return [
        {
            "stable_id": r.stable_id,
            "category": r.category,
            "risk_score": r.risk_score,
            "risk_level": r.risk_level,
            "area_type": r.area_type,
            "computed_at": r.computed_at.isoformat(),
        }
        for r in rows
    ]
