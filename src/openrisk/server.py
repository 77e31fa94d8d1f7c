"""OpenRisk MCP Server.

FastMCP server exposing commercial-district risk analysis as tools.
Run: openrisk-mcp
"""

from __future__ import annotations

import logging
import math
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .core.area import AREA_TYPE_LABELS
from .core.categories import get_profile, list_categories
from .core.errors import MalformedInputError, UnknownCategoryError
from .core.models import AreaType, Level
from .core.risk_cards import risk_card_stats
from .core.survival import survival_outlook
from .db import close_db, init_db
from .store import DEFAULT_HISTORY_LIMIT, analyze_cached, get_history

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Initialize the analysis store."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    await init_db()
    try:
        yield
    finally:
        await close_db()


mcp = FastMCP(
    "OpenRisk",
    instructions="Score the startup risk of opening a business at a location. Combines competition, foot traffic, rent, closure rates and nearby anchors into a 0-100 risk score with a plain-language explanation.",
    lifespan=lifespan,
)


def _cache_enabled() -> bool:
    return os.environ.get("OPENRISK_CACHE", "1") != "0"


def _client_error(exc: Exception) -> dict:
    logger.warning("Rejected request: %s", exc)
    return {"title": "Invalid request", "error": str(exc), "summary": f"Request rejected: {exc}"}


# ─── Tool 1: Analyze ────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def openrisk_analyze(request: dict) -> dict:
    """Risk score, risk level, area type, interpretation and red-flag cards for one location.

    Args:
        request: Location metrics for one business category. Keys: category,
                 competition, traffic, cost, survival, anchors, and optionally
                 store_counts and stable_id (e.g. a grid cell id).
    """
    try:
        result, cached = await analyze_cached(request, use_cache=_cache_enabled())
    except (UnknownCategoryError, MalformedInputError) as exc:
        return _client_error(exc)

    return {
        "title": f"Risk Analysis: {result.category_name}",
        "result": result.model_dump(mode="json"),
        "risk_card_stats": risk_card_stats(result.risk_cards),
        "cached": cached,
        "summary": f"Risk {result.risk_score}/100 ({result.risk_level.value}), "
        f"{AREA_TYPE_LABELS[result.area_type]}. {result.interpretation.summary}",
    }


# ─── Tool 2: Categories ─────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def openrisk_categories() -> dict:
    """Business categories that can be scored, with display names and groups."""
    categories = list_categories()
    return {
        "title": "Business Categories",
        "categories": categories,
        "count": len(categories),
        "summary": f"{len(categories)} business categories available.",
    }


# ─── Tool 3: History (Stateful) ─────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def openrisk_history(stable_id: str, category: str = "", limit: int = DEFAULT_HISTORY_LIMIT) -> dict:
    """How a location's risk score has changed across past analyses.

    Args:
        stable_id: Location id used when the analyses were requested.
        category: Filter to one business category. Leave empty for all.
        limit: Maximum number of snapshots. Default 20.
    """
    snapshots = await get_history(stable_id, category=category or None, limit=limit)
    if snapshots:
        latest = snapshots[0]
        summary = (
            f"{len(snapshots)} analyses for {stable_id}. "
            f"Latest: {latest['risk_score']}/100 ({latest['risk_level']}) for {latest['category']}."
        )
    else:
        summary = f"No analyses recorded for {stable_id} yet."

    return {
        "title": "Risk History",
        "stable_id": stable_id,
        "snapshots": snapshots,
        "snapshot_count": len(snapshots),
        "summary": summary,
    }


# ─── Tool 4: Survival Estimate ──────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def openrisk_estimate_survival(
    category: str,
    competition_density: float,
    traffic_index: float,
    rent_level: str = "medium",
    area_type: str = "MIXED",
) -> dict:
    """Estimated closure and opening rates for a location with no closure data.

    Also returns the closure-risk band, trend and risk labels, a one-line
    summary and the factors that raised or lowered the estimate.

    Args:
        category: Business category id, e.g. 'cafe'.
        competition_density: Same-category share of nearby stores, 0-1.
        traffic_index: Foot-traffic index.
        rent_level: 'low', 'medium' or 'high'. Default 'medium'.
        area_type: RESIDENTIAL, MIXED, COMMERCIAL or SPECIAL. Default MIXED.
    """
    try:
        profile = get_profile(category)
        rent = Level(rent_level.lower())
        area = AreaType(area_type.upper())
        if not (math.isfinite(competition_density) and math.isfinite(traffic_index)):
            raise MalformedInputError("competition_density and traffic_index must be finite numbers")
    except UnknownCategoryError as exc:
        return _client_error(exc)
    except ValueError as exc:
        return _client_error(exc if isinstance(exc, MalformedInputError) else MalformedInputError(str(exc)))

    outlook = survival_outlook(profile, competition_density, traffic_index, rent, area)
    estimate = outlook.estimate
    return {
        "title": f"Survival Estimate: {profile.name}",
        "estimate": estimate.model_dump(),
        "risk": outlook.risk.value,
        "trend": outlook.trend.value,
        "trend_label": outlook.trend_label,
        "risk_label": outlook.risk_label,
        "description": outlook.description,
        "factors": [f.model_dump(mode="json") for f in outlook.factors],
        "summary": f"Estimated closure rate {estimate.closure_rate}% and opening rate "
        f"{estimate.opening_rate}% ({outlook.trend_label}, {outlook.risk_label.lower()}). {outlook.summary}",
    }


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
