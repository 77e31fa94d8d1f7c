"""Shared request builders for the test suite."""

from __future__ import annotations

import asyncio
import copy

import pytest

from openrisk import db

METRIC_SECTIONS = ("competition", "traffic", "cost", "survival", "anchors")


def cafe_payload() -> dict:
    """Quiet residential street, few cafes, cheap rent, no anchors."""
    return {
        "category": "cafe",
        "competition": {"same_category": 3, "total": 15},
        "traffic": {
            "index": 50,
            "weekend_ratio": 0.35,
            "time_pattern": {"morning": 40, "day": 35, "night": 25},
        },
        "cost": {"avg_rent": 10},
        "survival": {"closure_rate": 2, "opening_rate": 3, "net_change": 1},
        "anchors": {"has_any_anchor": False},
        "store_counts": {
            "convenience": 5,
            "laundry": 3,
            "pharmacy": 2,
            "cafe": 3,
            "restaurant_korean": 2,
        },
        "stable_id": "cell-8830e1d8",
    }


def make_payload(**overrides) -> dict:
    """cafe_payload() with metric sections shallow-merged and other keys replaced."""
    payload = copy.deepcopy(cafe_payload())
    for key, value in overrides.items():
        if key in METRIC_SECTIONS and isinstance(value, dict):
            payload[key].update(value)
        else:
            payload[key] = value
    return payload


@pytest.fixture
def payload() -> dict:
    return cafe_payload()


@pytest.fixture
def run_with_db(tmp_path, monkeypatch):
    """Run a coroutine factory against a fresh SQLite store in tmp_path."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.delenv("OPENRISK_DB", raising=False)

    def run(factory):
        async def wrapper():
            await db.init_db()
            try:
                return await factory()
            finally:
                await db.close_db()

        return asyncio.run(wrapper())

    return run
