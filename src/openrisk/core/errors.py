"""Exceptions and warnings raised at the core's entry boundary."""

from __future__ import annotations


class OpenRiskError(Exception):
    """Base class for request-level failures."""


class UnknownCategoryError(OpenRiskError, KeyError):
    """The category id has no profile, so there is no weight vector to score with."""

    def __init__(self, category: object):
        self.category = category
        super().__init__(f"Unknown business category: {category!r}")

    def __str__(self) -> str:
        return self.args[0]


class MalformedInputError(OpenRiskError, ValueError):
    """A required field is missing or has the wrong type."""


class InvalidMetricRangeWarning(UserWarning):
    """A metric was out of its domain and has been clamped."""
