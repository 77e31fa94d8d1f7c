"""OpenRisk — commercial-district risk scoring.

Scores the risk of opening a given kind of business at a location from
competition, foot traffic, rent, closure rates and nearby anchors, and
explains the score in plain language.
"""

__version__ = "0.1.0"

from .core.area import classify_area_type
from .core.engine import analyze
from .core.interpretation import interpret
from .core.scoring import score_risk
from .core.validation import validate_request

__all__ = ["analyze", "classify_area_type", "interpret", "score_risk", "validate_request"]
