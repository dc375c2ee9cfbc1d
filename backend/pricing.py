from __future__ import annotations

import math

from errors import InvalidInputError
from features import extract_features
from models import FeatureSummary, PriceRange


BASE_PRICE: float = 500.0
"""Starting point of every estimate before feature terms are added."""

EXPERIENCE_RATE: float = 150.0
COMPLEXITY_RATE: float = 50.0
MAX_COMPLEXITY_TERM: float = 300.0
URGENCY_RATE: float = 100.0
TIME_KEYWORD_RATE: float = 75.0

VARIANCE_RATIO: float = 0.25
"""Half-width of the price band, relative to the point estimate."""

MIN_PRICE_FLOOR: float = 100.0

MAX_CONFIDENCE: float = 0.95


def estimate_price_range(features: FeatureSummary) -> PriceRange:
    """Estimate a fair price range from a feature summary.

    The estimate is a fixed linear combination of the features. The range is
    the estimate plus or minus 25%, with the lower bound floored at 100 and
    both bounds rounded half-up to whole currency units.

    This function is pure so that every caller (the HTTP service, the
    prediction client fallback and the negotiation graph) gets the same
    numbers for the same conversation.
    """
    if not isinstance(features, FeatureSummary):
        raise InvalidInputError(f"features must be a FeatureSummary, got {type(features).__name__}.")

    estimate = point_estimate(features)
    variance = estimate * VARIANCE_RATIO

    low = max(MIN_PRICE_FLOOR, estimate - variance)
    high = estimate + variance

    return PriceRange(min_price=round_half_up(low), max_price=round_half_up(high))


def estimate_price_range_from_text(client_text: str, freelancer_text: str) -> PriceRange:
    """Extract features from both parties' text and estimate the price range."""
    return estimate_price_range(extract_features(client_text, freelancer_text))


def point_estimate(features: FeatureSummary) -> float:
    experience_term = features.experience_level * EXPERIENCE_RATE
    complexity_term = min(features.normalized_length * COMPLEXITY_RATE, MAX_COMPLEXITY_TERM)
    urgency_term = features.urgency_level * URGENCY_RATE
    time_term = features.time_keyword_count * TIME_KEYWORD_RATE

    return BASE_PRICE + experience_term + complexity_term + urgency_term + time_term


def prediction_confidence(features: FeatureSummary) -> float:
    """Confidence reported with a locally computed range; grows with text length."""
    return round(min(0.5 + features.normalized_length / 20, MAX_CONFIDENCE), 2)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up (Python's round() goes to even)."""
    return int(math.floor(value + 0.5))
