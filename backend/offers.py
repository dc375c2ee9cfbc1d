from __future__ import annotations

import math

from errors import InvalidInputError
from models import GapTier, OfferAnalysis


ALIGNED_GAP_LIMIT: float = 100.0
"""Gaps strictly below this are considered aligned."""

PROGRESSING_GAP_LIMIT: float = 300.0
"""Gaps strictly below this (and not aligned) are considered progressing."""


def analyze_offers(client_offer: float, freelancer_offer: float) -> OfferAnalysis:
    """Compute gap, midpoint and ordered range for two offers.

    Zero is a valid offer here; callers that treat zero as "not entered yet"
    must filter it out before calling. The midpoint is left unrounded.
    """
    validate_offer("client_offer", client_offer)
    validate_offer("freelancer_offer", freelancer_offer)

    gap = abs(freelancer_offer - client_offer)
    midpoint = (client_offer + freelancer_offer) / 2
    low, high = sorted((client_offer, freelancer_offer))

    return OfferAnalysis(gap=gap, midpoint=midpoint, range=(low, high))


def classify_gap(gap: float) -> GapTier:
    validate_offer("gap", gap)
    if gap < ALIGNED_GAP_LIMIT:
        return GapTier.ALIGNED
    if gap < PROGRESSING_GAP_LIMIT:
        return GapTier.PROGRESSING
    return GapTier.WIDE


def gap_percentage(analysis: OfferAnalysis) -> float:
    """Gap as a percentage of the larger offer; zero when both offers are zero."""
    larger = analysis.range[1]
    if larger == 0:
        return 0.0
    return analysis.gap / larger * 100


def validate_offer(name: str, value: object) -> None:
    """Raise `InvalidInputError` unless `value` is a finite, non-negative number."""
    if value is None:
        raise InvalidInputError(f"{name} is required.")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {type(value).__name__}.")
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite.")
    if value < 0:
        raise InvalidInputError(f"{name} must not be negative.")
