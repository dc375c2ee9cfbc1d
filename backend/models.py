from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import Tuple

from errors import InvalidInputError


class ExperienceLevel(IntEnum):
    """Experience tier inferred from the conversation text."""

    NOVICE = 1
    INTERMEDIATE = 2
    EXPERT = 3


class UrgencyLevel(IntEnum):
    """Urgency tier inferred from the conversation text."""

    NONE = 1
    SOON = 2
    URGENT = 3


class Role(str, Enum):
    """Author of a chat message."""

    CLIENT = "client"
    FREELANCER = "freelancer"
    BOT = "bot"


class GapTier(str, Enum):
    """Bucket for the distance between the two current offers."""

    ALIGNED = "aligned"
    PROGRESSING = "progressing"
    WIDE = "wide"


class NegotiationStatus(str, Enum):
    """Lifecycle status of a negotiation thread."""

    OPEN = "open"
    ACCEPTED = "accepted"
    ENDED = "ended"


@dataclass(frozen=True)
class FeatureSummary:
    """Numeric profile of a conversation, the input to the price formula.

    All fields must be finite and non-negative. The level fields are usually
    `ExperienceLevel` / `UrgencyLevel` members but any non-negative integer is
    accepted so the formula can be evaluated on synthetic profiles.
    """

    experience_level: int
    normalized_length: float
    time_keyword_count: int
    budget_mention_count: int
    urgency_level: int

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInputError(f"{field.name} must be a number, got {value!r}.")
            if not math.isfinite(value) or value < 0:
                raise InvalidInputError(f"{field.name} must be finite and non-negative, got {value!r}.")


@dataclass(frozen=True)
class PriceRange:
    """Fair price bracket in whole currency units."""

    min_price: int
    max_price: int

    def as_tuple(self) -> Tuple[int, int]:
        return (self.min_price, self.max_price)


@dataclass(frozen=True)
class OfferAnalysis:
    """Gap, midpoint and ordered range of a client/freelancer offer pair."""

    gap: float
    midpoint: float
    range: Tuple[float, float]
