from __future__ import annotations

import re
from typing import Final, List, Literal

from errors import InvalidInputError
from models import ExperienceLevel, FeatureSummary, UrgencyLevel


Complexity = Literal["simple", "medium", "complex"]

EXPERT_KEYWORDS: Final[tuple[str, ...]] = ("expert", "professional", "experienced")
INTERMEDIATE_KEYWORDS: Final[tuple[str, ...]] = ("intermediate", "skilled")
URGENT_KEYWORDS: Final[tuple[str, ...]] = ("urgent", "asap", "rush")
SOON_KEYWORDS: Final[tuple[str, ...]] = ("soon", "quickly")

COMPLEX_KEYWORDS: Final[tuple[str, ...]] = (
    "complex",
    "advanced",
    "sophisticated",
    "enterprise",
    "custom",
    "integration",
)
MEDIUM_KEYWORDS: Final[tuple[str, ...]] = ("moderate", "standard", "typical", "regular", "normal")

LENGTH_SCALE: Final[float] = 100.0
"""Characters per unit of normalized length."""

MAX_NORMALIZED_LENGTH: Final[float] = 10.0

_TIME_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\b(?:\d+\s*(?:day|week|month|hour)s?|urgent|asap|quickly|soon)\b",
)
_BUDGET_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\d+|\bbudget\b|\bcost\b|\bprice\b|\bmoney\b")
_AMOUNT_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$?(\d+(?:,\d{3})*(?:\.\d{2})?)")
_PRICE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$(\d+(?:,\d{3})*(?:\.\d{2})?)")


def extract_features(client_text: str, freelancer_text: str) -> FeatureSummary:
    """Build the feature summary for the combined conversation of both parties.

    Keyword checks are case-insensitive substring tests; the time and budget
    counts are non-overlapping regex matches. Role attribution is dropped:
    both texts are scanned as one.
    """
    combined = _combine(client_text, freelancer_text)

    return FeatureSummary(
        experience_level=_experience_level(combined),
        normalized_length=min(len(combined) / LENGTH_SCALE, MAX_NORMALIZED_LENGTH),
        time_keyword_count=_count(_TIME_PATTERN, combined),
        budget_mention_count=_count(_BUDGET_PATTERN, combined),
        urgency_level=_urgency_level(combined),
    )


def extract_numbers(text: str) -> List[float]:
    """Return every amount mentioned in `text`, e.g. "$1,200.50" -> 1200.5."""
    require_text("text", text)
    return [float(match.replace(",", "")) for match in _AMOUNT_PATTERN.findall(text)]


def extract_prices(text: str) -> List[float]:
    """Return only the dollar amounts in `text`; bare numbers such as durations are skipped."""
    require_text("text", text)
    return [float(match.replace(",", "")) for match in _PRICE_PATTERN.findall(text)]


def detect_complexity(text: str) -> Complexity:
    """Classify project complexity from descriptive keywords."""
    require_text("text", text)
    lowered = text.lower()

    if _contains_any(lowered, COMPLEX_KEYWORDS):
        return "complex"
    if _contains_any(lowered, MEDIUM_KEYWORDS):
        return "medium"
    return "simple"


def _combine(client_text: str, freelancer_text: str) -> str:
    require_text("client_text", client_text)
    require_text("freelancer_text", freelancer_text)

    # An empty conversation has length zero; otherwise the separator counts.
    if not client_text and not freelancer_text:
        return ""
    return f"{client_text} {freelancer_text}".lower()


def require_text(name: str, value: object) -> None:
    if value is None:
        raise InvalidInputError(f"{name} is required.")
    if not isinstance(value, str):
        raise InvalidInputError(f"{name} must be a string, got {type(value).__name__}.")


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _count(pattern: re.Pattern[str], text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))


def _experience_level(text: str) -> ExperienceLevel:
    if _contains_any(text, EXPERT_KEYWORDS):
        return ExperienceLevel.EXPERT
    if _contains_any(text, INTERMEDIATE_KEYWORDS):
        return ExperienceLevel.INTERMEDIATE
    return ExperienceLevel.NOVICE


def _urgency_level(text: str) -> UrgencyLevel:
    if _contains_any(text, URGENT_KEYWORDS):
        return UrgencyLevel.URGENT
    if _contains_any(text, SOON_KEYWORDS):
        return UrgencyLevel.SOON
    return UrgencyLevel.NONE
