from __future__ import annotations

import logging
from typing import Any, Dict, Final, Optional

import requests
from pydantic import ValidationError

from config import get_settings
from features import require_text
from models import PriceRange
from pricing import estimate_price_range_from_text, round_half_up
from schemas import ConversationPayload, NegotiationAnalysisResponse, PriceRangeResponse


logger = logging.getLogger("negotiator.api_client")

ANALYSIS_UNAVAILABLE_MESSAGE: Final[str] = "AI analysis temporarily unavailable. Using local analysis."


class PredictionClient:
    """Client for the remote prediction service with a local fallback.

    Each call makes a single attempt bounded by `timeout`. Any failure
    (transport error, timeout, non-2xx status, malformed body) is logged and
    answered locally with the same formula the service uses, so callers never
    see remote errors. Without a `base_url` the remote service is skipped.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "PredictionClient":
        settings = get_settings()
        return cls(
            base_url=settings.prediction_api_url,
            timeout=settings.prediction_timeout_seconds,
        )

    def __call__(self, client_text: str, freelancer_text: str) -> PriceRange:
        return self.predict_price(client_text, freelancer_text)

    def predict_price(self, client_text: str, freelancer_text: str) -> PriceRange:
        """Return the fair price range for the conversation so far."""
        # Invalid text is the caller's error and must not be masked by the fallback.
        local = estimate_price_range_from_text(client_text, freelancer_text)
        if self.base_url is None:
            return local

        try:
            data = self._post("/predict-price", client_text, freelancer_text)
            parsed = PriceRangeResponse.model_validate(data)
        except (requests.RequestException, ValueError, ValidationError) as exc:
            logger.warning("Price prediction API error, using local estimate: %s", exc)
            return local

        return PriceRange(
            min_price=round_half_up(parsed.min_price),
            max_price=round_half_up(parsed.max_price),
        )

    def analyze_negotiation(self, client_text: str, freelancer_text: str) -> str:
        """Return the service's recommendation, or a fixed notice when unavailable."""
        require_text("client_text", client_text)
        require_text("freelancer_text", freelancer_text)
        if self.base_url is None:
            return ANALYSIS_UNAVAILABLE_MESSAGE

        try:
            data = self._post("/analyze-negotiation", client_text, freelancer_text)
            parsed = NegotiationAnalysisResponse.model_validate(data)
        except (requests.RequestException, ValueError, ValidationError) as exc:
            logger.warning("Negotiation analysis API error: %s", exc)
            return ANALYSIS_UNAVAILABLE_MESSAGE

        return parsed.recommendation

    def _post(self, path: str, client_text: str, freelancer_text: str) -> Dict[str, Any]:
        payload = ConversationPayload(
            client_messages=client_text,
            freelancer_messages=freelancer_text,
        )
        response = requests.post(
            f"{self.base_url}{path}",
            json=payload.model_dump(),
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()
