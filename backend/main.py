from __future__ import annotations

import logging
from typing import Dict, Final, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import get_settings
from errors import InvalidInputError, NegotiationClosedError
from features import detect_complexity, extract_features, extract_prices
from graph import build_graph
from history import history_filename
from models import GapTier, PriceRange
from offers import analyze_offers, classify_gap
from pricing import estimate_price_range, estimate_price_range_from_text, prediction_confidence
from schemas import (
    ConversationPayload,
    MessageIn,
    NegotiationAnalysisResponse,
    OfferAnalysisResponse,
    OfferIn,
    OfferPair,
    PriceRangeResponse,
    SessionSnapshot,
)
from session import NegotiationSession


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("negotiator.main")

_COMPLEXITY_SCORES: Final[Dict[str, int]] = {"simple": 1, "medium": 2, "complex": 3}

app = FastAPI(title="Freelance Negotiator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# This service is the prediction backend, so its sessions estimate locally.
negotiation_graph = build_graph(estimator=estimate_price_range_from_text)


@app.exception_handler(InvalidInputError)
async def _invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NegotiationClosedError)
async def _closed_handler(request: Request, exc: NegotiationClosedError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "environment": settings.environment}


@app.post("/predict-price", response_model=PriceRangeResponse)
def predict_price(payload: ConversationPayload) -> PriceRangeResponse:
    features = extract_features(payload.client_messages, payload.freelancer_messages)
    price_range = estimate_price_range(features)
    return PriceRangeResponse(
        min_price=price_range.min_price,
        max_price=price_range.max_price,
        confidence=prediction_confidence(features),
    )


@app.post("/analyze-negotiation", response_model=NegotiationAnalysisResponse)
def analyze_negotiation(payload: ConversationPayload) -> NegotiationAnalysisResponse:
    """Read the latest dollar amount each party mentioned as their implicit offer."""
    features = extract_features(payload.client_messages, payload.freelancer_messages)
    price_range = estimate_price_range(features)
    complexity = detect_complexity(f"{payload.client_messages} {payload.freelancer_messages}")

    client_amounts = extract_prices(payload.client_messages)
    freelancer_amounts = extract_prices(payload.freelancer_messages)
    client_offer = client_amounts[-1] if client_amounts else None
    freelancer_offer = freelancer_amounts[-1] if freelancer_amounts else None

    gap_analysis, recommendation = _describe_gap(client_offer, freelancer_offer, price_range)

    return NegotiationAnalysisResponse(
        gap_analysis=gap_analysis,
        recommendation=recommendation,
        urgency_level=int(features.urgency_level),
        complexity_score=_COMPLEXITY_SCORES[complexity],
    )


@app.post("/analyze-offers", response_model=OfferAnalysisResponse)
def analyze_offer_pair(payload: OfferPair) -> OfferAnalysisResponse:
    analysis = analyze_offers(payload.client_offer, payload.freelancer_offer)
    return OfferAnalysisResponse(
        gap=analysis.gap,
        midpoint=analysis.midpoint,
        range=analysis.range,
        tier=classify_gap(analysis.gap).value,
    )


@app.post("/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
def create_session() -> SessionSnapshot:
    session = NegotiationSession(graph=negotiation_graph)
    logger.info("Opening negotiation %s", session.thread_id)
    return session.start()


@app.get("/sessions/{thread_id}", response_model=SessionSnapshot)
def get_session(thread_id: str) -> SessionSnapshot:
    return _get_session(thread_id).snapshot()


@app.post("/sessions/{thread_id}/messages", response_model=SessionSnapshot)
def post_message(thread_id: str, payload: MessageIn) -> SessionSnapshot:
    return _get_session(thread_id).send_message(payload.text)


@app.put("/sessions/{thread_id}/offers/{role}", response_model=SessionSnapshot)
def put_offer(thread_id: str, role: str, payload: OfferIn) -> SessionSnapshot:
    return _get_session(thread_id).set_offer(role, payload.amount)


@app.post("/sessions/{thread_id}/accept", response_model=SessionSnapshot)
def accept_deal(thread_id: str) -> SessionSnapshot:
    return _get_session(thread_id).accept_deal()


@app.post("/sessions/{thread_id}/end", response_model=SessionSnapshot)
def end_discussion(thread_id: str) -> SessionSnapshot:
    return _get_session(thread_id).end_discussion()


@app.get("/sessions/{thread_id}/history.csv")
def download_history(thread_id: str) -> Response:
    csv_text = _get_session(thread_id).export_history()
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{history_filename()}"'},
    )


def _get_session(thread_id: str) -> NegotiationSession:
    session = NegotiationSession(graph=negotiation_graph, thread_id=thread_id)
    if not session.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Negotiation {thread_id} not found.",
        )
    return session


def _describe_gap(
    client_offer: Optional[float],
    freelancer_offer: Optional[float],
    price_range: PriceRange,
) -> tuple[str, str]:
    fair_range = f"${price_range.min_price:,} - ${price_range.max_price:,}"

    if client_offer is None or freelancer_offer is None:
        return (
            "Both parties need to mention a price before the gap can be measured.",
            f"Share concrete price expectations. The fair range for this project is {fair_range}.",
        )

    analysis = analyze_offers(client_offer, freelancer_offer)
    tier = classify_gap(analysis.gap)
    gap_analysis = f"The latest amounts differ by ${analysis.gap:,.2f} ({tier.value})."

    if tier is GapTier.ALIGNED:
        recommendation = f"Offers are close. Settle near the midpoint of ${analysis.midpoint:,.2f}."
    elif tier is GapTier.PROGRESSING:
        recommendation = f"Meet in the middle at ${analysis.midpoint:,.2f} to close the remaining gap."
    else:
        recommendation = f"Revisit the scope together. The fair range for this project is {fair_range}."
    return gap_analysis, recommendation


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
