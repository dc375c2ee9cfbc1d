from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple, TypedDict

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, Field, model_validator


PartyRole = Literal["client", "freelancer"]

NegotiationEvent = Literal["open", "message", "offer", "accept", "end"]

NegotiationStatusEnum = Literal["open", "accepted", "ended"]


class NegotiationState(TypedDict, total=False):
    """State container shared across LangGraph nodes.

    This is the in-memory representation of one negotiation and is kept by
    LangGraph's checkpointer between invocations of the same thread.
    """

    messages: List[BaseMessage]
    active_role: PartyRole
    # Zero means the party has not entered an offer yet.
    offers: Dict[str, float]
    price_range: Optional[List[int]]
    offer_analysis: Optional[Dict[str, object]]
    chat_ended: bool
    final_price: Optional[float]
    status: NegotiationStatusEnum
    thread_id: Optional[str]
    # Event payload for the current invocation.
    event: NegotiationEvent
    event_role: Optional[PartyRole]
    event_text: Optional[str]
    event_amount: Optional[float]


class ConversationPayload(BaseModel):
    """Accumulated conversation text of both parties.

    This is the request body of the remote prediction service, sent by
    `PredictionClient` and accepted by the `/predict-price` and
    `/analyze-negotiation` endpoints.
    """

    client_messages: str = Field(default="", description="All client messages joined by spaces.")
    freelancer_messages: str = Field(default="", description="All freelancer messages joined by spaces.")


class PriceRangeResponse(BaseModel):
    """Price range returned by the prediction service."""

    min_price: float = Field(..., ge=0.0)
    max_price: float = Field(..., ge=0.0)
    confidence: float = Field(..., ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_order(self) -> "PriceRangeResponse":
        if self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price.")
        return self


class NegotiationAnalysisResponse(BaseModel):
    """Qualitative read of the negotiation returned by `/analyze-negotiation`."""

    gap_analysis: str
    recommendation: str
    urgency_level: int = Field(..., ge=1, le=3)
    complexity_score: int = Field(..., ge=1, le=3)


class OfferPair(BaseModel):
    client_offer: float = Field(..., ge=0.0)
    freelancer_offer: float = Field(..., ge=0.0)


class OfferAnalysisResponse(BaseModel):
    gap: float
    midpoint: float
    range: Tuple[float, float]
    tier: Literal["aligned", "progressing", "wide"]


class MessageIn(BaseModel):
    text: str = Field(..., description="Message text from the party whose turn it is.")


class OfferIn(BaseModel):
    amount: float = Field(..., ge=0.0, description="Offer amount; zero clears the offer.")


class ChatMessageOut(BaseModel):
    role: Literal["client", "freelancer", "bot"]
    content: str
    timestamp: str


class SessionSnapshot(BaseModel):
    """Public view of a negotiation thread."""

    thread_id: str
    status: NegotiationStatusEnum
    active_role: PartyRole
    chat_ended: bool
    offers: Dict[str, float]
    price_range: Optional[Tuple[int, int]] = None
    offer_analysis: Optional[OfferAnalysisResponse] = None
    final_price: Optional[float] = None
    message_count: int
    messages: List[ChatMessageOut]
