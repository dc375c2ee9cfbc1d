from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Final, Optional, Tuple, TypedDict

from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, START, StateGraph

from api_client import PredictionClient
from history import make_message, messages_for
from logger import log_event
from models import GapTier, NegotiationStatus, PriceRange, Role
from offers import analyze_offers, classify_gap, gap_percentage
from schemas import NegotiationState


Estimator = Callable[[str, str], PriceRange]
"""Maps (client text, freelancer text) to a price range."""


class GraphConfig(TypedDict):
    """Graph configuration passed via LangGraph's `config` parameter."""

    configurable: Dict[str, Any]


WELCOME_MESSAGE: Final[str] = (
    "Welcome to the AI-Powered Freelance Negotiator! I'm here to help you reach a fair "
    "agreement. Start by describing your project and budget expectations."
)

END_MESSAGE: Final[str] = (
    "Negotiation ended. No agreement was reached this time. "
    "Feel free to start a new negotiation anytime."
)

_PRICE_TEMPLATES: Final[Tuple[str, ...]] = (
    "AI Price Analysis Updated! Fair market range: {low} - {high}. "
    "Analyzing project complexity and market rates...",
    "Smart AI Pricing Insight: based on the conversation, I recommend {low} - {high}. "
    "This aligns with industry standards for your project scope.",
    "AI Recommendation: updated fair price bracket {low} - {high}. "
    "Confidence level: high based on current market data.",
)

_PROGRESS_LABELS: Final[Dict[GapTier, str]] = {
    GapTier.ALIGNED: "Excellent!",
    GapTier.PROGRESSING: "Getting close!",
    GapTier.WIDE: "Still negotiating...",
}

_EVENT_NODES: Final[Dict[str, str]] = {
    "open": "open_chat",
    "message": "post_message",
    "offer": "update_offer",
    "accept": "accept_deal",
    "end": "end_discussion",
}


def thread_config(thread_id: str) -> GraphConfig:
    return {"configurable": {"thread_id": thread_id}}


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


def _other_party(role: str) -> str:
    return Role.FREELANCER.value if role == Role.CLIENT.value else Role.CLIENT.value


def route_event(state: NegotiationState) -> str:
    """Pick the node that handles the event carried by this invocation."""
    return _EVENT_NODES[state.get("event", "open")]


def open_chat_node(state: NegotiationState) -> NegotiationState:
    """Start a fresh negotiation with a welcome message from the bot."""
    log_event("graph", "open", state.get("thread_id") or "")

    new_state: NegotiationState = {
        **state,
        "messages": [make_message(Role.BOT, WELCOME_MESSAGE)],
        "active_role": "client",
        "offers": {Role.CLIENT.value: 0.0, Role.FREELANCER.value: 0.0},
        "price_range": None,
        "offer_analysis": None,
        "chat_ended": False,
        "final_price": None,
        "status": NegotiationStatus.OPEN.value,
    }
    return new_state


def post_message_node(state: NegotiationState) -> NegotiationState:
    """Append the active party's message to the log."""
    role = Role(state["event_role"])
    text = state.get("event_text") or ""

    messages = [*state.get("messages", []), make_message(role, text)]
    log_event("graph", "message", state.get("thread_id") or "", role=role.value, text=text)

    new_state: NegotiationState = {**state, "messages": messages}
    return new_state


def make_estimate_node(estimator: Estimator) -> Callable[[NegotiationState], NegotiationState]:
    """Build the node that refreshes the price range after each party message.

    The estimator sees the accumulated text of each role. After the bot
    announces the range, the turn passes to the other party.
    """

    def estimate_node(state: NegotiationState) -> NegotiationState:
        messages = state.get("messages", [])
        client_text = messages_for(messages, Role.CLIENT)
        freelancer_text = messages_for(messages, Role.FREELANCER)

        price_range = estimator(client_text, freelancer_text)

        template = _PRICE_TEMPLATES[len(messages) % len(_PRICE_TEMPLATES)]
        announcement = template.format(
            low=_money(price_range.min_price),
            high=_money(price_range.max_price),
        )
        log_event(
            "graph",
            "estimate",
            state.get("thread_id") or "",
            min_price=price_range.min_price,
            max_price=price_range.max_price,
        )

        new_state: NegotiationState = {
            **state,
            "messages": [*messages, make_message(Role.BOT, announcement)],
            "price_range": list(price_range.as_tuple()),
            "active_role": _other_party(state.get("active_role", Role.CLIENT.value)),
        }
        return new_state

    return estimate_node


def update_offer_node(state: NegotiationState) -> NegotiationState:
    """Record an offer and, once both parties have one, analyse the gap."""
    role = Role(state["event_role"])
    amount = float(state.get("event_amount") or 0.0)

    offers = {**state.get("offers", {}), role.value: amount}
    client_offer = offers.get(Role.CLIENT.value, 0.0)
    freelancer_offer = offers.get(Role.FREELANCER.value, 0.0)

    messages = state.get("messages", [])
    offer_analysis: Optional[Dict[str, object]] = None

    if client_offer > 0 and freelancer_offer > 0:
        analysis = analyze_offers(client_offer, freelancer_offer)
        tier = classify_gap(analysis.gap)
        offer_analysis = {
            "gap": analysis.gap,
            "midpoint": analysis.midpoint,
            "range": list(analysis.range),
            "tier": tier.value,
        }
        summary = (
            f"Offer Analysis: gap {_money(analysis.gap)} ({gap_percentage(analysis):.1f}%). "
            f"Suggested midpoint: {_money(analysis.midpoint)}. "
            f"Negotiation progress: {_PROGRESS_LABELS[tier]}"
        )
        messages = [*messages, make_message(Role.BOT, summary)]

    log_event("graph", "offer", state.get("thread_id") or "", role=role.value, amount=amount)

    new_state: NegotiationState = {
        **state,
        "messages": messages,
        "offers": offers,
        "offer_analysis": offer_analysis,
    }
    return new_state


def accept_deal_node(state: NegotiationState) -> NegotiationState:
    """Close the negotiation at the larger of the two offers."""
    final_price = max(state.get("offers", {}).values(), default=0.0)
    today = datetime.now(timezone.utc).date().isoformat()

    confirmation = (
        f"DEAL COMPLETED! Final agreed price: {_money(final_price)}. Date: {today}. "
        "Thank you for using our AI negotiation platform!"
    )
    log_event("graph", "accept", state.get("thread_id") or "", final_price=final_price)

    new_state: NegotiationState = {
        **state,
        "messages": [*state.get("messages", []), make_message(Role.BOT, confirmation)],
        "final_price": final_price,
        "chat_ended": True,
        "status": NegotiationStatus.ACCEPTED.value,
    }
    return new_state


def end_discussion_node(state: NegotiationState) -> NegotiationState:
    log_event("graph", "end", state.get("thread_id") or "")

    new_state: NegotiationState = {
        **state,
        "messages": [*state.get("messages", []), make_message(Role.BOT, END_MESSAGE)],
        "chat_ended": True,
        "status": NegotiationStatus.ENDED.value,
    }
    return new_state


def build_graph(estimator: Optional[Estimator] = None) -> Any:
    """Build and compile the LangGraph state machine for negotiations.

    `estimator` defaults to a `PredictionClient` configured from settings,
    which falls back to the local formula whenever the remote service fails.
    """
    estimate = estimator if estimator is not None else PredictionClient.from_settings()

    builder = StateGraph(NegotiationState)

    builder.add_node("open_chat", open_chat_node)
    builder.add_node("post_message", post_message_node)
    builder.add_node("estimate", make_estimate_node(estimate))
    builder.add_node("update_offer", update_offer_node)
    builder.add_node("accept_deal", accept_deal_node)
    builder.add_node("end_discussion", end_discussion_node)

    builder.add_conditional_edges(START, route_event, list(_EVENT_NODES.values()))
    builder.add_edge("post_message", "estimate")
    builder.add_edge("open_chat", END)
    builder.add_edge("estimate", END)
    builder.add_edge("update_offer", END)
    builder.add_edge("accept_deal", END)
    builder.add_edge("end_discussion", END)

    # MemorySaver keeps every thread's state in process memory only; each
    # `thread_id` in the invocation config selects one negotiation.
    return builder.compile(checkpointer=MemorySaver())


