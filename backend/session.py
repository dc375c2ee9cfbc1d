from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from errors import InvalidInputError, NegotiationClosedError
from graph import build_graph, thread_config
from history import export_history_csv, message_role, message_timestamp
from models import Role
from offers import validate_offer
from schemas import ChatMessageOut, NegotiationState, OfferAnalysisResponse, SessionSnapshot


_THREAD_LOCKS: Dict[str, threading.Lock] = {}
_THREAD_LOCKS_GUARD = threading.Lock()


def _thread_lock(thread_id: str) -> threading.Lock:
    """Return the lock serialising events on one negotiation thread."""
    with _THREAD_LOCKS_GUARD:
        return _THREAD_LOCKS.setdefault(thread_id, threading.Lock())


class NegotiationSession:
    """One negotiation thread running on a compiled negotiation graph.

    The graph's checkpointer owns the state; this class only validates
    events before handing them to the graph and reads the state back.
    Several sessions may share one graph as long as their thread ids differ.
    Every event holds the thread's lock from the state check until the graph
    has written the new checkpoint, so concurrent callers on the same thread
    id (for example FastAPI's threadpool) are applied one after another.
    """

    def __init__(self, graph: Optional[Any] = None, thread_id: Optional[str] = None) -> None:
        self.graph = graph if graph is not None else build_graph()
        self.thread_id = thread_id or uuid4().hex
        self._lock = _thread_lock(self.thread_id)

    def start(self) -> SessionSnapshot:
        """Open (or reopen) the negotiation with an empty log and a welcome message."""
        with self._lock:
            return self._dispatch({"event": "open"})

    def exists(self) -> bool:
        return bool(self.state().get("messages"))

    def state(self) -> NegotiationState:
        return dict(self.graph.get_state(thread_config(self.thread_id)).values)

    def send_message(self, text: str) -> SessionSnapshot:
        """Post a message as the party whose turn it is, then refresh the estimate."""
        if text is None or not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Message text must not be blank.")
        with self._lock:
            state = self._require_open()
            return self._dispatch(
                {"event": "message", "event_role": state["active_role"], "event_text": text},
            )

    def set_offer(self, role: Union[Role, str], amount: float) -> SessionSnapshot:
        """Set a party's current offer; zero clears it."""
        party = _party_role(role)
        validate_offer("amount", amount)
        with self._lock:
            self._require_open()
            return self._dispatch(
                {"event": "offer", "event_role": party.value, "event_amount": float(amount)},
            )

    def accept_deal(self) -> SessionSnapshot:
        with self._lock:
            state = self._require_open()
            if not any(value > 0 for value in state.get("offers", {}).values()):
                raise InvalidInputError("Cannot accept a deal before any offer has been made.")
            return self._dispatch({"event": "accept"})

    def end_discussion(self) -> SessionSnapshot:
        with self._lock:
            self._require_open()
            return self._dispatch({"event": "end"})

    def export_history(self) -> str:
        return export_history_csv(self.state().get("messages", []))

    def snapshot(self) -> SessionSnapshot:
        state = self.state()
        messages = state.get("messages", [])
        price_range = state.get("price_range")
        offer_analysis = state.get("offer_analysis")

        return SessionSnapshot(
            thread_id=self.thread_id,
            status=state.get("status", "open"),
            active_role=state.get("active_role", "client"),
            chat_ended=state.get("chat_ended", False),
            offers=state.get("offers", {}),
            price_range=tuple(price_range) if price_range else None,
            offer_analysis=OfferAnalysisResponse(**offer_analysis) if offer_analysis else None,
            final_price=state.get("final_price"),
            message_count=len(messages),
            messages=[
                ChatMessageOut(
                    role=message_role(m).value,
                    content=str(m.content),
                    timestamp=message_timestamp(m),
                )
                for m in messages
            ],
        )

    def _require_open(self) -> NegotiationState:
        state = self.state()
        if not state.get("messages"):
            raise LookupError(f"Negotiation {self.thread_id} has not been started.")
        if state.get("chat_ended"):
            raise NegotiationClosedError(f"Negotiation {self.thread_id} has already ended.")
        return state

    def _dispatch(self, event: NegotiationState) -> SessionSnapshot:
        payload: NegotiationState = {
            "thread_id": self.thread_id,
            "event_role": None,
            "event_text": None,
            "event_amount": None,
            **event,
        }
        self.graph.invoke(payload, config=thread_config(self.thread_id))
        return self.snapshot()


def _party_role(role: Union[Role, str]) -> Role:
    try:
        party = Role(role)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown role {role!r}.") from exc
    if party is Role.BOT:
        raise InvalidInputError("Only the client or the freelancer can make an offer.")
    return party
