from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a text or numeric argument is missing, malformed, or out of range."""


class NegotiationClosedError(RuntimeError):
    """Raised when an event is sent to a negotiation that has already ended."""
