"""Errors raised by the matching and negotiation engine.

Running out of negotiation rounds is not an error: ``generate_counter``
returns ``None`` and callers check for it.
"""
from __future__ import annotations


class EngineError(Exception):
    """Base class for everything the engine raises on purpose."""


class ValidationError(EngineError, ValueError):
    """A request or profile record is malformed."""

    def __init__(self, problems: list[str] | str) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class SessionNotFoundError(EngineError, KeyError):
    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"No active negotiation for request {request_id}")

    def __str__(self) -> str:
        return self.args[0]


class SessionExistsError(EngineError):
    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"Negotiation already started for request {request_id}")


class SessionClosedError(EngineError):
    def __init__(self, request_id: str, status: str) -> None:
        self.request_id = request_id
        self.status = status
        super().__init__(f"Negotiation for request {request_id} is {status}")


class OfferStateError(EngineError):
    """An offer's status was changed after it was already settled."""
