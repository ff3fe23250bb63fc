"""Where negotiation sessions live between calls."""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, ContextManager, Iterator

if TYPE_CHECKING:
    from tradematch.negotiation import NegotiationSession


class SessionStore(ABC):
    @abstractmethod
    def get(self, request_id: str) -> NegotiationSession | None:
        pass

    @abstractmethod
    def put(self, session: NegotiationSession) -> None:
        pass

    @abstractmethod
    def delete(self, request_id: str) -> None:
        pass

    @abstractmethod
    def values(self) -> list[NegotiationSession]:
        pass

    @abstractmethod
    def lock(self, request_id: str) -> ContextManager:
        """Serialize mutations of one request's session."""


class InMemorySessionStore(SessionStore):
    """Dict-backed store with one re-entrant lock per request id.

    A request's lock lives only while someone holds it or a session is
    stored under that id.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, NegotiationSession] = {}
        # request_id -> [lock, holders]
        self._locks: dict[str, list] = {}
        self._registry = threading.Lock()

    def get(self, request_id: str) -> NegotiationSession | None:
        return self._sessions.get(request_id)

    def put(self, session: NegotiationSession) -> None:
        with self._registry:
            self._sessions[session.request_id] = session

    def delete(self, request_id: str) -> None:
        with self._registry:
            self._sessions.pop(request_id, None)
            entry = self._locks.get(request_id)
            if entry is not None and entry[1] == 0:
                del self._locks[request_id]

    def values(self) -> list[NegotiationSession]:
        with self._registry:
            return list(self._sessions.values())

    @contextmanager
    def lock(self, request_id: str) -> Iterator[None]:
        with self._registry:
            entry = self._locks.setdefault(request_id, [threading.RLock(), 0])
            entry[1] += 1
        lk = entry[0]
        lk.acquire()
        try:
            yield
        finally:
            lk.release()
            with self._registry:
                entry[1] -= 1
                if entry[1] == 0 and request_id not in self._sessions:
                    self._locks.pop(request_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
