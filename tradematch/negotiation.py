"""
Multi-round rate negotiation.

One session per job request: start → counter … counter → accepted/declined.
A session that runs past ``max_rounds`` is flagged ``max_rounds_reached``
but can still be completed, so the last offer on the table may be taken.
"""
from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable

from tradematch.config import COUNTER_THRESHOLD_PERCENT, MAX_ROUNDS
from tradematch.errors import (
    SessionClosedError,
    SessionExistsError,
    SessionNotFoundError,
    ValidationError,
)
from tradematch.log import get_logger
from tradematch.messages import counter_message
from tradematch.models import Offer, Strategy
from tradematch.policy import Action
from tradematch.store import InMemorySessionStore, SessionStore

log = get_logger(__name__)

# Fraction of the gap to the target that each strategy concedes.
STRATEGY_STEP: dict[Strategy, float] = {
    Strategy.SPLIT: 0.5,
    Strategy.AGGRESSIVE: 0.75,
    Strategy.CONSERVATIVE: 0.25,
}


class SessionStatus(str, Enum):
    ACTIVE = "active"
    MAX_ROUNDS_REACHED = "max_rounds_reached"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.ACCEPTED, SessionStatus.DECLINED)


@dataclass
class NegotiationSession:
    request_id: str
    max_rounds: int = MAX_ROUNDS
    round: int = 1
    history: list[Offer] = field(default_factory=list)
    status: SessionStatus = SessionStatus.ACTIVE
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    @property
    def last_offer(self) -> Offer | None:
        return self.history[-1] if self.history else None


@dataclass
class CounterAdvice:
    should_counter: bool
    reason: str
    percent_diff: float
    action: Action | None = None


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def counter_rate(current_rate: float, target_rate: float, strategy: Strategy) -> float:
    step = STRATEGY_STEP.get(strategy, STRATEGY_STEP[Strategy.SPLIT])
    return _round_half_up(current_rate + step * (target_rate - current_rate))


class Negotiator:
    def __init__(
        self,
        store: SessionStore | None = None,
        max_rounds: int = MAX_ROUNDS,
        *,
        id_factory: Callable[[], str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if max_rounds < 1:
            raise ValidationError(f"max_rounds must be at least 1, got {max_rounds}")
        self.store = store if store is not None else InMemorySessionStore()
        self.max_rounds = max_rounds
        self._id_factory = id_factory or (lambda: f"counter_{uuid.uuid4().hex[:12]}")
        self._rng = rng

    def _require(self, request_id: str) -> NegotiationSession:
        session = self.store.get(request_id)
        if session is None:
            raise SessionNotFoundError(request_id)
        return session

    # ── State transitions ────────────────────────────────────────────────

    def start(self, request_id: str, initial_offer: Offer) -> NegotiationSession:
        with self.store.lock(request_id):
            if self.store.get(request_id) is not None:
                raise SessionExistsError(request_id)
            session = NegotiationSession(
                request_id=request_id,
                max_rounds=self.max_rounds,
                history=[initial_offer],
            )
            self.store.put(session)
        log.info("Negotiation started for %s at %g", request_id, initial_offer.rate)
        return session

    def add_counter(self, request_id: str, counter: Offer) -> NegotiationSession:
        with self.store.lock(request_id):
            session = self._require(request_id)
            if session.status is not SessionStatus.ACTIVE:
                raise SessionClosedError(request_id, session.status.value)
            session.history.append(counter)
            session.round += 1
            if session.round > session.max_rounds:
                session.status = SessionStatus.MAX_ROUNDS_REACHED
                log.info("Negotiation %s hit max rounds (%d)", request_id, session.max_rounds)
            self.store.put(session)
        log.debug("Counter recorded for %s: %g (round %d)", request_id, counter.rate, session.round)
        return session

    def complete(self, request_id: str, outcome: SessionStatus | str) -> NegotiationSession:
        try:
            outcome = SessionStatus(outcome)
        except ValueError as exc:
            raise ValidationError(f"Unknown outcome {outcome!r}") from exc
        if not outcome.is_terminal:
            raise ValidationError(f"Outcome must be accepted or declined, got {outcome.value}")
        with self.store.lock(request_id):
            session = self._require(request_id)
            if session.status.is_terminal:
                raise SessionClosedError(request_id, session.status.value)
            session.status = outcome
            session.completed_at = datetime.now(timezone.utc)
            self.store.put(session)
        log.info("Negotiation %s %s after %d round(s)", request_id, outcome.value, session.round)
        return session

    def archive(self, request_id: str) -> NegotiationSession:
        with self.store.lock(request_id):
            session = self._require(request_id)
            self.store.delete(request_id)
        return session

    def status(self, request_id: str) -> NegotiationSession:
        return self._require(request_id)

    # ── Decisions ────────────────────────────────────────────────────────

    def should_counter(
        self, current_offer: Offer, target_rate: float, round: int | None = None
    ) -> CounterAdvice:
        if target_rate <= 0:
            raise ValidationError(f"target_rate must be positive, got {target_rate}")
        round_number = current_offer.round if round is None else round
        percent_diff = abs(current_offer.rate - target_rate) / target_rate * 100

        if percent_diff > COUNTER_THRESHOLD_PERCENT and round_number < self.max_rounds:
            return CounterAdvice(True, f"{percent_diff:.1f}% from target rate", percent_diff)
        if percent_diff <= COUNTER_THRESHOLD_PERCENT:
            return CounterAdvice(False, "Within acceptable range", percent_diff, Action.ACCEPT)
        return CounterAdvice(False, "Max rounds reached, gap too large", percent_diff, Action.DECLINE)

    def generate_counter(
        self,
        request_id: str,
        current_offer: Offer,
        target_rate: float,
        strategy: Strategy | str | None = None,
        *,
        alternate_dates: tuple[date, date] | None = None,
        counter_id: str | None = None,
    ) -> Offer | None:
        """Build the next counter-offer, or None once no rounds are left.

        The session is not advanced; record the counter with ``add_counter``.
        """
        try:
            strategy = Strategy(strategy) if strategy is not None else Strategy.SPLIT
        except ValueError as exc:
            choices = ", ".join(s.value for s in Strategy)
            raise ValidationError(f"Unknown strategy {strategy!r}; expected one of {choices}") from exc
        with self.store.lock(request_id):
            session = self._require(request_id)
            if session.status is not SessionStatus.ACTIVE or session.round >= session.max_rounds:
                log.debug("No counter for %s: round %d/%d, %s",
                          request_id, session.round, session.max_rounds, session.status.value)
                return None
            next_round = session.round + 1
            max_rounds = session.max_rounds

        rate = counter_rate(current_offer.rate, target_rate, strategy)
        start, end = alternate_dates or (current_offer.start_date, current_offer.end_date)
        return Offer(
            id=counter_id or self._id_factory(),
            request_id=request_id,
            contractor_id=current_offer.contractor_id,
            rate=rate,
            start_date=start,
            end_date=end,
            message=counter_message(next_round, rate, max_rounds, rng=self._rng),
            round=next_round,
            offer_id=current_offer.id,
            strategy=strategy,
        )

    # ── Analytics ────────────────────────────────────────────────────────

    def _completed(self) -> list[NegotiationSession]:
        return [s for s in self.store.values() if s.status.is_terminal]

    def average_rounds(self) -> float:
        completed = self._completed()
        if not completed:
            return 0.0
        return round(sum(s.round for s in completed) / len(completed), 2)

    def success_rate(self) -> float:
        completed = self._completed()
        if not completed:
            return 0.0
        accepted = sum(1 for s in completed if s.status is SessionStatus.ACCEPTED)
        return round(accepted / len(completed) * 100, 1)
