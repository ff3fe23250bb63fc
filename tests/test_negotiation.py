import random
import threading
from datetime import date

import pytest

from tradematch.errors import (
    SessionClosedError,
    SessionExistsError,
    SessionNotFoundError,
    ValidationError,
)
from tradematch.messages import counter_message
from tradematch.models import Offer, Strategy
from tradematch.negotiation import Negotiator, SessionStatus, counter_rate
from tradematch.policy import Action


def make_offer(rate: float, round: int = 1, offer_id: str = "offer-1") -> Offer:
    return Offer(
        id=offer_id, request_id="req-1", contractor_id="sub-1", rate=rate,
        start_date=date(2026, 3, 2), end_date=date(2026, 3, 4), round=round,
    )


def started(max_rounds: int = 3, rate: float = 100.0) -> Negotiator:
    n = Negotiator(max_rounds=max_rounds)
    n.start("req-1", make_offer(rate))
    return n


def test_split_scenario_converges_then_stops():
    n = started()

    first = n.generate_counter("req-1", make_offer(100.0), 80.0, Strategy.SPLIT)
    assert first.rate == 90
    assert first.round == 2
    n.add_counter("req-1", first)

    second = n.generate_counter("req-1", make_offer(90.0, round=2), 80.0, Strategy.SPLIT)
    assert second.rate == 85
    assert second.round == 3
    n.add_counter("req-1", second)

    assert n.generate_counter("req-1", make_offer(85.0, round=3), 80.0, Strategy.SPLIT) is None


def test_generate_counter_does_not_advance_session():
    n = started()
    n.generate_counter("req-1", make_offer(100.0), 80.0)
    n.generate_counter("req-1", make_offer(100.0), 80.0)
    session = n.status("req-1")
    assert session.round == 1
    assert len(session.history) == 1


def test_strategies():
    assert counter_rate(100.0, 80.0, Strategy.SPLIT) == 90
    assert counter_rate(100.0, 80.0, Strategy.AGGRESSIVE) == 85
    assert counter_rate(100.0, 80.0, Strategy.CONSERVATIVE) == 95
    # halves round up
    assert counter_rate(100.0, 81.0, Strategy.SPLIT) == 91
    assert counter_rate(81.0, 100.0, Strategy.SPLIT) == 91


@pytest.mark.parametrize("current,target", [(100, 80), (55, 140), (12, 14), (300, 97), (61, 64)])
def test_split_lands_between_rates(current, target):
    rate = counter_rate(float(current), float(target), Strategy.SPLIT)
    assert min(current, target) < rate < max(current, target)


def test_counter_carries_dates_strategy_and_origin():
    n = started()
    counter = n.generate_counter(
        "req-1", make_offer(100.0), 80.0, "aggressive",
        alternate_dates=(date(2026, 3, 9), date(2026, 3, 11)),
        counter_id="c-1",
    )
    assert counter.id == "c-1"
    assert counter.offer_id == "offer-1"
    assert counter.strategy is Strategy.AGGRESSIVE
    assert (counter.start_date, counter.end_date) == (date(2026, 3, 9), date(2026, 3, 11))
    assert counter.message == counter_message(2, 85.0, 3)


def test_generated_ids_are_unique():
    n = started()
    a = n.generate_counter("req-1", make_offer(100.0), 80.0)
    b = n.generate_counter("req-1", make_offer(100.0), 80.0)
    assert a.id.startswith("counter_")
    assert a.id != b.id


def test_add_counter_past_max_rounds_flags_session():
    n = started()
    for rate in (95.0, 90.0):
        n.add_counter("req-1", make_offer(rate))
    assert n.status("req-1").status is SessionStatus.ACTIVE
    session = n.add_counter("req-1", make_offer(88.0))
    assert session.round == 4
    assert session.status is SessionStatus.MAX_ROUNDS_REACHED

    with pytest.raises(SessionClosedError):
        n.add_counter("req-1", make_offer(87.0))
    assert session.round == 4
    assert len(session.history) == 4
    assert n.generate_counter("req-1", make_offer(88.0), 80.0) is None


def test_max_rounds_reached_can_still_be_accepted():
    n = started(max_rounds=1)
    n.add_counter("req-1", make_offer(95.0))
    session = n.complete("req-1", "accepted")
    assert session.status is SessionStatus.ACCEPTED
    assert session.completed_at is not None


def test_terminal_sessions_refuse_changes():
    n = started()
    n.complete("req-1", SessionStatus.DECLINED)
    with pytest.raises(SessionClosedError):
        n.add_counter("req-1", make_offer(90.0))
    with pytest.raises(SessionClosedError):
        n.complete("req-1", SessionStatus.ACCEPTED)
    assert n.generate_counter("req-1", make_offer(90.0), 80.0) is None


def test_complete_requires_terminal_outcome():
    n = started()
    with pytest.raises(ValidationError):
        n.complete("req-1", SessionStatus.ACTIVE)
    with pytest.raises(ValidationError):
        n.complete("req-1", "abandoned")


def test_unknown_strategy_is_validation_error():
    n = started()
    with pytest.raises(ValidationError, match="haggle"):
        n.generate_counter("req-1", make_offer(100.0), 80.0, "haggle")
    counter = n.generate_counter("req-1", make_offer(100.0), 80.0, "aggressive")
    assert counter.strategy is Strategy.AGGRESSIVE


def test_unknown_request_raises_not_found():
    n = Negotiator()
    with pytest.raises(SessionNotFoundError):
        n.add_counter("missing", make_offer(90.0))
    with pytest.raises(SessionNotFoundError):
        n.generate_counter("missing", make_offer(90.0), 80.0)
    with pytest.raises(SessionNotFoundError):
        n.complete("missing", "declined")
    with pytest.raises(SessionNotFoundError):
        n.status("missing")


def test_duplicate_start_rejected():
    n = started()
    with pytest.raises(SessionExistsError):
        n.start("req-1", make_offer(50.0))
    assert n.status("req-1").history[0].rate == 100.0


def test_archive_removes_session():
    n = started()
    n.complete("req-1", "accepted")
    n.archive("req-1")
    with pytest.raises(SessionNotFoundError):
        n.status("req-1")
    n.start("req-1", make_offer(70.0))


def test_should_counter_bands():
    n = Negotiator(max_rounds=3)
    counter = n.should_counter(make_offer(100.0), 80.0, 1)
    assert counter.should_counter
    assert counter.action is None
    assert counter.reason == "25.0% from target rate"

    close = n.should_counter(make_offer(84.0), 80.0, 1)
    assert not close.should_counter
    assert close.action is Action.ACCEPT

    exhausted = n.should_counter(make_offer(100.0), 80.0, 3)
    assert not exhausted.should_counter
    assert exhausted.action is Action.DECLINE


def test_should_counter_defaults_to_offer_round():
    n = Negotiator(max_rounds=3)
    assert not n.should_counter(make_offer(100.0, round=3), 80.0).should_counter
    assert n.should_counter(make_offer(100.0, round=2), 80.0).should_counter


def test_should_counter_flips_once_gap_passes_threshold():
    n = Negotiator(max_rounds=3)
    rates = [100.0, 102.0, 104.0, 106.0, 108.0, 110.0]
    results = [n.should_counter(make_offer(rate), 100.0, 1).should_counter for rate in rates]
    assert results == [False, False, False, True, True, True]


def test_should_counter_rejects_non_positive_target():
    with pytest.raises(ValidationError):
        Negotiator().should_counter(make_offer(100.0), 0)


def test_analytics_over_completed_sessions():
    n = Negotiator()
    assert n.average_rounds() == 0.0
    assert n.success_rate() == 0.0

    for rid, counters, outcome in [("a", 0, "accepted"), ("b", 2, "declined"), ("c", 1, "accepted")]:
        n.start(rid, make_offer(100.0))
        for _ in range(counters):
            n.add_counter(rid, make_offer(90.0))
        n.complete(rid, outcome)
    n.start("open", make_offer(100.0))
    n.add_counter("open", make_offer(90.0))

    assert n.average_rounds() == pytest.approx(2.0)
    assert n.success_rate() == pytest.approx(66.7)


def test_concurrent_counters_never_exceed_cap():
    n = started(max_rounds=3)
    errors: list[Exception] = []

    def worker():
        try:
            n.add_counter("req-1", make_offer(90.0))
        except SessionClosedError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    session = n.status("req-1")
    assert session.round == 4
    assert len(session.history) == 4
    assert len(errors) == 17


def test_sampled_messages_stay_in_round_bucket():
    n = Negotiator(max_rounds=3, rng=random.Random(7))
    n.start("req-1", make_offer(100.0))
    counter = n.generate_counter("req-1", make_offer(100.0), 80.0)
    assert counter.message.endswith("(Round 2/3)")
    assert "$90/hr" in counter.message


def test_rejects_zero_max_rounds():
    with pytest.raises(ValidationError):
        Negotiator(max_rounds=0)
