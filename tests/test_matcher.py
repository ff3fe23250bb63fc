from datetime import date

import pytest

from tradematch.errors import ValidationError
from tradematch.matcher import check_availability, evaluate, evaluate_rate
from tradematch.models import (
    AvailabilityStatus,
    AvailabilityWindow,
    ContractorProfile,
    JobRequest,
    NegotiationPreferences,
    RatePreference,
    ServiceArea,
    Trade,
)


def make_request(**overrides) -> JobRequest:
    fields = dict(
        id="req-1",
        trade="plumber",
        start_date=date(2026, 3, 2),
        end_date=date(2026, 3, 4),
        min_rate=70.0,
        max_rate=100.0,
    )
    fields.update(overrides)
    return JobRequest(**fields)


def make_profile(**overrides) -> ContractorProfile:
    fields = dict(
        id="sub-1",
        trades=[Trade("plumber", licensed=True)],
        rate_preferences=[RatePreference("plumber", 75.0, 90.0, 120.0)],
    )
    fields.update(overrides)
    return ContractorProfile(**fields)


def test_end_to_end_plumber_match():
    ev = evaluate(make_request(), make_profile())
    assert ev.matches
    # trade 30 + availability 25 + excellent rate 25; no requirements asked
    assert ev.score == 80
    assert ev.suggested_offer.rate == 90
    assert ev.suggested_offer.start_date == date(2026, 3, 2)
    assert ev.reasons == ["Strong match (score: 80/100)"]


def test_requirements_met_add_five():
    ev = evaluate(make_request(requirements="licensed"), make_profile())
    assert ev.matches
    assert ev.score == 85
    assert ev.reasons[-1] == "Strong match (score: 85/100)"


def test_rate_below_minimum_cites_minimum():
    ev = evaluate(make_request(min_rate=50.0, max_rate=60.0), make_profile())
    assert not ev.matches
    assert ev.reasons == ["Rate 60 below minimum 75"]
    assert ev.suggested_offer is None


def test_large_and_fractional_rates_print_plainly():
    profile = make_profile(
        rate_preferences=[RatePreference("plumber", 2_000_000.0, 2_100_000.0, 2_500_000.0)]
    )
    ev = evaluate(make_request(min_rate=1_000_000.0, max_rate=1_234_567.0), profile)
    assert ev.reasons == ["Rate 1234567 below minimum 2000000"]

    ev = evaluate(make_request(min_rate=50.0, max_rate=60.5), make_profile())
    assert ev.reasons == ["Rate 60.50 below minimum 75"]


def test_trade_mismatch_scores_zero():
    ev = evaluate(make_request(trade="Electrician"), make_profile())
    assert not ev.matches
    assert ev.score == 0
    assert ev.reasons == ["Trade does not match"]


def test_trade_match_is_case_insensitive():
    assert evaluate(make_request(trade="PLUMBER"), make_profile()).matches


def test_location_inside_and_outside_radius():
    austin = ServiceArea(city="Austin", state="TX", latitude=30.2672, longitude=-97.7431, radius_miles=30)
    profile = make_profile(service_areas=[austin])

    near = evaluate(make_request(latitude=30.5083, longitude=-97.6789), profile)
    assert near.matches
    assert near.score == 100

    far = evaluate(make_request(latitude=32.7767, longitude=-96.7970), profile)
    assert not far.matches
    assert far.reasons == ["Location outside service area"]


def test_location_skipped_without_request_coordinates():
    austin = ServiceArea(latitude=30.2672, longitude=-97.7431, radius_miles=5)
    ev = evaluate(make_request(), make_profile(service_areas=[austin]))
    assert ev.matches
    assert ev.score == 80


def test_unavailable_dates_reject():
    windows = [
        AvailabilityWindow(date(2026, 3, 3), date(2026, 3, 31)),
        AvailabilityWindow(date(2026, 1, 1), date(2026, 12, 31), AvailabilityStatus.UNAVAILABLE),
    ]
    ev = evaluate(make_request(), make_profile(availability=windows))
    assert not ev.matches
    assert ev.reasons == ["Not available during requested dates"]


def test_availability_window_must_cover_whole_range():
    windows = [AvailabilityWindow(date(2026, 3, 1), date(2026, 3, 4))]
    assert check_availability(windows, date(2026, 3, 2), date(2026, 3, 4))
    assert not check_availability(windows, date(2026, 3, 2), date(2026, 3, 5))
    assert check_availability([], date(2026, 3, 2), date(2026, 3, 5))


def test_all_unmet_requirements_are_listed():
    profile = make_profile(trades=[Trade("plumber")])
    ev = evaluate(make_request(requirements="Licensed, insurance"), profile)
    assert not ev.matches
    assert ev.reasons == [
        "License required but not verified",
        "Insurance required but not verified",
    ]


def test_rate_tiers():
    pref = RatePreference("plumber", 75.0, 90.0, 120.0)

    excellent = evaluate_rate(100.0, pref)
    assert excellent.acceptable and excellent.score == 25
    assert excellent.suggested_rate <= 100.0

    acceptable = evaluate_rate(80.0, pref)
    assert acceptable.acceptable and acceptable.score == 15
    assert acceptable.suggested_rate == 80.0

    too_low = evaluate_rate(74.0, pref)
    assert not too_low.acceptable
    assert too_low.min_acceptable == 75.0

    no_pref = evaluate_rate(64.0, None)
    assert no_pref.acceptable and no_pref.score == 15
    assert no_pref.suggested_rate == 64.0


def test_rate_preference_for_other_trade_is_ignored():
    profile = make_profile(
        trades=[Trade("plumber"), Trade("welder")],
        rate_preferences=[RatePreference("welder", 150.0, 160.0, 200.0)],
    )
    ev = evaluate(make_request(), profile)
    assert ev.matches
    assert ev.suggested_offer.rate == 100.0


def test_auto_respond_follows_negotiation_preference():
    eager = make_profile(negotiation=NegotiationPreferences(auto_negotiate=True))
    manual = make_profile(negotiation=NegotiationPreferences(auto_negotiate=False))
    assert evaluate(make_request(), eager).auto_respond
    assert not evaluate(make_request(), manual).auto_respond
    assert not evaluate(make_request(max_rate=80.0), eager).auto_respond


def test_evaluate_is_deterministic():
    request, profile = make_request(requirements="insured"), make_profile()
    assert evaluate(request, profile) == evaluate(request, profile)


def test_invalid_request_rejected_at_boundary():
    with pytest.raises(ValidationError) as exc:
        evaluate(make_request(min_rate=120.0, max_rate=100.0), make_profile())
    assert "min_rate 120.0 exceeds max_rate 100.0" in exc.value.problems


def test_invalid_profile_rejected_at_boundary():
    profile = make_profile(rate_preferences=[RatePreference("plumber", 95.0, 90.0, 120.0)])
    with pytest.raises(ValidationError):
        evaluate(make_request(), profile)
