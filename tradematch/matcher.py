"""Score a job request against a contractor profile.

Filters run in a fixed order and the first hard failure ends the
evaluation with a single reason:

  - Trade match (case-insensitive)                      → +30
  - Within a service area radius (when both have coords) → +20
  - Available for the whole requested date range         → +25
  - Rate tier: excellent / acceptable / no preference    → +25 / +15 / +15
  - Licence and insurance requirements (when requested)  → +5

Sub-scores are additive, so the total is "out of 100" only loosely.
"""
from __future__ import annotations

from datetime import date

from tradematch.geo import distance_miles
from tradematch.log import get_logger
from tradematch.models import (
    AvailabilityWindow,
    ContractorProfile,
    Evaluation,
    JobRequest,
    RateEvaluation,
    RatePreference,
    SuggestedOffer,
    validate_profile,
    validate_request,
)

log = get_logger(__name__)

TRADE_SCORE = 30
LOCATION_SCORE = 20
AVAILABILITY_SCORE = 25
RATE_EXCELLENT_SCORE = 25
RATE_ACCEPTABLE_SCORE = 15
REQUIREMENTS_SCORE = 5

# Rate tiers at or above this let an auto-negotiating contractor respond
# without a human in the loop.
AUTO_RESPOND_RATE_SCORE = 20

LICENSE_TAGS = ("licensed", "license")
INSURANCE_TAGS = ("insured", "insurance")


def _normalize(s: str) -> str:
    return (s or "").lower().strip()


def _fmt_rate(value: float) -> str:
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.2f}"


def has_trade(profile: ContractorProfile, trade: str) -> bool:
    wanted = _normalize(trade)
    return any(_normalize(t.trade) == wanted for t in profile.trades)


def in_service_area(request: JobRequest, profile: ContractorProfile) -> bool:
    for area in profile.service_areas:
        if not area.has_coordinates:
            continue
        miles = distance_miles(
            request.latitude, request.longitude, area.latitude, area.longitude
        )
        if miles <= area.radius_miles:
            log.debug("Request %s is %.1f mi from %s (radius %s)",
                      request.id, miles, area.city or "service area", area.radius_miles)
            return True
    return False


def check_availability(
    availability: list[AvailabilityWindow], start: date, end: date
) -> bool:
    """True if some available window covers [start, end]; no windows means no restriction."""
    if not availability:
        return True
    return any(w.covers(start, end) for w in availability)


def evaluate_rate(max_rate: float, preference: RatePreference | None) -> RateEvaluation:
    if preference is None:
        # Nothing to compare against; offer the top of the requester's band.
        return RateEvaluation(
            acceptable=True, score=RATE_ACCEPTABLE_SCORE, suggested_rate=max_rate
        )

    if max_rate < preference.min_rate:
        return RateEvaluation(
            acceptable=False, score=0, min_acceptable=preference.min_rate
        )

    if max_rate >= preference.preferred_rate:
        return RateEvaluation(
            acceptable=True,
            score=RATE_EXCELLENT_SCORE,
            suggested_rate=min(preference.preferred_rate, max_rate),
            min_acceptable=preference.min_rate,
        )

    return RateEvaluation(
        acceptable=True,
        score=RATE_ACCEPTABLE_SCORE,
        suggested_rate=max_rate,
        min_acceptable=preference.min_rate,
    )


def check_requirements(request: JobRequest, profile: ContractorProfile) -> list[str]:
    """Return every unmet requirement; empty means all are satisfied."""
    tags = request.requirement_tags
    failures: list[str] = []

    if any(tag in tags for tag in LICENSE_TAGS):
        if not any(t.licensed for t in profile.trades):
            failures.append("License required but not verified")

    if any(tag in tags for tag in INSURANCE_TAGS):
        if not any(t.insurance_verified for t in profile.trades):
            failures.append("Insurance required but not verified")

    return failures


def _reject(evaluation: Evaluation, request: JobRequest, *reasons: str) -> Evaluation:
    evaluation.matches = False
    evaluation.reasons = list(reasons)
    log.debug("Request %s rejected: %s", request.id, "; ".join(reasons))
    return evaluation


def evaluate(request: JobRequest, profile: ContractorProfile) -> Evaluation:
    validate_request(request)
    validate_profile(profile)

    evaluation = Evaluation()

    # Hard filter: trade
    if not has_trade(profile, request.trade):
        return _reject(evaluation, request, "Trade does not match")
    evaluation.score += TRADE_SCORE

    # Hard filter: service area (only when both sides can be located)
    located_areas = [a for a in profile.service_areas if a.has_coordinates]
    if request.has_coordinates and located_areas:
        if not in_service_area(request, profile):
            return _reject(evaluation, request, "Location outside service area")
        evaluation.score += LOCATION_SCORE

    # Hard filter: availability
    if not check_availability(profile.availability, request.start_date, request.end_date):
        return _reject(evaluation, request, "Not available during requested dates")
    evaluation.score += AVAILABILITY_SCORE

    # Hard filter: rate
    rate = evaluate_rate(request.max_rate, profile.rate_preference_for(request.trade))
    if not rate.acceptable:
        return _reject(
            evaluation, request,
            f"Rate {_fmt_rate(request.max_rate)} below minimum {_fmt_rate(rate.min_acceptable)}",
        )
    evaluation.score += rate.score
    if rate.score >= AUTO_RESPOND_RATE_SCORE:
        evaluation.auto_respond = profile.negotiation.auto_negotiate

    # Requirements: collect every failure before rejecting
    if request.requirement_tags:
        failures = check_requirements(request, profile)
        if failures:
            return _reject(evaluation, request, *failures)
        evaluation.score += REQUIREMENTS_SCORE

    evaluation.suggested_offer = SuggestedOffer(
        rate=rate.suggested_rate,
        start_date=request.start_date,
        end_date=request.end_date,
    )
    evaluation.reasons.append(f"Strong match (score: {evaluation.score}/100)")
    log.debug("Request %s vs profile %s → score %d", request.id, profile.id, evaluation.score)
    return evaluation
