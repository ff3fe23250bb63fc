#!/usr/bin/env python3
"""Run one match + negotiation end to end from the YAML files in config/."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from tradematch.config import PROFILE_PATH, REQUEST_PATH, load_profile, load_request
from tradematch.log import get_logger
from tradematch.matcher import evaluate
from tradematch.models import Offer, Strategy
from tradematch.negotiation import Negotiator, SessionStatus
from tradematch.policy import Action, decide
from tradematch.report import build_negotiation_report, write_report

log = get_logger(__name__)


def run(profile_path: Path, request_path: Path, write: bool = True) -> dict:
    profile = load_profile(profile_path)
    request = load_request(request_path)

    evaluation = evaluate(request, profile)
    decision = decide(request, evaluation, profile.negotiation)
    log.info("Evaluation: %s", "; ".join(evaluation.reasons))

    session = None
    if evaluation.matches and decision.action in (Action.COUNTER, Action.SUGGEST):
        pref = profile.rate_preference_for(request.trade)
        target = pref.preferred_rate if pref else evaluation.suggested_offer.rate
        floor = pref.min_rate if pref else request.min_rate

        negotiator = Negotiator()
        # The general contractor opens at the bottom of their band.
        offer = Offer(
            id=f"{request.id}-open",
            request_id=request.id,
            contractor_id=request.requester_id or "requester",
            rate=request.min_rate,
            start_date=request.start_date,
            end_date=request.end_date,
            message="Opening offer",
        )
        negotiator.start(request.id, offer)

        outcome = None
        while outcome is None:
            session = negotiator.status(request.id)
            advice = negotiator.should_counter(offer, target, session.round)
            log.info("Round %d: %g on the table — %s", session.round, offer.rate, advice.reason)
            if advice.action is Action.ACCEPT:
                outcome = SessionStatus.ACCEPTED
                break
            ours = negotiator.generate_counter(
                request.id, offer, target, profile.negotiation.strategy,
            )
            if ours is None:
                # Out of rounds: take the last offer if it clears our floor.
                outcome = SessionStatus.ACCEPTED if offer.rate >= floor else SessionStatus.DECLINED
                break
            ours.contractor_id = profile.id
            negotiator.add_counter(request.id, ours)
            log.info("  → %s", ours.message)

            theirs = negotiator.generate_counter(
                request.id, ours, request.min_rate, Strategy.CONSERVATIVE,
            )
            if theirs is None:
                outcome = SessionStatus.ACCEPTED if ours.rate <= request.max_rate else SessionStatus.DECLINED
                offer = ours
                break
            theirs.contractor_id = request.requester_id or "requester"
            negotiator.add_counter(request.id, theirs)
            offer = theirs

        session = negotiator.complete(request.id, outcome)
        log.info("Negotiation %s at %g after %d round(s)", outcome.value, offer.rate, session.round)

    content = build_negotiation_report(request, evaluation, decision, session)
    report_path = write_report(content, request.id) if write else None
    return {
        "matches": evaluation.matches,
        "score": evaluation.score,
        "action": decision.action.value,
        "outcome": session.status.value if session else None,
        "report_path": str(report_path) if report_path else None,
    }


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--profile", type=Path, default=PROFILE_PATH)
    ap.add_argument("--request", type=Path, default=REQUEST_PATH)
    ap.add_argument("--no-report", action="store_true", help="skip writing the markdown report")
    args = ap.parse_args(argv)

    for path in (args.profile, args.request):
        if not path.exists():
            print(f"\n  Missing {path} — copy one of the samples in config/ and edit it.\n")
            return 1

    result = run(args.profile, args.request, write=not args.no_report)
    log.info("Demo complete.")
    log.info("  Match: %s (score %d)", result["matches"], result["score"])
    log.info("  Decision: %s", result["action"])
    if result["outcome"]:
        log.info("  Negotiation: %s", result["outcome"])
    if result["report_path"]:
        log.info("  Report: %s", result["report_path"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
