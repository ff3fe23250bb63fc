"""Order competing offers for the requester."""
from __future__ import annotations

from datetime import date
from typing import Iterable, Union

from tradematch.log import get_logger
from tradematch.models import Offer, RankedOffer, Reputation

log = get_logger(__name__)

OfferLike = Union[Offer, "tuple[Offer, Reputation | None]"]


def score_offer(
    offer: Offer,
    reputation: Reputation | None,
    max_rate: float,
    start_date: date,
) -> float:
    score = 0.0
    score += max(0.0, (max_rate - offer.rate) * 10)                  # cheaper is better
    if reputation is not None:
        score += reputation.average_score * 20
        score += min(reputation.total_ratings, 10) * 2               # 0 – 20
    if offer.start_date <= start_date:
        score += 10
    return score


def rank_offers(
    offers: Iterable[OfferLike], max_rate: float, start_date: date
) -> list[RankedOffer]:
    """Best first. ``sorted`` is stable, so ties keep their input order."""
    ranked: list[RankedOffer] = []
    for item in offers:
        if isinstance(item, Offer):
            offer, reputation = item, None
        else:
            offer, reputation = item
        ranked.append(
            RankedOffer(
                offer=offer,
                reputation=reputation,
                match_score=score_offer(offer, reputation, max_rate, start_date),
            )
        )
    result = sorted(ranked, key=lambda r: -r.match_score)
    log.debug("Ranked %d offers", len(result))
    return result
