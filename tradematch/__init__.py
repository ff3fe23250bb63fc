from .errors import (
    EngineError,
    OfferStateError,
    SessionClosedError,
    SessionExistsError,
    SessionNotFoundError,
    ValidationError,
)
from .geo import distance_miles
from .matcher import evaluate, evaluate_rate
from .models import ContractorProfile, Evaluation, JobRequest, Offer, Reputation, Strategy
from .negotiation import Negotiator, NegotiationSession, SessionStatus
from .policy import Action, Decision, decide
from .ranker import rank_offers
from .store import InMemorySessionStore, SessionStore

__all__ = [
    "EngineError", "OfferStateError", "SessionClosedError", "SessionExistsError",
    "SessionNotFoundError", "ValidationError",
    "distance_miles", "evaluate", "evaluate_rate", "decide", "rank_offers",
    "ContractorProfile", "Evaluation", "JobRequest", "Offer", "Reputation", "Strategy",
    "Negotiator", "NegotiationSession", "SessionStatus",
    "Action", "Decision",
    "InMemorySessionStore", "SessionStore",
]
