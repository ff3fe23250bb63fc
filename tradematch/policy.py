"""Turn an evaluation into one action for the contractor's agent."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tradematch.log import get_logger
from tradematch.models import Evaluation, JobRequest, NegotiationPreferences

log = get_logger(__name__)

AUTO_ACCEPT_SCORE = 85
DECLINE_BELOW = 30
SUGGEST_SCORE = 50
COUNTER_SCORE = 60


class Action(str, Enum):
    ACCEPT = "ACCEPT"
    DECLINE = "DECLINE"
    SUGGEST = "SUGGEST"
    COUNTER = "COUNTER"
    NOTIFY = "NOTIFY"


@dataclass
class Decision:
    action: Action
    confidence: int
    extra: dict[str, Any] = field(default_factory=dict)


def decide(
    request: JobRequest,
    evaluation: Evaluation,
    preferences: NegotiationPreferences,
) -> Decision:
    """Apply the rule table top to bottom; the first matching rule wins.

    Scores 60–84 with auto-negotiation enabled satisfy both SUGGEST and
    COUNTER. SUGGEST is listed first and therefore wins.
    """
    score = evaluation.score

    if score >= AUTO_ACCEPT_SCORE and preferences.auto_accept:
        decision = Decision(Action.ACCEPT, score)
    elif score < DECLINE_BELOW:
        decision = Decision(
            Action.DECLINE, 100 - score, {"reason": ", ".join(evaluation.reasons)}
        )
    elif SUGGEST_SCORE <= score < AUTO_ACCEPT_SCORE:
        decision = Decision(Action.SUGGEST, score, {"offer": evaluation.suggested_offer})
    elif preferences.auto_negotiate and score >= COUNTER_SCORE:
        decision = Decision(Action.COUNTER, score, {"counter": evaluation.suggested_offer})
    else:
        decision = Decision(Action.NOTIFY, score)

    log.info("Request %s: %s (confidence %d)", request.id, decision.action.value, decision.confidence)
    return decision
