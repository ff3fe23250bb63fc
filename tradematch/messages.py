"""Counter-offer wording, bucketed by round."""
from __future__ import annotations

import random

# round 1 opens, round 2 softens, round 3+ is final
_TEMPLATES: dict[int, list[str]] = {
    1: [
        "Thanks for the offer. I can do ${rate}/hr.",
        "I appreciate it. How about ${rate}/hr?",
        "Can we meet at ${rate}/hr?",
    ],
    2: [
        "Getting closer. ${rate}/hr works better for me.",
        "Almost there. Can you do ${rate}/hr?",
        "Let's split the difference at ${rate}/hr.",
    ],
    3: [
        "Final offer: ${rate}/hr. That's my bottom line.",
        "Best I can do is ${rate}/hr.",
        "This is as low as I can go: ${rate}/hr.",
    ],
}


def round_bucket(round_number: int) -> int:
    return max(1, min(round_number, 3))


def counter_message(
    round_number: int,
    rate: float,
    max_rounds: int,
    rng: random.Random | None = None,
) -> str:
    """Deterministic unless *rng* is passed, in which case the template is sampled."""
    templates = _TEMPLATES[round_bucket(round_number)]
    template = rng.choice(templates) if rng is not None else templates[0]
    amount = f"{rate:.0f}" if float(rate).is_integer() else f"{rate:.2f}"
    text = template.replace("{rate}", amount)
    return f"{text} (Round {round_number}/{max_rounds})"
