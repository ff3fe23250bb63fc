"""Turn a free-text job post into a draft job request.

Handles messages such as "I need a plumber tomorrow for $80-100/hr in
Austin, TX". Each field found adds to a confidence score so the caller
can decide whether to ask follow-up questions.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta

from tradematch.errors import ValidationError
from tradematch.log import get_logger
from tradematch.models import JobRequest

log = get_logger(__name__)

KNOWN_TRADES: list[str] = [
    "plumber", "electrician", "hvac", "framer", "carpenter",
    "drywall", "roofer", "painter", "mason", "welder",
]

# Order matters: ranges before single rates, "/hr" forms before bare "$".
_RATE_PATTERNS: list[re.Pattern] = [
    re.compile(r"\$(\d+)-\$?(\d+)/hr", re.I),
    re.compile(r"\$(\d+)-(\d+)", re.I),
    re.compile(r"(\d+)-(\d+)/hr", re.I),
    re.compile(r"\$(\d+)/hr", re.I),
    re.compile(r"\$(\d+)"),
]
# A single quoted rate becomes a band of +/- this much.
_SINGLE_RATE_SPREAD = 10

# keyword → days from today
_RELATIVE_DATES: dict[str, int] = {
    "today": 0,
    "tomorrow": 1,
    "this week": 3,
    "next week": 7,
    "asap": 1,
    "urgent": 0,
}
_DEFAULT_JOB_DAYS = 2

_EXPLICIT_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})|(\d{1,2}/\d{1,2})")

_LOCATION_PATTERNS: list[re.Pattern] = [
    re.compile(r" in ([A-Z][a-z]+(?:\s[A-Z][a-z]+)?), ([A-Z]{2})"),
    re.compile(r" at ([^,]+), ([A-Z]{2})"),
    re.compile(r" ([A-Z][a-z]+(?:\s[A-Z][a-z]+)?), ([A-Z]{2})"),
]

_TRADE_CONFIDENCE = 25
_RATE_CONFIDENCE = 25
_RELATIVE_DATE_CONFIDENCE = 20
_EXPLICIT_DATE_CONFIDENCE = 25
_LOCATION_CONFIDENCE = 20


@dataclass
class ParsedJobPost:
    scope: str
    trade: str | None = None
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_rate: float | None = None
    max_rate: float | None = None
    preferred_rate: float | None = None
    confidence: int = 0
    missing: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing

    def to_request(self, request_id: str, requirements: str | None = None) -> JobRequest:
        if self.missing:
            raise ValidationError([f"missing {m}" for m in self.missing])
        return JobRequest(
            id=request_id,
            trade=self.trade,
            location=self.location,
            start_date=self.start_date,
            end_date=self.end_date,
            min_rate=self.min_rate,
            max_rate=self.max_rate,
            scope=self.scope,
            requirements=requirements,
        )


def estimate_duration(text: str) -> int:
    """Job length in days, guessed from scope words."""
    low = text.lower()
    if "quick" in low or "small" in low or "full day" in low:
        return 1
    if "week" in low:
        return 5
    if "month" in low:
        return 20
    return _DEFAULT_JOB_DAYS


def _explicit_date(text: str, today: date) -> date | None:
    m = _EXPLICIT_DATE.search(text)
    if not m:
        return None
    try:
        if m.group(1):
            return date.fromisoformat(m.group(1))
        month, day = (int(p) for p in m.group(2).split("/"))
        return date(today.year, month, day)
    except ValueError:
        log.debug("Ignoring unparseable date %r", m.group(0))
        return None


def parse_job_post(text: str, today: date | None = None) -> ParsedJobPost:
    today = today or date.today()
    result = ParsedJobPost(scope=text)
    low = text.lower()

    for trade in KNOWN_TRADES:
        if trade in low:
            result.trade = trade
            result.confidence += _TRADE_CONFIDENCE
            break

    for pattern in _RATE_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        if m.lastindex and m.lastindex >= 2:
            result.min_rate = float(m.group(1))
            result.max_rate = float(m.group(2))
        else:
            rate = float(m.group(1))
            result.min_rate = rate - _SINGLE_RATE_SPREAD
            result.max_rate = rate + _SINGLE_RATE_SPREAD
            result.preferred_rate = rate
        result.confidence += _RATE_CONFIDENCE
        break

    for keyword, days in _RELATIVE_DATES.items():
        if keyword in low:
            result.start_date = today + timedelta(days=days)
            result.end_date = result.start_date + timedelta(days=_DEFAULT_JOB_DAYS)
            result.confidence += _RELATIVE_DATE_CONFIDENCE
            break

    explicit = _explicit_date(text, today)
    if explicit is not None:
        result.start_date = explicit
        result.end_date = None
        result.confidence += _EXPLICIT_DATE_CONFIDENCE

    for pattern in _LOCATION_PATTERNS:
        m = pattern.search(text)
        if m:
            result.location = f"{m.group(1).strip()}, {m.group(2)}"
            result.confidence += _LOCATION_CONFIDENCE
            break

    if result.start_date and not result.end_date:
        result.end_date = result.start_date + timedelta(days=estimate_duration(text))

    if not result.trade:
        result.missing.append("trade")
    if not result.location:
        result.missing.append("location")
    if not result.start_date:
        result.missing.append("dates")
    if result.min_rate is None or result.max_rate is None:
        result.missing.append("rate")

    log.debug("Parsed job post (confidence %d, missing %s)", result.confidence, result.missing)
    return result


def confirmation_message(parsed: ParsedJobPost) -> str:
    """Echo back what was understood, or ask for what is missing."""
    if parsed.complete:
        return "\n".join([
            "Got it! Here's what I understood:",
            "",
            f"Trade: {parsed.trade}",
            f"Location: {parsed.location}",
            f"Dates: {parsed.start_date} to {parsed.end_date}",
            f"Budget: ${parsed.min_rate:g}-${parsed.max_rate:g}/hr",
            f"Scope: {parsed.scope}",
            "",
            'Reply "post it" to broadcast this job, or give me more details.',
        ])

    def line(ok: bool, have: str, ask: str) -> str:
        return f"✅ {have}" if ok else f"❌ {ask}"

    return "\n".join([
        "I got some of that, but I need more info:",
        "",
        line(bool(parsed.trade), f"Trade: {parsed.trade}", "What trade do you need?"),
        line(bool(parsed.location), f"Location: {parsed.location}", "Where is the job?"),
        line(bool(parsed.start_date),
             f"Dates: {parsed.start_date} to {parsed.end_date}", "When do you need them?"),
        line("rate" not in parsed.missing,
             f"Budget: ${parsed.min_rate:g}-${parsed.max_rate:g}/hr"
             if "rate" not in parsed.missing else "",
             "What is your budget per hour?"),
        "",
        "Just reply with the missing info!",
    ])
