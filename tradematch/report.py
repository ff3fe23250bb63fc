"""Markdown summary of a match evaluation and the negotiation that followed."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from tradematch.config import REPORTS_DIR
from tradematch.log import get_logger
from tradematch.models import Evaluation, JobRequest, RankedOffer
from tradematch.negotiation import NegotiationSession
from tradematch.policy import Decision

log = get_logger(__name__)

_STATUS_BADGE: dict[str, str] = {
    "active": "\U0001f504",
    "max_rounds_reached": "⏱",
    "accepted": "✅",
    "declined": "❌",
}


def _money(value: float | None) -> str:
    if value is None:
        return "—"
    return f"${value:,.0f}" if float(value).is_integer() else f"${value:,.2f}"


def _truncate(text: str, width: int) -> str:
    return text[:width] + ("…" if len(text) > width else "")


def build_negotiation_report(
    request: JobRequest,
    evaluation: Evaluation,
    decision: Decision,
    session: NegotiationSession | None = None,
    ranked: list[RankedOffer] | None = None,
) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines: list[str] = [f"# Negotiation Report — {request.trade} ({request.id})", ""]
    lines.append(
        f"**{_money(request.min_rate)}–{_money(request.max_rate)}/hr** | "
        f"{request.start_date} → {request.end_date} | {request.location or 'no location'}"
    )
    lines.append("")

    lines.append("## Match")
    lines.append("")
    verdict = "Match" if evaluation.matches else "No match"
    lines.append(f"- **Verdict:** {verdict} (score {evaluation.score})")
    lines.append(f"- **Why:** {', '.join(evaluation.reasons) or '—'}")
    if evaluation.suggested_offer:
        lines.append(f"- **Suggested rate:** {_money(evaluation.suggested_offer.rate)}/hr")
    lines.append(f"- **Decision:** {decision.action.value} (confidence {decision.confidence})")
    lines.append("")

    if session is not None:
        badge = _STATUS_BADGE.get(session.status.value, "")
        lines.append(f"## {badge} Negotiation — {session.status.value}")
        lines.append("")
        lines.append("| Round | Rate | Dates | Message |")
        lines.append("|------:|-----:|-------|---------|")
        for offer in session.history:
            lines.append(
                f"| {offer.round} | {_money(offer.rate)} | {offer.start_date} → {offer.end_date} "
                f"| {_truncate(offer.message, 60)} |"
            )
        lines.append("")
        if session.completed_at:
            lines.append(f"_Closed {session.completed_at.strftime('%Y-%m-%d %H:%M')} UTC "
                         f"after {session.round} round(s)._")
            lines.append("")

    if ranked:
        lines.append("---")
        lines.append("")
        lines.append("## Competing Offers")
        lines.append("")
        lines.append("| # | Contractor | Rate | Start | Score |")
        lines.append("|--:|------------|-----:|-------|------:|")
        for i, r in enumerate(ranked, 1):
            lines.append(
                f"| {i} | {_truncate(r.offer.contractor_id, 22)} | {_money(r.offer.rate)} "
                f"| {r.offer.start_date} | {r.match_score:.0f} |"
            )
        lines.append("")

    lines.append(f"_Generated {date}_")
    log.info("Built negotiation report for %s", request.id)
    return "\n".join(lines)


def write_report(content: str, name: str) -> Path:
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)[:60]
    path = REPORTS_DIR / f"negotiation_{safe}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
