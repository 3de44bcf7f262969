"""Maps terminal surface events to caller-visible outcomes."""
from __future__ import annotations

from .models import EventKind, Outcome, OutcomeKind, TerminalEvent


def classify_event(event: TerminalEvent) -> Outcome | None:
    """Classify a terminal event.

    Returns None for events that do not end the wait on their own
    (a closed window with no reply). The session manager leaves the
    dialog pending in that case.
    """
    if event.kind == EventKind.TIMED_OUT:
        return Outcome(OutcomeKind.TIMED_OUT)
    if event.kind == EventKind.TEXT_REPLY:
        text = event.text.strip()
        if not text:
            return Outcome(OutcomeKind.EMPTY_REPLY)
        return Outcome(OutcomeKind.REPLIED, text)
    return None
