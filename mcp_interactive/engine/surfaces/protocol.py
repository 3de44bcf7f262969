"""Line protocol spoken by presentation surfaces on stdout.

    DIALOG_CLOSED                  window dismissed, no reply
    TEXT_FROM_RENDERER:<payload>   the user's reply
    DIALOG_TIMEOUT                 the surface's own timeout elapsed

Any other line is diagnostic noise and is dropped.
"""
from __future__ import annotations

from ..models import EventKind, TerminalEvent

CLOSED_MARKER = "DIALOG_CLOSED"
TEXT_PREFIX = "TEXT_FROM_RENDERER:"
TIMEOUT_MARKER = "DIALOG_TIMEOUT"


def parse_output_line(line: str) -> TerminalEvent | None:
    """Classify one stdout line, or return None for noise."""
    stripped = line.strip()
    if stripped == CLOSED_MARKER:
        return TerminalEvent(EventKind.CLOSED)
    if stripped.startswith(TEXT_PREFIX):
        return TerminalEvent(
            EventKind.TEXT_REPLY,
            stripped[len(TEXT_PREFIX):].strip(),
        )
    if stripped == TIMEOUT_MARKER:
        return TerminalEvent(EventKind.TIMED_OUT)
    return None
