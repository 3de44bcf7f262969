"""Core data models for the dialog bridge.

All dataclasses, enums, and type aliases. Single source of truth
to avoid circular imports.
"""
from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class EventKind(str, Enum):
    """Terminal signals parsed from the presentation surface's stdout."""
    CLOSED = "closed"
    TEXT_REPLY = "text_reply"
    TIMED_OUT = "timed_out"


class OutcomeKind(str, Enum):
    """Normalized, caller-visible result of a dialog."""
    TIMED_OUT = "timed_out"
    EMPTY_REPLY = "empty_reply"
    REPLIED = "replied"


TIMEOUT_MESSAGE = (
    "User did not reply: Timeout occurred. Retry calling the function."
)
EMPTY_REPLY_MESSAGE = (
    "User replied with empty input. Retry calling the function."
)


def _make_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DialogParameters:
    """Everything the presentation surface needs to render one dialog.

    timeout_seconds == 0 means the surface waits indefinitely.
    """
    context_label: str
    prompt_text: str
    options: tuple[str, ...] = ()
    timeout_seconds: int = 0
    response_area_height: int | None = None

    def __post_init__(self) -> None:
        if self.timeout_seconds < 0:
            raise ValueError(
                f"timeout_seconds must be >= 0, got {self.timeout_seconds}"
            )
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "options", tuple(self.options))


@dataclass(frozen=True)
class TerminalEvent:
    """A classified line from the surface's output stream."""
    kind: EventKind
    text: str = ""


@dataclass(frozen=True)
class Outcome:
    """The single result a waiting tool call receives."""
    kind: OutcomeKind
    text: str = ""

    @property
    def message(self) -> str:
        if self.kind == OutcomeKind.TIMED_OUT:
            return TIMEOUT_MESSAGE
        if self.kind == OutcomeKind.EMPTY_REPLY:
            return EMPTY_REPLY_MESSAGE
        return f"User replied: {self.text}"


@dataclass
class PendingDialog:
    """Correlation record for the one in-flight dialog.

    The future is fulfilled exactly once, either with an Outcome or
    with a DialogError.
    """
    future: asyncio.Future[Outcome]
    params: DialogParameters
    session_id: str = field(default_factory=_make_id)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def resolved(self) -> bool:
        return self.future.done()


# Callbacks a surface uses to report back to the session manager.
# Both receive the session_id the surface was spawned with.
EventCallback = Callable[[str, TerminalEvent], None]
# (session_id, returncode, saw_terminal_event)
ExitCallback = Callable[[str, "int | None", bool], None]
