from __future__ import annotations

import pytest

from mcp_interactive.engine.models import EventKind, OutcomeKind, TerminalEvent
from mcp_interactive.engine.resolver import classify_event
from mcp_interactive.engine.surfaces.protocol import parse_output_line


def test_text_line_is_trimmed() -> None:
    event = parse_output_line("TEXT_FROM_RENDERER:  use option b  \n")
    assert event == TerminalEvent(EventKind.TEXT_REPLY, "use option b")


def test_text_payload_keeps_inner_colons() -> None:
    event = parse_output_line("TEXT_FROM_RENDERER:a: b")
    assert event is not None
    assert event.text == "a: b"


def test_markers_tolerate_surrounding_whitespace() -> None:
    assert parse_output_line("  DIALOG_TIMEOUT\r\n") == TerminalEvent(EventKind.TIMED_OUT)
    assert parse_output_line("DIALOG_CLOSED\n") == TerminalEvent(EventKind.CLOSED)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "\n",
        "[main] window ready",
        "DIALOG_TIMEOUT_SOON",
        "text_from_renderer:lowercase",
        "prefix TEXT_FROM_RENDERER:x",
    ],
)
def test_noise_lines_are_ignored(line: str) -> None:
    assert parse_output_line(line) is None


def test_timeout_classifies_as_timed_out() -> None:
    outcome = classify_event(TerminalEvent(EventKind.TIMED_OUT))
    assert outcome is not None
    assert outcome.kind == OutcomeKind.TIMED_OUT
    assert outcome.message == (
        "User did not reply: Timeout occurred. Retry calling the function."
    )


@pytest.mark.parametrize("payload", ["", "   ", "\t \t"])
def test_blank_reply_is_empty_never_replied(payload: str) -> None:
    outcome = classify_event(TerminalEvent(EventKind.TEXT_REPLY, payload))
    assert outcome is not None
    assert outcome.kind == OutcomeKind.EMPTY_REPLY
    assert outcome.message == (
        "User replied with empty input. Retry calling the function."
    )


def test_whitespace_payload_parsed_from_line_is_empty_reply() -> None:
    event = parse_output_line("TEXT_FROM_RENDERER:   ")
    assert event is not None
    outcome = classify_event(event)
    assert outcome is not None
    assert outcome.kind == OutcomeKind.EMPTY_REPLY


def test_reply_outcome_carries_text() -> None:
    outcome = classify_event(TerminalEvent(EventKind.TEXT_REPLY, "ship it"))
    assert outcome is not None
    assert outcome.kind == OutcomeKind.REPLIED
    assert outcome.text == "ship it"
    assert outcome.message == "User replied: ship it"


def test_closed_has_no_outcome() -> None:
    assert classify_event(TerminalEvent(EventKind.CLOSED)) is None
