"""Exception hierarchy for the dialog bridge.

Validation and dispatch errors are raised synchronously to the caller.
Session failures (DialogError subclasses) are delivered through the
pending dialog's future so a waiting tool call never hangs on them.
"""
from __future__ import annotations


class InteractiveError(Exception):
    """Base exception for all dialog bridge errors."""


class DialogValidationError(InteractiveError):
    """A tool call is missing a required field or has a malformed one."""
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid argument '{field}': {reason}")


class UnsupportedToolError(InteractiveError):
    """The requested tool name is not served by this bridge."""
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class DialogError(InteractiveError):
    """Base for failures of a running or starting dialog session."""


class SurfaceSpawnError(DialogError):
    """The presentation process could not be started."""
    def __init__(self, command: list[str], reason: str):
        self.command = list(command)
        self.reason = reason
        super().__init__(
            f"Failed to start presentation surface "
            f"{' '.join(self.command)!r}: {reason}"
        )


class DialogSupersededError(DialogError):
    """A newer dialog replaced this one before it produced a reply."""
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            f"Dialog {session_id[:12]} was superseded by a newer dialog"
        )


class DialogAbandonedError(DialogError):
    """The dialog ended without a reply (process exit or shutdown)."""
    def __init__(self, session_id: str, reason: str):
        self.session_id = session_id
        self.reason = reason
        super().__init__(
            f"Dialog {session_id[:12]} ended without a reply: {reason}"
        )


class DialogStateError(DialogError):
    """The single-pending-dialog invariant was violated."""
    def __init__(self, pending: list[str]):
        self.pending = list(pending)
        super().__init__(
            "Cannot start a dialog while another is still pending: "
            + ", ".join(p[:12] for p in self.pending)
        )
