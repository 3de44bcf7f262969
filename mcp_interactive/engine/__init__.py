"""Dialog bridge - correlates MCP tool calls with a human-facing dialog process."""
from .models import (
    DialogParameters,
    EventKind,
    Outcome,
    OutcomeKind,
    PendingDialog,
    TerminalEvent,
)
from .config import BridgeConfig
from .errors import (
    DialogAbandonedError,
    DialogError,
    DialogStateError,
    DialogSupersededError,
    DialogValidationError,
    InteractiveError,
    SurfaceSpawnError,
    UnsupportedToolError,
)
from .resolver import classify_event
from .session_manager import DialogSessionManager

__all__ = [
    # Models
    "DialogParameters",
    "EventKind",
    "Outcome",
    "OutcomeKind",
    "PendingDialog",
    "TerminalEvent",
    # Config
    "BridgeConfig",
    # Core
    "DialogSessionManager",
    "classify_event",
    # Errors
    "DialogAbandonedError",
    "DialogError",
    "DialogStateError",
    "DialogSupersededError",
    "DialogValidationError",
    "InteractiveError",
    "SurfaceSpawnError",
    "UnsupportedToolError",
]
