"""MCP tool implementations for human-in-the-loop dialogs.

DialogTools is the protocol-facing dispatcher: it validates a tool
call's arguments, turns them into DialogParameters, starts a dialog
through the DialogSessionManager and suspends until that dialog's
single Outcome arrives.

ERROR MODEL:
- Unknown tool names and missing/malformed arguments raise
  (UnsupportedToolError, DialogValidationError) before any surface
  is started.
- Failures of the dialog itself (surface would not start, dialog
  superseded, surface exited without a reply) come back as an error
  result. They end the current call only.
- Timeout and empty input are ordinary results asking the caller to
  retry.
"""
from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from ..errors import (
    DialogError,
    DialogValidationError,
    UnsupportedToolError,
)
from ..models import DialogParameters
from .tool_definitions import (
    ASK_USER,
    REQUEST_USER_CONFIRMATION,
    get_required_fields,
    get_tool_definition,
)

if TYPE_CHECKING:
    from ..config import BridgeConfig
    from ..session_manager import DialogSessionManager

logger = logging.getLogger(__name__)


def _text(text: str) -> dict[str, Any]:
    """Format a successful text response."""
    return {"content": [{"type": "text", "text": text}]}


def _error(text: str) -> dict[str, Any]:
    """Format an error response."""
    return {
        "content": [{"type": "text", "text": f"ERROR: {text}"}],
        "is_error": True,
    }


def _require_string(arguments: dict[str, Any], field: str) -> str:
    value = arguments.get(field)
    if value is None:
        raise DialogValidationError(field, "is required")
    if not isinstance(value, str):
        raise DialogValidationError(
            field, f"must be a string, got {type(value).__name__}"
        )
    return value


def _optional_string_list(arguments: dict[str, Any], field: str) -> list[str]:
    value = arguments.get(field)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise DialogValidationError(
            field, f"must be an array of strings, got {type(value).__name__}"
        )
    for item in value:
        if not isinstance(item, str):
            raise DialogValidationError(
                field, f"must contain only strings, got {type(item).__name__}"
            )
    return list(value)


class DialogTools:
    """Tool handlers bound to one session manager and config."""

    def __init__(
        self,
        manager: DialogSessionManager,
        config: BridgeConfig,
    ) -> None:
        self._manager = manager
        self._config = config

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None,
    ) -> dict[str, Any]:
        """Dispatch a tool call by name."""
        if get_tool_definition(name) is None:
            raise UnsupportedToolError(name)
        arguments = arguments or {}
        for field in get_required_fields(name):
            if arguments.get(field) is None:
                raise DialogValidationError(field, "is required")

        if name == ASK_USER:
            return await self.ask_user(
                _require_string(arguments, "projectName"),
                _require_string(arguments, "message"),
                _optional_string_list(arguments, "predefinedOptions"),
            )
        if name == REQUEST_USER_CONFIRMATION:
            return await self.request_user_confirmation(
                _require_string(arguments, "projectName"),
                _require_string(arguments, "summary"),
            )
        raise UnsupportedToolError(name)

    # ── ask_user ────────────────────────────────────────────────

    async def ask_user(
        self,
        project_name: str,
        message: str,
        predefined_options: list[str] | None = None,
    ) -> dict[str, Any]:
        """Ask an open question, optionally with clickable options."""
        params = DialogParameters(
            context_label=project_name,
            prompt_text=message,
            options=tuple(predefined_options or ()),
            timeout_seconds=self._config.default_timeout_seconds,
        )
        return await self._run_dialog(params)

    # ── request_user_confirmation ───────────────────────────────

    async def request_user_confirmation(
        self,
        project_name: str,
        summary: str,
    ) -> dict[str, Any]:
        """Ask for sign-off on a work summary. Never times out."""
        params = DialogParameters(
            context_label=project_name,
            prompt_text=summary,
            timeout_seconds=0,
            response_area_height=self._config.confirmation_textarea_height,
        )
        return await self._run_dialog(params)

    async def _run_dialog(self, params: DialogParameters) -> dict[str, Any]:
        try:
            pending = await self._manager.start_session(params)
            outcome = await pending
        except DialogError as exc:
            logger.error("Dialog failed for project %r: %s", params.context_label, exc)
            return _error(f"Failed to show dialog: {exc}")
        return _text(outcome.message)
