"""Owns the single in-flight dialog and its presentation surface.

At any instant there is at most one PendingDialog and at most one
live surface process, and they belong together. Starting a new dialog
supersedes the old one: its surface is closed first, then its caller
is failed with DialogSupersededError.

Surface callbacks carry the session_id they were spawned with. An
event for any session other than the pending one (a superseded
process flushing its last lines, or a duplicate terminal line) is
dropped, so the first terminal event wins and a record is only ever
resolved from its own stream.

Everything runs on one event loop; no locking.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .errors import (
    DialogAbandonedError,
    DialogError,
    DialogStateError,
    DialogSupersededError,
)
from .models import DialogParameters, Outcome, PendingDialog, TerminalEvent
from .resolver import classify_event
from .surfaces.base import PresentationSurface

logger = logging.getLogger(__name__)


class DialogSessionManager:
    """Correlates one caller at a time with one presentation surface."""

    def __init__(
        self,
        surface: PresentationSurface,
        classify: Callable[[TerminalEvent], Outcome | None] = classify_event,
    ) -> None:
        self._surface = surface
        self._classify = classify
        self._pending: dict[str, PendingDialog] = {}

    @property
    def surface(self) -> PresentationSurface:
        return self._surface

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    @property
    def current_session_id(self) -> str | None:
        return next(iter(self._pending), None)

    async def start_session(
        self, params: DialogParameters,
    ) -> asyncio.Future[Outcome]:
        """Show a dialog for *params* and return its unresolved outcome.

        Raises SurfaceSpawnError if the surface cannot be started. No
        record is left pending when spawn raises, whatever the error.
        """
        await self._supersede_current()
        if self._pending:
            raise DialogStateError(list(self._pending))

        loop = asyncio.get_running_loop()
        record = PendingDialog(future=loop.create_future(), params=params)
        self._pending[record.session_id] = record
        logger.info(
            "Dialog session %s started (project=%r, timeout=%ss)",
            record.session_id[:12],
            params.context_label,
            params.timeout_seconds,
        )

        try:
            await self._surface.spawn(
                params,
                record.session_id,
                self._on_surface_event,
                self._on_surface_exit,
            )
        except BaseException:
            # Includes cancellation while the previous surface closes.
            self._pending.pop(record.session_id, None)
            if not record.future.done():
                record.future.cancel()
            raise
        return record.future

    async def shutdown(self) -> None:
        """Close the surface and fail whatever dialog is still waiting."""
        await self._surface.terminate()
        for session_id in list(self._pending):
            self._fail(
                session_id,
                DialogAbandonedError(session_id, "server shutting down"),
            )

    def terminate_now(self) -> None:
        """Kill the surface immediately. Pending dialogs are not resolved."""
        self._surface.kill_now()

    async def _supersede_current(self) -> None:
        if not self._pending and not self._surface.is_running:
            return
        await self._surface.terminate()
        for session_id in list(self._pending):
            logger.warning(
                "Dialog session %s superseded before a reply arrived",
                session_id[:12],
            )
            self._fail(session_id, DialogSupersededError(session_id))

    # ── surface callbacks ───────────────────────────────────────

    def _on_surface_event(self, session_id: str, event: TerminalEvent) -> None:
        record = self._pending.get(session_id)
        if record is None:
            logger.debug(
                "Ignoring %s for inactive dialog session %s",
                event.kind.value, session_id[:12],
            )
            return

        outcome = self._classify(event)
        if outcome is None:
            logger.debug(
                "Event %s leaves dialog session %s pending",
                event.kind.value, session_id[:12],
            )
            return

        del self._pending[session_id]
        if record.future.done():
            return
        record.future.set_result(outcome)
        logger.info(
            "Dialog session %s resolved: %s",
            session_id[:12], outcome.kind.value,
        )

    def _on_surface_exit(
        self,
        session_id: str,
        returncode: int | None,
        saw_terminal_event: bool,
    ) -> None:
        if session_id not in self._pending:
            return
        logger.warning(
            "Presentation surface for session %s exited (code %s) "
            "without a reply (terminal_event_seen=%s)",
            session_id[:12], returncode, saw_terminal_event,
        )
        self._fail(
            session_id,
            DialogAbandonedError(
                session_id,
                f"presentation surface exited with code {returncode}",
            ),
        )

    def _fail(self, session_id: str, error: DialogError) -> None:
        record = self._pending.pop(session_id, None)
        if record is None or record.future.done():
            return
        record.future.set_exception(error)
