"""Abstract base for presentation surfaces.

A surface renders one dialog at a time somewhere a human can see it
and reports back through two callbacks bound to the session that
spawned it:

- on_event(session_id, TerminalEvent) for every classified output line
- on_exit(session_id, returncode, saw_terminal_event) once it is gone

The session manager owns the surface; nothing else starts or stops it.
"""
from __future__ import annotations

import abc

from ..models import DialogParameters, EventCallback, ExitCallback


class PresentationSurface(abc.ABC):
    """Abstract presentation surface interface.

    Implementations:
    - ProcessPresentationSurface: an external GUI process per dialog
    """

    @property
    @abc.abstractmethod
    def is_running(self) -> bool:
        """True while a dialog is being shown."""

    @abc.abstractmethod
    async def spawn(
        self,
        params: DialogParameters,
        session_id: str,
        on_event: EventCallback,
        on_exit: ExitCallback,
    ) -> None:
        """Show a dialog, replacing any dialog currently shown.

        Raises SurfaceSpawnError if the dialog cannot be started.
        """

    @abc.abstractmethod
    async def terminate(self) -> None:
        """Close the current dialog, if any. Idempotent."""

    @abc.abstractmethod
    def kill_now(self) -> None:
        """Synchronously kill the current dialog (signal handlers)."""
