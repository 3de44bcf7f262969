from __future__ import annotations

import asyncio

import pytest

from mcp_interactive.engine.models import DialogParameters, TerminalEvent
from mcp_interactive.engine.surfaces.base import PresentationSurface
from mcp_interactive.engine.surfaces.protocol import parse_output_line


class FakeSurface(PresentationSurface):
    """In-memory surface: records spawns and lets tests play stdout lines."""

    def __init__(self) -> None:
        self.spawns: list[tuple[DialogParameters, str]] = []
        self.terminations = 0
        self.kills = 0
        self.fail_with: Exception | None = None
        self._running = False
        self._callbacks: dict[str, tuple] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    async def spawn(self, params, session_id, on_event, on_exit) -> None:
        await self.terminate()
        if self.fail_with is not None:
            raise self.fail_with
        self.spawns.append((params, session_id))
        self._callbacks[session_id] = (on_event, on_exit)
        self._running = True

    async def terminate(self) -> None:
        if self._running:
            self.terminations += 1
        self._running = False

    def kill_now(self) -> None:
        self.kills += 1
        self._running = False

    @property
    def last_params(self) -> DialogParameters:
        return self.spawns[-1][0]

    @property
    def last_session_id(self) -> str:
        return self.spawns[-1][1]

    def emit(self, line: str, session_id: str | None = None) -> None:
        sid = session_id or self.last_session_id
        event = parse_output_line(line)
        if event is not None:
            self.emit_event(event, sid)

    def emit_event(self, event: TerminalEvent, session_id: str) -> None:
        on_event, _ = self._callbacks[session_id]
        on_event(session_id, event)

    def exit(
        self,
        returncode: int = 0,
        session_id: str | None = None,
        saw_terminal_event: bool = False,
    ) -> None:
        sid = session_id or self.last_session_id
        _, on_exit = self._callbacks[sid]
        if sid == self.last_session_id:
            self._running = False
        on_exit(sid, returncode, saw_terminal_event)

    async def wait_for_spawns(self, count: int) -> None:
        for _ in range(100):
            if len(self.spawns) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(
            f"expected {count} spawn(s), saw {len(self.spawns)}"
        )


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()
