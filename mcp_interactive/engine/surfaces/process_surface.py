"""Presentation surface backed by an external GUI process.

Dialog parameters are handed over as DIALOG_* environment variables
(never argv), the process's stdout is read line by line and classified
with the surface line protocol, and its stderr is forwarded to the log.

Uses asyncio.create_subprocess_exec (array-based, no shell) for safe
argument passing.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator, Mapping

from ..errors import SurfaceSpawnError
from ..models import (
    DialogParameters,
    EventCallback,
    EventKind,
    ExitCallback,
)
from .base import PresentationSurface
from .protocol import parse_output_line

logger = logging.getLogger(__name__)

# Markers that make a child believe it runs inside an IDE host or as a
# plain language runtime rather than as a standalone GUI app.
HOST_ENV_MARKERS = (
    "VSCODE_PID",
    "VSCODE_CWD",
    "CURSOR_PID",
    "CURSOR_CWD",
    "ELECTRON_RUN_AS_NODE",
)
STANDALONE_ENV = {
    "ELECTRON_IS_DEV": "0",
    "NODE_ENV": "production",
}

# Replies are a single line but may carry a long pasted answer.
_STDOUT_LINE_LIMIT = 1024 * 1024
_STDOUT_CHUNK_SIZE = 64 * 1024


async def _iter_stdout_lines(
    stream: asyncio.StreamReader,
    pid: int,
) -> AsyncIterator[bytes]:
    """Yield complete stdout lines, dropping any longer than the limit.

    An oversized line is discarded through its terminating newline, so
    its tail is never mistaken for a line of its own.
    """
    buffer = bytearray()
    discarding = False
    while True:
        chunk = await stream.read(_STDOUT_CHUNK_SIZE)
        if not chunk:
            if buffer and not discarding:
                yield bytes(buffer)
            return
        buffer += chunk
        while True:
            newline = buffer.find(b"\n")
            if newline < 0:
                if not discarding and len(buffer) > _STDOUT_LINE_LIMIT:
                    _log_dropped_line(pid, buffer)
                    discarding = True
                if discarding:
                    buffer.clear()
                break
            line = bytes(buffer[:newline + 1])
            del buffer[:newline + 1]
            if discarding:
                discarding = False
                continue
            if len(line) > _STDOUT_LINE_LIMIT:
                _log_dropped_line(pid, line)
                continue
            yield line


def _log_dropped_line(pid: int, head: bytes | bytearray) -> None:
    logger.error(
        "Dropped stdout line over %d bytes from surface pid=%s "
        "(starts %r); a reply in it is lost",
        _STDOUT_LINE_LIMIT, pid, bytes(head[:40]),
    )


def build_dialog_env(
    params: DialogParameters,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the child environment carrying *params*."""
    env = dict(os.environ if base_env is None else base_env)
    for key in HOST_ENV_MARKERS:
        env.pop(key, None)
    env.update(STANDALONE_ENV)
    env.update({
        "DIALOG_PROJECT_NAME": params.context_label,
        "DIALOG_MESSAGE": params.prompt_text,
        "DIALOG_PREDEFINED_OPTIONS": json.dumps(
            list(params.options), separators=(",", ":"),
        ),
        "DIALOG_TIMEOUT": str(params.timeout_seconds),
        "DIALOG_TEXTAREA_HEIGHT": (
            str(params.response_area_height)
            if params.response_area_height is not None else ""
        ),
    })
    return env


class ProcessPresentationSurface(PresentationSurface):
    """Runs one external dialog process at a time."""

    def __init__(
        self,
        command: list[str],
        *,
        cwd: str | None = None,
        terminate_grace_seconds: float = 2.0,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        if not command:
            raise ValueError("Presentation surface command must not be empty")
        self._command = list(command)
        self._cwd = cwd
        self._terminate_grace = max(0.0, terminate_grace_seconds)
        self._base_env = base_env
        self._process: asyncio.subprocess.Process | None = None
        self._session_id: str | None = None
        self._tasks: list[asyncio.Task] = []

    @property
    def command(self) -> list[str]:
        return list(self._command)

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def spawn(
        self,
        params: DialogParameters,
        session_id: str,
        on_event: EventCallback,
        on_exit: ExitCallback,
    ) -> None:
        # Close existing process if any
        await self.terminate()

        env = build_dialog_env(params, self._base_env)
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._cwd,
                env=env,
            )
        except (OSError, ValueError) as exc:
            # ValueError: NUL byte or unencodable text in a DIALOG_* value.
            logger.error(
                "Failed to start presentation surface %s (cwd=%s): %s",
                self._command, self._cwd, exc,
                exc_info=True,
            )
            raise SurfaceSpawnError(self._command, str(exc)) from exc

        self._process = proc
        self._session_id = session_id
        logger.info(
            "Presentation surface started pid=%s session=%s timeout=%ss options=%d",
            proc.pid,
            session_id[:12],
            params.timeout_seconds,
            len(params.options),
        )
        self._tasks = [
            asyncio.create_task(
                self._pump_stdout(proc, session_id, on_event, on_exit),
                name=f"dialog-stdout-{session_id[:8]}",
            ),
            asyncio.create_task(
                self._pump_stderr(proc),
                name=f"dialog-stderr-{session_id[:8]}",
            ),
        ]

    async def terminate(self) -> None:
        proc = self._process
        tasks = self._tasks
        session_id = self._session_id
        self._process = None
        self._session_id = None
        self._tasks = []

        if proc is not None and proc.returncode is None:
            logger.info(
                "Terminating presentation surface pid=%s session=%s",
                proc.pid, (session_id or "")[:12],
            )
            try:
                proc.terminate()
            except ProcessLookupError:
                pass
            else:
                try:
                    await asyncio.wait_for(
                        proc.wait(), timeout=self._terminate_grace,
                    )
                except asyncio.TimeoutError:
                    logger.warning(
                        "Presentation surface pid=%s did not exit after "
                        "SIGTERM, sending SIGKILL",
                        proc.pid,
                    )
                    try:
                        proc.kill()
                    except ProcessLookupError:
                        pass
                    await proc.wait()

        current = asyncio.current_task()
        pending = [t for t in tasks if t is not current and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def kill_now(self) -> None:
        proc = self._process
        if proc is None or proc.returncode is not None:
            return
        logger.warning("Killing presentation surface pid=%s", proc.pid)
        try:
            proc.kill()
        except ProcessLookupError:
            pass

    async def _pump_stdout(
        self,
        proc: asyncio.subprocess.Process,
        session_id: str,
        on_event: EventCallback,
        on_exit: ExitCallback,
    ) -> None:
        """Classify stdout lines in stream order until EOF, then report exit."""
        assert proc.stdout is not None
        saw_terminal_event = False
        async for raw in _iter_stdout_lines(proc.stdout, proc.pid):
            line = raw.decode("utf-8", errors="replace")
            event = parse_output_line(line)
            if event is None:
                logger.debug("Surface output ignored: %s", line.rstrip())
                continue
            if event.kind != EventKind.CLOSED:
                saw_terminal_event = True
            else:
                logger.debug("Dialog window closed (session=%s)", session_id[:12])
            on_event(session_id, event)

        returncode = await proc.wait()
        logger.info(
            "Presentation surface pid=%s closed with code %s",
            proc.pid, returncode,
        )
        if self._process is not proc:
            # Terminated or replaced by us; the owner already knows.
            return
        self._process = None
        self._session_id = None
        on_exit(session_id, returncode, saw_terminal_event)

    async def _pump_stderr(self, proc: asyncio.subprocess.Process) -> None:
        assert proc.stderr is not None
        while True:
            try:
                raw = await proc.stderr.readline()
            except ValueError:
                continue
            if not raw:
                break
            text = raw.decode("utf-8", errors="replace").rstrip()
            if text:
                logger.warning("Surface stderr: %s", text)
