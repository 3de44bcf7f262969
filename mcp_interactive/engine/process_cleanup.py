"""Best-effort cleanup for stale presentation surface processes.

Targets dialog windows that were spawned by a previous server process
but outlived it (crash, SIGKILL), which would otherwise stay on screen
with nobody reading their output.
"""

from __future__ import annotations

import os
import re
import signal
import subprocess
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    ppid: int
    args: str


_SERVER_SIGNATURES = (
    "mcp-interactive",
    "mcp_interactive.engine.mcp_server.stdio_server",
)


def _list_processes() -> dict[int, ProcessInfo]:
    """Return process table keyed by PID using `ps` output."""
    out = subprocess.check_output(
        ["ps", "-eo", "pid=,ppid=,args="],
        text=True,
        stderr=subprocess.DEVNULL,
    )
    table: dict[int, ProcessInfo] = {}
    for line in out.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split(maxsplit=2)
        if len(parts) < 3:
            continue
        try:
            pid = int(parts[0])
            ppid = int(parts[1])
        except ValueError:
            continue
        table[pid] = ProcessInfo(pid=pid, ppid=ppid, args=parts[2])
    return table


def surface_signature(command: list[str]) -> re.Pattern[str]:
    """Regex matching a process started from *command*.

    Each argv token must appear in order; directories are ignored so
    an absolute and a relative launch path both match.
    """
    tokens = [os.path.basename(tok) or tok for tok in command]
    return re.compile(".*".join(re.escape(tok) for tok in tokens))


def _has_server_ancestor(
    proc: ProcessInfo,
    table: dict[int, ProcessInfo],
    current_pid: int,
) -> bool:
    """True when the process still descends from a live dialog server."""
    cur = proc
    hops = 0
    while hops < 32:
        if cur.pid == current_pid:
            return True
        if cur.pid != proc.pid and any(
            sig in cur.args for sig in _SERVER_SIGNATURES
        ):
            return True
        parent = table.get(cur.ppid)
        if parent is None:
            return False
        cur = parent
        hops += 1
    return False


def cleanup_stale_surface_processes(
    command: list[str],
    *,
    current_pid: int | None = None,
    log: Callable[[str], None] | None = None,
) -> int:
    """Kill orphaned presentation surface processes.

    Process is considered stale only when:
    - it matches the surface command signature, and
    - it has no dialog server ancestry, and
    - it is orphaned (parent is PID 1 or parent is missing).
    """
    pid = current_pid or os.getpid()
    logger = log or (lambda _: None)
    pattern = surface_signature(command)
    table = _list_processes()
    killed = 0

    for proc in table.values():
        if proc.pid == pid:
            continue
        if not pattern.search(proc.args):
            continue

        parent_exists = proc.ppid in table
        is_orphan = (proc.ppid == 1) or (not parent_exists)
        if not is_orphan:
            continue

        if _has_server_ancestor(proc, table, pid):
            continue

        try:
            os.kill(proc.pid, signal.SIGTERM)
            killed += 1
            logger(
                f"Reaped stale surface process pid={proc.pid} "
                f"ppid={proc.ppid} cmd={proc.args[:180]}"
            )
        except ProcessLookupError:
            continue
        except PermissionError as exc:
            logger(
                f"Failed to reap stale surface pid={proc.pid}: "
                f"{type(exc).__name__}: {exc}"
            )

    return killed
