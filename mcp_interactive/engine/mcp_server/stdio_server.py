"""Stdio MCP server exposing human-in-the-loop dialog tools.

An MCP client calls ask_user or request_user_confirmation; the server
pops up the presentation surface, waits for the human, and returns
their reply as the tool result.

Usage:
    # Via the client's MCP server config (recommended)
    # Or manually:
    mcp-interactive
    mcp-interactive --timeout 120
    python -m mcp_interactive.engine.mcp_server.stdio_server \
        --config ~/.mcp-interactive/config.yaml
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Callable
from contextlib import asynccontextmanager
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from ..config import BridgeConfig, parse_timeout
from ..process_cleanup import cleanup_stale_surface_processes
from ..session_manager import DialogSessionManager
from ..surfaces.process_surface import ProcessPresentationSurface
from ..yaml_config import load_yaml_config
from .tools import DialogTools

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-interactive"
SERVER_VERSION = "0.0.1"

# Parsed CLI args, set in main() before server starts
_parsed_args: argparse.Namespace | None = None

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI args for the MCP server process."""
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="MCP server that asks a human through a pop-up dialog",
    )
    parser.add_argument(
        "--timeout", "-t",
        default=None,
        help=(
            "Default dialog timeout in seconds for ask_user "
            "(default: 60). Also reads MCP_INTERACTIVE_TIMEOUT."
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help=(
            "YAML config file. "
            "Also reads MCP_INTERACTIVE_CONFIG_FILE env var."
        ),
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> BridgeConfig:
    """Resolve config with precedence CLI > YAML > env > defaults."""
    config = BridgeConfig.from_env()
    config_file = args.config or os.getenv("MCP_INTERACTIVE_CONFIG_FILE")
    if config_file:
        logger.info(
            "Config source: %s (from %s)",
            config_file,
            "--config" if args.config else "MCP_INTERACTIVE_CONFIG_FILE env",
        )
        config = load_yaml_config(config_file, base=config)
    if args.timeout is not None:
        config.default_timeout_seconds = parse_timeout(args.timeout)
    if args.verbose:
        config.log_level = "DEBUG"
    return config


def _configure_logging(level_name: str) -> None:
    """Send logs to stderr at *level_name*; stdout is the stdio transport."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    has_stderr = any(
        isinstance(h, logging.StreamHandler)
        and getattr(h, "stream", None) is sys.stderr
        for h in root.handlers
    )
    if not has_stderr:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def handle_shutdown_signal(
    signum: int,
    manager: DialogSessionManager,
    exit_fn: Callable[[int], object] = os._exit,
) -> None:
    """Kill the dialog and leave at once.

    The stdio transport reads stdin on a worker thread, so an orderly
    interpreter shutdown would block until the client closes the pipe.
    """
    try:
        name = signal.Signals(signum).name
    except ValueError:
        name = str(signum)
    logger.info("Received %s, shutting down...", name)
    manager.terminate_now()
    for handler in logging.getLogger().handlers:
        handler.flush()
    exit_fn(0)


def _install_signal_handlers(manager: DialogSessionManager) -> Callable[[], None]:
    """Route SIGINT/SIGTERM to handle_shutdown_signal; return an undo hook."""
    loop = asyncio.get_running_loop()
    installed: list[int] = []
    previous: dict[int, object] = {}
    for sig in _SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, handle_shutdown_signal, sig, manager)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            previous[sig] = signal.signal(
                sig, lambda s, _frame: handle_shutdown_signal(s, manager),
            )

    def _restore() -> None:
        for sig in installed:
            loop.remove_signal_handler(sig)
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return _restore


def _reap_stale_surfaces(config: BridgeConfig) -> None:
    try:
        killed = cleanup_stale_surface_processes(
            config.surface_command, log=logger.info,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.warning("Stale surface cleanup skipped (non-fatal): %s", exc)
        return
    if killed:
        logger.info("Reaped %d stale presentation surface(s)", killed)


@asynccontextmanager
async def dialog_lifespan(server: FastMCP):
    """Initialize dialog state for the server lifetime.

    Creates: BridgeConfig, ProcessPresentationSurface,
    DialogSessionManager, DialogTools.

    Yields context dict accessible via ctx.request_context.lifespan_context
    in tool handlers.
    """
    global _parsed_args
    if _parsed_args is None:
        _parsed_args = _parse_args()

    config = build_config(_parsed_args)
    _configure_logging(config.log_level)

    if config.reap_stale_surfaces:
        _reap_stale_surfaces(config)

    surface = ProcessPresentationSurface(
        config.surface_command,
        cwd=config.surface_cwd,
        terminate_grace_seconds=config.terminate_grace_seconds,
    )
    manager = DialogSessionManager(surface)
    dialog_tools = DialogTools(manager, config)
    restore_signals = _install_signal_handlers(manager)

    logger.info(
        "MCP Interactive server started (timeout=%ss, surface=%s)",
        config.default_timeout_seconds,
        " ".join(config.surface_command),
    )

    try:
        yield {
            "config": config,
            "manager": manager,
            "dialog_tools": dialog_tools,
        }
    finally:
        restore_signals()
        await manager.shutdown()
        logger.info("MCP Interactive server shut down")


# Create the FastMCP instance
mcp = FastMCP(
    name=SERVER_NAME,
    instructions=(
        "Tools for asking the human operator directly. Use ask_user "
        "when you need a decision or clarification, optionally with "
        "predefined options. Use request_user_confirmation to present "
        "a summary of completed work for final sign-off. If the result "
        "says the user did not reply or replied with empty input, call "
        "the tool again."
    ),
    lifespan=dialog_lifespan,
)

# Register dialog tools
from .dialog_tools import register_tools  # noqa: E402

register_tools(mcp)


def main() -> None:
    """Entry point for the MCP server."""
    global _parsed_args
    _parsed_args = _parse_args()
    # Best-effort persistent logging for debugging stdio stream closures.
    try:
        log_dir = Path.home() / ".mcp-interactive" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"stdio-{os.getpid()}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root = logging.getLogger()
        root.setLevel(logging.INFO)
        root.addHandler(file_handler)
        logger.info(
            "Starting stdio MCP server (pid=%s, argv=%s)", os.getpid(), sys.argv
        )
    except OSError:
        pass

    try:
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal stdio MCP server error (pid=%s)", os.getpid())
        raise


if __name__ == "__main__":
    main()
