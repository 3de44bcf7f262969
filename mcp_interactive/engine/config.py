"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via MCP_INTERACTIVE_*
env vars, a YAML file (see yaml_config.py), or CLI flags.
"""
from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_CONFIRMATION_TEXTAREA_HEIGHT = 300
DEFAULT_SURFACE_COMMAND = ("electron", "electron-main.cjs")

_TRUTHY = {"1", "true", "yes", "on"}


def parse_timeout(value: object, default: int = DEFAULT_TIMEOUT_SECONDS) -> int:
    """Parse a timeout flag the lenient way the dialog CLI always has.

    Anything that is not a positive integer (garbage, empty, zero,
    negative) falls back to *default*. Trailing junk after leading
    digits is ignored, so "45s" reads as 45.
    """
    text = str(value).strip() if value is not None else ""
    digits = ""
    for ch in text:
        if ch not in "0123456789":
            break
        digits += ch
    if not digits:
        return default
    parsed = int(digits)
    return parsed if parsed > 0 else default


@dataclass
class BridgeConfig:
    """Dialog bridge configuration."""

    # Applied to every ask_user call. request_user_confirmation
    # always runs without a timeout.
    default_timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    # Response-area height hint for request_user_confirmation.
    confirmation_textarea_height: int = DEFAULT_CONFIRMATION_TEXTAREA_HEIGHT

    # Presentation surface launch command (argv, no shell).
    surface_command: list[str] = field(
        default_factory=lambda: list(DEFAULT_SURFACE_COMMAND)
    )
    # Working directory for the surface process. None = inherit.
    surface_cwd: str | None = None
    # SIGTERM -> SIGKILL escalation window when superseding a dialog.
    terminate_grace_seconds: float = 2.0
    # Opt-in. SIGTERMs orphaned processes whose argv matches
    # surface_command, including ones this server never started.
    reap_stale_surfaces: bool = False

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> BridgeConfig:
        """Load configuration from MCP_INTERACTIVE_* environment variables."""
        env_vars = {
            k: v for k, v in os.environ.items()
            if k.startswith("MCP_INTERACTIVE_")
        }
        if env_vars:
            logger.info(
                "BridgeConfig.from_env: env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(env_vars.items())),
            )
        else:
            logger.debug("BridgeConfig.from_env: no env overrides, using defaults")

        raw_command = os.getenv("MCP_INTERACTIVE_SURFACE_COMMAND", "").strip()
        config = cls(
            default_timeout_seconds=parse_timeout(
                os.getenv("MCP_INTERACTIVE_TIMEOUT"),
                cls.default_timeout_seconds,
            ),
            confirmation_textarea_height=int(os.getenv(
                "MCP_INTERACTIVE_CONFIRMATION_HEIGHT",
                str(cls.confirmation_textarea_height),
            )),
            surface_command=(
                shlex.split(raw_command)
                if raw_command else list(DEFAULT_SURFACE_COMMAND)
            ),
            surface_cwd=os.getenv("MCP_INTERACTIVE_SURFACE_CWD") or None,
            terminate_grace_seconds=float(os.getenv(
                "MCP_INTERACTIVE_TERMINATE_GRACE",
                str(cls.terminate_grace_seconds),
            )),
            reap_stale_surfaces=(
                os.getenv("MCP_INTERACTIVE_REAP_STALE", "0").lower() in _TRUTHY
            ),
            log_level=os.getenv("MCP_INTERACTIVE_LOG_LEVEL", cls.log_level),
        )
        logger.info(
            "BridgeConfig.from_env: timeout=%ss surface=%s cwd=%s log_level=%s",
            config.default_timeout_seconds,
            " ".join(config.surface_command),
            config.surface_cwd,
            config.log_level,
        )
        return config
