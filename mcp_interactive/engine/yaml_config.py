"""YAML configuration loader.

Loads a single YAML file layered on top of env-derived settings.
Keys that are absent keep the value from the base config.

Example YAML:
    dialog:
      timeout_seconds: 120
      confirmation_textarea_height: 400

    surface:
      command: ["electron", "/opt/dialog/electron-main.cjs"]
      cwd: /opt/dialog
      terminate_grace_seconds: 1.5
      reap_stale: true

    log_level: DEBUG
"""
from __future__ import annotations

import logging
import shlex
from dataclasses import replace
from pathlib import Path

import yaml

from .config import BridgeConfig, parse_timeout

logger = logging.getLogger(__name__)


def _parse_command(value: object) -> list[str]:
    """Accept either an argv list or a shell-style command string."""
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, (list, tuple)):
        return [str(part) for part in value]
    raise ValueError(
        f"surface.command must be a string or a list, got {type(value).__name__}"
    )


def load_yaml_config(
    path: str | Path,
    base: BridgeConfig | None = None,
) -> BridgeConfig:
    """Load and parse a YAML config file.

    Values found in *path* override *base* (default: BridgeConfig()).
    Raises FileNotFoundError / yaml.YAMLError after logging them.
    """
    path = Path(path)
    base = base if base is not None else BridgeConfig()
    logger.info(
        "load_yaml_config: attempting to load config from %s (exists=%s)",
        path, path.exists()
    )
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error(
            "load_yaml_config: config file not found at %s (absolute path: %s)",
            path, path.absolute()
        )
        raise
    except yaml.YAMLError as exc:
        logger.error(
            "load_yaml_config: YAML parse error in %s: %s",
            path, exc
        )
        raise

    if not isinstance(raw, dict):
        raise ValueError(
            f"{path}: top level must be a mapping, got {type(raw).__name__}"
        )

    top_sections = sorted(raw.keys())
    logger.info(
        "Parsed YAML config %s, sections: %s",
        path.name, ", ".join(top_sections) if top_sections else "(empty)",
    )

    dialog_raw = raw.get("dialog", {}) or {}
    surface_raw = raw.get("surface", {}) or {}

    config = replace(base)
    if "timeout_seconds" in dialog_raw:
        config.default_timeout_seconds = parse_timeout(
            dialog_raw["timeout_seconds"], base.default_timeout_seconds,
        )
    if "confirmation_textarea_height" in dialog_raw:
        config.confirmation_textarea_height = int(
            dialog_raw["confirmation_textarea_height"]
        )
    if "command" in surface_raw:
        config.surface_command = _parse_command(surface_raw["command"])
    if "cwd" in surface_raw:
        config.surface_cwd = surface_raw["cwd"] or None
    if "terminate_grace_seconds" in surface_raw:
        config.terminate_grace_seconds = float(
            surface_raw["terminate_grace_seconds"]
        )
    if "reap_stale" in surface_raw:
        config.reap_stale_surfaces = bool(surface_raw["reap_stale"])
    if "log_level" in raw:
        config.log_level = str(raw["log_level"])

    if not config.surface_command:
        raise ValueError(f"{path}: surface.command must not be empty")

    return config
