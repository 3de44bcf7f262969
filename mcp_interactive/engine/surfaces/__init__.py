"""Presentation surfaces: where dialogs are shown to a human."""
from .base import PresentationSurface
from .process_surface import ProcessPresentationSurface, build_dialog_env
from .protocol import parse_output_line

__all__ = [
    "PresentationSurface",
    "ProcessPresentationSurface",
    "build_dialog_env",
    "parse_output_line",
]
