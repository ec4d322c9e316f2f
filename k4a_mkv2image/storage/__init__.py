"""Output directory layout and disk checks."""

from .disk_guard import DiskGuard
from .output_layout import OutputLayout, frame_filename

__all__ = ["DiskGuard", "OutputLayout", "frame_filename"]
