"""Typed run configuration for the extractor."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from k4a_mkv2image.core.config_loader import ConfigLoader
from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger

DEFAULT_QUALITY = 95
DEFAULT_DEPTH_MAX_MM = 5000
DEFAULT_INFRARED_SCALE = 0.5
DEFAULT_POLL_INTERVAL_S = 0.05
DEFAULT_MIN_FREE_GB = 1.0
INPUT_EXTENSION = ".mkv"

# Keys a ``--config`` file may set; values are typed against these defaults.
FILE_DEFAULTS: Dict[str, Any] = {
    "quality": DEFAULT_QUALITY,
    "depth_max_mm": DEFAULT_DEPTH_MAX_MM,
    "infrared_scale": DEFAULT_INFRARED_SCALE,
    "poll_interval_s": DEFAULT_POLL_INTERVAL_S,
    "min_free_gb": DEFAULT_MIN_FREE_GB,
}


def clamp_quality(value: int) -> int:
    return min(max(0, int(value)), 100)


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Immutable settings for a single extraction run."""

    input_path: Path
    output_root: Path
    scaling: bool = False
    transform: bool = False
    quality: int = DEFAULT_QUALITY
    display: bool = False
    enable_color: bool = False
    enable_depth: bool = False
    enable_infrared: bool = False
    depth_max_mm: int = DEFAULT_DEPTH_MAX_MM
    infrared_scale: float = DEFAULT_INFRARED_SCALE
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    min_free_gb: float = DEFAULT_MIN_FREE_GB

    def __post_init__(self) -> None:
        object.__setattr__(self, "quality", clamp_quality(self.quality))
        if self.depth_max_mm <= 0:
            raise ValueError("depth_max_mm must be positive")
        if self.poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be positive")

    def with_tracks(self, *, color: bool, depth: bool, infrared: bool) -> "RunConfig":
        """Return a copy bound to the recording's track configuration."""
        return replace(self, enable_color=color, enable_depth=depth, enable_infrared=infrared)

    @property
    def enabled_kinds(self) -> tuple[str, ...]:
        flags = (
            ("color", self.enable_color),
            ("depth", self.enable_depth),
            ("infrared", self.enable_infrared),
        )
        return tuple(name for name, enabled in flags if enabled)


def default_output_root(input_path: Path, output_dir: Optional[Path] = None) -> Path:
    """``<output_dir or input parent>/<input stem>``."""
    parent = Path(output_dir) if output_dir is not None else input_path.parent
    return parent / input_path.stem


def load_file_settings(config_path: Optional[Path], *, logger: LoggerLike = None) -> Dict[str, Any]:
    """Read overridable settings from an optional key=value config file."""

    log = ensure_structured_logger(logger, fallback_name=__name__)
    if config_path is None:
        return dict(FILE_DEFAULTS)
    settings = ConfigLoader.load(Path(config_path), FILE_DEFAULTS)
    log.debug("File settings: %s", settings)
    return settings


__all__ = [
    "DEFAULT_QUALITY",
    "DEFAULT_DEPTH_MAX_MM",
    "DEFAULT_INFRARED_SCALE",
    "FILE_DEFAULTS",
    "INPUT_EXTENSION",
    "RunConfig",
    "clamp_quality",
    "default_output_root",
    "load_file_settings",
]
