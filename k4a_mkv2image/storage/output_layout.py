"""Output directory layout: ``<root>/<stream>/<seq>_<timestamp>.<ext>``."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable

from k4a_mkv2image.core.errors import StartupError
from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger
from k4a_mkv2image.pipeline.stream import StreamKind

SEQUENCE_WIDTH = 6
TIMESTAMP_WIDTH = 11


def frame_filename(sequence: int, timestamp_usec: int, extension: str) -> str:
    """e.g. ``000000_00000123456.jpg``."""
    if sequence < 0:
        raise ValueError("sequence must be non-negative")
    return f"{sequence:0{SEQUENCE_WIDTH}d}_{timestamp_usec:0{TIMESTAMP_WIDTH}d}.{extension}"


@dataclass(slots=True)
class OutputLayout:
    """Resolved output root plus one sub-directory per enabled stream."""

    root: Path
    kinds: tuple[StreamKind, ...]
    stream_dirs: Dict[StreamKind, Path] = field(default_factory=dict)

    @classmethod
    def for_streams(cls, root: Path, kinds: Iterable[StreamKind]) -> "OutputLayout":
        return cls(root=Path(root), kinds=tuple(kinds))

    def create(self, *, logger: LoggerLike = None) -> "OutputLayout":
        """Create the root and stream directories; the root must not exist yet."""

        log = ensure_structured_logger(logger, fallback_name=__name__)
        try:
            self.root.mkdir(parents=True, exist_ok=False)
        except FileExistsError as exc:
            raise StartupError(f"failed to create root directory (already exists): {self.root}") from exc
        except OSError as exc:
            raise StartupError(f"failed to create root directory {self.root}: {exc}") from exc

        for kind in self.kinds:
            sub_directory = self.root / kind.value
            try:
                sub_directory.mkdir()
            except OSError as exc:
                raise StartupError(f"failed to create sub directory ({kind.value}): {exc}") from exc
            self.stream_dirs[kind] = sub_directory

        log.info("Output directory %s (%s)", self.root, ", ".join(k.value for k in self.kinds))
        return self

    def stream_dir(self, kind: StreamKind) -> Path:
        try:
            return self.stream_dirs[kind]
        except KeyError:
            raise KeyError(f"no output directory for {kind.value}; call create() first") from None


__all__ = ["OutputLayout", "frame_filename", "SEQUENCE_WIDTH", "TIMESTAMP_WIDTH"]
