"""Sequential reader over an Azure Kinect ``.mkv`` recording.

Wraps ``pyk4a.PyK4APlayback``. The playback object is created through a
factory so tests (and alternative readers) can supply anything exposing the
same surface: ``open()``, ``close()``, ``configuration``, ``calibration`` and
``get_next_capture()`` raising ``EOFError`` once the container is exhausted.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, NamedTuple, Optional

import numpy as np

from k4a_mkv2image.core.errors import EndOfStream, StartupError
from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger

from .stream import StreamKind

# k4a_color_resolution_t -> (width, height)
COLOR_RESOLUTIONS: Dict[int, tuple[int, int]] = {
    1: (1280, 720),
    2: (1920, 1080),
    3: (2560, 1440),
    4: (2048, 1536),
    5: (3840, 2160),
    6: (4096, 3072),
}

# k4a_depth_mode_t -> (width, height); passive IR shares the unbinned wide geometry
DEPTH_MODES: Dict[int, tuple[int, int]] = {
    1: (320, 288),
    2: (640, 576),
    3: (512, 512),
    4: (1024, 1024),
    5: (1024, 1024),
}

# k4a_image_format_t values relevant to recorded color tracks
COLOR_FORMAT_MJPG = 0
COLOR_FORMAT_NV12 = 1
COLOR_FORMAT_YUY2 = 2
COLOR_FORMAT_BGRA32 = 3

PlaybackFactory = Callable[[Path], Any]


class StreamGeometry(NamedTuple):
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class TrackConfiguration:
    """Track layout read once from the recording header."""

    color_enabled: bool
    depth_enabled: bool
    infrared_enabled: bool
    color_format: int
    color_geometry: Optional[StreamGeometry]
    depth_geometry: Optional[StreamGeometry]

    @classmethod
    def from_record_configuration(cls, configuration: Dict[str, Any]) -> "TrackConfiguration":
        color_resolution = int(configuration.get("color_resolution", 0))
        depth_mode = int(configuration.get("depth_mode", 0))
        color_size = COLOR_RESOLUTIONS.get(color_resolution)
        depth_size = DEPTH_MODES.get(depth_mode)
        return cls(
            color_enabled=bool(configuration.get("color_track_enabled", False)),
            depth_enabled=bool(configuration.get("depth_track_enabled", False)),
            infrared_enabled=bool(configuration.get("ir_track_enabled", False)),
            color_format=int(configuration.get("color_format", COLOR_FORMAT_MJPG)),
            color_geometry=StreamGeometry(*color_size) if color_size else None,
            depth_geometry=StreamGeometry(*depth_size) if depth_size else None,
        )

    def is_enabled(self, kind: StreamKind) -> bool:
        return {
            StreamKind.COLOR: self.color_enabled,
            StreamKind.DEPTH: self.depth_enabled,
            StreamKind.INFRARED: self.infrared_enabled,
        }[kind]


_IMAGE_ATTRS = {
    StreamKind.COLOR: ("color", "color_timestamp_usec"),
    StreamKind.DEPTH: ("depth", "depth_timestamp_usec"),
    StreamKind.INFRARED: ("ir", "ir_timestamp_usec"),
}


class Capture:
    """One synchronized snapshot; holds at most one image per stream kind.

    Image arrays returned here borrow the capture's buffers and must be
    copied before they outlive :meth:`release`.
    """

    def __init__(self, handle: Any, on_release: Optional[Callable[["Capture"], None]] = None) -> None:
        self._handle = handle
        self._on_release = on_release

    @property
    def released(self) -> bool:
        return self._handle is None

    def image(self, kind: StreamKind) -> Optional[np.ndarray]:
        if self._handle is None:
            raise RuntimeError("capture already released")
        attr, _ = _IMAGE_ATTRS[kind]
        image = getattr(self._handle, attr, None)
        if image is None or np.size(image) == 0:
            return None
        return image

    def timestamp_usec(self, kind: StreamKind) -> int:
        if self._handle is None:
            raise RuntimeError("capture already released")
        _, attr = _IMAGE_ATTRS[kind]
        return int(getattr(self._handle, attr, 0) or 0)

    def release(self) -> None:
        if self._handle is None:
            return
        self._handle = None
        if self._on_release is not None:
            self._on_release(self)

    def __enter__(self) -> "Capture":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def _pyk4a_playback_factory(path: Path) -> Any:
    try:
        from pyk4a import PyK4APlayback
    except ImportError as exc:
        raise StartupError(
            "pyk4a is required to read Azure Kinect recordings (pip install k4a-mkv2image[kinect])"
        ) from exc
    return PyK4APlayback(path)


class FrameSource:
    """Replays a recording one capture at a time; no seeking is exposed."""

    def __init__(
        self,
        path: Path,
        *,
        playback_factory: Optional[PlaybackFactory] = None,
        logger: LoggerLike = None,
    ) -> None:
        self.path = Path(path)
        self._factory = playback_factory or _pyk4a_playback_factory
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._playback: Any = None
        self._tracks: Optional[TrackConfiguration] = None
        self._calibration: Any = None
        self._live: Optional[Capture] = None
        self._captures_read = 0

    # ------------------------------------------------------------------ lifecycle

    def open(self) -> None:
        if self._playback is not None:
            return
        if not self.path.is_file():
            raise StartupError(f"failed to find recording: {self.path}")

        playback = self._factory(self.path)
        try:
            playback.open()
        except Exception as exc:
            raise StartupError(f"failed to open recording {self.path}: {exc}") from exc

        try:
            tracks = TrackConfiguration.from_record_configuration(dict(playback.configuration))
            calibration = playback.calibration
        except Exception as exc:
            playback.close()
            raise StartupError(f"failed to read recording header {self.path}: {exc}") from exc

        self._playback = playback
        self._tracks = tracks
        self._calibration = calibration
        self._logger.info(
            "Opened %s (color=%s depth=%s infrared=%s)",
            self.path.name,
            tracks.color_enabled,
            tracks.depth_enabled,
            tracks.infrared_enabled,
        )

    def close(self) -> None:
        if self._live is not None:
            self._live.release()
        if self._playback is None:
            return
        try:
            self._playback.close()
        except Exception:
            self._logger.warning("Failed to close playback", exc_info=True)
        finally:
            self._playback = None
        self._logger.debug("Closed %s after %d captures", self.path.name, self._captures_read)

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ header

    @property
    def tracks(self) -> TrackConfiguration:
        if self._tracks is None:
            raise RuntimeError("frame source not opened")
        return self._tracks

    @property
    def calibration(self) -> Any:
        if self._playback is None:
            raise RuntimeError("frame source not opened")
        return self._calibration

    @property
    def color_geometry(self) -> Optional[StreamGeometry]:
        return self.tracks.color_geometry

    @property
    def depth_geometry(self) -> Optional[StreamGeometry]:
        return self.tracks.depth_geometry

    @property
    def captures_read(self) -> int:
        return self._captures_read

    # ------------------------------------------------------------------ replay

    def advance(self) -> Capture:
        """Move one capture forward; raises :class:`EndOfStream` when exhausted."""

        if self._playback is None:
            raise RuntimeError("frame source not opened")
        if self._live is not None:
            raise RuntimeError("previous capture must be released before advancing")
        try:
            handle = self._playback.get_next_capture()
        except EOFError:
            raise EndOfStream(str(self.path)) from None

        self._captures_read += 1
        self._live = Capture(handle, on_release=self._capture_released)
        return self._live

    def _capture_released(self, capture: Capture) -> None:
        if self._live is capture:
            self._live = None


__all__ = [
    "COLOR_FORMAT_BGRA32",
    "COLOR_FORMAT_MJPG",
    "Capture",
    "FrameSource",
    "StreamGeometry",
    "TrackConfiguration",
]
