"""Single-producer loop: captures in, per-stream frames out."""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from k4a_mkv2image.core.errors import EndOfStream
from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger

from .frame_source import Capture, FrameSource
from .preview import PreviewWindows
from .remap import DepthRemapper
from .stream import StreamFrame, StreamKind
from .stream_queue import StreamQueue


class IngestionLoop:
    """Reads captures in order and pushes each enabled stream's frame.

    ``queues`` holds one queue per enabled stream kind. When ``remapper`` is
    given, depth frames are reprojected into color geometry before they are
    queued; the timestamp stays the one of the native depth frame.
    """

    def __init__(
        self,
        source: FrameSource,
        queues: Mapping[StreamKind, StreamQueue],
        *,
        remapper: Optional[DepthRemapper] = None,
        preview: Optional[PreviewWindows] = None,
        logger: LoggerLike = None,
    ) -> None:
        self._source = source
        self._queues = dict(queues)
        self._remapper = remapper
        self._preview = preview
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._captures = 0
        self._skipped_depth = 0

    @property
    def captures(self) -> int:
        return self._captures

    @property
    def skipped_depth(self) -> int:
        return self._skipped_depth

    def step(self) -> bool:
        """Process one capture; False once the recording is exhausted."""

        try:
            capture = self._source.advance()
        except EndOfStream:
            self._logger.info("End of stream after %d captures", self._captures)
            return False

        with capture:
            self._ingest(capture)
        self._captures += 1
        return True

    def run(self, should_stop: Optional[Callable[[], bool]] = None) -> int:
        """Step until end-of-stream or until ``should_stop()`` returns True."""

        while self.step():
            if should_stop is not None and should_stop():
                self._logger.info("Ingestion stopped early after %d captures", self._captures)
                break
        return self._captures

    def _ingest(self, capture: Capture) -> int:
        pushed = 0
        for kind, queue in self._queues.items():
            image = capture.image(kind)
            if image is None:
                continue
            timestamp = capture.timestamp_usec(kind)

            if kind is StreamKind.DEPTH and self._remapper is not None:
                image = self._remapper.remap(image)
                if image is None:
                    self._skipped_depth += 1
                    continue

            queue.push(StreamFrame.copy_of(image, timestamp, kind))
            pushed += 1

            if self._preview is not None:
                self._preview.show(kind, image)
        return pushed


__all__ = ["IngestionLoop"]
