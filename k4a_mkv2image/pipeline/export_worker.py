"""Dedicated writer thread for one stream kind."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from k4a_mkv2image.core.errors import EncodeOrWriteError
from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger
from k4a_mkv2image.storage.output_layout import frame_filename

from .drain import QuitFlag
from .encoders import ExportPolicy
from .stream import StreamFrame
from .stream_queue import StreamQueue

_LOG_FIRST_FRAMES = 3
_LOG_EVERY_FRAMES = 500


class ExportWorker:
    """Pops frames from its queue, encodes them and writes one file per frame.

    The loop only exits once the quit flag is set *and* the queue is empty,
    so frames queued before shutdown are always written. Per-frame failures
    are logged and counted; they never stop the thread.
    """

    def __init__(
        self,
        policy: ExportPolicy,
        queue: StreamQueue,
        directory: Path,
        quit_flag: QuitFlag,
        *,
        poll_interval: float = 0.05,
        logger: LoggerLike = None,
    ) -> None:
        if queue.kind is not policy.kind:
            raise ValueError(f"{policy.kind} policy bound to {queue.kind} queue")
        self.policy = policy
        self.queue = queue
        self.directory = Path(directory)
        self._quit_flag = quit_flag
        self._poll_interval = max(0.001, poll_interval)
        self._logger = ensure_structured_logger(logger, fallback_name=__name__).getChild(policy.kind.value)
        self._thread: Optional[threading.Thread] = None
        self._next_sequence = 0
        self._written = 0
        self._failed = 0

    @property
    def kind(self):
        return self.policy.kind

    @property
    def written(self) -> int:
        return self._written

    @property
    def failed(self) -> int:
        return self._failed

    @property
    def processed(self) -> int:
        return self._next_sequence

    # ------------------------------------------------------------------ lifecycle

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"{self.kind.value} export worker already started")
        self._thread = threading.Thread(
            target=self._run,
            name=f"export-{self.kind.value}",
            daemon=True,
        )
        self._thread.start()
        self._logger.debug("Export worker started -> %s", self.directory)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the thread; returns True once it has exited."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def started(self) -> bool:
        return self._thread is not None

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------ loop

    def _should_exit(self) -> bool:
        return self._quit_flag.is_set() and self.queue.empty()

    def _run(self) -> None:
        while not self._should_exit():
            frame = self.queue.pop(self._poll_interval)
            if frame is None:
                continue
            self._export(frame)

        self._logger.debug(
            "Export worker exited (written=%d failed=%d)", self._written, self._failed
        )

    def _export(self, frame: StreamFrame) -> None:
        sequence = self._next_sequence
        self._next_sequence += 1
        path = self.directory / frame_filename(sequence, frame.timestamp_usec, self.policy.extension)

        try:
            self.write_frame(frame, sequence, path)
        except EncodeOrWriteError as exc:
            self._failed += 1
            self._logger.error("%s", exc, exc_info=exc.__cause__ is not None)
            return
        except Exception:
            self._failed += 1
            self._logger.exception("Unexpected failure exporting frame %d to %s", sequence, path)
            return

        self._written += 1
        if sequence < _LOG_FIRST_FRAMES or sequence % _LOG_EVERY_FRAMES == 0:
            self._logger.debug("Frame %d (ts=%d) -> %s", sequence, frame.timestamp_usec, path.name)

    def write_frame(self, frame: StreamFrame, sequence: int, path: Path) -> None:
        kind = self.kind.value
        try:
            data = self.policy.encode(frame.payload)
        except Exception as exc:
            raise EncodeOrWriteError(
                f"Failed to encode {kind} frame {sequence}: {exc}",
                kind=kind,
                sequence=sequence,
                path=path,
            ) from exc

        try:
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise EncodeOrWriteError(
                f"Failed to write {kind} frame {sequence} to {path}: {exc}",
                kind=kind,
                sequence=sequence,
                path=path,
            ) from exc


__all__ = ["ExportWorker"]
