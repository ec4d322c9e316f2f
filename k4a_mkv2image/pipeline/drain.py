"""Shutdown coordination between the ingestion loop and the export workers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List

from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger

if TYPE_CHECKING:
    from .export_worker import ExportWorker


class QuitFlag:
    """One-shot broadcast meaning "no more frames will be produced".

    Only :class:`DrainProtocol` sets it; workers just read it.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def is_set(self) -> bool:
        return self._event.is_set()

    def set(self) -> None:
        self._event.set()


@dataclass(slots=True)
class StreamSummary:
    queued: int
    written: int
    failed: int


@dataclass(slots=True)
class DrainReport:
    streams: Dict[str, StreamSummary] = field(default_factory=dict)

    @property
    def total_written(self) -> int:
        return sum(summary.written for summary in self.streams.values())

    @property
    def total_failed(self) -> int:
        return sum(summary.failed for summary in self.streams.values())


class DrainProtocol:
    """Flips the quit flag once, then waits for every started worker to finish."""

    def __init__(self, quit_flag: QuitFlag, *, logger: LoggerLike = None) -> None:
        self.quit_flag = quit_flag
        self._workers: List["ExportWorker"] = []
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._report: DrainReport | None = None
        self._lock = threading.Lock()

    def register(self, worker: "ExportWorker") -> None:
        if self._report is not None:
            raise RuntimeError("cannot register workers after draining")
        self._workers.append(worker)

    @property
    def workers(self) -> tuple["ExportWorker", ...]:
        return tuple(self._workers)

    @property
    def drained(self) -> bool:
        return self._report is not None

    def drain(self) -> DrainReport:
        """Signal shutdown and block until all queued frames are on disk.

        There is no timeout: a stalled write stalls only its own stream, and
        the call returns once that stream catches up. Calling again returns
        the first report.
        """

        with self._lock:
            if self._report is not None:
                return self._report

            pending = {w.kind.value: w.queue.qsize() for w in self._workers}
            self._logger.info("Draining export workers (pending=%s)", pending)
            self.quit_flag.set()

            report = DrainReport()
            for worker in self._workers:
                if worker.started:
                    worker.join()
                report.streams[worker.kind.value] = StreamSummary(
                    queued=worker.queue.pushed,
                    written=worker.written,
                    failed=worker.failed,
                )

            self._report = report
            self._logger.info(
                "Export workers finished (written=%d failed=%d)",
                report.total_written,
                report.total_failed,
            )
            return report


__all__ = ["DrainProtocol", "DrainReport", "QuitFlag", "StreamSummary"]
