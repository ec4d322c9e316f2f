"""Unbounded FIFO of frames for one stream kind."""

from __future__ import annotations

import queue
from typing import Optional

from .stream import StreamFrame, StreamKind


class StreamQueue:
    """Thread-safe FIFO between the ingestion loop and one export worker.

    ``push`` never blocks (the queue is unbounded). ``pop`` parks the caller
    for at most ``timeout`` seconds and returns ``None`` when nothing arrived,
    so consumers can re-check their shutdown condition between waits.
    """

    def __init__(self, kind: StreamKind) -> None:
        self.kind = kind
        self._queue: "queue.Queue[StreamFrame]" = queue.Queue(maxsize=0)
        self._pushed = 0

    def push(self, frame: StreamFrame) -> None:
        if frame.kind is not self.kind:
            raise ValueError(f"{frame.kind} frame pushed onto {self.kind} queue")
        self._queue.put_nowait(frame)
        self._pushed += 1

    def pop(self, timeout: float) -> Optional[StreamFrame]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        return self._queue.qsize()

    @property
    def pushed(self) -> int:
        """Frames pushed so far (written by the producer thread only)."""
        return self._pushed


__all__ = ["StreamQueue"]
