"""Exception taxonomy for the extraction pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class StartupError(RuntimeError):
    """Fatal problem detected before any export worker is started."""


class EndOfStream(Exception):
    """Raised by the frame source once the recording is exhausted.

    Not an error: it is the normal termination signal for ingestion.
    """


class EncodeOrWriteError(RuntimeError):
    """A single frame could not be encoded or written to disk."""

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        sequence: int,
        path: Optional[Path] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.sequence = sequence
        self.path = path


__all__ = ["StartupError", "EndOfStream", "EncodeOrWriteError"]
