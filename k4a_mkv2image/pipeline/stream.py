"""Stream kinds and the frame record handed from ingestion to export."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class StreamKind(str, Enum):
    COLOR = "color"
    DEPTH = "depth"
    INFRARED = "infrared"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class StreamFrame:
    """Owned pixel buffer plus its device timestamp (microseconds)."""

    payload: np.ndarray
    timestamp_usec: int
    kind: StreamKind

    @classmethod
    def copy_of(cls, buffer: np.ndarray, timestamp_usec: int, kind: StreamKind) -> "StreamFrame":
        # The source capture is released right after ingestion, so never keep a view.
        owned = np.array(buffer, copy=True)
        owned.flags.writeable = False
        return cls(payload=owned, timestamp_usec=int(timestamp_usec), kind=kind)


__all__ = ["StreamKind", "StreamFrame"]
