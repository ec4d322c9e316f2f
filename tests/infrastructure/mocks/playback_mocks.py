"""Scripted stand-in for ``pyk4a.PyK4APlayback``.

Replays a fixed list of captures so the pipeline can be exercised without
the Azure Kinect SDK or a real recording.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import cv2
import numpy as np

# Geometry for the enum values used below (RES_720P, NFOV_2X2BINNED).
COLOR_720P = 1
DEPTH_NFOV_BINNED = 1
COLOR_SIZE = (1280, 720)
DEPTH_SIZE = (320, 288)


@dataclass
class FakeCapture:
    """Mirrors the attributes of ``pyk4a.PyK4ACapture`` that the reader uses."""

    color: Optional[np.ndarray] = None
    depth: Optional[np.ndarray] = None
    ir: Optional[np.ndarray] = None
    color_timestamp_usec: int = 0
    depth_timestamp_usec: int = 0
    ir_timestamp_usec: int = 0


def record_configuration(
    *,
    color: bool = True,
    depth: bool = True,
    infrared: bool = True,
    color_format: int = 0,
    color_resolution: int = COLOR_720P,
    depth_mode: int = DEPTH_NFOV_BINNED,
) -> Dict[str, Any]:
    return {
        "color_format": color_format,
        "color_resolution": color_resolution if color else 0,
        "depth_mode": depth_mode if (depth or infrared) else 0,
        "camera_fps": 2,
        "color_track_enabled": color,
        "depth_track_enabled": depth,
        "ir_track_enabled": infrared,
        "imu_track_enabled": False,
        "depth_delay_off_color_usec": 0,
        "wired_sync_mode": 0,
        "subordinate_delay_off_master_usec": 0,
        "start_timestamp_offset_usec": 0,
    }


def mjpg_buffer(value: int = 128, size: tuple[int, int] = (64, 48)) -> np.ndarray:
    """A real JPEG byte stream, shaped like pyk4a's MJPG color buffer (1-D uint8)."""
    width, height = size
    image = np.full((height, width, 3), value, dtype=np.uint8)
    ok, encoded = cv2.imencode(".jpg", image)
    assert ok
    return encoded.reshape(-1)


def depth_image(value: int, size: tuple[int, int] = DEPTH_SIZE) -> np.ndarray:
    width, height = size
    return np.full((height, width), value, dtype=np.uint16)


def infrared_image(value: int, size: tuple[int, int] = DEPTH_SIZE) -> np.ndarray:
    width, height = size
    return np.full((height, width), value, dtype=np.uint16)


def make_captures(
    count: int,
    *,
    color: bool = True,
    depth: bool = True,
    infrared: bool = True,
    start_usec: int = 1_000,
    step_usec: int = 33_333,
) -> List[FakeCapture]:
    captures = []
    for index in range(count):
        ts = start_usec + index * step_usec
        captures.append(
            FakeCapture(
                color=mjpg_buffer(10 + index) if color else None,
                depth=depth_image(500 * (index + 1)) if depth else None,
                ir=infrared_image(100 * (index + 1)) if infrared else None,
                color_timestamp_usec=ts if color else 0,
                depth_timestamp_usec=ts + 100 if depth else 0,
                ir_timestamp_usec=ts + 100 if infrared else 0,
            )
        )
    return captures


@dataclass
class FakePlayback:
    path: Path
    captures: Sequence[FakeCapture] = ()
    configuration: Dict[str, Any] = field(default_factory=record_configuration)
    calibration: Any = "fake-calibration"
    fail_open: bool = False
    interrupt_at: Optional[int] = None
    opened: bool = False
    closed: bool = False
    reads: int = 0

    def open(self) -> None:
        if self.fail_open:
            raise OSError(f"cannot open {self.path}")
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def get_next_capture(self) -> FakeCapture:
        if not self.opened or self.closed:
            raise RuntimeError("playback not open")
        if self.interrupt_at is not None and self.reads == self.interrupt_at:
            raise KeyboardInterrupt
        if self.reads >= len(self.captures):
            raise EOFError
        capture = self.captures[self.reads]
        self.reads += 1
        return capture


class PlaybackFactory:
    """Callable handed to ``FrameSource(playback_factory=...)``; keeps the instance."""

    def __init__(self, captures: Sequence[FakeCapture], configuration: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        self._captures = list(captures)
        self._configuration = configuration or record_configuration()
        self._kwargs = kwargs
        self.playback: Optional[FakePlayback] = None

    def __call__(self, path: Path) -> FakePlayback:
        self.playback = FakePlayback(
            path=path,
            captures=self._captures,
            configuration=self._configuration,
            **self._kwargs,
        )
        return self.playback


def resize_to_color(depth: np.ndarray, calibration: Any, thread_safe: bool) -> np.ndarray:
    """Stand-in for ``pyk4a.transformation.depth_image_to_color_camera``."""
    return cv2.resize(depth, COLOR_SIZE, interpolation=cv2.INTER_NEAREST)
