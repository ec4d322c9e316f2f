"""Per-stream encode policies used by the export workers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import cv2
import numpy as np

from k4a_mkv2image.core.errors import StartupError

from .frame_source import COLOR_FORMAT_BGRA32, COLOR_FORMAT_MJPG, StreamGeometry
from .stream import StreamKind

Encoder = Callable[[np.ndarray], bytes]


def scale_depth_to_8bit(depth: np.ndarray, max_depth: float) -> np.ndarray:
    """Linear map: 0 -> 255 (near is bright), ``max_depth`` and beyond -> 0."""
    scaled = depth.astype(np.float64) * (-255.0 / float(max_depth)) + 255.0
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def scale_infrared_to_8bit(infrared: np.ndarray, factor: float) -> np.ndarray:
    scaled = infrared.astype(np.float64) * float(factor)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def imencode(extension: str, image: np.ndarray, params: Sequence[int] = ()) -> bytes:
    ok, buffer = cv2.imencode(extension, image, list(params))
    if not ok:
        raise ValueError(f"cv2.imencode failed for {extension} image of shape {image.shape}")
    return buffer.tobytes()


def _as_raster(payload: np.ndarray, geometry: Optional[StreamGeometry], channels: int = 1) -> np.ndarray:
    if geometry is None:
        return payload
    shape = (geometry.height, geometry.width) if channels == 1 else (geometry.height, geometry.width, channels)
    return payload.reshape(shape)


@dataclass(frozen=True, slots=True)
class ExportPolicy:
    """How one stream kind is turned into files: encoder, extension, geometry."""

    kind: StreamKind
    extension: str
    encode: Encoder
    geometry: Optional[StreamGeometry] = None

    @property
    def directory_name(self) -> str:
        return self.kind.value


def color_policy(
    color_format: int,
    *,
    geometry: Optional[StreamGeometry] = None,
    quality: int = 95,
) -> ExportPolicy:
    if color_format == COLOR_FORMAT_MJPG:
        # Already compressed by the recording; written byte for byte.
        return ExportPolicy(StreamKind.COLOR, "jpg", lambda payload: payload.tobytes(), geometry)

    if color_format == COLOR_FORMAT_BGRA32:
        params = (cv2.IMWRITE_JPEG_QUALITY, quality)

        def encode_bgra(payload: np.ndarray) -> bytes:
            bgr = cv2.cvtColor(_as_raster(payload, geometry, channels=4), cv2.COLOR_BGRA2BGR)
            return imencode(".jpg", bgr, params)

        return ExportPolicy(StreamKind.COLOR, "jpg", encode_bgra, geometry)

    raise StartupError(f"unsupported recorded color format ({color_format}); expected MJPG or BGRA32")


def depth_policy(
    geometry: Optional[StreamGeometry],
    *,
    scaling: bool = False,
    max_depth: float = 5000,
) -> ExportPolicy:
    def encode_depth(payload: np.ndarray) -> bytes:
        raster = _as_raster(payload, geometry)
        if scaling:
            raster = scale_depth_to_8bit(raster, max_depth)
        return imencode(".png", raster)

    return ExportPolicy(StreamKind.DEPTH, "png", encode_depth, geometry)


def infrared_policy(
    geometry: Optional[StreamGeometry],
    *,
    factor: float = 0.5,
    quality: int = 95,
) -> ExportPolicy:
    params = (cv2.IMWRITE_JPEG_QUALITY, quality)

    def encode_infrared(payload: np.ndarray) -> bytes:
        raster = scale_infrared_to_8bit(_as_raster(payload, geometry), factor)
        return imencode(".jpg", raster, params)

    return ExportPolicy(StreamKind.INFRARED, "jpg", encode_infrared, geometry)


__all__ = [
    "ExportPolicy",
    "color_policy",
    "depth_policy",
    "imencode",
    "infrared_policy",
    "scale_depth_to_8bit",
    "scale_infrared_to_8bit",
]
