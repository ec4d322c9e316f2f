"""Reprojection of depth frames into the color camera's pixel grid."""

from __future__ import annotations

from typing import Any, Callable, Optional

import numpy as np

from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger

from .frame_source import StreamGeometry

TransformFn = Callable[[np.ndarray, Any, bool], Optional[np.ndarray]]


def _pyk4a_depth_to_color(depth: np.ndarray, calibration: Any, thread_safe: bool) -> Optional[np.ndarray]:
    from pyk4a.transformation import depth_image_to_color_camera

    return depth_image_to_color_camera(depth, calibration, thread_safe)


class DepthRemapper:
    """Maps native depth rasters to color-camera geometry, same bit depth."""

    def __init__(
        self,
        calibration: Any,
        color_geometry: Optional[StreamGeometry] = None,
        *,
        transform_fn: Optional[TransformFn] = None,
        thread_safe: bool = True,
        logger: LoggerLike = None,
    ) -> None:
        self._calibration = calibration
        self._color_geometry = color_geometry
        self._transform = transform_fn or _pyk4a_depth_to_color
        self._thread_safe = thread_safe
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)

    def remap(self, depth: Optional[np.ndarray]) -> Optional[np.ndarray]:
        """Return the remapped raster, or ``None`` when there is nothing to remap."""

        if depth is None:
            return None
        remapped = self._transform(depth, self._calibration, self._thread_safe)
        if remapped is None:
            self._logger.warning("Depth transformation produced no image; skipping frame")
            return None

        remapped = np.asarray(remapped)
        if remapped.dtype != depth.dtype:
            remapped = remapped.astype(depth.dtype, copy=False)
        geometry = self._color_geometry
        if geometry is not None and remapped.shape[:2] != (geometry.height, geometry.width):
            self._logger.warning(
                "Remapped depth has shape %s, expected %dx%d; skipping frame",
                remapped.shape,
                geometry.width,
                geometry.height,
            )
            return None
        return remapped


__all__ = ["DepthRemapper"]
