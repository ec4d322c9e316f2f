"""Optional live preview of captures in OpenCV windows."""

from __future__ import annotations

from typing import Optional, Set

import cv2
import numpy as np

from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger

from .encoders import scale_depth_to_8bit, scale_infrared_to_8bit
from .stream import StreamKind

QUIT_KEY = "q"
TRANSFORMED_DEPTH_WINDOW = "transformed depth"


class PreviewWindows:
    """One named window per stream kind; display is always 8-bit."""

    def __init__(
        self,
        *,
        transform: bool = False,
        max_depth: float = 5000,
        infrared_factor: float = 0.5,
        logger: LoggerLike = None,
    ) -> None:
        self._transform = transform
        self._max_depth = max_depth
        self._infrared_factor = infrared_factor
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._opened: Set[str] = set()

    def window_name(self, kind: StreamKind) -> str:
        if kind is StreamKind.DEPTH and self._transform:
            return TRANSFORMED_DEPTH_WINDOW
        return kind.value

    def render(self, kind: StreamKind, image: np.ndarray) -> Optional[np.ndarray]:
        if kind is StreamKind.COLOR:
            if image.ndim == 1:
                # Compressed MJPG buffer straight from the recording.
                return cv2.imdecode(np.frombuffer(image.tobytes(), dtype=np.uint8), cv2.IMREAD_COLOR)
            if image.ndim == 3 and image.shape[2] == 4:
                return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
            return image
        if kind is StreamKind.DEPTH:
            return scale_depth_to_8bit(image, self._max_depth)
        return scale_infrared_to_8bit(image, self._infrared_factor)

    def show(self, kind: StreamKind, image: Optional[np.ndarray]) -> None:
        if image is None:
            return
        raster = self.render(kind, image)
        if raster is None:
            self._logger.debug("Could not decode %s frame for preview", kind.value)
            return
        name = self.window_name(kind)
        cv2.imshow(name, raster)
        self._opened.add(name)

    def poll_quit(self, delay_ms: int = 1) -> bool:
        """Pump the window event loop; True when the quit key was pressed."""
        key = cv2.waitKey(delay_ms)
        return key != -1 and (key & 0xFF) == ord(QUIT_KEY)

    def close(self) -> None:
        if not self._opened:
            return
        cv2.destroyAllWindows()
        self._opened.clear()


__all__ = ["PreviewWindows", "QUIT_KEY", "TRANSFORMED_DEPTH_WINDOW"]
