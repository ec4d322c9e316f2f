"""Free-space check before an extraction run starts writing."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger


@dataclass(slots=True)
class DiskStatus:
    ok: bool
    free_gb: float
    threshold_gb: float


class DiskGuard:
    """Warns when the output volume is running low."""

    def __init__(
        self,
        *,
        threshold_gb: float = 1.0,
        logger: LoggerLike = None,
    ) -> None:
        self._threshold = max(0.0, threshold_gb)
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._last_status: Optional[DiskStatus] = None

    def last_status(self) -> Optional[DiskStatus]:
        return self._last_status

    def check(self, path: Path) -> bool:
        status = self._check(path)
        self._update_and_warn(status)
        return status.ok

    def _check(self, path: Path) -> DiskStatus:
        target = Path(path)
        # Walk up to the nearest existing ancestor; the output root is created later.
        while not target.exists() and target != target.parent:
            target = target.parent
        try:
            usage = shutil.disk_usage(target)
            free_gb = usage.free / (1024**3)
        except OSError:
            free_gb = 0.0
        ok = free_gb >= self._threshold
        return DiskStatus(ok=ok, free_gb=free_gb, threshold_gb=self._threshold)

    def _update_and_warn(self, status: DiskStatus) -> None:
        self._last_status = status
        if not status.ok:
            self._logger.warning(
                "Low disk space for extraction: free=%.2f GB threshold=%.2f GB",
                status.free_gb,
                status.threshold_gb,
            )


__all__ = ["DiskGuard", "DiskStatus"]
