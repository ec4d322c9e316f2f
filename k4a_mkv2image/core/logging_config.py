"""Root logging setup for one extraction run."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 500 * 1024
LOG_FILE_BACKUPS = 2

# The Kinect binding logs every playback seek and SDK message at INFO.
QUIET_LOGGERS = ("pyk4a",)


def configure_logging(level: Union[int, str] = logging.INFO, *, log_file: Optional[Path] = None) -> None:
    """Route all records to stdout and, optionally, a rotating ``log_file``.

    Existing root handlers are replaced, so calling this twice (tests, or
    ``run()`` from an interactive session) never duplicates output.
    """

    numeric_level = logging.getLevelName(level.upper()) if isinstance(level, str) else int(level)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_path,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


__all__ = ["configure_logging", "LOG_FORMAT", "LOG_DATEFMT", "QUIET_LOGGERS"]
