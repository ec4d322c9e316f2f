from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

from k4a_mkv2image.config import DEFAULT_QUALITY, INPUT_EXTENSION, clamp_quality
from k4a_mkv2image.core.errors import StartupError


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def str_to_bool(value: str) -> bool:
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got '{value}'")


def quality_value(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("quality must be an integer") from exc
    return clamp_quality(parsed)


class _VersionedHelpAction(argparse.Action):
    """Print ``k4a_mkv2image v<version>`` ahead of the usage text."""

    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        from k4a_mkv2image import __version__

        print(f"k4a_mkv2image v{__version__}")
        parser.print_help()
        parser.exit()


def _add_bool_flag(parser: argparse.ArgumentParser, short: str, long: str, help_text: str) -> None:
    # Accepts "-s", "-s true" and "--scaling=false".
    parser.add_argument(
        short,
        long,
        nargs="?",
        const=True,
        default=False,
        type=str_to_bool,
        metavar="BOOL",
        help=help_text,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="k4a_mkv2image",
        description="Extract color, depth and infrared frames from an Azure Kinect recording.",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action=_VersionedHelpAction, help="print this message.")
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=None,
        help="path to input mkv file. (required)",
    )
    _add_bool_flag(
        parser, "-s", "--scaling",
        "enable depth scaling to 8bit image. false is raw 16bit image.",
    )
    _add_bool_flag(
        parser, "-t", "--transform",
        "enable transform depth image to color camera.",
    )
    parser.add_argument(
        "-q",
        "--quality",
        type=quality_value,
        default=None,
        help=f"jpeg encoding quality for infrared. [0-100] (default: {DEFAULT_QUALITY})",
    )
    _add_bool_flag(
        parser, "-d", "--display",
        "display each image in a window. display images are always scaled regardless of the scaling flag.",
    )
    add_common_cli_arguments(parser)
    return parser


def add_common_cli_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory that receives the <input name>/ output root (default: next to the input)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional key=value config file (depth_max_mm, infrared_scale, quality, ...)",
    )

    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default="info",
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to also write logs to (rotating)",
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def validate_input_path(path: Optional[Path]) -> Path:
    """The input must be an existing regular ``.mkv`` file."""

    if path is None:
        raise StartupError("failed can't find input mkv file (use -i <file.mkv>)")
    candidate = Path(path)
    if not candidate.is_file() or candidate.suffix.lower() != INPUT_EXTENSION:
        raise StartupError(f"failed can't find input mkv file: {candidate}")
    return candidate


def install_exception_handlers(logger: logging.Logger) -> None:
    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = handle_exception


def log_extraction_startup(
    logger: logging.Logger,
    log_file: Optional[Path],
    module_name: str = "K4A_MKV2IMAGE",
    **extra_info: Any,
) -> None:
    logger.info("=" * 80)
    logger.info(f"========== {module_name.upper()} EXTRACTION START ==========")
    logger.info("=" * 80)
    if log_file is not None:
        logger.info("Log file: %s", log_file)

    for key, value in extra_info.items():
        display_key = key.replace('_', ' ').title()
        logger.info("%s: %s", display_key, value)

    logger.info("=" * 80)


def log_extraction_shutdown(
    logger: logging.Logger,
    streams: Mapping[str, Any],
    module_name: str = "K4A_MKV2IMAGE",
) -> None:
    logger.info("=" * 60)
    for name, summary in streams.items():
        logger.info(
            "%-8s queued=%d written=%d failed=%d",
            name,
            summary.queued,
            summary.written,
            summary.failed,
        )
    logger.info(f"{module_name.title()} Extraction Stopped")
    logger.info("=" * 60)
