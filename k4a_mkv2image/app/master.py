from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence

from k4a_mkv2image.cli.common import (
    install_exception_handlers,
    log_extraction_shutdown,
    log_extraction_startup,
    parse_args,
    validate_input_path,
)
from k4a_mkv2image.config import RunConfig, default_output_root, load_file_settings
from k4a_mkv2image.core.errors import StartupError
from k4a_mkv2image.core.logging_config import configure_logging
from k4a_mkv2image.core.logging_utils import get_module_logger
from k4a_mkv2image.pipeline.frame_source import FrameSource, PlaybackFactory
from k4a_mkv2image.pipeline.remap import TransformFn

from .extractor import Extractor

logger = get_module_logger(__name__)

EXIT_OK = 0
EXIT_STARTUP_ERROR = 1
EXIT_INTERRUPTED = 130


def build_config(args) -> RunConfig:
    input_path = validate_input_path(args.input)
    settings = load_file_settings(args.config, logger=logger)
    quality = args.quality if args.quality is not None else settings["quality"]
    try:
        return RunConfig(
            input_path=input_path,
            output_root=default_output_root(input_path, args.output_dir),
            scaling=args.scaling,
            transform=args.transform,
            quality=quality,
            display=args.display,
            depth_max_mm=settings["depth_max_mm"],
            infrared_scale=settings["infrared_scale"],
            poll_interval_s=settings["poll_interval_s"],
            min_free_gb=settings["min_free_gb"],
        )
    except ValueError as exc:
        raise StartupError(f"invalid configuration: {exc}") from exc


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    playback_factory: Optional[PlaybackFactory] = None,
    transform_fn: Optional[TransformFn] = None,
) -> int:
    """Parse arguments, extract one recording and return the exit code."""

    args = parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level, log_file=args.log_file)
    install_exception_handlers(logger.logger)

    try:
        config = build_config(args)
        source = FrameSource(config.input_path, playback_factory=playback_factory, logger=logger)
        extractor = Extractor(config, source, transform_fn=transform_fn, logger=logger)
        log_extraction_startup(
            logger,
            args.log_file,
            input=config.input_path,
            output_root=config.output_root,
            scaling=config.scaling,
            transform=config.transform,
            quality=config.quality,
            display=config.display,
        )
        result = extractor.run()
    except StartupError as exc:
        logger.error("%s", exc)
        return EXIT_STARTUP_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted; frames queued before the interrupt were written")
        return EXIT_INTERRUPTED

    logger.info(
        "Processed %d captures into %s (streams: %s)",
        result.captures,
        result.config.output_root,
        ", ".join(result.config.enabled_kinds),
    )
    log_extraction_shutdown(logger, result.drain.streams)
    return EXIT_OK


def cli() -> None:
    sys.exit(main())


__all__ = ["build_config", "cli", "main"]
