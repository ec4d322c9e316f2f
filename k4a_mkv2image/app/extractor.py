"""Wires the frame source, ingestion loop and export workers for one run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from k4a_mkv2image.config import RunConfig
from k4a_mkv2image.core.errors import StartupError
from k4a_mkv2image.core.logging_utils import LoggerLike, ensure_structured_logger
from k4a_mkv2image.pipeline.drain import DrainProtocol, DrainReport, QuitFlag
from k4a_mkv2image.pipeline.encoders import ExportPolicy, color_policy, depth_policy, infrared_policy
from k4a_mkv2image.pipeline.export_worker import ExportWorker
from k4a_mkv2image.pipeline.frame_source import FrameSource
from k4a_mkv2image.pipeline.ingestion import IngestionLoop
from k4a_mkv2image.pipeline.preview import PreviewWindows
from k4a_mkv2image.pipeline.remap import DepthRemapper, TransformFn
from k4a_mkv2image.pipeline.stream import StreamKind
from k4a_mkv2image.pipeline.stream_queue import StreamQueue
from k4a_mkv2image.storage.disk_guard import DiskGuard
from k4a_mkv2image.storage.output_layout import OutputLayout

PreviewFactory = Callable[[RunConfig], PreviewWindows]


@dataclass(slots=True)
class ExtractionResult:
    config: RunConfig
    captures: int
    drain: DrainReport
    stopped_early: bool = False


def _default_preview_factory(config: RunConfig) -> PreviewWindows:
    return PreviewWindows(
        transform=config.transform,
        max_depth=config.depth_max_mm,
        infrared_factor=config.infrared_scale,
    )


class Extractor:
    """Startup, ingestion and teardown of a single extraction run.

    Everything that can fail fatally (opening the recording, unsupported
    formats, creating directories) happens before any worker thread starts.
    Once workers are running, teardown always goes through the drain protocol.
    """

    def __init__(
        self,
        config: RunConfig,
        source: FrameSource,
        *,
        transform_fn: Optional[TransformFn] = None,
        preview_factory: Optional[PreviewFactory] = None,
        logger: LoggerLike = None,
    ) -> None:
        self.config = config
        self.source = source
        self._transform_fn = transform_fn
        self._preview_factory = preview_factory or _default_preview_factory
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._quit_flag = QuitFlag()
        self._drain = DrainProtocol(self._quit_flag, logger=self._logger)
        self._queues: Dict[StreamKind, StreamQueue] = {}
        self._preview: Optional[PreviewWindows] = None
        self._stop_requested = False
        self.layout: Optional[OutputLayout] = None

    # ------------------------------------------------------------------ startup

    def prepare(self) -> RunConfig:
        """Open the recording and bind the run config to its tracks."""

        self.source.open()
        tracks = self.source.tracks
        self.config = self.config.with_tracks(
            color=tracks.color_enabled,
            depth=tracks.depth_enabled,
            infrared=tracks.infrared_enabled,
        )
        if not self.config.enabled_kinds:
            raise StartupError(f"recording has no color, depth or infrared track: {self.source.path}")
        if self.config.transform and self.config.enable_depth and tracks.color_geometry is None:
            raise StartupError("depth transformation requires a color track resolution")
        return self.config

    def _build_policies(self) -> Dict[StreamKind, ExportPolicy]:
        config = self.config
        tracks = self.source.tracks
        policies: Dict[StreamKind, ExportPolicy] = {}
        if config.enable_color:
            policies[StreamKind.COLOR] = color_policy(
                tracks.color_format,
                geometry=tracks.color_geometry,
                quality=config.quality,
            )
        if config.enable_depth:
            geometry = tracks.color_geometry if config.transform else tracks.depth_geometry
            policies[StreamKind.DEPTH] = depth_policy(
                geometry,
                scaling=config.scaling,
                max_depth=config.depth_max_mm,
            )
        if config.enable_infrared:
            policies[StreamKind.INFRARED] = infrared_policy(
                tracks.depth_geometry,
                factor=config.infrared_scale,
                quality=config.quality,
            )
        return policies

    def _start_workers(self, policies: Dict[StreamKind, ExportPolicy], layout: OutputLayout) -> None:
        for kind, policy in policies.items():
            queue = StreamQueue(kind)
            worker = ExportWorker(
                policy,
                queue,
                layout.stream_dir(kind),
                self._quit_flag,
                poll_interval=self.config.poll_interval_s,
                logger=self._logger,
            )
            self._queues[kind] = queue
            self._drain.register(worker)
            worker.start()

    # ------------------------------------------------------------------ run

    def _should_stop(self) -> bool:
        if self._preview is not None and self._preview.poll_quit():
            self._logger.info("Quit key pressed in preview")
            self._stop_requested = True
        return self._stop_requested

    def run(self) -> ExtractionResult:
        """Extract every frame; returns once all queued frames are on disk."""

        try:
            self.prepare()
            policies = self._build_policies()
            layout = OutputLayout.for_streams(self.config.output_root, policies.keys())
            DiskGuard(threshold_gb=self.config.min_free_gb, logger=self._logger).check(layout.root.parent)
            self.layout = layout.create(logger=self._logger)
        except BaseException:
            self.source.close()
            raise

        remapper = None
        if self.config.transform and self.config.enable_depth:
            remapper = DepthRemapper(
                self.source.calibration,
                self.source.tracks.color_geometry,
                transform_fn=self._transform_fn,
                logger=self._logger,
            )

        captures = 0
        try:
            self._start_workers(policies, self.layout)
            if self.config.display:
                self._preview = self._preview_factory(self.config)
            ingestion = IngestionLoop(
                self.source,
                self._queues,
                remapper=remapper,
                preview=self._preview,
                logger=self._logger,
            )
            try:
                ingestion.run(self._should_stop)
            finally:
                captures = ingestion.captures
        finally:
            report = self._teardown()

        return ExtractionResult(
            config=self.config,
            captures=captures,
            drain=report,
            stopped_early=self._stop_requested,
        )

    def _teardown(self) -> DrainReport:
        try:
            self.source.close()
        finally:
            report = self._drain.drain()
            if self._preview is not None:
                self._preview.close()
        return report


__all__ = ["ExtractionResult", "Extractor"]
