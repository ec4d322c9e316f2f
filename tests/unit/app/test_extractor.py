"""End-to-end extraction runs over a scripted recording."""

from __future__ import annotations

from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest

from k4a_mkv2image.app.extractor import Extractor
from k4a_mkv2image.config import RunConfig, default_output_root
from k4a_mkv2image.core.errors import StartupError
from k4a_mkv2image.pipeline.frame_source import FrameSource
from tests.infrastructure.mocks import (
    COLOR_SIZE,
    DEPTH_SIZE,
    PlaybackFactory,
    make_captures,
    mjpg_buffer,
    record_configuration,
    resize_to_color,
)


def _extractor(recording_path, factory, **config_kwargs):
    transform_fn = config_kwargs.pop("transform_fn", None)
    preview_factory = config_kwargs.pop("preview_factory", None)
    config = RunConfig(
        input_path=recording_path,
        output_root=default_output_root(recording_path),
        min_free_gb=0.0,
        poll_interval_s=0.01,
        **config_kwargs,
    )
    source = FrameSource(recording_path, playback_factory=factory)
    return Extractor(config, source, transform_fn=transform_fn, preview_factory=preview_factory)


def _names(directory):
    return sorted(p.name for p in directory.iterdir())


def _read(path):
    return cv2.imread(str(path), cv2.IMREAD_UNCHANGED)


class TestExtractor:

    def test_all_streams_written_with_sequence_and_timestamp(self, recording_path, three_capture_factory):
        result = _extractor(recording_path, three_capture_factory).run()

        root = recording_path.parent / "capture"
        assert result.captures == 3
        assert _names(root) == ["color", "depth", "infrared"]
        assert _names(root / "color") == [
            "000000_00000001000.jpg",
            "000001_00000034333.jpg",
            "000002_00000067666.jpg",
        ]
        assert _names(root / "depth") == [
            "000000_00000001100.png",
            "000001_00000034433.png",
            "000002_00000067766.png",
        ]
        assert len(_names(root / "infrared")) == 3
        assert result.drain.total_written == 9
        assert result.drain.total_failed == 0
        assert three_capture_factory.playback.closed

    def test_mjpg_color_is_copied_byte_for_byte(self, recording_path, three_capture_factory):
        _extractor(recording_path, three_capture_factory).run()

        written = (recording_path.parent / "capture" / "color" / "000000_00000001000.jpg").read_bytes()
        assert written == mjpg_buffer(10).tobytes()

    def test_raw_depth_is_16bit_native_geometry(self, recording_path, three_capture_factory):
        _extractor(recording_path, three_capture_factory).run()

        depth = _read(recording_path.parent / "capture" / "depth" / "000001_00000034433.png")
        assert depth.dtype == np.uint16
        assert depth.shape == (DEPTH_SIZE[1], DEPTH_SIZE[0])
        assert int(depth[0, 0]) == 1000

    def test_scaled_depth_is_8bit(self, recording_path, three_capture_factory):
        _extractor(recording_path, three_capture_factory, scaling=True).run()

        depth = _read(recording_path.parent / "capture" / "depth" / "000001_00000034433.png")
        assert depth.dtype == np.uint8
        assert int(depth[0, 0]) == 204

    def test_infrared_is_halved_8bit_jpeg(self, recording_path, three_capture_factory):
        _extractor(recording_path, three_capture_factory, quality=100).run()

        infrared = _read(recording_path.parent / "capture" / "infrared" / "000001_00000034433.jpg")
        assert infrared.dtype == np.uint8
        assert abs(int(infrared.mean()) - 100) <= 1

    def test_transform_writes_depth_in_color_geometry(self, recording_path, three_capture_factory):
        _extractor(
            recording_path,
            three_capture_factory,
            transform=True,
            transform_fn=resize_to_color,
        ).run()

        depth = _read(recording_path.parent / "capture" / "depth" / "000000_00000001100.png")
        assert depth.shape == (COLOR_SIZE[1], COLOR_SIZE[0])
        assert depth.dtype == np.uint16

    def test_depth_only_recording_creates_only_depth_directory(self, recording_path):
        factory = PlaybackFactory(
            make_captures(2, color=False, infrared=False),
            record_configuration(color=False, infrared=False),
        )

        result = _extractor(recording_path, factory).run()

        assert _names(recording_path.parent / "capture") == ["depth"]
        assert result.config.enabled_kinds == ("depth",)
        assert result.drain.total_written == 2

    def test_existing_output_root_fails_before_workers_start(self, recording_path, three_capture_factory):
        (recording_path.parent / "capture").mkdir()

        with pytest.raises(StartupError, match="already exists"):
            _extractor(recording_path, three_capture_factory).run()

        assert three_capture_factory.playback.closed
        assert _names(recording_path.parent / "capture") == []

    def test_transform_without_color_track_is_rejected(self, recording_path):
        factory = PlaybackFactory(
            make_captures(1, color=False),
            record_configuration(color=False),
        )

        with pytest.raises(StartupError):
            _extractor(recording_path, factory, transform=True).run()

        assert not (recording_path.parent / "capture").exists()

    def test_unsupported_color_format_is_rejected(self, recording_path):
        factory = PlaybackFactory(make_captures(1), record_configuration(color_format=1))

        with pytest.raises(StartupError, match="unsupported"):
            _extractor(recording_path, factory).run()

    def test_quit_key_stops_ingestion_and_drains(self, recording_path):
        factory = PlaybackFactory(make_captures(10))
        preview = MagicMock()
        preview.poll_quit.return_value = True

        result = _extractor(
            recording_path,
            factory,
            display=True,
            preview_factory=lambda config: preview,
        ).run()

        assert result.stopped_early
        assert result.captures == 1
        assert result.drain.total_written == 3
        preview.close.assert_called_once()

    def test_preview_is_not_created_without_display(self, recording_path, three_capture_factory):
        preview_factory = MagicMock()

        _extractor(recording_path, three_capture_factory, preview_factory=preview_factory).run()

        preview_factory.assert_not_called()
