"""Tests for the free-space check."""

from __future__ import annotations

from collections import namedtuple

from k4a_mkv2image.storage import disk_guard as disk_guard_module
from k4a_mkv2image.storage.disk_guard import DiskGuard

_Usage = namedtuple("_Usage", "total used free")


class TestDiskGuard:

    def test_ok_when_above_threshold(self, tmp_path):
        guard = DiskGuard(threshold_gb=0.0)

        assert guard.check(tmp_path) is True
        assert guard.last_status().ok

    def test_missing_path_checks_nearest_existing_parent(self, tmp_path, monkeypatch):
        seen = []

        def fake_usage(path):
            seen.append(path)
            return _Usage(0, 0, 5 * 1024**3)

        monkeypatch.setattr(disk_guard_module.shutil, "disk_usage", fake_usage)

        assert DiskGuard(threshold_gb=1.0).check(tmp_path / "a" / "b") is True
        assert seen == [tmp_path]

    def test_low_space_warns_but_does_not_raise(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setattr(
            disk_guard_module.shutil, "disk_usage", lambda path: _Usage(0, 0, 100 * 1024**2)
        )
        guard = DiskGuard(threshold_gb=1.0)

        with caplog.at_level("WARNING"):
            assert guard.check(tmp_path) is False

        assert "Low disk space" in caplog.text
        assert guard.last_status().free_gb < 1.0
