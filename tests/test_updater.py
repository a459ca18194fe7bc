"""
Tests for the periodic count updater and count sources.
"""

from __future__ import annotations

import time
from pathlib import Path
from unittest import mock
from unittest.mock import MagicMock

import pytest
import yaml

from boardmetrics.observability.updater import (
    CountSnapshot,
    FileCountSource,
    MetricsUpdater,
    StaticCountSource,
)


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestRunOnce:
    """Tests for a single refresh."""

    def test_observes_source_counts(self, metrics):
        """Block and workspace counts land in the gauges."""
        source = StaticCountSource(block_counts={"card": 12, "board": 4}, workspace_count=3)
        updater = MetricsUpdater(metrics, source)

        assert updater.run_once() is True

        assert metrics.get_value("focalboard_blocks_blocks_total", {"BlockType": "card"}) == 12
        assert metrics.get_value("focalboard_blocks_blocks_total", {"BlockType": "board"}) == 4
        assert metrics.get_value("focalboard_workspaces_workspaces_total") == 3
        assert updater.run_count == 1
        assert updater.last_run_at is not None

    def test_later_run_overwrites(self, metrics):
        """Counts are replaced, not summed, on the next run."""
        source = StaticCountSource(block_counts={"card": 12}, workspace_count=3)
        updater = MetricsUpdater(metrics, source)
        updater.run_once()

        source.block_counts["card"] = 5
        source.workspace_count = 1
        updater.run_once()

        assert metrics.get_value("focalboard_blocks_blocks_total", {"BlockType": "card"}) == 5
        assert metrics.get_value("focalboard_workspaces_workspaces_total") == 1

    def test_source_error_recorded(self, metrics):
        """A failing source is reported, not raised."""
        source = MagicMock()
        source.read_counts.side_effect = RuntimeError("database is locked")
        updater = MetricsUpdater(metrics, source)

        assert updater.run_once() is False
        assert updater.last_error == "database is locked"
        assert updater.run_count == 0

    def test_error_cleared_after_success(self, metrics):
        """A successful run clears the previous error."""
        source = MagicMock()
        source.read_counts.side_effect = [
            RuntimeError("boom"),
            CountSnapshot(block_counts={"card": 1}, workspace_count=1),
        ]
        updater = MetricsUpdater(metrics, source)

        updater.run_once()
        updater.run_once()

        assert updater.last_error is None
        assert updater.run_count == 1

    def test_unconvertible_value_recorded(self, metrics):
        """A count the gauge cannot take is an error, not an exception."""
        source = StaticCountSource(block_counts={"card": "n/a"}, workspace_count=1)
        updater = MetricsUpdater(metrics, source)

        assert updater.run_once() is False
        assert "n/a" in updater.last_error
        assert updater.last_run_at is None

    def test_disabled_metrics(self):
        """With no registry the updater still polls."""
        source = StaticCountSource(block_counts={"card": 1}, workspace_count=1)
        updater = MetricsUpdater(None, source)

        assert updater.run_once() is True

    def test_invalid_interval(self, metrics):
        """Interval must be positive."""
        with pytest.raises(ValueError):
            MetricsUpdater(metrics, StaticCountSource(), interval_seconds=0)


class TestBackgroundThread:
    """Tests for start/stop."""

    def test_start_runs_and_stop_joins(self, metrics):
        """The thread refreshes immediately and stops cleanly."""
        source = StaticCountSource(block_counts={"card": 2}, workspace_count=1)
        updater = MetricsUpdater(metrics, source, interval_seconds=0.05)

        updater.start()
        try:
            assert _wait_for(lambda: updater.run_count >= 2)
            assert updater.running
        finally:
            updater.stop()

        assert not updater.running
        assert metrics.get_value("focalboard_workspaces_workspaces_total") == 1

    def test_start_twice_keeps_one_thread(self, metrics):
        """Calling start again while running is a no-op."""
        updater = MetricsUpdater(metrics, StaticCountSource(), interval_seconds=10)

        updater.start()
        try:
            thread = updater._thread
            updater.start()
            assert updater._thread is thread
        finally:
            updater.stop()

    def test_bad_value_does_not_kill_thread(self, metrics):
        """The loop survives a bad count and resumes once it is fixed."""
        source = StaticCountSource(block_counts={"card": "n/a"}, workspace_count=1)
        updater = MetricsUpdater(metrics, source, interval_seconds=0.05)

        updater.start()
        try:
            assert _wait_for(lambda: updater.last_error is not None)
            assert updater.running
            assert updater.run_count == 0

            source.block_counts["card"] = 3

            assert _wait_for(lambda: updater.run_count >= 1)
            assert updater.running
            assert updater.last_error is None
        finally:
            updater.stop()

        assert metrics.get_value("focalboard_blocks_blocks_total", {"BlockType": "card"}) == 3


class TestFileCountSource:
    """Tests for the YAML snapshot source."""

    def test_reads_counts(self, counts_file):
        """Counts are parsed from YAML."""
        source = FileCountSource(counts_file)

        assert source.read_counts() == CountSnapshot(
            block_counts={"board": 4, "card": 12},
            workspace_count=3,
        )

    def test_rereads_on_each_poll(self, counts_file):
        """Edits to the file are picked up."""
        source = FileCountSource(counts_file)
        counts_file.write_text("workspaces: 9\n", encoding="utf-8")

        snapshot = source.read_counts()

        assert snapshot.workspace_count == 9
        assert snapshot.block_counts == {}

    def test_missing_file(self, tmp_path: Path, metrics):
        """A missing snapshot surfaces as an updater error."""
        updater = MetricsUpdater(metrics, FileCountSource(tmp_path / "missing.yaml"))

        assert updater.run_once() is False
        assert updater.last_error

    def test_non_mapping(self, tmp_path: Path):
        """A snapshot that is not a mapping is rejected."""
        path = tmp_path / "counts.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")

        with pytest.raises(ValueError):
            FileCountSource(path).read_counts()

    def test_single_read_per_poll(self, counts_file):
        """Both totals come from one read of the file."""
        source = FileCountSource(counts_file)

        with mock.patch.object(yaml, "safe_load", wraps=yaml.safe_load) as load:
            snapshot = source.read_counts()

        assert load.call_count == 1
        assert snapshot.workspace_count == 3
        assert snapshot.block_counts["card"] == 12

    def test_blocks_not_mapping(self, tmp_path: Path):
        """A list under blocks is rejected."""
        path = tmp_path / "counts.yaml"
        path.write_text("blocks: [card, board]\n", encoding="utf-8")

        with pytest.raises(ValueError, match="blocks"):
            FileCountSource(path).read_counts()
