"""
Tests for scan timing helpers and console output.
"""

from __future__ import annotations

import io

import pytest

from aimtrace.core.timing import ScanStats, format_duration
from aimtrace.core.utils import Logger


@pytest.mark.evergreen
class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(0.0079, "7.9ms"), (2.34, "2.3s"), (65.3, "1m 5.3s")],
    )
    def test_format(self, seconds: float, expected: str):
        assert format_duration(seconds) == expected


@pytest.mark.evergreen
class TestScanStats:
    def test_phases_accumulate(self):
        stats = ScanStats()
        with stats.phase("parse"):
            pass
        first = stats.phases["parse"]
        with stats.phase("parse"):
            pass
        assert stats.phases["parse"] >= first
        assert stats.total == pytest.approx(sum(stats.phases.values()))

    def test_phase_recorded_on_error(self):
        stats = ScanStats()
        with pytest.raises(RuntimeError):
            with stats.phase("list"):
                raise RuntimeError("boom")
        assert "list" in stats.phases

    def test_summary(self):
        stats = ScanStats(candidates=3, added=1, failed=2)
        assert stats.summary() == "3 candidates, 1 new, 2 failed"
        stats.phases["list"] = 0.0004
        assert stats.summary().endswith("| list 0.4ms")


@pytest.mark.evergreen
class TestConsoleLogger:
    def test_plain_output_without_color(self):
        out = io.StringIO()
        logger = Logger(use_color=False, stream=out)
        logger.error("bad")
        logger.field("Points", 3)
        assert out.getvalue().splitlines() == ["  [ERROR] bad", f"    {'Points'.ljust(14)} 3"]

    def test_non_tty_stream_is_uncolored(self):
        out = io.StringIO()
        Logger(stream=out).success("done")
        assert "\033[" not in out.getvalue()

    def test_color_codes_when_forced(self):
        out = io.StringIO()
        Logger(use_color=True, stream=out).header("Title")
        assert "\033[1mTitle\033[0m" in out.getvalue()
