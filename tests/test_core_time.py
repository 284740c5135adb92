"""Tests for elapsed-time formatting and the stopwatch."""

from __future__ import annotations

import pytest

from munihash.core.time import Stopwatch, format_elapsed


class TestFormatElapsed:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "00:00.000"), (1.2345, "00:01.234"), (61.5, "01:01.500"), (3725.001, "62:05.001"), (-3, "00:00.000")],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        assert format_elapsed(seconds) == expected


class TestStopwatch:
    def test_freezes_on_exit(self) -> None:
        with Stopwatch() as sw:
            pass
        frozen = sw.elapsed
        assert frozen >= 0.0
        assert sw.elapsed == frozen

    def test_unstarted_reads_zero(self) -> None:
        assert Stopwatch().elapsed == 0.0

    def test_stop_without_start(self) -> None:
        with pytest.raises(RuntimeError):
            Stopwatch().stop()
