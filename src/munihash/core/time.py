"""Elapsed-time measurement and formatting for progress output."""

from __future__ import annotations

import time


def format_elapsed(seconds: float) -> str:
    """Render *seconds* as ``MM:SS.mmm``.

    Minutes are not wrapped at 60, so long runs read ``125:03.250``.
    Negative inputs are clamped to zero.
    """
    total_ms = max(0, round(seconds * 1000))
    minutes, rem_ms = divmod(total_ms, 60_000)
    secs, millis = divmod(rem_ms, 1000)
    return f"{minutes:02d}:{secs:02d}.{millis:03d}"


class Stopwatch:
    """Monotonic stopwatch usable as a context manager.

    ::

        with Stopwatch() as sw:
            work()
        sw.elapsed  # seconds, frozen at exit
    """

    def __init__(self) -> None:
        self._start: float | None = None
        self._stop: float | None = None

    def start(self) -> Stopwatch:
        self._start = time.perf_counter()
        self._stop = None
        return self

    def stop(self) -> float:
        if self._start is None:
            raise RuntimeError("Stopwatch was never started")
        self._stop = time.perf_counter()
        return self.elapsed

    @property
    def elapsed(self) -> float:
        """Seconds since :meth:`start`, or the frozen value after :meth:`stop`."""
        if self._start is None:
            return 0.0
        end = self._stop if self._stop is not None else time.perf_counter()
        return end - self._start

    def __enter__(self) -> Stopwatch:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
