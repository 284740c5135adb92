"""Thread-safe collection of hash results for one batch."""

from __future__ import annotations

import threading

from munihash.core.types import HashResult


class ResultAggregator:
    """Lock-guarded sink that worker tasks insert results into.

    :meth:`add` may be called from any thread without external locking.
    Once the engine has joined every task it calls :meth:`seal`; from then
    on the contents are frozen and :meth:`snapshot` is a consistent view.
    Insertion order is not preserved in any meaningful way.
    """

    def __init__(self, group: str = "") -> None:
        self.group = group
        self._lock = threading.Lock()
        self._results: list[HashResult] = []
        self._sealed = False

    def add(self, result: HashResult) -> None:
        """Insert *result*.

        Raises:
            RuntimeError: If the aggregator has been sealed.
        """
        with self._lock:
            if self._sealed:
                raise RuntimeError(f"Aggregator for group {self.group!r} is sealed")
            self._results.append(result)

    def seal(self) -> None:
        with self._lock:
            self._sealed = True

    @property
    def sealed(self) -> bool:
        with self._lock:
            return self._sealed

    def snapshot(self) -> list[HashResult]:
        """Copy of the collected results (arbitrary order)."""
        with self._lock:
            return list(self._results)

    def identifiers(self) -> set[str]:
        with self._lock:
            return {r.identifier for r in self._results}

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
