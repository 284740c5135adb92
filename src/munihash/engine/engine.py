"""Parallel hashing engine: one PBKDF2 derivation per record on a worker pool.

Typical flow::

    engine = HashingEngine(KDFParams(iterations=50_000), max_workers=8)
    aggregator = engine.run(batch)
    results = aggregator.snapshot()   # one HashResult per record, any order

Failure policy is fail-fast: the first record whose derivation raises
aborts the batch.  Queued tasks are cancelled, tasks already running are
allowed to finish, and a :class:`~munihash.core.errors.DerivationError`
naming the record is raised.  A batch job whose output is trusted as an
integrity artifact must not hand back a silently incomplete result set.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import Counter
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from functools import partial
from typing import Final

from munihash.core.defaults import DEFAULT_EXECUTOR, DEFAULT_INFLIGHT_PER_WORKER
from munihash.core.errors import BatchCancelledError, ConfigurationError, DerivationError
from munihash.core.hashing import KDFParams, hash_record
from munihash.core.types import Batch, HashResult, Record
from munihash.engine.aggregator import ResultAggregator

logger = logging.getLogger(__name__)

EXECUTOR_KINDS: Final[frozenset[str]] = frozenset({"thread", "process"})


def default_worker_count() -> int:
    """Number of processing units available to this process."""
    return os.cpu_count() or 1


def validate_batch(batch: Batch) -> None:
    """Reject batches that cannot produce a complete, unambiguous result set.

    Raises:
        ConfigurationError: On a blank identifier, duplicate identifiers,
            or a record whose group does not match the batch.
    """
    for position, record in enumerate(batch.records):
        if not record.identifier.strip():
            raise ConfigurationError(
                f"Record #{position} ({record.primary_name!r}) has an empty identifier",
                group=batch.group,
            )
        if record.group.strip().casefold() != batch.group.strip().casefold():
            raise ConfigurationError(
                f"Record {record.identifier!r} belongs to group {record.group!r}",
                group=batch.group,
            )

    counts = Counter(r.identifier for r in batch.records)
    duplicates = sorted(ident for ident, n in counts.items() if n > 1)
    if duplicates:
        raise ConfigurationError(
            f"Duplicate identifiers: {duplicates}", group=batch.group,
        )


def _collect(aggregator: ResultAggregator, future: Future[HashResult]) -> None:
    """Done-callback: move a finished task's result into the aggregator."""
    if future.cancelled() or future.exception() is not None:
        return
    aggregator.add(future.result())


class HashingEngine:
    """Computes hash results for a batch on a fixed-size worker pool.

    Args:
        params: Validated KDF parameters shared by every record.
        max_workers: Pool size.  Defaults to :func:`default_worker_count`.
        executor: ``"thread"`` (default; :func:`hashlib.pbkdf2_hmac` releases
            the GIL, so threads scale across cores) or ``"process"``.
        inflight_per_worker: How many tasks per worker may be queued at once.

    Raises:
        ConfigurationError: On a non-positive worker count or an unknown
            executor kind.  Raised from the constructor so nothing is ever
            scheduled with a bad configuration.
    """

    def __init__(
        self,
        params: KDFParams,
        *,
        max_workers: int | None = None,
        executor: str = DEFAULT_EXECUTOR,
        inflight_per_worker: int = DEFAULT_INFLIGHT_PER_WORKER,
    ) -> None:
        if not isinstance(params, KDFParams):
            raise ConfigurationError(f"Expected KDFParams, got {type(params).__name__}")
        workers = default_worker_count() if max_workers is None else max_workers
        if workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {workers}")
        if executor not in EXECUTOR_KINDS:
            raise ConfigurationError(
                f"Unknown executor {executor!r}; expected one of {sorted(EXECUTOR_KINDS)}"
            )
        if inflight_per_worker < 1:
            raise ConfigurationError(f"inflight_per_worker must be >= 1, got {inflight_per_worker}")

        self.params = params
        self.max_workers = workers
        self.executor_kind = executor
        self._window = workers * inflight_per_worker

    def _make_executor(self) -> Executor:
        if self.executor_kind == "process":
            return ProcessPoolExecutor(max_workers=self.max_workers)
        return ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="munihash")

    def _submit(
        self, pool: Executor, record: Record, aggregator: ResultAggregator,
    ) -> Future[HashResult]:
        future = pool.submit(hash_record, record, self.params)
        future.add_done_callback(partial(_collect, aggregator))
        return future

    def run(
        self,
        batch: Batch,
        *,
        cancel: threading.Event | None = None,
    ) -> ResultAggregator:
        """Hash every record of *batch* and return the sealed aggregator.

        Blocks until all scheduled tasks have finished.  An empty batch goes
        through the same path and yields an empty aggregator.

        Args:
            batch: Records sharing one group key.
            cancel: Optional event; once set, no further tasks are
                submitted, queued ones are cancelled, and running ones are
                left to finish.

        Returns:
            A sealed :class:`ResultAggregator` with exactly one result per
            record.

        Raises:
            ConfigurationError: If the batch fails :func:`validate_batch`.
            DerivationError: If hashing any record fails.
            BatchCancelledError: If *cancel* was set before every record
                was hashed.
        """
        validate_batch(batch)
        aggregator = ResultAggregator(batch.group)
        logger.debug(
            "Group %s: scheduling %d record(s) on %d %s worker(s)",
            batch.group, len(batch), self.max_workers, self.executor_kind,
        )

        records = iter(batch.records)
        pending: dict[Future[HashResult], Record] = {}
        failure: tuple[Record, BaseException] | None = None
        exhausted = False

        with self._make_executor() as pool:
            try:
                while True:
                    while not exhausted and len(pending) < self._window:
                        if cancel is not None and cancel.is_set():
                            break
                        record = next(records, None)
                        if record is None:
                            exhausted = True
                            break
                        pending[self._submit(pool, record, aggregator)] = record

                    if cancel is not None and cancel.is_set():
                        for future in pending:
                            future.cancel()
                    if not pending:
                        break

                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        record = pending.pop(future)
                        if future.cancelled():
                            continue
                        exc = future.exception()
                        if exc is not None and failure is None:
                            failure = (record, exc)
                    if failure is not None:
                        break
            finally:
                for future in pending:
                    future.cancel()
        # Leaving the pool joined every worker, so every done-callback has run.
        aggregator.seal()

        if failure is not None:
            record, exc = failure
            logger.error(
                "Group %s: derivation failed for record %s: %s",
                batch.group, record.identifier, exc,
            )
            raise DerivationError(
                f"Derivation failed: {exc}",
                group=batch.group,
                identifier=record.identifier,
            ) from exc

        if cancel is not None and cancel.is_set() and len(aggregator) < len(batch):
            logger.warning(
                "Group %s: cancelled after %d of %d record(s)",
                batch.group, len(aggregator), len(batch),
            )
            raise BatchCancelledError(
                f"Cancelled after {len(aggregator)} of {len(batch)} record(s)",
                group=batch.group,
                completed=len(aggregator),
            )

        if len(aggregator) != len(batch):
            raise DerivationError(
                f"Expected {len(batch)} result(s), collected {len(aggregator)}",
                group=batch.group,
            )
        return aggregator
