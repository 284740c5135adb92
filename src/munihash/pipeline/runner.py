"""Sequential driver: partition, then hash and write one group at a time.

Records inside a group are hashed concurrently by the engine; groups run
strictly one after another, and a group's files are written before the
next group starts.  Peak memory is therefore one group's records plus its
results.
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Sequence

from munihash.core.errors import OutputError
from munihash.core.hashing import params_fingerprint
from munihash.core.schema import OutputSchemaV1
from munihash.core.time import Stopwatch
from munihash.core.types import Batch, Record
from munihash.engine.engine import HashingEngine, validate_batch
from munihash.pipeline.partition import partition_by_group
from munihash.report.export import group_file_stem, write_group_outputs
from munihash.report.summary import GroupSummary, RunSummary

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, Batch, GroupSummary | None], None]
"""Called as ``(event, batch, summary)`` with event ``"start"`` or ``"done"``."""


def check_batches(batches: Sequence[Batch]) -> None:
    """Validate every batch and its output file name before any hashing.

    Raises:
        ConfigurationError: If a batch fails :func:`validate_batch`.
        OutputError: If two groups map to the same output file name.
    """
    stems: dict[str, str] = {}
    for batch in batches:
        validate_batch(batch)
        stem = group_file_stem(batch.group)
        if stem in stems:
            raise OutputError(
                f"Output file name {stem!r} already used by group {stems[stem]!r}",
                group=batch.group,
            )
        stems[stem] = batch.group


def run_pipeline(
    records: Sequence[Record],
    *,
    engine: HashingEngine,
    out_dir: Path,
    dropped_rows: int = 0,
    on_progress: ProgressCallback | None = None,
    cancel: threading.Event | None = None,
) -> RunSummary:
    """Hash every record and write per-group output files.

    Args:
        records: All parsed records.
        engine: Configured hashing engine.
        out_dir: Destination directory for the group files.
        dropped_rows: Parser drop count, carried into the summary.
        on_progress: Optional progress callback.
        cancel: Optional event forwarded to :meth:`HashingEngine.run`.

    Returns:
        The :class:`RunSummary` of the completed run.

    Raises:
        ConfigurationError: If any group fails :func:`check_batches`;
            nothing is hashed or written.
        MunihashError: The first fatal error; later groups are not started.
    """
    batches = partition_by_group(records)
    summary = RunSummary(
        schema_version=OutputSchemaV1.VERSION,
        schema_hash=OutputSchemaV1.SCHEMA_HASH,
        params_fingerprint=params_fingerprint(engine.params),
        iterations=engine.params.iterations,
        output_length=engine.params.output_length,
        hash_name=engine.params.hash_name,
        max_workers=engine.max_workers,
        executor=engine.executor_kind,
        dropped_rows=dropped_rows,
        excluded_records=len(records) - sum(len(b) for b in batches),
    )
    logger.info("Processing %d group(s) into %s", len(batches), out_dir)

    check_batches(batches)
    with Stopwatch() as total:
        for batch in batches:
            if on_progress is not None:
                on_progress("start", batch, None)
            with Stopwatch() as sw:
                aggregator = engine.run(batch, cancel=cancel)
                written = write_group_outputs(batch.group, aggregator.snapshot(), out_dir)
            group_summary = GroupSummary(
                group=batch.group,
                record_count=written.record_count,
                elapsed_seconds=sw.elapsed,
                csv_path=str(written.csv_path),
                json_path=str(written.json_path),
            )
            summary.groups.append(group_summary)
            if on_progress is not None:
                on_progress("done", batch, group_summary)

    summary.total_elapsed_seconds = total.elapsed
    summary.finished_at = datetime.now(UTC)
    logger.info(
        "Completed %d group(s), %d record(s) in %.3fs",
        len(summary.groups), summary.total_records, summary.total_elapsed_seconds,
    )
    return summary
