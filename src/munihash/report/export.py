"""Output sink: per-group delimited-text and JSON files, plus the run manifest.

For each group two files are written next to each other::

    <out_dir>/municipios_hash_<GROUP>.csv    ;-delimited, header row
    <out_dir>/municipios_hash_<GROUP>.json   indented array of objects

Rows are sorted by identifier so a rerun produces byte-identical files.
Text fields are quoted (CSV dialect, ``"`` doubled) whenever they contain
the delimiter, a quote, or a line break; nothing is stripped or rewritten.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel

from munihash.core.defaults import FIELD_DELIMITER, OUTPUT_FILE_PREFIX
from munihash.core.errors import OutputError
from munihash.core.schema import OutputSchemaV1
from munihash.core.store import remove_quietly, write_text_atomic
from munihash.core.types import HashResult
from munihash.report.summary import RunSummary

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class GroupOutput(BaseModel, frozen=True):
    """Paths of the two files written for one group."""

    group: str
    csv_path: Path
    json_path: Path
    record_count: int


def group_file_stem(group: str) -> str:
    """Deterministic file stem for *group*, e.g. ``municipios_hash_RO``.

    Characters outside ``[A-Za-z0-9_-]`` become ``_``.
    """
    return OUTPUT_FILE_PREFIX + _UNSAFE_FILENAME_CHARS.sub("_", group.strip())


def group_output_paths(group: str, out_dir: Path) -> tuple[Path, Path]:
    stem = group_file_stem(group)
    return out_dir / f"{stem}.csv", out_dir / f"{stem}.json"


def _sorted(results: Sequence[HashResult]) -> list[HashResult]:
    return sorted(results, key=lambda r: r.identifier)


def render_csv(results: Sequence[HashResult]) -> str:
    """Render *results* as ``;``-delimited text with a header row."""
    df = OutputSchemaV1.to_dataframe(_sorted(results))
    return df.to_csv(sep=FIELD_DELIMITER, index=False, lineterminator="\n")


def render_json(results: Sequence[HashResult]) -> str:
    """Render *results* as an indented JSON array (UTF-8, non-ASCII kept)."""
    records = [OutputSchemaV1.to_json_record(r) for r in _sorted(results)]
    return json.dumps(records, indent=2, ensure_ascii=False) + "\n"


def write_group_outputs(
    group: str,
    results: Sequence[HashResult],
    out_dir: Path,
) -> GroupOutput:
    """Write the CSV and JSON files for one group.

    Each file is written atomically.  If either write fails, both files for
    the group are removed so no half-finished pair is left behind.

    Args:
        group: Group key; determines the file names.
        results: All hash results of the group, in any order.
        out_dir: Destination directory (created if missing).

    Returns:
        A :class:`GroupOutput` with both paths.

    Raises:
        OutputError: On any filesystem or serialization failure.
    """
    csv_path, json_path = group_output_paths(group, out_dir)
    try:
        write_text_atomic(render_csv(results), csv_path)
        write_text_atomic(render_json(results), json_path)
    except (OSError, ValueError, TypeError) as exc:
        remove_quietly(csv_path, json_path)
        logger.error("Group %s: output failed, removed partial files: %s", group, exc)
        raise OutputError(f"Cannot write output files: {exc}", group=group) from exc

    logger.info("Group %s: wrote %s and %s", group, csv_path.name, json_path.name)
    return GroupOutput(
        group=group,
        csv_path=csv_path,
        json_path=json_path,
        record_count=len(results),
    )


def write_run_summary(summary: RunSummary, path: Path) -> Path:
    """Write *summary* to a JSON file.

    Raises:
        OutputError: If the file cannot be written.
    """
    data = summary.model_dump(mode="json", exclude_none=True)
    data["total_records"] = summary.total_records
    try:
        return write_text_atomic(json.dumps(data, indent=2) + "\n", path)
    except OSError as exc:
        raise OutputError(f"Cannot write run summary {path}: {exc}") from exc
