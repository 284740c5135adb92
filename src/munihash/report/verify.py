"""Re-derive digests from a written output file and compare them.

Salts are deterministic, so a group file can be checked long after the run
that produced it, given the same KDF parameters.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from pydantic import BaseModel, Field

from munihash.core.defaults import FIELD_DELIMITER
from munihash.core.errors import AcquisitionError
from munihash.core.schema import OutputSchemaV1
from munihash.core.types import Batch, Record
from munihash.engine.engine import HashingEngine

logger = logging.getLogger(__name__)


class VerificationReport(BaseModel):
    """Outcome of :func:`verify_group_csv`."""

    path: str
    checked: int = 0
    mismatched: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.mismatched


def read_group_csv(path: Path) -> pd.DataFrame:
    """Read an output CSV with every column kept as text.

    Raises:
        AcquisitionError: If the file cannot be read or parsed.
    """
    try:
        return pd.read_csv(path, sep=FIELD_DELIMITER, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise AcquisitionError(f"Cannot read output file {path}: {exc}") from exc


def verify_group_csv(path: Path, engine: HashingEngine) -> VerificationReport:
    """Recompute every digest in the CSV at *path* and list mismatches.

    Args:
        path: A ``municipios_hash_<GROUP>.csv`` file.
        engine: Engine configured with the KDF parameters of the original run.

    Returns:
        A :class:`VerificationReport`; ``mismatched`` holds the identifiers
        whose stored digest differs from the recomputed one.

    Raises:
        AcquisitionError: If the file cannot be read.
        ValueError: If its columns do not match :class:`OutputSchemaV1`.
    """
    rows = OutputSchemaV1.rows_from_dataframe(read_group_csv(path))
    report = VerificationReport(path=str(path))
    if not rows:
        return report

    stored = {row["identifier"]: row.pop("digest_hex") for row in rows}
    batch = Batch(group=rows[0]["group"], records=tuple(Record(**row) for row in rows))
    recomputed = {r.identifier: r.digest_hex for r in engine.run(batch).snapshot()}

    report.checked = len(rows)
    report.mismatched = sorted(
        ident for ident, digest in stored.items() if recomputed.get(ident) != digest
    )
    if report.mismatched:
        logger.warning("%s: %d digest mismatch(es)", path, len(report.mismatched))
    return report
