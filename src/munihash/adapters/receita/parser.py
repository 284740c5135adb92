"""Parse the decoded municipality table into :class:`Record` instances.

Expected layout (``;``-delimited, header optional)::

    TOM;IBGE;Nome(TOM);Nome(IBGE);UF
    0001;1100015;ALTA FLORESTA D'OESTE;Alta Floresta D'Oeste;RO

Rows with fewer than five fields are dropped and counted, not repaired.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from munihash.core.defaults import FIELD_DELIMITER, MIN_FIELDS_PER_ROW
from munihash.core.types import Record

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r\n|\n")


@dataclass(frozen=True)
class ParseResult:
    """Parsed records plus the count of rows that were dropped."""

    records: list[Record] = field(default_factory=list)
    dropped_rows: int = 0
    had_header: bool = False


def _row_to_record(parts: list[str]) -> Record:
    tom, ibge, nome_tom, nome_ibge, uf = (p.strip() for p in parts[:MIN_FIELDS_PER_ROW])
    return Record(
        identifier=ibge,
        secondary_code=tom,
        primary_name=nome_tom,
        secondary_name=nome_ibge,
        group=uf.upper(),
    )


def parse_records(text: str) -> ParseResult:
    """Split *text* into lines and build one record per well-formed row.

    The first non-blank line is treated as a header when it contains the
    field delimiter.  Extra fields beyond the fifth are ignored.

    Args:
        text: Decoded dataset text.

    Returns:
        A :class:`ParseResult`; ``dropped_rows`` counts rows with fewer
        than five fields.
    """
    lines = [ln for ln in _LINE_SPLIT.split(text) if ln]
    had_header = bool(lines) and FIELD_DELIMITER in lines[0]
    if had_header:
        lines = lines[1:]

    records: list[Record] = []
    dropped = 0
    for line in lines:
        parts = line.split(FIELD_DELIMITER)
        if len(parts) < MIN_FIELDS_PER_ROW:
            dropped += 1
            continue
        records.append(_row_to_record(parts))

    if dropped:
        logger.warning("Dropped %d malformed row(s) with fewer than %d fields", dropped, MIN_FIELDS_PER_ROW)
    logger.info("Parsed %d record(s)", len(records))
    return ParseResult(records=records, dropped_rows=dropped, had_header=had_header)
