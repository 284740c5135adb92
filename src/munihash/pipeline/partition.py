"""Split the full record set into one batch per group."""

from __future__ import annotations

import logging
from typing import Sequence

from munihash.core.types import Batch, Record

logger = logging.getLogger(__name__)


def group_keys(records: Sequence[Record]) -> list[str]:
    """Distinct non-blank group keys, deduplicated and sorted case-insensitively.

    The first spelling seen for a key is the one kept.
    """
    seen: dict[str, str] = {}
    for record in records:
        key = record.group.strip()
        if key:
            seen.setdefault(key.casefold(), key)
    return sorted(seen.values(), key=lambda k: (k.casefold(), k))


def partition_by_group(records: Sequence[Record]) -> list[Batch]:
    """Group *records* into batches, ordered by group key (case-insensitive).

    Records with a blank group are excluded and logged.

    Args:
        records: Parsed records, in any order.

    Returns:
        One :class:`Batch` per distinct group.
    """
    buckets: dict[str, list[Record]] = {}
    blank = 0
    for record in records:
        key = record.group.strip()
        if not key:
            blank += 1
            continue
        buckets.setdefault(key.casefold(), []).append(record)

    if blank:
        logger.warning("Excluded %d record(s) with a blank group", blank)

    return [
        Batch(group=key, records=tuple(buckets[key.casefold()]))
        for key in group_keys(records)
    ]
