"""Output schema: column registry, deterministic schema hash, and row mapping."""

from __future__ import annotations

import json
from typing import Any, Final

import pandas as pd

from munihash.core.hashing import stable_hash
from munihash.core.types import HashResult

# Canonical output column registry (v1): field name -> CSV header label.
# Keys are ordered; the file layout and the schema hash depend on this ordering.
_COLUMNS_V1: Final[dict[str, str]] = {
    "identifier": "IBGE",
    "secondary_code": "TOM",
    "primary_name": "Nome(TOM)",
    "secondary_name": "Nome(IBGE)",
    "group": "UF",
    "digest_hex": "HASH_HEX",
}


def _build_schema_hash(columns: dict[str, str]) -> str:
    payload = json.dumps(
        [[name, header] for name, header in columns.items()],
        separators=(",", ":"),
    )
    return stable_hash(payload)


class OutputSchemaV1:
    """Schema contract for per-group output files (v1).

    The delimited-text file uses :attr:`HEADERS` as its header row; the JSON
    document uses the field names themselves as object keys.
    """

    VERSION: Final[str] = "v1"
    COLUMNS: Final[dict[str, str]] = _COLUMNS_V1
    HEADERS: Final[list[str]] = list(_COLUMNS_V1.values())
    SCHEMA_HASH: Final[str] = _build_schema_hash(_COLUMNS_V1)

    @classmethod
    def to_row(cls, result: HashResult) -> dict[str, Any]:
        """Map *result* to an ordered ``{header: value}`` dict."""
        return {header: getattr(result, name) for name, header in cls.COLUMNS.items()}

    @classmethod
    def to_json_record(cls, result: HashResult) -> dict[str, Any]:
        return {name: getattr(result, name) for name in cls.COLUMNS}

    @classmethod
    def to_dataframe(cls, results: list[HashResult]) -> pd.DataFrame:
        """Tabulate *results* with header labels as columns, in registry order."""
        return pd.DataFrame([cls.to_row(r) for r in results], columns=cls.HEADERS)

    @classmethod
    def rows_from_dataframe(cls, df: pd.DataFrame) -> list[dict[str, str]]:
        """Map each DataFrame row to a ``{field name: text}`` dict.

        Values are not validated, so a corrupted digest is returned as-is.

        Raises:
            ValueError: If header columns are missing or unexpected.
        """
        cls.validate_dataframe(df)
        by_header = {header: name for name, header in cls.COLUMNS.items()}
        return [
            {by_header[h]: str(v) for h, v in row.items()}
            for row in df.to_dict(orient="records")
        ]

    @classmethod
    def validate_dataframe(cls, df: pd.DataFrame) -> None:
        expected = set(cls.HEADERS)
        actual = set(df.columns)

        missing = expected - actual
        if missing:
            raise ValueError(f"Missing columns: {sorted(missing)}")

        extra = actual - expected
        if extra:
            raise ValueError(f"Unexpected columns: {sorted(extra)}")
