"""Tests for the output column registry and row mapping."""

from __future__ import annotations

import re

import pandas as pd
import pytest

from munihash.core.hashing import KDFParams, hash_record
from munihash.core.schema import OutputSchemaV1

from conftest import make_record


class TestOutputSchemaV1:
    def test_schema_hash_format(self) -> None:
        assert re.fullmatch(r"[0-9a-f]{12}", OutputSchemaV1.SCHEMA_HASH)

    def test_row_mapping_follows_registry(self, fast_params: KDFParams) -> None:
        result = hash_record(make_record("1100015"), fast_params)
        row = OutputSchemaV1.to_row(result)
        assert list(row) == ["IBGE", "TOM", "Nome(TOM)", "Nome(IBGE)", "UF", "HASH_HEX"]
        assert row["IBGE"] == "1100015"
        assert row["HASH_HEX"] == result.digest_hex

    def test_dataframe_round_trip(self, fast_params: KDFParams) -> None:
        results = [hash_record(make_record(i), fast_params) for i in ("1100015", "1100023")]
        rows = OutputSchemaV1.rows_from_dataframe(OutputSchemaV1.to_dataframe(results))
        assert [r["digest_hex"] for r in rows] == [r.digest_hex for r in results]
        assert rows[0]["identifier"] == "1100015"

    def test_rows_keep_non_hex_digest_text(self) -> None:
        df = pd.DataFrame([["1", "T", "N", "n", "RO", "NOT-HEX"]], columns=OutputSchemaV1.HEADERS)
        assert OutputSchemaV1.rows_from_dataframe(df)[0]["digest_hex"] == "NOT-HEX"

    def test_missing_column(self) -> None:
        df = pd.DataFrame(columns=OutputSchemaV1.HEADERS[:-1])
        with pytest.raises(ValueError, match="Missing columns"):
            OutputSchemaV1.validate_dataframe(df)
