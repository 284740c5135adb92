"""Tests for the output sink, run summary, and digest verification."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import munihash.report.export as export_mod
from munihash.core.errors import OutputError
from munihash.core.hashing import KDFParams, hash_record
from munihash.core.schema import OutputSchemaV1
from munihash.core.types import HashResult
from munihash.engine.engine import HashingEngine
from munihash.report.export import (
    group_file_stem,
    render_csv,
    render_json,
    write_group_outputs,
    write_run_summary,
)
from munihash.report.summary import GroupSummary, RunSummary
from munihash.report.verify import verify_group_csv

from conftest import make_record


@pytest.fixture()
def results(fast_params: KDFParams) -> list[HashResult]:
    records = [
        make_record("1100031", primary_name="CABIXI"),
        make_record("1100015", primary_name='ALTA "FLORESTA"; D\'OESTE'),
        make_record("1100023", secondary_name="Ariquemes"),
    ]
    return [hash_record(r, fast_params) for r in records]


class TestFileNames:
    def test_plain_group(self) -> None:
        assert group_file_stem("RO") == "municipios_hash_RO"

    def test_unsafe_characters_replaced(self) -> None:
        assert group_file_stem("A/B C") == "municipios_hash_A_B_C"


class TestRenderCsv:
    def test_header_and_column_order(self, results: list[HashResult]) -> None:
        lines = render_csv(results).splitlines()
        assert lines[0] == "IBGE;TOM;Nome(TOM);Nome(IBGE);UF;HASH_HEX"
        assert len(lines) == 4

    def test_rows_sorted_by_identifier(self, results: list[HashResult]) -> None:
        lines = render_csv(results).splitlines()[1:]
        assert [ln.split(";")[0] for ln in lines] == ["1100015", "1100023", "1100031"]

    def test_delimiter_and_quotes_escaped(self, results: list[HashResult]) -> None:
        text = render_csv(results)
        assert '"ALTA ""FLORESTA""; D\'OESTE"' in text

    def test_empty_results_header_only(self) -> None:
        assert render_csv([]) == ";".join(OutputSchemaV1.HEADERS) + "\n"


class TestRenderJson:
    def test_array_of_records(self, results: list[HashResult]) -> None:
        data = json.loads(render_json(results))
        assert [d["identifier"] for d in data] == ["1100015", "1100023", "1100031"]
        assert set(data[0]) == set(OutputSchemaV1.COLUMNS)

    def test_indented_and_non_ascii_kept(self, fast_params: KDFParams) -> None:
        text = render_json([hash_record(make_record("1200013", group="AC", secondary_name="Acrelândia"), fast_params)])
        assert "Acrelândia" in text
        assert text.startswith("[\n  {")


class TestWriteGroupOutputs:
    def test_writes_both_files(self, results: list[HashResult], tmp_path: Path) -> None:
        out = write_group_outputs("RO", results, tmp_path / "out")
        assert out.csv_path == tmp_path / "out" / "municipios_hash_RO.csv"
        assert out.json_path.exists()
        assert out.record_count == 3
        assert out.csv_path.read_text("utf-8") == render_csv(results)

    def test_insertion_order_does_not_change_bytes(self, results: list[HashResult], tmp_path: Path) -> None:
        a = write_group_outputs("RO", results, tmp_path / "a")
        b = write_group_outputs("RO", list(reversed(results)), tmp_path / "b")
        assert a.csv_path.read_bytes() == b.csv_path.read_bytes()
        assert a.json_path.read_bytes() == b.json_path.read_bytes()

    def test_partial_output_removed_on_failure(
        self, results: list[HashResult], tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def broken_json(_results):
            raise TypeError("not serializable")

        monkeypatch.setattr(export_mod, "render_json", broken_json)
        with pytest.raises(OutputError) as info:
            write_group_outputs("RO", results, tmp_path)

        assert info.value.group == "RO"
        assert info.value.stage == "output"
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_directory(self, results: list[HashResult], tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(OutputError):
            write_group_outputs("RO", results, blocker / "sub")


class TestRunSummary:
    def test_written_as_json(self, tmp_path: Path) -> None:
        summary = RunSummary(
            schema_version="v1",
            schema_hash=OutputSchemaV1.SCHEMA_HASH,
            params_fingerprint="abc",
            iterations=10,
            output_length=32,
            hash_name="sha256",
            max_workers=2,
            executor="thread",
            groups=[GroupSummary(group="RO", record_count=3, elapsed_seconds=0.5, csv_path="a", json_path="b")],
        )
        path = write_run_summary(summary, tmp_path / "summary.json")
        data = json.loads(path.read_text())
        assert data["total_records"] == 3
        assert data["groups"][0]["group"] == "RO"
        assert "finished_at" not in data


class TestVerify:
    def test_clean_file_verifies(self, engine: HashingEngine, results: list[HashResult], tmp_path: Path) -> None:
        out = write_group_outputs("RO", results, tmp_path)
        report = verify_group_csv(out.csv_path, engine)
        assert report.ok
        assert report.checked == 3

    def test_tampered_row_detected(self, engine: HashingEngine, results: list[HashResult], tmp_path: Path) -> None:
        out = write_group_outputs("RO", results, tmp_path)
        text = out.csv_path.read_text("utf-8").replace("CABIXI", "CABIXY")
        out.csv_path.write_text(text, "utf-8")

        report = verify_group_csv(out.csv_path, engine)
        assert not report.ok
        assert report.mismatched == ["1100031"]

    @pytest.mark.parametrize("bad_digest", ["NOT-HEX", "upper"])
    def test_malformed_digest_is_a_mismatch(
        self, engine: HashingEngine, results: list[HashResult], tmp_path: Path, bad_digest: str,
    ) -> None:
        out = write_group_outputs("RO", results, tmp_path)
        target = next(r for r in results if r.identifier == "1100023")
        replacement = target.digest_hex.upper() if bad_digest == "upper" else bad_digest
        text = out.csv_path.read_text("utf-8").replace(target.digest_hex, replacement)
        out.csv_path.write_text(text, "utf-8")

        report = verify_group_csv(out.csv_path, engine)
        assert report.checked == 3
        assert report.mismatched == ["1100023"]

    def test_wrong_parameters_detected(self, results: list[HashResult], tmp_path: Path) -> None:
        out = write_group_outputs("RO", results, tmp_path)
        other = HashingEngine(KDFParams(iterations=11), max_workers=2)
        assert len(verify_group_csv(out.csv_path, other).mismatched) == 3

    def test_leading_zero_codes_survive_round_trip(self, engine: HashingEngine, fast_params: KDFParams, tmp_path: Path) -> None:
        rec = make_record("1100015", secondary_code="0001")
        out = write_group_outputs("RO", [hash_record(rec, fast_params)], tmp_path)
        assert verify_group_csv(out.csv_path, engine).ok

    def test_header_only_file(self, engine: HashingEngine, tmp_path: Path) -> None:
        out = write_group_outputs("RO", [], tmp_path)
        report = verify_group_csv(out.csv_path, engine)
        assert report.checked == 0
        assert report.ok

    def test_foreign_columns_rejected(self, engine: HashingEngine, tmp_path: Path) -> None:
        path = tmp_path / "x.csv"
        path.write_text("a;b\n1;2\n")
        with pytest.raises(ValueError, match="Missing columns"):
            verify_group_csv(path, engine)
