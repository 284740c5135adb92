"""Shared fixtures for the munihash test suite."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from munihash.core.hashing import KDFParams
from munihash.core.types import Batch, Record
from munihash.engine.engine import HashingEngine

# Low iteration count keeps the suite fast; determinism does not depend on it.
TEST_ITERATIONS = 10

SAMPLE_CSV = (
    "TOM;IBGE;Nome(TOM);Nome(IBGE);UF\r\n"
    "0001;1100015;ALTA FLORESTA D'OESTE;Alta Floresta D'Oeste;RO\r\n"
    "0002;1100023;ARIQUEMES;Ariquemes;RO\r\n"
    "0003;1100031;CABIXI;Cabixi;RO\r\n"
    "0643;1200013;ACRELANDIA;Acrelândia;AC\r\n"
    "0157;1200054;ASSIS BRASIL;Assis Brasil;AC\r\n"
    "9701;5300108;BRASILIA;Brasília;df\r\n"
)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo CLI logging setup so later tests see default propagation."""
    yield
    pkg_logger = logging.getLogger("munihash")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)


def make_record(identifier: str, group: str = "RO", **overrides: str) -> Record:
    data = {
        "identifier": identifier,
        "secondary_code": f"T{identifier[-4:]}",
        "primary_name": f"MUNICIPIO {identifier}",
        "secondary_name": f"Municipio {identifier}",
        "group": group,
    }
    data.update(overrides)
    return Record(**data)


@pytest.fixture()
def fast_params() -> KDFParams:
    return KDFParams(iterations=TEST_ITERATIONS)


@pytest.fixture()
def engine(fast_params: KDFParams) -> HashingEngine:
    return HashingEngine(fast_params, max_workers=4)


@pytest.fixture()
def ro_batch() -> Batch:
    return Batch(
        group="RO",
        records=tuple(make_record(i) for i in ("1100015", "1100023", "1100031")),
    )


@pytest.fixture()
def sample_csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "municipios.csv"
    path.write_bytes(SAMPLE_CSV.encode("latin-1"))
    return path
