"""Centralised default constants for munihash.

Every project-wide magic number / string lives here.
Import these instead of hard-coding values in function signatures or CLI options.
"""

from __future__ import annotations

from typing import Final

# ── Key derivation ──
DEFAULT_ITERATIONS: Final[int] = 50_000
DEFAULT_HASH_BYTES: Final[int] = 32
DEFAULT_SALT_BYTES: Final[int] = 32
DEFAULT_HASH_NAME: Final[str] = "sha256"
SALT_DOMAIN_TAG: Final[bytes] = b"munihash/salt/v1\x00"

# ── Worker pool ──
DEFAULT_EXECUTOR: Final[str] = "thread"
# Tasks kept in flight per worker; bounds the pending queue of a batch.
DEFAULT_INFLIGHT_PER_WORKER: Final[int] = 4

# ── Dataset source ──
DEFAULT_SOURCE_URL: Final[str] = "https://www.gov.br/receitafederal/dados/municipios.csv"
DEFAULT_FETCH_TIMEOUT_SECONDS: Final[int] = 300
FIELD_DELIMITER: Final[str] = ";"
MIN_FIELDS_PER_ROW: Final[int] = 5

# ── Output ──
DEFAULT_OUT_DIR: Final[str] = "mun_hash_por_uf"
OUTPUT_FILE_PREFIX: Final[str] = "municipios_hash_"
SUMMARY_FILENAME: Final[str] = "summary.json"
