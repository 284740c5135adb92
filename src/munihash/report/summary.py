"""Run summary models: per-group progress records and the final run manifest."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class GroupSummary(BaseModel, frozen=True):
    """Outcome of one group: record count, timing, and written files."""

    group: str
    record_count: int = Field(ge=0)
    elapsed_seconds: float = Field(ge=0.0)
    csv_path: str
    json_path: str


class RunSummary(BaseModel):
    """Manifest of a completed run, written as ``summary.json``.

    ``schema_hash`` and ``params_fingerprint`` let a later verification run
    confirm it is reading files produced with the same layout and KDF
    settings.
    """

    schema_version: str
    schema_hash: str
    params_fingerprint: str
    iterations: int
    output_length: int
    hash_name: str
    max_workers: int
    executor: str
    groups: list[GroupSummary] = Field(default_factory=list)
    dropped_rows: int = 0
    excluded_records: int = 0
    total_elapsed_seconds: float = 0.0
    finished_at: datetime | None = None

    @property
    def total_records(self) -> int:
        return sum(g.record_count for g in self.groups)
