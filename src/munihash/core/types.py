"""Core data contracts: records, hash results, and per-group batches."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, Field

# Field order used for the password encoding and every output format.
# Do NOT reorder without bumping the salt domain tag: digests depend on it.
RECORD_FIELDS: Final[tuple[str, ...]] = (
    "identifier",
    "secondary_code",
    "primary_name",
    "secondary_name",
    "group",
)


class Record(BaseModel, frozen=True):
    """One dataset entry (a municipality in the Receita Federal table).

    ``identifier`` is the stable key the salt is bound to (the IBGE code).
    It is validated lazily by the hashing engine rather than here, so that
    a blank identifier surfaces as a configuration error naming its batch
    instead of a parse failure.
    """

    identifier: str = Field(description="Stable unique key; salt source and join key (IBGE code).")
    secondary_code: str = Field(description="Secondary administrative code (TOM code).")
    primary_name: str = Field(description="Display name under the primary code system.")
    secondary_name: str = Field(description="Display name under the secondary code system.")
    group: str = Field(description="Coarse partition key, e.g. a state code.")

    def field_values(self) -> tuple[str, ...]:
        """Field values in :data:`RECORD_FIELDS` order."""
        return tuple(getattr(self, name) for name in RECORD_FIELDS)


class HashResult(Record, frozen=True):
    """A :class:`Record` enriched with its integrity digest."""

    digest_hex: str = Field(
        pattern=r"^[0-9a-f]+$",
        description="Lowercase hex digest, 2 x output length characters.",
    )

    @classmethod
    def from_record(cls, record: Record, digest_hex: str) -> HashResult:
        return cls(**record.model_dump(), digest_hex=digest_hex)


class Batch(BaseModel, frozen=True):
    """All records sharing one group key, processed by one engine run.

    Order inside ``records`` carries no meaning.
    """

    group: str
    records: tuple[Record, ...] = ()

    def __len__(self) -> int:
        return len(self.records)
