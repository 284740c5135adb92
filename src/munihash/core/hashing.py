"""Deterministic hashing: salt builder, PBKDF2 wrapper, and fingerprints.

Everything here is a pure function of its arguments.  The salt is derived
from the record identifier instead of being drawn at random: digests have
to be re-derivable byte for byte when a run is audited or diffed, which a
random salt would make impossible.  Do not "fix" this by switching to
:func:`os.urandom`.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass
from typing import Iterable

from munihash.core.defaults import (
    DEFAULT_HASH_BYTES,
    DEFAULT_HASH_NAME,
    DEFAULT_ITERATIONS,
    DEFAULT_SALT_BYTES,
    SALT_DOMAIN_TAG,
)
from munihash.core.errors import ConfigurationError
from munihash.core.types import HashResult, Record

_HASH_TRUNCATION = 12
_PBKDF2_HASHES = frozenset({"sha1", "sha224", "sha256", "sha384", "sha512"})


def stable_hash(payload: str) -> str:
    """Deterministic SHA-256 of *payload*, truncated to 12 hex chars.

    Used for schema and parameter fingerprints, never for record digests.

    Args:
        payload: Arbitrary string to hash.

    Returns:
        First 12 hexadecimal characters of the SHA-256 digest.
    """
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return digest[:_HASH_TRUNCATION]


@dataclass(frozen=True)
class KDFParams:
    """PBKDF2 configuration shared by every record of a run.

    Validated on construction so that a bad value fails before any worker
    is scheduled.
    """

    iterations: int = DEFAULT_ITERATIONS
    output_length: int = DEFAULT_HASH_BYTES
    salt_length: int = DEFAULT_SALT_BYTES
    hash_name: str = DEFAULT_HASH_NAME

    def __post_init__(self) -> None:
        if not isinstance(self.iterations, int) or self.iterations < 1:
            raise ConfigurationError(f"iterations must be a positive integer, got {self.iterations!r}")
        if not isinstance(self.output_length, int) or self.output_length < 1:
            raise ConfigurationError(f"output_length must be a positive integer, got {self.output_length!r}")
        if not isinstance(self.salt_length, int) or self.salt_length < 1:
            raise ConfigurationError(f"salt_length must be a positive integer, got {self.salt_length!r}")
        if self.hash_name not in _PBKDF2_HASHES:
            raise ConfigurationError(f"Unsupported hash algorithm {self.hash_name!r}")

    @property
    def hex_length(self) -> int:
        return 2 * self.output_length


def params_fingerprint(params: KDFParams) -> str:
    """Short deterministic fingerprint of *params* for run manifests."""
    return stable_hash(json.dumps(asdict(params), sort_keys=True, separators=(",", ":")))


def build_salt(identifier: str, length: int = DEFAULT_SALT_BYTES) -> bytes:
    """Derive a fixed-length salt from a record identifier.

    SHAKE-256 over a domain tag followed by the UTF-8 identifier, read out
    to *length* bytes.  Same identifier, same salt, in every process and run.

    Args:
        identifier: Stable record identifier (must be non-empty).
        length: Salt length in bytes.

    Returns:
        Exactly *length* bytes.

    Raises:
        ConfigurationError: If *identifier* is empty or *length* < 1.
    """
    if not identifier:
        raise ConfigurationError("Cannot build a salt from an empty identifier")
    if length < 1:
        raise ConfigurationError(f"Salt length must be positive, got {length}")
    return hashlib.shake_256(SALT_DOMAIN_TAG + identifier.encode("utf-8")).digest(length)


def encode_password(fields: Iterable[str]) -> bytes:
    """Concatenate *fields* into PBKDF2 password bytes.

    Each field is UTF-8 encoded and prefixed with its byte length and a
    colon (``b"2:AB1:C"``), so distinct tuples never share an encoding:
    ``("AB", "C")`` and ``("A", "BC")`` stay apart.
    """
    parts: list[bytes] = []
    for value in fields:
        raw = value.encode("utf-8")
        parts.append(str(len(raw)).encode("ascii") + b":" + raw)
    return b"".join(parts)


def derive(password: bytes, salt: bytes, params: KDFParams) -> bytes:
    """Run PBKDF2-HMAC over *password* and *salt*.

    Raises:
        ConfigurationError: If *password* is empty or *salt* does not have
            ``params.salt_length`` bytes.
    """
    if not password:
        raise ConfigurationError("Password must be non-empty")
    if len(salt) != params.salt_length:
        raise ConfigurationError(
            f"Salt must be {params.salt_length} bytes, got {len(salt)}"
        )
    return hashlib.pbkdf2_hmac(
        params.hash_name,
        password,
        salt,
        params.iterations,
        dklen=params.output_length,
    )


def derive_hex(password: bytes, salt: bytes, params: KDFParams) -> str:
    """:func:`derive` rendered as lowercase hex of ``2 * output_length`` chars."""
    return derive(password, salt, params).hex()


def hash_record(record: Record, params: KDFParams) -> HashResult:
    """Salt builder, KDF and formatting for one record.

    Module-level so process pools can pickle it.
    """
    salt = build_salt(record.identifier, params.salt_length)
    password = encode_password(record.field_values())
    return HashResult.from_record(record, derive_hex(password, salt, params))
