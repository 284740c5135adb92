"""munihash: parallel deterministic PBKDF2 digests for tabular records."""

__version__ = "0.1.0"
