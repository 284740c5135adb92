"""Run configuration: YAML-backed settings for a munihash run.

Typical file::

    source_url: https://www.gov.br/receitafederal/dados/municipios.csv
    fetch_timeout_seconds: 300
    out_dir: mun_hash_por_uf
    max_workers: null        # null -> os.cpu_count()
    executor: thread
    hashing:
      iterations: 50000
      output_length: 32
      salt_length: 32
      hash_name: sha256

Usage::

    from munihash.core.config import load_run_config

    cfg = load_run_config(Path("munihash.yaml"))
    params = cfg.kdf_params()   # raises ConfigurationError on bad values

Values are checked when converted to :class:`~munihash.core.hashing.KDFParams`,
not when the YAML is parsed, so CLI overrides can still fix a bad file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from munihash.core.defaults import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_HASH_BYTES,
    DEFAULT_HASH_NAME,
    DEFAULT_ITERATIONS,
    DEFAULT_OUT_DIR,
    DEFAULT_SALT_BYTES,
    DEFAULT_SOURCE_URL,
)
from munihash.core.errors import ConfigurationError
from munihash.core.hashing import KDFParams

logger = logging.getLogger(__name__)

ExecutorKind = Literal["thread", "process"]


class HashingSettings(BaseModel):
    """Key-derivation knobs forwarded to :class:`KDFParams`."""

    iterations: int = DEFAULT_ITERATIONS
    output_length: int = DEFAULT_HASH_BYTES
    salt_length: int = DEFAULT_SALT_BYTES
    hash_name: str = DEFAULT_HASH_NAME


class RunConfig(BaseModel):
    """Dataset source, output location, worker pool and hashing settings."""

    source_url: str = DEFAULT_SOURCE_URL
    fetch_timeout_seconds: float = Field(default=DEFAULT_FETCH_TIMEOUT_SECONDS, gt=0)
    out_dir: str = DEFAULT_OUT_DIR
    max_workers: int | None = None
    executor: ExecutorKind = "thread"
    hashing: HashingSettings = Field(default_factory=HashingSettings)

    def kdf_params(self) -> KDFParams:
        """Build validated KDF parameters.

        Raises:
            ConfigurationError: If any hashing setting is invalid.
        """
        h = self.hashing
        return KDFParams(
            iterations=h.iterations,
            output_length=h.output_length,
            salt_length=h.salt_length,
            hash_name=h.hash_name,
        )

    def with_overrides(self, **overrides: object) -> RunConfig:
        """Return a copy with non-``None`` *overrides* applied.

        Keys matching :class:`HashingSettings` fields go into ``hashing``;
        everything else is a top-level field.
        """
        top: dict[str, object] = {}
        hashing: dict[str, object] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key in HashingSettings.model_fields:
                hashing[key] = value
            else:
                top[key] = value
        if hashing:
            top["hashing"] = self.hashing.model_copy(update=hashing)
        return self.model_copy(update=top)


def load_run_config(path: Path) -> RunConfig:
    """Load a :class:`RunConfig` from a YAML file.

    An empty file yields the defaults.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, or
            does not match the :class:`RunConfig` schema.
    """
    try:
        raw = yaml.safe_load(path.read_text("utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config {path}: {exc}") from exc
    try:
        return RunConfig.model_validate(raw or {})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config {path}: {exc}") from exc


def save_run_config(config: RunConfig, path: Path) -> Path:
    """Serialize *config* to YAML.

    Returns:
        The *path* that was written.
    """
    data = config.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False), "utf-8")
    logger.debug("Wrote run config to %s", path)
    return path
